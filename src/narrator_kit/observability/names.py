# src/narrator_kit/observability/names.py

"""Standard metric names for narrator-kit observability.

Use these constants instead of hardcoded strings for consistency
across the codebase.

Note: All duration metrics are in milliseconds by convention.
Units are handled by the metrics backend (e.g., converted to seconds in Prometheus).
"""

# ============================================================================
# LLM Metrics
# ============================================================================

# Duration
LLM_COMPLETION_DURATION = "llm_completion_duration"

# Counters
LLM_REQUESTS_TOTAL = "llm_requests_total"
LLM_ERRORS_TOTAL = "llm_errors_total"

# Counters (token usage - monotonic over time for cost/rate tracking)
LLM_TOKENS_PROMPT = "llm_tokens_prompt"
LLM_TOKENS_COMPLETION = "llm_tokens_completion"
LLM_TOKENS_TOTAL = "llm_tokens_total"


# ============================================================================
# Corpus Metrics
# ============================================================================

# Duration
CORPUS_PARSE_DURATION = "corpus_parse_duration"
STRUCTURE_EXTRACTION_DURATION = "structure_extraction_duration"

# Counters
CORPUS_UNITS_PARSED = "corpus_units_parsed"
CORPUS_CACHE_HITS = "corpus_cache_hits"
CORPUS_PARSE_ERRORS_TOTAL = "corpus_parse_errors_total"

# Gauges
CORPUS_CACHED_SOURCES = "corpus_cached_sources"


# ============================================================================
# Keyword Index Metrics
# ============================================================================

# Counters
INDEX_EVICTIONS_TOTAL = "index_evictions_total"

# Gauges
INDEX_SIZE = "index_size"


# ============================================================================
# Transcript Detection Metrics
# ============================================================================

# Counters
SCENE_TRANSITIONS_TOTAL = "scene_transitions_total"
RULES_QUESTIONS_TOTAL = "rules_questions_total"


# ============================================================================
# Assistant Metrics
# ============================================================================

# Duration
ASSISTANT_REQUEST_DURATION = "assistant_request_duration"

# Counters
ASSISTANT_REQUESTS_TOTAL = "assistant_requests_total"
ASSISTANT_ERRORS_TOTAL = "assistant_errors_total"
ASSISTANT_PARSE_FALLBACKS_TOTAL = "assistant_parse_fallbacks_total"
