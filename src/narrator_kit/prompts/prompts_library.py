# src/narrator_kit/prompts/prompts_library.py

import logging
from pathlib import Path

import yaml

from .prompt import Prompt

logger = logging.getLogger(__name__)

DEFAULT_PROMPTS_DIR = Path(__file__).resolve().parent.parent / "assistant" / "prompts"


class PromptsLibrary:
    """Versioned prompt templates loaded from a directory of YAML files."""

    def __init__(self, directory: str | Path = DEFAULT_PROMPTS_DIR) -> None:
        self._prompts: dict[tuple[str, str], Prompt] = {}
        logger.info("Initializing PromptsLibrary from directory: %s", directory)
        self._load_all(Path(directory))
        logger.info("Loaded %d prompts", len(self._prompts))

    def get(self, name: str, version: str = "1.0") -> Prompt:
        logger.debug("Getting prompt: name=%s, version=%s", name, version)
        try:
            return self._prompts[(name, version)]
        except KeyError:
            logger.error("Prompt not found: name=%s, version=%s", name, version)
            raise KeyError(f"Prompt '{name}' version '{version}' not found")

    def render(self, name: str, version: str = "1.0", **values: object) -> str:
        return self.get(name, version).render(**values)

    def list(self) -> list[tuple[str, str]]:
        return list(self._prompts.keys())

    def _load_all(self, directory: Path) -> None:
        for file_path in sorted(directory.glob("*.yaml")):
            prompt = self._load_prompt(file_path)
            self._prompts[(prompt.name, prompt.version)] = prompt
            logger.debug(
                "Loaded prompt: %s v%s from %s", prompt.name, prompt.version, file_path
            )

    def _load_prompt(self, file_path: Path) -> Prompt:
        with open(file_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return Prompt(**data)
