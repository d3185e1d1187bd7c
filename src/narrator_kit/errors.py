# src/narrator_kit/errors.py

"""Error taxonomy for narrator-kit.

Most public methods treat bad arguments as usage errors: they log a warning
and return an empty value. The classes below are raised only where no
sensible empty value exists.
"""

STATUS_MESSAGES: dict[int, str] = {
    400: "Invalid request sent to the AI service",
    401: "Invalid API key",
    403: "Access to the AI service was denied",
    429: "Rate limit exceeded, try again shortly",
    500: "AI service internal error",
    502: "AI service unavailable",
    503: "AI service unavailable",
    504: "AI service timed out",
}


class NarratorKitError(Exception):
    """Base class for all narrator-kit errors."""


class UsageError(NarratorKitError, ValueError):
    """Invalid argument where no safe default exists."""


class SourceNotFoundError(NarratorKitError, KeyError):
    """The document repository does not know the requested source."""

    def __init__(self, source_id: str) -> None:
        self.source_id = source_id
        super().__init__(f"Source '{source_id}' not found")

    def __str__(self) -> str:
        return str(self.args[0])


class AssistantError(NarratorKitError):
    """The AI collaborator rejected or failed a request."""

    is_network_error = False

    def __init__(
        self,
        message: str,
        status: int | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.code = code

    @classmethod
    def from_status(cls, status: int, detail: str | None = None) -> "AssistantError":
        message = STATUS_MESSAGES.get(status, f"AI service error (HTTP {status})")
        if detail:
            message = f"{message}: {detail}"
        return cls(message, status=status, code=f"http_{status}")


class AssistantNetworkError(AssistantError):
    """The AI collaborator could not be reached or timed out."""

    is_network_error = True

    def __init__(self, message: str = "Unable to reach the AI service") -> None:
        super().__init__(message, status=None, code="network_error")
