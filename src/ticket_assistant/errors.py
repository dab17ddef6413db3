"""Error taxonomy for retrieval, generation and tool dispatch."""

from __future__ import annotations

from typing import Any

_QUOTA_MARKERS = ("429", "resource_exhausted", "quota", "rate limit")


class AssistantError(Exception):
    """Base exception for the ticket assistant."""


class ValidationError(AssistantError, ValueError):
    """Raised when a conversation request is malformed."""


class EmbeddingProviderError(AssistantError):
    """Raised when the embedding provider fails or returns unusable vectors."""


class GenerationServiceError(AssistantError):
    """Raised when the generation backend fails."""


class GenerationQuotaExceeded(GenerationServiceError):
    """Raised when the generation backend reports rate or quota exhaustion."""


class ToolHandlerError(AssistantError):
    """Wraps a failed tool handler so it can be reported back to the model."""

    def __init__(self, tool_name: str, message: str) -> None:
        super().__init__(f"{tool_name}: {message}")
        self.tool_name = tool_name
        self.message = message

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.message}


def _status_candidates(exc: BaseException) -> list[Any]:
    values = [getattr(exc, attr, None) for attr in ("status_code", "status", "code")]
    response = getattr(exc, "response", None)
    values.append(getattr(response, "status_code", None))
    return [value for value in values if value is not None]


def is_quota_error(exc: BaseException) -> bool:
    """Return True when ``exc`` signals rate limiting or quota exhaustion."""
    if isinstance(exc, GenerationQuotaExceeded):
        return True
    if any(status == 429 or str(status) == "429" for status in _status_candidates(exc)):
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _QUOTA_MARKERS)
