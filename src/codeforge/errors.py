"""Exception types raised by the orchestration layer."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .models import GeneratedArtifact


class CodeforgeError(Exception):
    """Base class for all codeforge errors."""


class CredentialMissingError(CodeforgeError):
    """Raised when a provider has no usable credential (and so no adapter)."""

    def __init__(self, provider_id: str):
        super().__init__(
            f"No credential registered for provider '{provider_id}'. "
            f"Set its API key in your .env file or register it at runtime."
        )
        self.provider_id = provider_id


class ModelNotFoundError(CodeforgeError, LookupError):
    """Raised when a (provider, model) pair is not in the catalog."""

    def __init__(self, provider_id: str, model_id: Optional[str] = None, message: Optional[str] = None):
        super().__init__(message or f"Model '{model_id}' not found for provider '{provider_id}'")
        self.provider_id = provider_id
        self.model_id = model_id


class ProviderNotFoundError(ModelNotFoundError):
    """Raised when a provider id is not in the catalog.

    An unknown provider means the requested pair cannot exist either, so this
    is a ModelNotFoundError too.
    """

    def __init__(self, provider_id: str, model_id: Optional[str] = None):
        super().__init__(provider_id, model_id, message=f"Provider '{provider_id}' not found")


class RequestFailedError(CodeforgeError):
    """Raised when an upstream call fails (network, timeout, non-2xx status)."""

    def __init__(
        self,
        message: str,
        provider_id: Optional[str] = None,
        status_code: Optional[int] = None,
        retryable: bool = True,
    ):
        super().__init__(message)
        self.provider_id = provider_id
        self.status_code = status_code
        self.retryable = retryable


class ResponseParseError(CodeforgeError):
    """Raised when an upstream payload is missing or malformed."""

    def __init__(self, message: str, provider_id: Optional[str] = None):
        super().__init__(message)
        self.provider_id = provider_id


class PersistFailedError(CodeforgeError):
    """Raised (or recorded) when the storage collaborator keeps failing.

    The in-memory artifact is still available on ``artifact``.
    """

    def __init__(self, message: str, artifact: Optional["GeneratedArtifact"] = None):
        super().__init__(message)
        self.artifact = artifact


class RegenerationBudgetExhausted(CodeforgeError):
    """Regeneration ran out of budget below the acceptance threshold.

    Recorded on the returned artifact's failures, never raised: the best
    attempt is always returned.
    """

    def __init__(self, best_score: Optional[float], threshold: float):
        super().__init__(
            f"Regeneration budget exhausted; best score {best_score} is below threshold {threshold}"
        )
        self.best_score = best_score
        self.threshold = threshold


class StageFailedError(CodeforgeError):
    """Raised when a pipeline stage exhausts its retry/fallback budget."""

    def __init__(self, stage: Any, cause: Optional[BaseException] = None):
        stage_name = getattr(stage, "value", stage)
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Pipeline stage '{stage_name}' failed{detail}")
        self.stage = stage
        self.cause = cause


class StreamCancelledError(CodeforgeError):
    """Raised when a stream is cancelled explicitly; keeps delivered text."""

    def __init__(self, partial: str = ""):
        super().__init__("Stream cancelled by caller")
        self.partial = partial


class StreamConsumedError(CodeforgeError, RuntimeError):
    """Raised when a single-consumer stream is iterated a second time."""
