"""codeforge - multi-provider AI generation orchestration."""

__version__ = "0.1.0"

from .config import Config
from .errors import (
    CodeforgeError,
    CredentialMissingError,
    ModelNotFoundError,
    PersistFailedError,
    ProviderNotFoundError,
    RegenerationBudgetExhausted,
    RequestFailedError,
    ResponseParseError,
    StageFailedError,
    StreamCancelledError,
    StreamConsumedError,
)
from .models import (
    GeneratedArtifact,
    GenerationContext,
    GenerationRequest,
    GenerationRequirements,
    ReviewResult,
)
from .registry import ProviderRegistry
from .session import GenerationSession

__all__ = [
    "Config",
    "CodeforgeError",
    "CredentialMissingError",
    "ModelNotFoundError",
    "PersistFailedError",
    "ProviderNotFoundError",
    "RegenerationBudgetExhausted",
    "RequestFailedError",
    "ResponseParseError",
    "StageFailedError",
    "StreamCancelledError",
    "StreamConsumedError",
    "GeneratedArtifact",
    "GenerationContext",
    "GenerationRequest",
    "GenerationRequirements",
    "ReviewResult",
    "ProviderRegistry",
    "GenerationSession",
]
