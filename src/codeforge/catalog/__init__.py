"""Provider/model catalog and use-case scoring."""

from .catalog import Catalog, default_catalog, find_model
from .defaults import BUILTIN_PROVIDERS
from .descriptors import (
    ModelCapabilities,
    ModelDescriptor,
    Pricing,
    ProviderDescriptor,
    ProviderFeatures,
)
from .scoring import ModelScorer, Recommendation, ScoringWeights

__all__ = [
    "Catalog",
    "default_catalog",
    "find_model",
    "BUILTIN_PROVIDERS",
    "ModelCapabilities",
    "ModelDescriptor",
    "Pricing",
    "ProviderDescriptor",
    "ProviderFeatures",
    "ModelScorer",
    "Recommendation",
    "ScoringWeights",
]
