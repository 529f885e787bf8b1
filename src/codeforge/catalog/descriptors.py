"""Immutable provider and model descriptors."""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class ModelCapabilities(BaseModel):
    """Capability flags for a single model."""

    model_config = ConfigDict(frozen=True)

    coding: bool = False
    vision: bool = False
    function_calling: bool = False
    streaming: bool = True
    json_mode: bool = False


class Pricing(BaseModel):
    """USD price per one million tokens."""

    model_config = ConfigDict(frozen=True)

    input: float = Field(ge=0)
    output: float = Field(ge=0)


class ModelDescriptor(BaseModel):
    """Catalog entry for one model, owned by its provider."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    context_window: int = Field(default=4096, gt=0)
    capabilities: ModelCapabilities = Field(default_factory=ModelCapabilities)
    strengths: tuple[str, ...] = ()
    best_for: tuple[str, ...] = ()
    pricing: Optional[Pricing] = None


class ProviderFeatures(BaseModel):
    """Provider-level feature flags."""

    model_config = ConfigDict(frozen=True)

    vision: bool = False
    function_calling: bool = False
    streaming: bool = True


class ProviderDescriptor(BaseModel):
    """Catalog entry for one provider and its models."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    website: Optional[str] = None
    models: tuple[ModelDescriptor, ...] = ()
    requires_api_key: bool = True
    base_url: Optional[str] = None
    features: ProviderFeatures = Field(default_factory=ProviderFeatures)
    route_prefix: Optional[str] = Field(
        default=None, description="litellm route prefix, e.g. 'gemini' for gemini/<model>"
    )
    custom: bool = Field(default=False, description="True for providers registered at runtime")

    def get_model(self, model_id: str) -> Optional[ModelDescriptor]:
        """Return the model with ``model_id`` or None."""
        for model in self.models:
            if model.id == model_id:
                return model
        return None

    @property
    def default_model(self) -> Optional[ModelDescriptor]:
        return self.models[0] if self.models else None
