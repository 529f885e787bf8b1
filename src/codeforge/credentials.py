"""Credential sources for provider registration."""

import os
from typing import Mapping, Optional, Protocol, runtime_checkable


# One credential slot per built-in provider id.
CREDENTIAL_ENV_VARS: dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "google": "GOOGLE_AI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "groq": "GROQ_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
    "cohere": "COHERE_API_KEY",
    "perplexity": "PERPLEXITY_API_KEY",
    "together": "TOGETHER_API_KEY",
    "xai": "XAI_API_KEY",
    "replicate": "REPLICATE_API_TOKEN",
    "huggingface": "HUGGINGFACE_API_KEY",
}

PLACEHOLDER_PREFIX = "your_"


def is_usable_credential(value: Optional[str]) -> bool:
    """True for a non-empty credential that is not a template placeholder."""
    if value is None:
        return False
    value = value.strip()
    return bool(value) and not value.lower().startswith(PLACEHOLDER_PREFIX)


@runtime_checkable
class CredentialSource(Protocol):
    """Looks up the credential for a provider id."""

    def get(self, provider_id: str) -> Optional[str]:
        """Return the raw credential string, or None when the slot is empty."""
        ...


class EnvCredentialSource:
    """Reads credentials from environment variables (``.env`` loaded by config)."""

    def __init__(self, env_vars: Optional[Mapping[str, str]] = None):
        self.env_vars = dict(env_vars or CREDENTIAL_ENV_VARS)

    def get(self, provider_id: str) -> Optional[str]:
        name = self.env_vars.get(provider_id)
        return os.getenv(name) if name else None


class StaticCredentialSource:
    """Credentials from an explicit mapping."""

    def __init__(self, credentials: Optional[Mapping[str, str]] = None):
        self.credentials = dict(credentials or {})

    def get(self, provider_id: str) -> Optional[str]:
        return self.credentials.get(provider_id)
