"""Pytest configuration and shared fixtures."""

import asyncio
from typing import Any, AsyncIterator, Optional

import pytest

from codeforge.catalog import Catalog, ModelCapabilities, ModelDescriptor, ProviderDescriptor, ProviderFeatures
from codeforge.config import Config
from codeforge.credentials import StaticCredentialSource
from codeforge.llm.provider import GenerationOptions, LLMResponse, ProviderAdapter
from codeforge.registry import ProviderRegistry
from codeforge.session import GenerationSession

GOOD_COMPONENT = """```tsx
import React from 'react';
import clsx from 'clsx';

interface ButtonProps {
  label: string;
}

export const Button = ({ label }: ButtonProps) => (
  <button className={clsx('btn')} aria-label={label}>{label}</button>
);
```"""

POOR_COMPONENT = """```tsx
export const Widget = (props: any) => {
  eval(props.code);
  console.log(props);
  return <div dangerouslySetInnerHTML={{ __html: props.html }} />;
};
```"""


class FakeAdapter(ProviderAdapter):
    """Scripted adapter.

    ``responses`` are returned in order (the last one repeats). ``errors``
    are consumed one per call before any response; a None entry means the
    call succeeds.
    """

    def __init__(
        self,
        descriptor: ProviderDescriptor,
        credential: Optional[str] = None,
        responses: Optional[list[str]] = None,
        errors: Optional[list[Optional[BaseException]]] = None,
        fragments: Optional[list[str]] = None,
        delay: float = 0.0,
        **kwargs: Any,
    ):
        super().__init__(descriptor, credential, **kwargs)
        self.responses = list(responses or [GOOD_COMPONENT])
        self.errors = list(errors or [])
        self.fragments = fragments
        self.delay = delay
        self.calls: list[tuple[str, Optional[GenerationOptions]]] = []
        self.stream_closed = False
        self.closed = False

    def _maybe_fail(self) -> None:
        if self.errors:
            error = self.errors.pop(0)
            if error is not None:
                raise error

    def _next_response(self) -> str:
        return self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]

    async def generate(self, prompt: str, options: Optional[GenerationOptions] = None) -> LLMResponse:
        self.calls.append((prompt, options))
        if self.delay:
            await asyncio.sleep(self.delay)
        self._maybe_fail()
        return LLMResponse(
            content=self._next_response(),
            model=self.resolve_model(options),
            provider_id=self.provider_id,
            tokens_used=42,
        )

    async def _stream_native(
        self, prompt: str, options: Optional[GenerationOptions]
    ) -> AsyncIterator[str]:
        self.calls.append((prompt, options))
        try:
            self._maybe_fail()
            for fragment in self.fragments or [self._next_response()]:
                if self.delay:
                    await asyncio.sleep(self.delay)
                yield fragment
        finally:
            self.stream_closed = True

    async def aclose(self) -> None:
        self.closed = True


class FakeAdapterFactory:
    """Adapter factory handing out FakeAdapters scripted per provider id."""

    def __init__(self, scripts: Optional[dict[str, dict[str, Any]]] = None):
        self.scripts = scripts or {}
        self.created: dict[str, FakeAdapter] = {}

    def __call__(self, descriptor: ProviderDescriptor, credential: Optional[str], config: Any = None) -> FakeAdapter:
        adapter = FakeAdapter(descriptor, credential, **self.scripts.get(descriptor.id, {}))
        self.created[descriptor.id] = adapter
        return adapter


def make_provider(
    provider_id: str,
    model_ids: tuple[str, ...] = (),
    streaming: bool = True,
    best_for: tuple[str, ...] = (),
    requires_api_key: bool = True,
) -> ProviderDescriptor:
    models = tuple(
        ModelDescriptor(
            id=model_id,
            name=model_id.title(),
            capabilities=ModelCapabilities(coding=True, streaming=streaming),
            best_for=best_for,
        )
        for model_id in (model_ids or (f"{provider_id}-1",))
    )
    return ProviderDescriptor(
        id=provider_id,
        name=provider_id.title(),
        models=models,
        requires_api_key=requires_api_key,
        features=ProviderFeatures(streaming=streaming),
    )


@pytest.fixture
def config(tmp_path) -> Config:
    """Provide a fast test configuration."""
    return Config(
        default_provider="alpha",
        default_model="alpha-1",
        request_timeout=2.0,
        retrieval_timeout=0.5,
        retry_backoff=0.0,
        output_dir=tmp_path / "artifacts",
    )


@pytest.fixture
def fake_catalog() -> Catalog:
    return Catalog([
        make_provider("alpha", ("alpha-1", "alpha-2")),
        make_provider("beta"),
        make_provider("gamma"),
    ])


@pytest.fixture
def build_registry(config, fake_catalog):
    """Build an initialized registry whose adapters are FakeAdapters.

    Usage: ``registry, factory = build_registry({"alpha": {"errors": [...]}})``
    """

    def build(scripts=None, credentials=("alpha", "beta", "gamma"), catalog=None):
        factory = FakeAdapterFactory(scripts)
        registry = ProviderRegistry(
            catalog=catalog if catalog is not None else fake_catalog,
            credentials=StaticCredentialSource({pid: f"{pid}-key" for pid in credentials}),
            adapter_factory=factory,
            config=config,
        )
        registry.initialize()
        return registry, factory

    return build


@pytest.fixture
def provider_factory():
    """Expose ``make_provider`` to test modules."""
    return make_provider


@pytest.fixture
def good_component() -> str:
    """Model reply whose code passes every static review rule."""
    return GOOD_COMPONENT


@pytest.fixture
def poor_component() -> str:
    """Model reply scoring 93.25 under static review (security 80, maintainability 93)."""
    return POOR_COMPONENT


@pytest.fixture
def fake_adapter():
    """Build a standalone FakeAdapter: ``fake_adapter("alpha", fragments=[...])``."""

    def build(provider_id="alpha", streaming=True, **script):
        return FakeAdapter(make_provider(provider_id, streaming=streaming), f"{provider_id}-key", **script)

    return build


@pytest.fixture
def adapter_factory():
    """A FakeAdapterFactory for code that builds its own registry."""
    return FakeAdapterFactory()


@pytest.fixture
def make_session(config, fake_catalog):
    """Build a GenerationSession on the fake catalog.

    Usage: ``session, factory = make_session({"alpha": {...}}, store=store)``
    """

    def build(scripts=None, credentials=("alpha", "beta", "gamma"), **kwargs):
        factory = FakeAdapterFactory(scripts)
        session = GenerationSession(
            config=config,
            credentials=StaticCredentialSource({pid: f"{pid}-key" for pid in credentials}),
            catalog=fake_catalog,
            adapter_factory=factory,
            **kwargs,
        )
        return session, factory

    return build
