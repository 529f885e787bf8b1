"""Tests for the provider/model catalog."""

import pytest

from codeforge.catalog import BUILTIN_PROVIDERS, Catalog, default_catalog, find_model
from codeforge.errors import ModelNotFoundError, ProviderNotFoundError


def test_default_catalog_holds_builtin_providers_in_order():
    catalog = default_catalog()

    assert catalog.provider_ids() == [p.id for p in BUILTIN_PROVIDERS]
    assert "anthropic" in catalog
    assert len(catalog) == len(BUILTIN_PROVIDERS)


def test_default_catalog_is_fresh_per_call():
    first = default_catalog()
    first.remove("openai")

    assert "openai" in default_catalog()


def test_get_model_returns_descriptor():
    model = default_catalog().get_model("anthropic", "claude-3-5-sonnet-20241022")

    assert model.context_window == 200_000
    assert model.capabilities.vision is True


def test_unknown_provider_is_also_model_not_found():
    """Callers catching ModelNotFoundError also see unknown providers."""
    catalog = default_catalog()

    with pytest.raises(ProviderNotFoundError):
        catalog.get_model("nope", "gpt-4")
    with pytest.raises(ModelNotFoundError):
        catalog.get_model("nope", "gpt-4")


def test_unknown_model_raises_model_not_found():
    with pytest.raises(ModelNotFoundError) as exc_info:
        default_catalog().get_model("openai", "gpt-99")

    assert not isinstance(exc_info.value, ProviderNotFoundError)
    assert exc_info.value.model_id == "gpt-99"


def test_add_rejects_duplicate_ids(provider_factory):
    catalog = Catalog([provider_factory("alpha")])

    with pytest.raises(ValueError, match="already in the catalog"):
        catalog.add(provider_factory("alpha"))


def test_remove_returns_descriptor_and_forgets_it(provider_factory):
    catalog = Catalog([provider_factory("alpha"), provider_factory("beta")])

    removed = catalog.remove("alpha")

    assert removed.id == "alpha"
    assert catalog.provider_ids() == ["beta"]
    with pytest.raises(ProviderNotFoundError):
        catalog.remove("alpha")


def test_iteration_snapshot_survives_mutation(provider_factory):
    catalog = Catalog([provider_factory("alpha"), provider_factory("beta")])
    snapshot = catalog.providers()

    catalog.add(provider_factory("gamma"))

    assert [p.id for p in snapshot] == ["alpha", "beta"]


def test_vision_models_only_include_vision_capable():
    pairs = default_catalog().vision_models()

    assert pairs
    assert all(model.capabilities.vision for _, model in pairs)


def test_coding_models_need_a_coding_name_or_tag(provider_factory):
    catalog = Catalog([
        provider_factory("tagged", ("tagged-1",), best_for=("Code generation",)),
        provider_factory("named", ("codestral", "chat-1")),
    ])

    pairs = catalog.coding_models()

    assert [(p.id, m.id) for p, m in pairs] == [("tagged", "tagged-1"), ("named", "codestral")]


def test_models_by_context_size_largest_first():
    pairs = default_catalog().models_by_context_size(100_000)
    windows = [model.context_window for _, model in pairs]

    assert windows == sorted(windows, reverse=True)
    assert all(w >= 100_000 for w in windows)
    assert pairs[0][1].id.startswith("gemini-1.5")


def test_budget_models_cheapest_first():
    pairs = default_catalog().budget_models(1.0)
    prices = [model.pricing.input for _, model in pairs]

    assert prices == sorted(prices)
    assert all(price <= 1.0 for price in prices)
    assert ("anthropic", "claude-3-haiku-20240307") in [(p.id, m.id) for p, m in pairs]


def test_streamless_providers_are_marked():
    catalog = default_catalog()

    assert catalog.get_provider("replicate").features.streaming is False
    assert catalog.get_provider("huggingface").features.streaming is False


def test_find_model_across_providers():
    found = find_model(default_catalog(), "gpt-4")

    assert found is not None
    assert found[0].id == "openai"
    assert find_model(default_catalog(), "missing") is None
