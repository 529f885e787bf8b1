"""Tests for generation context assembly."""

import asyncio
import logging

import pytest

from codeforge.models import GenerationRequest, RetrievedItem
from codeforge.pipeline.context import ContextBuilder


class _Similarity:
    def __init__(self, items=None, error=None, delay=0.0):
        self.items = items or []
        self.error = error
        self.delay = delay
        self.requests = []

    async def find_similar(self, request):
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.items


class _Docs:
    def __init__(self, text="Use v-model for inputs."):
        self.text = text
        self.calls = []

    async def fetch(self, framework, component_type):
        self.calls.append((framework, component_type))
        return self.text


class _Store:
    def __init__(self, templates=None, error=None):
        self.templates = templates or []
        self.error = error
        self.calls = []

    async def store(self, artifact):
        return "unused"

    async def fetch_templates(self, category, framework):
        self.calls.append((category, framework))
        if self.error:
            raise self.error
        return self.templates


class _Project:
    async def describe(self, request):
        return {"conventions": ["Use CSS modules"]}


@pytest.mark.asyncio
async def test_build_collects_every_source():
    similar = [RetrievedItem(id=f"a{i}", score=1.0 - i / 10) for i in range(8)]
    docs = _Docs()
    store = _Store(templates=["<template />"])
    builder = ContextBuilder(_Similarity(similar), docs, store, _Project(), timeout=0.5, max_similar=5)

    context = await builder.build(GenerationRequest(prompt="Signup form", framework="vue"))

    assert [item.id for item in context.similar] == ["a0", "a1", "a2", "a3", "a4"]
    assert context.documentation == ("Use v-model for inputs.",)
    assert context.code_patterns == ("<template />",)
    assert context.project == {"conventions": ["Use CSS modules"]}
    assert context.degraded == ()
    assert docs.calls == [("vue", "form")]
    assert store.calls == [("Forms & Inputs", "vue")]


@pytest.mark.asyncio
async def test_missing_collaborators_give_empty_context():
    context = await ContextBuilder().build(GenerationRequest(prompt="Card"))

    assert context.is_empty
    assert context.degraded == ()


@pytest.mark.asyncio
async def test_failing_source_is_degraded_not_fatal(caplog):
    builder = ContextBuilder(
        similarity=_Similarity(error=ConnectionError("index offline")),
        documentation=_Docs(),
        timeout=0.5,
    )
    with caplog.at_level(logging.WARNING):
        context = await builder.build(GenerationRequest(prompt="Card"))

    assert context.similar == ()
    assert context.documentation == ("Use v-model for inputs.",)
    assert context.degraded == ("similarity",)
    assert "similarity failed, continuing without it: index offline" in caplog.text


@pytest.mark.asyncio
async def test_slow_source_times_out():
    builder = ContextBuilder(similarity=_Similarity(delay=1.0), timeout=0.05)

    context = await builder.build(GenerationRequest(prompt="Card"))

    assert context.degraded == ("similarity",)


@pytest.mark.asyncio
async def test_template_failure_is_degraded():
    builder = ContextBuilder(store=_Store(error=OSError("templates unreadable")), project=_Project())

    context = await builder.build(GenerationRequest(prompt="Card"))

    assert context.degraded == ("templates",)
    assert context.project == {"conventions": ["Use CSS modules"]}


@pytest.mark.asyncio
async def test_empty_documentation_is_dropped():
    context = await ContextBuilder(documentation=_Docs(text=None)).build(GenerationRequest(prompt="Card"))

    assert context.documentation == ()
