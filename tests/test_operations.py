"""Tests for operation naming and the operation registry."""

from __future__ import annotations

import pytest

from image_pipelines.errors import ConfigurationError
from image_pipelines.operations import OperationRegistry, operation_name


@pytest.mark.parametrize(
    ("verb", "subject", "expected"),
    [
        ("up", "integrationStack", "upIntegrationStack"),
        ("down", "web", "downWeb"),
        ("build", "myApp", "buildMyApp"),
        ("build", "App", "buildApp"),
        ("up", "", "up"),
    ],
)
def test_operation_name(verb, subject, expected):
    assert operation_name(verb, subject) == expected


def test_register_and_find():
    registry = OperationRegistry()
    op = lambda: None  # noqa: E731
    registry.register("upWeb", op)
    assert registry.find("upWeb") is op
    assert "upWeb" in registry
    assert registry.find("downWeb") is None
    assert registry.find(None) is None


def test_duplicate_registration_rejected():
    registry = OperationRegistry({"upWeb": lambda: None})
    with pytest.raises(ConfigurationError, match="already registered"):
        registry.register("upWeb", lambda: None)


def test_names_sorted():
    registry = OperationRegistry({"b": lambda: None, "a": lambda: None})
    assert registry.names() == ["a", "b"]


@pytest.mark.asyncio
async def test_execute_sync_operation():
    registry = OperationRegistry({"build": lambda: "built"})
    assert await registry.execute("build") == "built"


@pytest.mark.asyncio
async def test_execute_awaits_async_operation():
    calls = []

    async def up():
        calls.append("up")
        return 7

    registry = OperationRegistry({"upWeb": up})
    assert await registry.execute("upWeb") == 7
    assert calls == ["up"]


@pytest.mark.asyncio
async def test_execute_callable_directly():
    registry = OperationRegistry()
    assert await registry.execute(lambda: 3) == 3


@pytest.mark.asyncio
async def test_execute_unknown_name():
    with pytest.raises(ConfigurationError, match="not found"):
        await OperationRegistry().execute("missing")


@pytest.mark.asyncio
async def test_execute_propagates_operation_error():
    def broken():
        raise RuntimeError("nope")

    with pytest.raises(RuntimeError, match="nope"):
        await OperationRegistry({"x": broken}).execute("x")
