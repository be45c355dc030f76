"""Tests for the build step executor."""

from __future__ import annotations

import pytest

from image_pipelines.context import PipelineContext
from image_pipelines.errors import ConfigurationError
from image_pipelines.models import BuildStepSpec, ImageSpec
from image_pipelines.operations import OperationRegistry
from image_pipelines.services import PipelineServices
from image_pipelines.steps.build import execute_build_step


def _spec(events: list[str], **image) -> BuildStepSpec:
    return BuildStepSpec(
        image=ImageSpec(name="app", **image),
        before_build=lambda: events.append("before_build"),
        after_build=lambda: events.append("after_build"),
    )


@pytest.mark.asyncio
async def test_build_runs_operation_between_hooks(events):
    services = PipelineServices(
        operations=OperationRegistry({"buildApp": lambda: events.append("buildApp")})
    )
    spec = _spec(events, namespace="team", image_name="app", tags=("1.0",))
    ctx = await execute_build_step(spec, PipelineContext.create("ci"), services=services)

    assert events == ["before_build", "buildApp", "after_build"]
    assert ctx.built_image.built
    assert ctx.built_image.primary_reference() == "team/app:1.0"


@pytest.mark.asyncio
async def test_reference_image_skips_build_operation(events):
    services = PipelineServices(
        operations=OperationRegistry({"buildApp": lambda: events.append("buildApp")})
    )
    spec = _spec(events, reference="docker.io/library/redis:7")
    ctx = await execute_build_step(spec, PipelineContext.create("ci"), services=services)

    assert events == ["before_build", "after_build"]
    assert not ctx.built_image.built
    assert ctx.built_image.primary_reference() == "docker.io/library/redis:7"


@pytest.mark.asyncio
async def test_missing_build_operation_fails_before_hooks(events):
    spec = _spec(events, image_name="app")
    with pytest.raises(ConfigurationError, match="buildApp"):
        await execute_build_step(
            spec, PipelineContext.create("ci"), services=PipelineServices()
        )
    assert events == []


@pytest.mark.asyncio
async def test_unnameable_image_fails_before_hooks(events):
    with pytest.raises(ConfigurationError, match="cannot be named"):
        await execute_build_step(
            _spec(events), PipelineContext.create("ci"), services=PipelineServices()
        )
    assert events == []


@pytest.mark.asyncio
async def test_async_build_operation_awaited(events):
    async def build():
        events.append("async build")

    services = PipelineServices(operations=OperationRegistry({"buildApp": build}))
    await execute_build_step(
        _spec(events, image_name="app"), PipelineContext.create("ci"), services=services
    )
    assert "async build" in events
