"""Tests for PipelineContext.

Validates that every transition returns a new instance, tag ordering,
metadata upserts, and the single-test-result rule.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from image_pipelines.context import PipelineContext
from image_pipelines.errors import ContextError
from image_pipelines.images import EffectiveImageProperties, ImageHandle
from image_pipelines.models import TestResult


def _handle() -> ImageHandle:
    return ImageHandle(
        name="app", properties=EffectiveImageProperties(image_name="app", tags=("1.0",))
    )


def test_create_is_empty():
    ctx = PipelineContext.create("ci")
    assert ctx.pipeline_name == "ci"
    assert ctx.built_image is None
    assert ctx.applied_tags == ()
    assert ctx.test_result is None
    assert not ctx.test_completed
    assert not ctx.build_successful


def test_with_built_image_returns_new_instance():
    ctx = PipelineContext.create("ci")
    updated = ctx.with_built_image(_handle())
    assert updated is not ctx
    assert ctx.built_image is None
    assert updated.build_successful


def test_applied_tags_append_in_order():
    ctx = PipelineContext.create("ci").with_applied_tag("a")
    ctx = ctx.with_applied_tags(["b", "c"]).with_applied_tag("a")
    assert ctx.applied_tags == ("a", "b", "c", "a")


def test_with_test_result_marks_completed():
    ctx = PipelineContext.create("ci").with_test_result(TestResult.passed(total=3))
    assert ctx.test_completed
    assert ctx.test_successful


def test_failed_result_is_not_successful():
    ctx = PipelineContext.create("ci").with_test_result(
        TestResult.failed(total=3, failures=1)
    )
    assert ctx.test_completed
    assert not ctx.test_successful


def test_second_test_result_rejected():
    ctx = PipelineContext.create("ci").with_test_result(TestResult.passed(total=1))
    with pytest.raises(ContextError, match="already has a test result"):
        ctx.with_test_result(TestResult.passed(total=1))


def test_metadata_upsert_does_not_alias():
    first = PipelineContext.create("ci").with_metadata("stack", "one")
    second = first.with_metadata("stack", "two").with_metadata("other", "x")
    assert first.get_metadata("stack") == "one"
    assert first.get_metadata("other") is None
    assert second.get_metadata("stack") == "two"
    assert second.get_metadata("other") == "x"


def test_context_is_frozen():
    ctx = PipelineContext.create("ci")
    with pytest.raises(ValidationError):
        ctx.pipeline_name = "other"


def test_metadata_not_shared_across_transitions():
    handle = _handle()
    first = PipelineContext.create("ci").with_metadata("stack", "web")
    second = first.with_built_image(handle).with_applied_tag("x")
    with pytest.raises(TypeError):
        second.metadata["stack"] = "other"
    assert first.get_metadata("stack") == "web"
    assert second.get_metadata("stack") == "web"


def test_metadata_view_reflects_entries():
    ctx = PipelineContext.create("ci").with_metadata("a", "1").with_metadata("b", "2")
    assert dict(ctx.metadata) == {"a": "1", "b": "2"}
    assert ctx.with_metadata("a", "3").metadata_entries == (("a", "3"), ("b", "2"))
