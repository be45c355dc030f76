"""Pipeline execution context.

An immutable value threaded through every step. Each transition returns
a new instance, so one run's context is never aliased by another step
or another concurrent run.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict

from image_pipelines.errors import ContextError
from image_pipelines.images import ImageHandle
from image_pipelines.models import StepResult, TestResult


class PipelineContext(BaseModel):
    """Run state for one pipeline execution.

    This is a data container with functional-update methods, not a
    logic holder.
    """

    model_config = ConfigDict(frozen=True)

    pipeline_name: str
    built_image: ImageHandle | None = None
    applied_tags: tuple[str, ...] = ()
    test_result: TestResult | None = None
    test_completed: bool = False
    metadata_entries: tuple[tuple[str, str], ...] = ()

    @classmethod
    def create(cls, pipeline_name: str) -> PipelineContext:
        return cls(pipeline_name=pipeline_name)

    @property
    def build_successful(self) -> bool:
        return self.built_image is not None

    @property
    def test_successful(self) -> bool:
        return (
            self.test_completed
            and self.test_result is not None
            and self.test_result.success
        )

    def with_built_image(self, image: ImageHandle) -> PipelineContext:
        return self.model_copy(update={"built_image": image})

    def with_applied_tag(self, tag: str) -> PipelineContext:
        return self.with_applied_tags([tag])

    def with_applied_tags(self, tags: Iterable[str]) -> PipelineContext:
        """Append tags, keeping insertion order and duplicates."""
        return self.model_copy(
            update={"applied_tags": (*self.applied_tags, *tags)}
        )

    def with_test_result(self, result: TestResult) -> PipelineContext:
        """Record the run's test result. Allowed once per run."""
        if self.test_result is not None:
            raise ContextError(
                f"Pipeline '{self.pipeline_name}' already has a test result"
            )
        return self.model_copy(
            update={"test_result": result, "test_completed": True}
        )

    @property
    def metadata(self) -> Mapping[str, str]:
        """Read-only view; change it through ``with_metadata``."""
        return MappingProxyType(dict(self.metadata_entries))

    def with_metadata(self, key: str, value: str) -> PipelineContext:
        """Upsert ``key``, keeping the position of an existing entry."""
        entries = dict(self.metadata_entries)
        entries[key] = value
        return self.model_copy(
            update={"metadata_entries": tuple(entries.items())}
        )

    def get_metadata(self, key: str) -> str | None:
        return dict(self.metadata_entries).get(key)


class PipelineResult(BaseModel):
    context: PipelineContext
    step_results: list[StepResult]
    total_duration_ms: float
