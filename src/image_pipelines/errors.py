"""Custom exception hierarchy for image-pipelines.

All exceptions inherit from PipelineError so callers can catch broadly
or narrowly as needed. Collaborator failures (engine, environment) are
not wrapped here; they propagate as whatever the collaborator raised.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from image_pipelines.context import PipelineContext


class PipelineError(Exception):
    """Base for all image-pipelines errors."""


class PipelineLoadError(PipelineError):
    """YAML parsing or pipeline structure validation failed."""


class ConfigurationError(PipelineError):
    """A required spec field is missing, or an image cannot be named."""


class ContextError(PipelineError):
    """An illegal pipeline context transition was attempted."""


class TestExecutionError(PipelineError):
    """The test runner failed.

    Raised only after environment teardown and the ``after_test`` hook
    have run. ``context`` already holds the failing TestResult so the
    caller can still route to the failure path.
    """

    __test__ = False  # not a pytest test class

    def __init__(self, context: PipelineContext, cause: Exception) -> None:
        self.context = context
        self.cause = cause
        super().__init__(f"Test execution failed: {cause}")


class PipelineRunError(PipelineError):
    """A pipeline run failed. Names the phase that failed first."""

    def __init__(
        self,
        pipeline_name: str,
        phase: str,
        cause: Exception,
        context: PipelineContext | None = None,
    ) -> None:
        self.pipeline_name = pipeline_name
        self.phase = phase
        self.cause = cause
        self.context = context
        super().__init__(
            f"Pipeline '{pipeline_name}' failed during {phase}: {cause}"
        )


class PipelineValidationError(PipelineError):
    """One or more pipelines failed static validation."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        lines = "\n".join(f"  - {e}" for e in errors)
        super().__init__(f"Pipeline validation failed:\n{lines}")
