"""conditional step: route to exactly one of the success or failure paths."""

from __future__ import annotations

import logging

from image_pipelines.context import PipelineContext
from image_pipelines.models import FailureStepSpec, SuccessStepSpec, TestResult
from image_pipelines.services import PipelineServices
from image_pipelines.steps.failure import execute_failure_step
from image_pipelines.steps.success import execute_success_step

_log = logging.getLogger(__name__)


async def execute_conditional(
    test_result: TestResult | None,
    success_spec: SuccessStepSpec | None,
    failure_spec: FailureStepSpec | None,
    context: PipelineContext,
    *,
    services: PipelineServices,
) -> PipelineContext:
    """Dispatch on the test outcome. No result leaves the context unchanged."""
    if test_result is None:
        _log.warning("No test result, skipping conditional step")
        return context

    _log.info(
        "Evaluating test result: success=%s, failed=%d, total=%d",
        test_result.success,
        test_result.failed_tests,
        test_result.total_tests,
    )

    if test_result.success:
        return await execute_success_step(success_spec, context, services=services)
    return await execute_failure_step(failure_spec, context, services=services)
