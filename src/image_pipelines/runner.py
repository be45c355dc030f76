"""Pipeline runner: the main orchestrator.

Runs build, test and conditional phases in order, then the always step
unconditionally. A failing run surfaces exactly one PipelineRunError
naming the first phase that failed.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable

from image_pipelines import pipeline_logger
from image_pipelines.context import PipelineContext, PipelineResult
from image_pipelines.errors import PipelineRunError, TestExecutionError
from image_pipelines.models import PipelineDefinition, StepResult
from image_pipelines.services import PipelineServices
from image_pipelines.steps.always import execute_always_step
from image_pipelines.steps.build import execute_build_step
from image_pipelines.steps.conditional import execute_conditional
from image_pipelines.steps.testing import execute_test_step

_log = logging.getLogger(__name__)


async def _timed(
    pipeline_name: str,
    step_name: str,
    step_results: list[StepResult],
    step: Callable[[], Awaitable[PipelineContext]],
) -> PipelineContext:
    step_start = time.monotonic()
    pipeline_logger.log_step_start(pipeline_name, step_name)
    try:
        context = await step()
    except Exception as e:
        pipeline_logger.log_step_failed(pipeline_name, step_name, str(e))
        raise
    finally:
        step_results.append(
            StepResult(
                step_name=step_name,
                duration_ms=(time.monotonic() - step_start) * 1000,
            )
        )
    pipeline_logger.log_step_complete(
        pipeline_name, step_name, step_results[-1].duration_ms
    )
    return context


async def run_pipeline(
    definition: PipelineDefinition,
    services: PipelineServices | None = None,
) -> PipelineResult:
    """Execute a pipeline definition against the given collaborators.

    1. Build the image, if a build step is configured.
    2. Run the test phase, if configured.
    3. Route the recorded test result to the success or failure path.
    4. Always run cleanup last, whatever happened before.

    A test runner failure still routes to the failure path before the
    error is raised.

    Raises:
        PipelineRunError: If any phase failed. ``phase`` names the first
            failing phase and ``cause`` the original exception.
    """
    services = services or PipelineServices()
    name = definition.name
    context = PipelineContext.create(name)
    step_results: list[StepResult] = []
    failure: tuple[str, Exception] | None = None
    start = time.monotonic()

    phase = "build"
    try:
        if definition.build is not None:
            context = await _timed(
                name, "build", step_results,
                lambda: execute_build_step(definition.build, context, services=services),
            )

        phase = "test"
        if definition.test is not None:
            try:
                context = await _timed(
                    name, "test", step_results,
                    lambda: execute_test_step(definition.test, context, services=services),
                )
            except TestExecutionError as e:
                context = e.context
                failure = ("test", e.cause)

        phase = "conditional"
        if context.test_completed:
            context = await _timed(
                name, "conditional", step_results,
                lambda: execute_conditional(
                    context.test_result,
                    definition.on_success,
                    definition.on_failure,
                    context,
                    services=services,
                ),
            )
    except Exception as e:
        if failure is None:
            failure = (phase, e)
        else:
            _log.error(
                "Pipeline '%s': %s phase also failed: %s", name, phase, e
            )
    finally:
        try:
            context = await _timed(
                name, "always", step_results,
                lambda: execute_always_step(
                    definition.always,
                    context,
                    services=services,
                    tests_passed=context.test_successful,
                ),
            )
        except Exception as e:
            _log.error("Pipeline '%s': cleanup failed: %s", name, e)

    total_ms = (time.monotonic() - start) * 1000
    pipeline_logger.log_pipeline_complete(name, failure is None, total_ms)

    if failure is not None:
        failed_phase, cause = failure
        raise PipelineRunError(name, failed_phase, cause, context) from cause

    return PipelineResult(
        context=context,
        step_results=step_results,
        total_duration_ms=total_ms,
    )
