"""test step: bracket the test run with environment up and down.

Phases: validate, before_test hook, environment up, run tests,
environment down, after_test hook. Once the environment is up, teardown
and the after_test hook each run exactly once, whether or not the tests
raised. A test failure is re-raised only after both have run.
"""

from __future__ import annotations

import logging

from image_pipelines.context import PipelineContext
from image_pipelines.errors import ConfigurationError, TestExecutionError
from image_pipelines.models import TestResult, TestStepSpec
from image_pipelines.operations import Operation, OperationRegistry, operation_name
from image_pipelines.services import PipelineServices

_log = logging.getLogger(__name__)

STACK_METADATA_KEY = "stack"


def validate_test_spec(spec: TestStepSpec | None) -> tuple[str, str]:
    """Return ``(stack, test_runner)`` or raise ConfigurationError."""
    if spec is None:
        raise ConfigurationError("Test step spec cannot be None")
    if not spec.stack:
        raise ConfigurationError("Test step 'stack' must be configured")
    if not spec.test_runner:
        raise ConfigurationError("Test step 'test_runner' must be configured")
    return spec.stack, spec.test_runner


def _require(operations: OperationRegistry, name: str, what: str) -> Operation:
    op = operations.find(name)
    if op is None:
        raise ConfigurationError(
            f"{what} operation '{name}' not found. "
            "Ensure it is registered with the operation registry."
        )
    return op


async def _environment_down(operations: OperationRegistry, stack: str) -> None:
    """Tear the environment down. Never raises."""
    name = operation_name("down", stack)
    op = operations.find(name)
    if op is None:
        _log.debug("Down operation '%s' not registered, skipping teardown", name)
        return

    _log.info("Bringing environment down: %s", name)
    try:
        await operations.execute(op)
    except Exception as e:
        _log.error("Environment teardown %s failed: %s", name, e)


async def execute_test_step(
    spec: TestStepSpec,
    context: PipelineContext,
    *,
    services: PipelineServices,
) -> PipelineContext:
    """Run the test phase and record its TestResult.

    Raises:
        ConfigurationError: Before any side effect, if the stack or test
            runner is missing or unresolvable.
        TestExecutionError: After teardown and ``after_test``, if the
            runner raised. Its ``context`` holds the failing result.
    """
    stack, runner_name = validate_test_spec(spec)
    operations = services.operations
    runner = _require(operations, runner_name, "Test runner")

    if spec.before_test is not None:
        _log.info("Running before_test hook")
        spec.before_test()

    up = _require(operations, operation_name("up", stack), "Environment up")
    _log.info("Bringing environment up: %s", stack)
    await operations.execute(up)
    context = context.with_metadata(STACK_METADATA_KEY, stack)

    result: TestResult
    test_error: Exception | None = None
    try:
        try:
            _log.info("Running tests: %s", runner_name)
            await operations.execute(runner)
        except Exception as e:
            _log.warning("Test runner %s failed: %s", runner_name, e)
            test_error = e
            result = services.result_capture.capture_failure(runner_name, e)
        else:
            result = services.result_capture.capture_success(runner_name)
    finally:
        await _environment_down(operations, stack)

    if spec.after_test is not None:
        _log.info("Running after_test hook with result: %s", result)
        try:
            spec.after_test(result)
        except Exception as e:
            if test_error is None:
                raise
            _log.error("after_test hook failed after test failure: %s", e)

    context = context.with_test_result(result)

    if test_error is not None:
        raise TestExecutionError(context, test_error) from test_error

    return context
