"""failure step: diagnostic tags, log capture, then after_failure.

Tagging is best-effort: with no built image it is skipped. Log capture
never raises, so diagnostics cannot mask the original test failure.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from image_pipelines.context import PipelineContext
from image_pipelines.models import FailureStepSpec, LogsConfig
from image_pipelines.services import EnvironmentService, PipelineServices
from image_pipelines.steps.tag import execute_tag
from image_pipelines.steps.testing import STACK_METADATA_KEY

_log = logging.getLogger(__name__)


async def _apply_tags(
    spec: FailureStepSpec, context: PipelineContext, services: PipelineServices
) -> PipelineContext:
    if not spec.additional_tags:
        return context

    if context.built_image is None:
        _log.warning("Cannot apply failure tags: no built image in context")
        return context

    if services.engine is None:
        _log.warning("No engine service configured, tags recorded in context only")
    else:
        await execute_tag(context.built_image, spec.additional_tags, services.engine)
    return context.with_applied_tags(spec.additional_tags)


async def save_failure_logs(
    environment: EnvironmentService,
    stack: str,
    logs_dir: Path,
    config: LogsConfig,
) -> Path:
    """Capture the stack's logs into a timestamped file under ``logs_dir``."""
    logs_dir.mkdir(parents=True, exist_ok=True)
    logs = await environment.capture_logs(stack, config)
    log_file = logs_dir / f"failure-logs-{int(time.time() * 1000)}.log"
    log_file.write_text(logs, encoding="utf-8")
    return log_file


async def _capture_logs(
    spec: FailureStepSpec, context: PipelineContext, services: PipelineServices
) -> None:
    if spec.save_failure_logs_dir is None:
        return

    stack = context.get_metadata(STACK_METADATA_KEY)
    if services.environment is None or stack is None:
        _log.warning("No environment service or stack available, cannot save failure logs")
        return

    config = LogsConfig(
        services=spec.include_services, tail_lines=spec.log_tail_lines
    )
    try:
        log_file = await save_failure_logs(
            services.environment, stack, spec.save_failure_logs_dir, config
        )
    except Exception as e:
        _log.error("Failed to save failure logs: %s", e)
        return
    _log.info("Saved failure logs to %s", log_file)


async def execute_failure_step(
    spec: FailureStepSpec | None,
    context: PipelineContext,
    *,
    services: PipelineServices,
) -> PipelineContext:
    if spec is None:
        _log.info("No failure step configured, skipping")
        return context

    _log.info("Running failure path for pipeline %s", context.pipeline_name)
    context = await _apply_tags(spec, context, services)
    await _capture_logs(spec, context, services)

    if spec.after_failure is not None:
        _log.info("Running after_failure hook")
        spec.after_failure()

    return context
