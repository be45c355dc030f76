"""success step: tag, save, publish, then the after_success hook.

Each sub-step is gated by its own configuration and runs in that fixed
order. Nothing is rolled back when a later sub-step fails.
"""

from __future__ import annotations

import logging

from image_pipelines.context import PipelineContext
from image_pipelines.errors import ConfigurationError
from image_pipelines.images import ImageHandle
from image_pipelines.models import SuccessStepSpec
from image_pipelines.services import PipelineServices
from image_pipelines.steps.publish import execute_publish
from image_pipelines.steps.save import execute_save
from image_pipelines.steps.tag import execute_tag

_log = logging.getLogger(__name__)


def _require_image(context: PipelineContext, action: str) -> ImageHandle:
    if context.built_image is None:
        raise ConfigurationError(f"Cannot {action}: no built image in context")
    return context.built_image


async def _apply_tags(
    spec: SuccessStepSpec, context: PipelineContext, services: PipelineServices
) -> PipelineContext:
    if not spec.additional_tags:
        return context

    image = _require_image(context, "apply tags")
    if services.engine is None:
        _log.warning("No engine service configured, tags recorded in context only")
    else:
        await execute_tag(image, spec.additional_tags, services.engine)
    return context.with_applied_tags(spec.additional_tags)


async def execute_success_step(
    spec: SuccessStepSpec | None,
    context: PipelineContext,
    *,
    services: PipelineServices,
) -> PipelineContext:
    if spec is None:
        _log.info("No success step configured, skipping")
        return context

    _log.info("Running success path for pipeline %s", context.pipeline_name)
    context = await _apply_tags(spec, context, services)

    if spec.save is not None:
        image = _require_image(context, "save image")
        if services.engine is None:
            _log.warning("No engine service configured, save skipped")
        else:
            await execute_save(spec.save, image, services.engine)

    if spec.publish is not None:
        image = _require_image(context, "publish image")
        if services.engine is None:
            _log.warning("No engine service configured, publish skipped")
        else:
            await execute_publish(spec.publish, image, services.engine)

    if spec.after_success is not None:
        _log.info("Running after_success hook")
        spec.after_success()

    return context
