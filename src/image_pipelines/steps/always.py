"""always step: unconditional cleanup, run last.

Container removal and image cleanup are independent and best-effort.
Neither ever raises.
"""

from __future__ import annotations

import logging

from image_pipelines.context import PipelineContext
from image_pipelines.models import AlwaysStepSpec
from image_pipelines.services import PipelineServices
from image_pipelines.steps.testing import STACK_METADATA_KEY

_log = logging.getLogger(__name__)


def should_remove_containers(spec: AlwaysStepSpec, tests_passed: bool) -> bool:
    """``keep_failed_containers`` only matters when the tests failed."""
    if not spec.remove_test_containers:
        return False
    if not tests_passed and spec.keep_failed_containers:
        _log.info("Keeping containers for debugging: tests failed and keep_failed_containers is set")
        return False
    return True


async def _remove_containers(
    spec: AlwaysStepSpec,
    context: PipelineContext,
    services: PipelineServices,
    tests_passed: bool,
) -> None:
    if not should_remove_containers(spec, tests_passed):
        _log.debug("Skipping container removal")
        return

    stack = context.get_metadata(STACK_METADATA_KEY)
    if services.environment is None or stack is None:
        _log.debug("No environment service or stack, skipping container removal")
        return

    try:
        await services.environment.remove_stack(stack)
    except Exception as e:
        _log.warning("Failed to remove test containers for %s: %s", stack, e)
        return
    _log.info("Removed test containers for %s", stack)


async def _cleanup_images(
    spec: AlwaysStepSpec, context: PipelineContext, services: PipelineServices
) -> None:
    if not spec.cleanup_images:
        return

    image = context.built_image
    if image is None:
        _log.info("No built image in context, skipping image cleanup")
        return
    if not image.built:
        _log.info(
            "Image %s was not built by this pipeline, skipping image cleanup",
            image.name,
        )
        return
    if services.engine is None:
        _log.info("No engine service configured, skipping image cleanup")
        return

    try:
        references = image.properties.references() or [image.primary_reference()]
        if context.applied_tags:
            references += image.properties.references(list(context.applied_tags))
        for reference in dict.fromkeys(references):
            await services.engine.remove_image(reference)
    except Exception as e:
        _log.warning("Failed to clean up image %s: %s", image.name, e)
        return
    _log.info("Cleaned up image %s", image.name)


async def execute_always_step(
    spec: AlwaysStepSpec | None,
    context: PipelineContext,
    *,
    services: PipelineServices,
    tests_passed: bool,
) -> PipelineContext:
    if spec is None:
        _log.info("No always step configured, skipping cleanup")
        return context

    _log.info("Running cleanup for pipeline %s", context.pipeline_name)
    await _remove_containers(spec, context, services, tests_passed)
    await _cleanup_images(spec, context, services)
    return context
