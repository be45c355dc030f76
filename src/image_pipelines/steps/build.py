"""build step: resolve the image identity and run its build operation."""

from __future__ import annotations

import logging

from image_pipelines.context import PipelineContext
from image_pipelines.errors import ConfigurationError
from image_pipelines.images import ImageHandle, resolve_effective_properties
from image_pipelines.models import BuildStepSpec
from image_pipelines.operations import operation_name
from image_pipelines.services import PipelineServices

_log = logging.getLogger(__name__)


async def execute_build_step(
    spec: BuildStepSpec,
    context: PipelineContext,
    *,
    services: PipelineServices,
) -> PipelineContext:
    """Build (or adopt) the pipeline's image and record it in the context.

    1. Resolve the image's effective properties.
    2. Run the ``before_build`` hook.
    3. Run ``build<Image>`` unless the image is addressed by reference.
    4. Run the ``after_build`` hook.

    Raises:
        ConfigurationError: If the image cannot be named or its build
            operation is not registered.
    """
    image = spec.image
    properties = resolve_effective_properties(image)
    built = not image.uses_source_reference()

    build_op = None
    if built:
        build_name = operation_name("build", image.name)
        build_op = services.operations.find(build_name)
        if build_op is None:
            raise ConfigurationError(
                f"Build operation '{build_name}' not found. "
                f"Register it for image '{image.name}'."
            )

    if spec.before_build is not None:
        _log.info("Running before_build hook")
        spec.before_build()

    if build_op is not None:
        _log.info("Building image %s", image.name)
        await services.operations.execute(build_op)
    else:
        _log.info(
            "Image %s is addressed by reference, skipping build", image.name
        )

    if spec.after_build is not None:
        _log.info("Running after_build hook")
        spec.after_build()

    handle = ImageHandle(name=image.name, properties=properties, built=built)
    return context.with_built_image(handle)
