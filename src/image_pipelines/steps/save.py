"""save operation: export a resolved image to an archive file."""

from __future__ import annotations

import logging

from image_pipelines.images import ImageHandle
from image_pipelines.models import SaveSpec
from image_pipelines.services import EngineService

_log = logging.getLogger(__name__)


async def execute_save(
    spec: SaveSpec, image: ImageHandle, engine: EngineService
) -> None:
    """Ask the engine to write ``image`` to ``spec.output_file``.

    The archive itself is produced by the engine. Errors propagate.
    """
    reference = image.primary_reference()
    _log.info(
        "Saving image %s to %s (compression: %s)",
        reference,
        spec.output_file,
        spec.compression.value,
    )
    await engine.save_image(reference, spec.output_file, spec.compression)
    _log.info("Saved image to %s", spec.output_file)
