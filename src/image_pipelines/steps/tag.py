"""tag operation: apply additional tags to a resolved image."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from image_pipelines.errors import ConfigurationError
from image_pipelines.images import ImageHandle
from image_pipelines.services import EngineService

_log = logging.getLogger(__name__)


async def execute_tag(
    image: ImageHandle | None,
    tags: Sequence[str] | None,
    engine: EngineService,
) -> None:
    """Tag ``image`` with every entry of ``tags`` in one engine call.

    The image's identity is already resolved; each tag is applied to the
    same base reference as the image's primary tag. Engine errors
    propagate unchanged.
    """
    if not tags:
        _log.info("No additional tags to apply")
        return

    if image is None:
        raise ConfigurationError("Cannot apply tags: no image to tag")

    source = image.primary_reference()
    targets = image.properties.references(list(tags))

    _log.info("Applying %d tag(s) to image %s", len(targets), source)
    for target in targets:
        _log.debug("Tag %s -> %s", source, target)

    await engine.tag_image(source, targets)
