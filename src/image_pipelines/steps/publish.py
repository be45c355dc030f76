"""publish operation: push a resolved image to one or more registries."""

from __future__ import annotations

import logging

from image_pipelines.images import EffectiveImageProperties, ImageHandle
from image_pipelines.models import PublishSpec, PublishTarget
from image_pipelines.services import EngineService

_log = logging.getLogger(__name__)


def resolve_target_properties(
    image: ImageHandle, target: PublishTarget, spec: PublishSpec
) -> EffectiveImageProperties:
    """Effective identity for one target.

    Target tags win over the publish-level tags. When both are empty the
    image's own tags are inherited.
    """
    override_tags = target.publish_tags or spec.publish_tags
    return image.properties.apply_target_overrides(target, tags=override_tags)


def target_references(
    image: ImageHandle, target: PublishTarget, spec: PublishSpec
) -> list[str]:
    props = resolve_target_properties(image, target, spec)
    if not props.tags:
        return [props.full_reference()]
    return props.references()


async def execute_publish(
    spec: PublishSpec, image: ImageHandle, engine: EngineService
) -> list[str]:
    """Tag and push ``image`` for every configured target.

    Returns the references that were pushed, in order. Engine errors
    propagate and stop the remaining pushes.
    """
    if not spec.to:
        _log.info("No publish targets configured, skipping publish")
        return []

    source = image.primary_reference()
    _log.info("Publishing image %s to %d target(s)", source, len(spec.to))

    pushed: list[str] = []
    for target in spec.to:
        for reference in target_references(image, target, spec):
            if reference != source:
                await engine.tag_image(source, [reference])
            _log.info("Pushing %s (target: %s)", reference, target.name)
            await engine.push_image(reference, target.auth)
            pushed.append(reference)

    return pushed
