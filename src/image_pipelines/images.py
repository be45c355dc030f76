"""Image reference parsing and effective-property resolution.

An image can be named several ways: a direct reference string, reference
components, or build-mode naming fields. ``resolve_effective_properties``
collapses those layers into one canonical identity that the tag, save,
publish and cleanup steps consume. Mutual exclusivity of ``repository``
versus ``namespace`` + ``image_name`` is checked by the validator, not here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict

from image_pipelines.errors import ConfigurationError
from image_pipelines.models import ImageSpec, PublishTarget

_log = logging.getLogger(__name__)

DEFAULT_TAG = "latest"


@dataclass(frozen=True)
class ImageReference:
    """A parsed ``[registry/][namespace/]name[:tag]`` reference."""

    registry: str
    namespace: str
    name: str
    tag: str

    def __str__(self) -> str:
        parts = [p for p in (self.registry, self.namespace) if p]
        parts.append(self.name)
        return "/".join(parts) + f":{self.tag}"


def parse_image_reference(reference: str) -> ImageReference:
    """Split an image reference into registry, namespace, name and tag.

    The first path segment is a registry host only when it contains a
    ``.`` or ``:``. Everything between the registry and the final segment
    is the namespace. A missing tag defaults to ``latest``.

    Raises:
        ConfigurationError: If the reference is empty or has empty segments.
    """
    if not reference or not reference.strip():
        raise ConfigurationError("Image reference cannot be empty")

    remainder, tag = reference, ""
    colon = reference.rfind(":")
    if colon > reference.rfind("/"):
        remainder, tag = reference[:colon], reference[colon + 1 :]
        if not tag:
            raise ConfigurationError(
                f"Invalid image reference format: {reference}"
            )

    segments = remainder.split("/")
    if any(not s for s in segments):
        raise ConfigurationError(f"Invalid image reference format: {reference}")

    registry = ""
    if len(segments) > 1 and ("." in segments[0] or ":" in segments[0]):
        registry = segments.pop(0)

    return ImageReference(
        registry=registry,
        namespace="/".join(segments[:-1]),
        name=segments[-1],
        tag=tag or DEFAULT_TAG,
    )


class EffectiveImageProperties(BaseModel):
    """Fully resolved naming fields for one image."""

    model_config = ConfigDict(frozen=True)

    registry: str = ""
    namespace: str = ""
    image_name: str = ""
    repository: str = ""
    tags: tuple[str, ...] = ()

    @classmethod
    def from_reference(cls, reference: str) -> EffectiveImageProperties:
        parsed = parse_image_reference(reference)
        return cls(
            registry=parsed.registry,
            namespace=parsed.namespace,
            image_name=parsed.name,
            tags=(parsed.tag,),
        )

    def base_reference(self) -> str:
        """Reference without a tag. Repository form takes precedence."""
        if self.repository:
            if self.registry:
                return f"{self.registry}/{self.repository}"
            return self.repository
        if self.image_name:
            parts = [p for p in (self.registry, self.namespace) if p]
            parts.append(self.image_name)
            return "/".join(parts)
        raise ConfigurationError(
            "Cannot build reference: neither repository nor image_name is set"
        )

    def full_reference(self) -> str:
        """Reference for the primary (first) tag, ``latest`` if untagged."""
        primary = self.tags[0] if self.tags else DEFAULT_TAG
        return f"{self.base_reference()}:{primary}"

    def references(self, tags: tuple[str, ...] | list[str] | None = None) -> list[str]:
        """One full reference per tag (this image's tags by default)."""
        base = self.base_reference()
        return [f"{base}:{tag}" for tag in (self.tags if tags is None else tags)]

    def apply_target_overrides(
        self, target: PublishTarget, tags: tuple[str, ...] | None = None
    ) -> EffectiveImageProperties:
        """Compose a publish target over this identity.

        Each naming field takes the target value when non-empty. An empty
        override tag list inherits these tags; a non-empty one replaces
        them. ``tags`` overrides ``target.publish_tags`` when given.
        """
        override_tags = target.publish_tags if tags is None else tags
        return EffectiveImageProperties(
            registry=target.registry or self.registry,
            namespace=target.namespace or self.namespace,
            image_name=target.image_name or self.image_name,
            repository=target.repository or self.repository,
            tags=tuple(override_tags) if override_tags else self.tags,
        )


def resolve_effective_properties(image: ImageSpec) -> EffectiveImageProperties:
    """Resolve one canonical identity from an image's configuration layers.

    Order: direct reference, then reference components, then build-mode
    naming fields. Components that cannot produce a usable reference fall
    back to build mode with a warning.

    Raises:
        ConfigurationError: If no layer can name the image.
    """
    if image.reference:
        return EffectiveImageProperties.from_reference(image.reference)

    if image.has_reference_components():
        try:
            return EffectiveImageProperties.from_reference(
                image.assemble_reference()
            )
        except ConfigurationError as e:
            _log.warning(
                "Image '%s': reference components unusable (%s); "
                "falling back to build-mode naming",
                image.name,
                e,
            )

    if not (image.repository or image.image_name):
        raise ConfigurationError(
            f"Image '{image.name}' cannot be named: set reference, "
            "reference components, repository, or image_name"
        )

    return EffectiveImageProperties(
        registry=image.registry,
        namespace=image.namespace,
        image_name=image.image_name,
        repository=image.repository,
        tags=image.tags,
    )


class ImageHandle(BaseModel):
    """A resolved image carried through the pipeline context."""

    model_config = ConfigDict(frozen=True)

    name: str
    properties: EffectiveImageProperties
    built: bool = True

    def primary_reference(self) -> str:
        return self.properties.full_reference()
