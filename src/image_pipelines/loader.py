"""YAML pipeline loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from image_pipelines.errors import PipelineLoadError
from image_pipelines.models import PipelineDefinition


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise PipelineLoadError(f"Pipeline file not found: {path}")

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise PipelineLoadError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(raw, dict):
        raise PipelineLoadError(
            f"Pipeline YAML must be a mapping, got {type(raw).__name__}"
        )
    return raw


def _validate(raw: dict[str, Any]) -> PipelineDefinition:
    try:
        return PipelineDefinition.model_validate(raw)
    except PydanticValidationError as e:
        raise PipelineLoadError(f"Pipeline structure invalid: {e}") from e


def load_pipeline(path: str | Path) -> PipelineDefinition:
    """Load a single pipeline definition from a YAML file.

    Raises:
        PipelineLoadError: If the file doesn't exist, YAML is invalid,
            or the structure doesn't match the expected schema.
    """
    return _validate(_read_yaml(Path(path)))


def load_pipelines(path: str | Path) -> list[PipelineDefinition]:
    """Load every pipeline declared in a YAML file.

    Accepts either one pipeline mapping, or a ``pipelines`` mapping keyed
    by pipeline name. In the keyed form the key supplies ``name``.

    Raises:
        PipelineLoadError: As for ``load_pipeline``, or when a named entry
            is not a mapping or disagrees with its key.
    """
    raw = _read_yaml(Path(path))
    if "pipelines" not in raw:
        return [_validate(raw)]

    entries = raw["pipelines"]
    if len(raw) > 1 or not isinstance(entries, dict):
        raise PipelineLoadError(
            "'pipelines' must be the only top-level key and must be a mapping"
        )

    definitions: list[PipelineDefinition] = []
    for name, body in entries.items():
        body = {} if body is None else body
        if not isinstance(body, dict):
            raise PipelineLoadError(
                f"Pipeline '{name}' must be a mapping, got {type(body).__name__}"
            )
        if body.get("name", name) != name:
            raise PipelineLoadError(
                f"Pipeline '{name}' declares a different name: {body['name']!r}"
            )
        definitions.append(_validate({**body, "name": str(name)}))
    return definitions
