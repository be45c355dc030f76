"""Tests for YAML pipeline loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from image_pipelines.errors import PipelineLoadError
from image_pipelines.loader import load_pipeline, load_pipelines
from image_pipelines.models import Compression

SINGLE = """\
name: ci
description: Build and test the app
build:
  image:
    name: app
    namespace: team
    image_name: app
    tags: ["1.0", latest]
test:
  stack: integration
  test_runner: integrationTest
on_success:
  additional_tags: [tested]
  save:
    output_file: build/app.tar.gz
    compression: gzip
  publish:
    to:
      - name: hub
        registry: docker.io
        auth:
          username: ci
          password: s3cret
on_failure:
  additional_tags: [failed]
  save_failure_logs_dir: build/logs
always:
  keep_failed_containers: true
"""


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "pipelines.yaml"
    path.write_text(text)
    return path


def test_load_single_pipeline(tmp_path):
    definition = load_pipeline(_write(tmp_path, SINGLE))
    assert definition.name == "ci"
    assert definition.build.image.tags == ("1.0", "latest")
    assert definition.test.test_runner == "integrationTest"
    assert definition.on_success.save.compression is Compression.GZIP
    assert definition.on_success.save.output_file == Path("build/app.tar.gz")
    assert definition.on_success.publish.to[0].auth.password.get_secret_value() == "s3cret"
    assert definition.on_failure.log_tail_lines == 1000
    assert definition.always.keep_failed_containers
    assert definition.always.remove_test_containers


def test_password_not_shown_in_repr(tmp_path):
    definition = load_pipeline(_write(tmp_path, SINGLE))
    assert "s3cret" not in repr(definition)


def test_load_pipelines_single_mapping(tmp_path):
    definitions = load_pipelines(_write(tmp_path, SINGLE))
    assert [d.name for d in definitions] == ["ci"]


def test_load_pipelines_keyed(tmp_path):
    path = _write(
        tmp_path,
        """\
pipelines:
  unit:
    description: fast
  release:
    build:
      image:
        name: app
        image_name: app
""",
    )
    definitions = load_pipelines(path)
    assert [d.name for d in definitions] == ["unit", "release"]
    assert definitions[1].build.image.image_name == "app"


def test_load_pipelines_name_mismatch(tmp_path):
    path = _write(tmp_path, "pipelines:\n  unit:\n    name: other\n")
    with pytest.raises(PipelineLoadError, match="different name"):
        load_pipelines(path)


def test_load_pipelines_entry_must_be_mapping(tmp_path):
    path = _write(tmp_path, "pipelines:\n  unit: [1, 2]\n")
    with pytest.raises(PipelineLoadError, match="must be a mapping"):
        load_pipelines(path)


def test_missing_file(tmp_path):
    with pytest.raises(PipelineLoadError, match="not found"):
        load_pipeline(tmp_path / "nope.yaml")


def test_invalid_yaml(tmp_path):
    with pytest.raises(PipelineLoadError, match="Invalid YAML"):
        load_pipeline(_write(tmp_path, "name: [unclosed"))


def test_non_mapping_yaml(tmp_path):
    with pytest.raises(PipelineLoadError, match="must be a mapping"):
        load_pipeline(_write(tmp_path, "- a\n- b\n"))


def test_unknown_field_rejected(tmp_path):
    with pytest.raises(PipelineLoadError, match="structure invalid"):
        load_pipeline(_write(tmp_path, "name: ci\nalways:\n  cleanup: true\n"))


def test_bad_compression_rejected(tmp_path):
    text = "name: ci\non_success:\n  save:\n    compression: rar\n"
    with pytest.raises(PipelineLoadError):
        load_pipeline(_write(tmp_path, text))
