"""Tests for the command-line interface."""

from __future__ import annotations

import json

import pytest

from image_pipelines.cli import _build_parser, main

PIPELINES = """\
pipelines:
  release:
    build:
      image:
        name: app
        registry: ghcr.io
        namespace: team
        image_name: app
        tags: ["1.0", latest]
    test:
      stack: web
      test_runner: integrationTest
    on_success:
      publish:
        publish_tags: [stable]
        to:
          - name: hub
            registry: docker.io
  smoke:
    test:
      stack: web
"""


@pytest.fixture
def pipelines_file(tmp_path):
    path = tmp_path / "pipelines.yaml"
    path.write_text(PIPELINES)
    return path


def _run(argv) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


# ── validate ──────────────────────────────────────────────────────


class TestValidate:
    def test_reports_errors(self, pipelines_file, capsys):
        assert _run(["validate", str(pipelines_file)]) == 1
        err = capsys.readouterr().err
        assert "[error] smoke:test.test_runner" in err
        assert "1 error(s)" in err

    def test_valid_file(self, tmp_path, capsys):
        path = tmp_path / "ok.yaml"
        path.write_text("name: ci\n")
        assert _run(["validate", str(path)]) == 0
        assert "1 pipeline(s) valid" in capsys.readouterr().out

    def test_checks_operations_when_given(self, tmp_path, capsys):
        path = tmp_path / "ok.yaml"
        path.write_text("name: ci\ntest:\n  stack: web\n  test_runner: integrationTest\n")
        code = _run(
            ["validate", str(path), "--operation", "upWeb", "--operation", "integrationTest"]
        )
        assert code == 0
        assert "downWeb" in capsys.readouterr().err

    def test_load_error_exits_1(self, tmp_path, capsys):
        assert _run(["validate", str(tmp_path / "missing.yaml")]) == 1
        assert "not found" in capsys.readouterr().err


# ── resolve ───────────────────────────────────────────────────────


class TestResolve:
    def test_prints_references(self, pipelines_file, capsys):
        assert _run(["resolve", str(pipelines_file)]) == 0
        entries = json.loads(capsys.readouterr().out)
        release, smoke = entries
        assert release["pipeline"] == "release"
        assert release["image"]["registry"] == "ghcr.io"
        assert release["references"] == ["ghcr.io/team/app:1.0", "ghcr.io/team/app:latest"]
        assert release["publish"] == {"hub": ["docker.io/team/app:stable"]}
        assert smoke == {"pipeline": "smoke", "image": None}

    def test_unnameable_image_exits_1(self, tmp_path, capsys):
        path = tmp_path / "bad.yaml"
        path.write_text("name: ci\nbuild:\n  image:\n    name: app\n")
        assert _run(["resolve", str(path)]) == 1
        assert "cannot be named" in capsys.readouterr().err


# ── No-command behaviour ──────────────────────────────────────────


class TestNoCommand:
    def test_prints_help_and_exits_0(self, capsys):
        assert _run([]) == 0
        assert "image-pipelines" in capsys.readouterr().out

    def test_subcommands_registered(self):
        parser = _build_parser()
        args = parser.parse_args(["resolve", "x.yaml"])
        assert args.command == "resolve"
