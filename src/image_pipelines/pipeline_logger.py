"""Structured JSON logging for pipeline execution.

Writes JSON-lines to disk so humans and CI tooling can debug pipeline
runs after the fact. Each log entry is a single JSON object on one line.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

_logger = logging.getLogger("image_pipelines.events")


def configure_logging(
    log_dir: str | Path, level: int = logging.DEBUG
) -> None:
    """Set up pipeline logging to write JSON-lines to a file.

    Args:
        log_dir: Directory to write ``pipeline.log`` into.
        level: Logging level (default: DEBUG).
    """
    log_path = Path(log_dir) / "pipeline.log"
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(str(log_path))
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))

    _logger.addHandler(handler)
    _logger.setLevel(level)


def _log(event: dict[str, Any]) -> None:
    _logger.info(json.dumps(event, default=str))


def log_step_start(pipeline_name: str, step_name: str) -> None:
    _log({"event": "step_start", "pipeline": pipeline_name, "step_name": step_name})


def log_step_complete(
    pipeline_name: str, step_name: str, duration_ms: float
) -> None:
    _log({
        "event": "step_complete",
        "pipeline": pipeline_name,
        "step_name": step_name,
        "duration_ms": round(duration_ms, 2),
    })


def log_step_failed(pipeline_name: str, step_name: str, error: str) -> None:
    _log({
        "event": "step_failed",
        "pipeline": pipeline_name,
        "step_name": step_name,
        "error": error,
    })


def log_pipeline_complete(
    pipeline_name: str, success: bool, duration_ms: float
) -> None:
    _log({
        "event": "pipeline_complete",
        "pipeline": pipeline_name,
        "success": success,
        "duration_ms": round(duration_ms, 2),
    })
