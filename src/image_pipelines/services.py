"""Collaborator contracts consumed by the step executors.

The engine owns no container, registry or environment resources. It
talks to them through these interfaces and waits for every call to
finish before moving on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from image_pipelines.capture import TestResultCapture
from image_pipelines.models import AuthSpec, Compression, LogsConfig
from image_pipelines.operations import OperationRegistry


class EngineService(Protocol):
    """Container engine operations on already-resolved references."""

    async def tag_image(self, source: str, targets: list[str]) -> None: ...

    async def save_image(
        self, reference: str, output_file: Path, compression: Compression
    ) -> None: ...

    async def push_image(self, reference: str, auth: AuthSpec | None) -> None: ...

    async def remove_image(self, reference: str) -> None: ...


class EnvironmentService(Protocol):
    """Environment (stack) orchestration beyond the named up/down operations."""

    async def capture_logs(self, stack: str, config: LogsConfig) -> str: ...

    async def remove_stack(self, stack: str) -> None: ...


@dataclass(frozen=True)
class PipelineServices:
    """Collaborators wired into one pipeline run."""

    operations: OperationRegistry = field(default_factory=OperationRegistry)
    engine: EngineService | None = None
    environment: EnvironmentService | None = None
    result_capture: TestResultCapture = field(default_factory=TestResultCapture)
