"""Shared fakes for the pipeline collaborators.

The fake engine and environment record every call in ``calls`` so tests
can assert on ordering and counts without touching a container runtime.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from image_pipelines.models import AuthSpec, Compression, LogsConfig
from image_pipelines.operations import OperationRegistry
from image_pipelines.services import PipelineServices


class FakeEngine:
    def __init__(self, fail_on: str | None = None) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.fail_on = fail_on

    def _record(self, *call: Any) -> None:
        self.calls.append(call)
        if call[0] == self.fail_on:
            raise RuntimeError(f"engine {call[0]} failed")

    async def tag_image(self, source: str, targets: list[str]) -> None:
        self._record("tag", source, list(targets))

    async def save_image(
        self, reference: str, output_file: Path, compression: Compression
    ) -> None:
        self._record("save", reference, output_file, compression)

    async def push_image(self, reference: str, auth: AuthSpec | None) -> None:
        self._record("push", reference, auth)

    async def remove_image(self, reference: str) -> None:
        self._record("remove", reference)


class FakeEnvironment:
    def __init__(self, logs: str = "container logs\n", fail: bool = False) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.logs = logs
        self.fail = fail

    async def capture_logs(self, stack: str, config: LogsConfig) -> str:
        self.calls.append(("capture_logs", stack, config))
        if self.fail:
            raise RuntimeError("log capture failed")
        return self.logs

    async def remove_stack(self, stack: str) -> None:
        self.calls.append(("remove_stack", stack))
        if self.fail:
            raise RuntimeError("remove failed")


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def environment() -> FakeEnvironment:
    return FakeEnvironment()


@pytest.fixture
def events() -> list[str]:
    """Ordered record of operation and hook invocations."""
    return []


@pytest.fixture
def services(engine, environment) -> PipelineServices:
    return PipelineServices(
        operations=OperationRegistry(),
        engine=engine,
        environment=environment,
    )


@pytest.fixture
def make_engine():
    """Factory for engines that fail on one call kind."""
    return FakeEngine


@pytest.fixture
def make_environment():
    return FakeEnvironment
