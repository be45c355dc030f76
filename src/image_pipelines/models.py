"""Pydantic models for pipeline definitions and test outcomes.

All configuration shapes live here. Every spec is frozen: a pipeline's
configuration is snapshotted before the run starts and never mutated
while it executes. Hooks are plain callables attached programmatically;
they have no YAML representation.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, SecretStr

from image_pipelines.errors import ConfigurationError

Hook = Callable[[], Any]


class _Spec(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# ── Test outcome ─────────────────────────────────────────────────


class TestResult(BaseModel):
    """Outcome of one test-runner invocation."""

    __test__ = False  # not a pytest test class

    model_config = ConfigDict(frozen=True)

    success: bool
    total_tests: NonNegativeInt = 0
    passed_tests: NonNegativeInt = 0
    failed_tests: NonNegativeInt = 0
    skipped_tests: NonNegativeInt = 0
    failure_cause: str | None = None

    @classmethod
    def passed(cls, total: int, skipped: int = 0) -> TestResult:
        return cls(
            success=True,
            total_tests=total,
            passed_tests=max(total - skipped, 0),
            skipped_tests=skipped,
        )

    @classmethod
    def failed(
        cls,
        total: int,
        failures: int,
        skipped: int = 0,
        cause: str | None = None,
    ) -> TestResult:
        return cls(
            success=False,
            total_tests=total,
            passed_tests=max(total - failures - skipped, 0),
            failed_tests=failures,
            skipped_tests=skipped,
            failure_cause=cause,
        )


ResultHook = Callable[[TestResult], Any]


# ── Image naming ─────────────────────────────────────────────────


class ImageSpec(_Spec):
    """Image configuration across its naming layers.

    ``reference`` and the ``reference_*`` components address an image that
    already exists; the remaining naming fields describe a built image.
    """

    name: str
    reference: str = ""
    reference_registry: str = ""
    reference_namespace: str = ""
    reference_image_name: str = ""
    reference_repository: str = ""
    reference_tag: str = ""
    registry: str = ""
    namespace: str = ""
    image_name: str = ""
    repository: str = ""
    tags: tuple[str, ...] = ()

    def has_reference_components(self) -> bool:
        return bool(self.reference_repository or self.reference_image_name)

    def uses_source_reference(self) -> bool:
        """True when the image is addressed by reference rather than built."""
        return bool(self.reference) or self.has_reference_components()

    def assemble_reference(self) -> str:
        """Join the ``reference_*`` components into one reference string.

        Repository form wins over namespace + image name. Tag defaults
        to ``latest``.
        """
        tag = self.reference_tag or "latest"
        registry = self.reference_registry

        if self.reference_repository:
            base = (
                f"{registry}/{self.reference_repository}"
                if registry
                else self.reference_repository
            )
            return f"{base}:{tag}"

        if not self.reference_image_name:
            raise ConfigurationError(
                f"Image '{self.name}': either reference_repository or "
                "reference_image_name must be specified"
            )

        parts = [p for p in (registry, self.reference_namespace) if p]
        parts.append(self.reference_image_name)
        return "/".join(parts) + f":{tag}"


class AuthSpec(_Spec):
    username: str = ""
    password: SecretStr | None = None
    registry_token: SecretStr | None = None
    server_address: str = ""


class PublishTarget(_Spec):
    """A registry destination. Unset fields inherit from the source image."""

    name: str
    registry: str = ""
    namespace: str = ""
    image_name: str = ""
    repository: str = ""
    publish_tags: tuple[str, ...] = ()
    auth: AuthSpec | None = None


class PublishSpec(_Spec):
    publish_tags: tuple[str, ...] = ()
    to: tuple[PublishTarget, ...] = ()


class Compression(str, Enum):
    NONE = "none"
    GZIP = "gzip"
    BZIP2 = "bzip2"
    XZ = "xz"
    ZIP = "zip"

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]


_EXTENSIONS = {
    Compression.NONE: "tar",
    Compression.GZIP: "tar.gz",
    Compression.BZIP2: "tar.bz2",
    Compression.XZ: "tar.xz",
    Compression.ZIP: "zip",
}


class SaveSpec(_Spec):
    output_file: Path = Path("build/docker-images/image.tar")
    compression: Compression = Compression.NONE
    pull_if_missing: bool = False
    auth: AuthSpec | None = None


class LogsConfig(_Spec):
    """What to pull from an environment when capturing logs."""

    services: tuple[str, ...] = ()
    tail_lines: int = Field(default=100, ge=1)


# ── Step specs ───────────────────────────────────────────────────


class BuildStepSpec(_Spec):
    image: ImageSpec
    before_build: Hook | None = None
    after_build: Hook | None = None


class TestStepSpec(_Spec):
    """Test phase configuration.

    ``stack`` names the environment brought up around the run and
    ``test_runner`` names the registered operation that runs the tests.
    """

    __test__ = False  # not a pytest test class

    stack: str | None = None
    test_runner: str | None = None
    before_test: Hook | None = None
    after_test: ResultHook | None = None


class SuccessStepSpec(_Spec):
    additional_tags: tuple[str, ...] = ()
    save: SaveSpec | None = None
    publish: PublishSpec | None = None
    after_success: Hook | None = None


class FailureStepSpec(_Spec):
    additional_tags: tuple[str, ...] = ()
    save_failure_logs_dir: Path | None = None
    include_services: tuple[str, ...] = ()
    log_tail_lines: int = Field(default=1000, ge=1)
    after_failure: Hook | None = None


class AlwaysStepSpec(_Spec):
    remove_test_containers: bool = True
    keep_failed_containers: bool = False
    cleanup_images: bool = False


# ── Pipeline definition ──────────────────────────────────────────


class PipelineDefinition(_Spec):
    name: str
    description: str = ""
    build: BuildStepSpec | None = None
    test: TestStepSpec | None = None
    on_success: SuccessStepSpec | None = None
    on_failure: FailureStepSpec | None = None
    always: AlwaysStepSpec | None = None


# ── Runtime results ──────────────────────────────────────────────


class StepResult(BaseModel):
    step_name: str
    duration_ms: float
