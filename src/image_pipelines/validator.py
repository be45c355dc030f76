"""Pre-flight pipeline validator.

Statically validates pipeline definitions without executing them.
Catches conflicting naming schemes, unnameable images, half-configured
test steps and missing operations before any container is touched.
The image resolver itself does not enforce these rules.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from image_pipelines.errors import ConfigurationError, PipelineValidationError
from image_pipelines.images import resolve_effective_properties
from image_pipelines.models import ImageSpec, PipelineDefinition, PublishSpec
from image_pipelines.operations import OperationRegistry, operation_name

# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    """A single validation finding."""

    severity: Severity
    step_name: str  # "build", "test", "on_success", "on_failure", "always"
    message: str
    field: str


@dataclass(frozen=True)
class ValidationResult:
    """Aggregate result of pipeline validation."""

    diagnostics: list[Diagnostic]

    @property
    def ok(self) -> bool:
        """True when there are no error-severity diagnostics."""
        return not any(d.severity == Severity.ERROR for d in self.diagnostics)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.WARNING]


def _error(step_name: str, field: str, message: str) -> Diagnostic:
    return Diagnostic(Severity.ERROR, step_name, message, field)


def _warning(step_name: str, field: str, message: str) -> Diagnostic:
    return Diagnostic(Severity.WARNING, step_name, message, field)


# ---------------------------------------------------------------------------
# 1. Image naming
# ---------------------------------------------------------------------------


def _check_naming_scheme(
    step_name: str,
    field: str,
    repository: str,
    namespace: str,
    image_name: str,
) -> list[Diagnostic]:
    """``repository`` and ``namespace`` + ``image_name`` are exclusive."""
    if repository and (namespace or image_name):
        return [
            _error(
                step_name,
                field,
                "Cannot use both 'repository' and 'namespace'/'image_name' "
                "naming approaches",
            )
        ]
    return []


def _check_image(image: ImageSpec) -> list[Diagnostic]:
    diagnostics = _check_naming_scheme(
        "build", "image", image.repository, image.namespace, image.image_name
    )
    diagnostics.extend(
        _check_naming_scheme(
            "build",
            "image.reference",
            image.reference_repository,
            image.reference_namespace,
            image.reference_image_name,
        )
    )
    try:
        resolve_effective_properties(image)
    except ConfigurationError as e:
        diagnostics.append(_error("build", "image", str(e)))
    return diagnostics


def _check_publish(publish: PublishSpec) -> list[Diagnostic]:
    if not publish.to:
        return [
            _warning(
                "on_success",
                "publish.to",
                "Publish is configured with no targets and will do nothing",
            )
        ]

    diagnostics: list[Diagnostic] = []
    for target in publish.to:
        diagnostics.extend(
            _check_naming_scheme(
                "on_success",
                f"publish.to.{target.name}",
                target.repository,
                target.namespace,
                target.image_name,
            )
        )
    return diagnostics


# ---------------------------------------------------------------------------
# 2. Step dependencies
# ---------------------------------------------------------------------------


def _check_steps(definition: PipelineDefinition) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    has_build = definition.build is not None

    test = definition.test
    if test is not None and bool(test.stack) != bool(test.test_runner):
        missing = "test_runner" if test.stack else "stack"
        diagnostics.append(
            _error("test", missing, f"Test step requires '{missing}' to be set")
        )

    success = definition.on_success
    if success is not None:
        for field, configured in (
            ("additional_tags", bool(success.additional_tags)),
            ("save", success.save is not None),
            ("publish", success.publish is not None),
        ):
            if configured and not has_build:
                diagnostics.append(
                    _error(
                        "on_success",
                        field,
                        f"'{field}' requires a build step to produce an image",
                    )
                )
        if success.publish is not None:
            diagnostics.extend(_check_publish(success.publish))

    failure = definition.on_failure
    if failure is not None:
        if failure.additional_tags and not has_build:
            diagnostics.append(
                _warning(
                    "on_failure",
                    "additional_tags",
                    "No build step: failure tags will be skipped",
                )
            )
        if failure.save_failure_logs_dir is not None and not (test and test.stack):
            diagnostics.append(
                _warning(
                    "on_failure",
                    "save_failure_logs_dir",
                    "No test stack: failure logs cannot be captured",
                )
            )

    always = definition.always
    if (
        always is not None
        and always.keep_failed_containers
        and not always.remove_test_containers
    ):
        diagnostics.append(
            _warning(
                "always",
                "keep_failed_containers",
                "Has no effect while 'remove_test_containers' is false",
            )
        )

    return diagnostics


# ---------------------------------------------------------------------------
# 3. Operation resolution
# ---------------------------------------------------------------------------


def _check_operations(
    definition: PipelineDefinition, operations: OperationRegistry
) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []

    build = definition.build
    if build is not None and not build.image.uses_source_reference():
        name = operation_name("build", build.image.name)
        if name not in operations:
            diagnostics.append(
                _error("build", "image", f"Build operation '{name}' is not registered")
            )

    test = definition.test
    if test is not None and test.stack:
        up = operation_name("up", test.stack)
        if up not in operations:
            diagnostics.append(
                _error("test", "stack", f"Operation '{up}' is not registered")
            )
        down = operation_name("down", test.stack)
        if down not in operations:
            diagnostics.append(
                _warning(
                    "test",
                    "stack",
                    f"Operation '{down}' is not registered; teardown will be skipped",
                )
            )
    if test is not None and test.test_runner and test.test_runner not in operations:
        diagnostics.append(
            _error(
                "test",
                "test_runner",
                f"Test runner '{test.test_runner}' is not registered",
            )
        )

    return diagnostics


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_pipeline(
    definition: PipelineDefinition,
    operations: OperationRegistry | None = None,
) -> ValidationResult:
    """Statically validate a pipeline definition without executing it.

    Checks:
    - Mutually exclusive naming schemes on the image and publish targets
    - That the image can be named at all
    - Test step stack/test_runner pairing
    - Success/failure sub-steps that need a build step
    - Registered build/up/down/test runner operations, when
      ``operations`` is given

    The pipeline is considered valid when ``result.ok`` is True.
    """
    diagnostics: list[Diagnostic] = []
    if definition.build is not None:
        diagnostics.extend(_check_image(definition.build.image))
    diagnostics.extend(_check_steps(definition))
    if operations is not None:
        diagnostics.extend(_check_operations(definition, operations))
    return ValidationResult(diagnostics=diagnostics)


def validate_all(
    definitions: Iterable[PipelineDefinition],
    operations: OperationRegistry | None = None,
) -> None:
    """Validate every pipeline and report all errors at once.

    Raises:
        PipelineValidationError: If any pipeline has an error diagnostic.
    """
    errors: list[str] = []
    for definition in definitions:
        result = validate_pipeline(definition, operations)
        errors.extend(
            f"{definition.name}: {d.step_name}.{d.field}: {d.message}"
            for d in result.errors
        )
    if errors:
        raise PipelineValidationError(errors)


def load_and_validate_pipeline(
    path: str | Path,
    operations: OperationRegistry | None = None,
) -> tuple[PipelineDefinition, ValidationResult]:
    """Load a pipeline from YAML and validate it.

    Convenience wrapper: calls ``load_pipeline`` then ``validate_pipeline``.
    Raises ``PipelineLoadError`` if YAML/Pydantic parsing fails.
    """
    from image_pipelines.loader import load_pipeline

    definition = load_pipeline(path)
    result = validate_pipeline(definition, operations)
    return definition, result
