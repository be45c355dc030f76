"""image-pipelines: container image build, test and publish pipelines."""

from image_pipelines.capture import TestResultCapture
from image_pipelines.context import PipelineContext, PipelineResult
from image_pipelines.errors import (
    ConfigurationError,
    ContextError,
    PipelineError,
    PipelineLoadError,
    PipelineRunError,
    PipelineValidationError,
    TestExecutionError,
)
from image_pipelines.images import (
    EffectiveImageProperties,
    ImageHandle,
    parse_image_reference,
    resolve_effective_properties,
)
from image_pipelines.loader import load_pipeline, load_pipelines
from image_pipelines.models import (
    AlwaysStepSpec,
    BuildStepSpec,
    FailureStepSpec,
    ImageSpec,
    PipelineDefinition,
    PublishSpec,
    PublishTarget,
    SaveSpec,
    StepResult,
    SuccessStepSpec,
    TestResult,
    TestStepSpec,
)
from image_pipelines.operations import OperationRegistry, operation_name
from image_pipelines.pipeline_logger import configure_logging
from image_pipelines.runner import run_pipeline
from image_pipelines.services import EngineService, EnvironmentService, PipelineServices
from image_pipelines.validator import (
    Diagnostic,
    Severity,
    ValidationResult,
    load_and_validate_pipeline,
    validate_all,
    validate_pipeline,
)

__all__ = [
    "configure_logging",
    "Diagnostic",
    "load_and_validate_pipeline",
    "load_pipeline",
    "load_pipelines",
    "operation_name",
    "parse_image_reference",
    "resolve_effective_properties",
    "run_pipeline",
    "Severity",
    "validate_all",
    "validate_pipeline",
    "ValidationResult",
    "AlwaysStepSpec",
    "BuildStepSpec",
    "ConfigurationError",
    "ContextError",
    "EffectiveImageProperties",
    "EngineService",
    "EnvironmentService",
    "FailureStepSpec",
    "ImageHandle",
    "ImageSpec",
    "OperationRegistry",
    "PipelineContext",
    "PipelineDefinition",
    "PipelineError",
    "PipelineLoadError",
    "PipelineResult",
    "PipelineRunError",
    "PipelineServices",
    "PipelineValidationError",
    "PublishSpec",
    "PublishTarget",
    "SaveSpec",
    "StepResult",
    "SuccessStepSpec",
    "TestExecutionError",
    "TestResult",
    "TestResultCapture",
    "TestStepSpec",
]
