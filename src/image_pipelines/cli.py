"""Command-line interface for image-pipelines.

Provides the ``image-pipelines`` command after install.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from image_pipelines.models import PipelineDefinition

# ── Human-readable help strings ──────────────────────────────────────────────

_TOP_DESCRIPTION = """\
Container image build, test and publish pipelines.

Pipelines are declared in YAML: a build step, a test step bracketed by
environment up/down operations, success and failure paths, and an always
step for cleanup. This command checks pipeline files and shows how image
names resolve. Running pipelines requires registering operations and an
engine from Python.
"""

_TOP_EPILOG = """\
Quick examples:
  image-pipelines validate pipelines.yaml
  image-pipelines validate pipelines.yaml --operation buildApp --operation upStack
  image-pipelines resolve pipelines.yaml
"""

_VALIDATE_DESCRIPTION = """\
Statically validate every pipeline in a YAML file without running it.

Errors: conflicting repository vs namespace/image_name naming, images that
cannot be named, test steps missing a stack or test runner, and success
tags/save/publish configured without a build step.

Warnings: failure-path settings that will be skipped at runtime, publish
with no targets, and keep_failed_containers with container removal off.

When --operation is given, the named operations are treated as registered
and build<Image>, up<Stack>, down<Stack> and test runner names are checked
against them.
"""

_VALIDATE_EPILOG = """\
Exit codes:
  0  all pipelines valid (warnings may still be printed)
  1  one or more errors; diagnostics are written to stderr
"""

_RESOLVE_DESCRIPTION = """\
Print the effective image identity of every pipeline as JSON.

Output schema:

  [
    {
      "pipeline":   <str>,
      "image":      {"registry", "namespace", "image_name", "repository", "tags"},
      "references": [<str>, ...],
      "publish":    {"<target>": [<str>, ...]}
    }
  ]
"""


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="image-pipelines",
        description=_TOP_DESCRIPTION,
        epilog=_TOP_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    # ── validate ─────────────────────────────────────────────────────────────
    val_p = sub.add_parser(
        "validate",
        help="Statically validate pipelines without executing them",
        description=_VALIDATE_DESCRIPTION,
        epilog=_VALIDATE_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    val_p.add_argument("pipeline", type=Path, help="Path to the pipeline YAML file")
    val_p.add_argument(
        "--operation",
        action="append",
        default=None,
        metavar="NAME",
        help="Name of a registered operation. Repeatable.",
    )

    # ── resolve ──────────────────────────────────────────────────────────────
    res_p = sub.add_parser(
        "resolve",
        help="Print each pipeline's effective image references as JSON",
        description=_RESOLVE_DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    res_p.add_argument("pipeline", type=Path, help="Path to the pipeline YAML file")

    return parser


# ── Command handlers ──────────────────────────────────────────────────────────


def _cmd_validate(args: argparse.Namespace) -> int:
    from image_pipelines import OperationRegistry, load_pipelines, validate_pipeline

    operations = None
    if args.operation is not None:
        operations = OperationRegistry({name: _noop for name in args.operation})

    definitions = load_pipelines(args.pipeline)
    error_count = warning_count = 0
    for definition in definitions:
        result = validate_pipeline(definition, operations)
        for d in result.diagnostics:
            print(
                f"[{d.severity.value}] {definition.name}:{d.step_name}.{d.field}: "
                f"{d.message}",
                file=sys.stderr,
            )
        error_count += len(result.errors)
        warning_count += len(result.warnings)

    if error_count == 0:
        print(f"{len(definitions)} pipeline(s) valid")
        return 0

    print(f"\n{error_count} error(s), {warning_count} warning(s)", file=sys.stderr)
    return 1


def _noop() -> None:
    return None


def _resolve_entry(definition: PipelineDefinition) -> dict[str, Any]:
    from image_pipelines.images import ImageHandle, resolve_effective_properties
    from image_pipelines.steps.publish import target_references

    entry: dict[str, Any] = {"pipeline": definition.name, "image": None}
    if definition.build is None:
        return entry

    properties = resolve_effective_properties(definition.build.image)
    entry["image"] = properties.model_dump(mode="json")
    entry["references"] = properties.references() or [properties.full_reference()]

    success = definition.on_success
    if success is not None and success.publish is not None:
        handle = ImageHandle(name=definition.build.image.name, properties=properties)
        entry["publish"] = {
            target.name: target_references(handle, target, success.publish)
            for target in success.publish.to
        }
    return entry


def _cmd_resolve(args: argparse.Namespace) -> int:
    from image_pipelines import load_pipelines

    definitions = load_pipelines(args.pipeline)
    print(json.dumps([_resolve_entry(d) for d in definitions], indent=2))
    return 0


# ── Entry point ───────────────────────────────────────────────────────────────


def main(argv: list[str] | None = None) -> None:
    from image_pipelines.errors import PipelineError

    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    try:
        if args.command == "validate":
            sys.exit(_cmd_validate(args))
        elif args.command == "resolve":
            sys.exit(_cmd_resolve(args))
    except PipelineError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
