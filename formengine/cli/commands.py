"""
cli/commands.py - CLI command implementations
"""

from __future__ import annotations
from typing import Any, Dict
import argparse
import json
from pathlib import Path

from .core import CLICommand, CLIContext, CommandResult, CommandRegistry, OutputFormat, command_registry
from formengine.core import build_values_model, import_schema
from formengine.dependencies import DependencyResolver
from formengine.masks import get_default_engine
from formengine.validators import SchemaValidator


def _read_json(path: str) -> Any:
    with open(Path(path), "r") as f:
        return json.load(f)


class ValidateCommand(CLICommand):
    """Statically validate a schema document."""

    name = "validate"
    description = "Validate a schema file"
    aliases = ["check"]

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("schema", help="Path to schema JSON")

    def execute(self, ctx: CLIContext, args: argparse.Namespace) -> CommandResult:
        try:
            document = _read_json(args.schema)
        except (OSError, ValueError) as e:
            return CommandResult(success=False, error=str(e), exit_code=1)

        result = SchemaValidator().validate(document)
        data: Dict[str, Any] = {
            "errors": result.errors,
            "warnings": result.warnings,
            "summary": result.summary.to_dict(),
        }

        if not result.is_valid:
            return CommandResult(
                success=False,
                message=f"{args.schema}: {len(result.errors)} error(s)",
                data=data,
                error="; ".join(result.errors),
                exit_code=1,
            )
        return CommandResult(
            success=True,
            message=f"{args.schema}: valid ({result.summary.total_fields} fields, "
                    f"{len(result.warnings)} warning(s))",
            data=data if ctx.verbose or result.warnings else None,
        )


class MaskCommand(CLICommand):
    """Format a raw value with a mask."""

    name = "mask"
    description = "Apply an input mask to a raw value"

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("raw", help="Raw input")
        parser.add_argument("mask", help="Preset name or custom pattern (prefix with 'custom:')")

    def execute(self, ctx: CLIContext, args: argparse.Namespace) -> CommandResult:
        engine = get_default_engine()
        mask: Any = args.mask
        if mask.startswith("custom:"):
            mask = {"type": "custom", "pattern": mask[len("custom:"):]}

        formatted = engine.apply_mask(args.raw, mask)
        return CommandResult(
            success=True,
            message=formatted,
            data={
                "formatted": formatted,
                "complete": engine.is_complete(formatted, mask),
                "raw": engine.raw_value(formatted, mask),
            } if ctx.verbose else None,
        )


class EvaluateCommand(CLICommand):
    """Run one resolver pass over a value set."""

    name = "evaluate"
    description = "Evaluate visibility, computed values and errors for a value set"
    aliases = ["eval"]

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("schema", help="Path to schema JSON")
        parser.add_argument("--values", default=None, help="Path to values JSON")
        parser.add_argument(
            "--touch-all",
            action="store_true",
            help="Treat every field as touched",
        )

    def execute(self, ctx: CLIContext, args: argparse.Namespace) -> CommandResult:
        try:
            document = _read_json(args.schema)
            values = _read_json(args.values) if args.values else {}
        except (OSError, ValueError) as e:
            return CommandResult(success=False, error=str(e), exit_code=1)

        imported = import_schema(document)
        if imported.schema is None:
            return CommandResult(success=False, error=imported.error, exit_code=1)

        resolver = DependencyResolver(imported.schema)
        merged = {**resolver.initial_values(), **values}
        touched = {name: True for name in merged} if args.touch_all else {}
        snapshot = resolver.evaluate(merged, touched)

        return CommandResult(
            success=True,
            message=json.dumps(snapshot.to_dict(), indent=2, default=str),
            data=snapshot.to_dict() if ctx.output_format == OutputFormat.JSON else None,
        )


class ModelCommand(CLICommand):
    """Print the JSON schema of the generated values model."""

    name = "model"
    description = "Generate the values model for a schema"

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("schema", help="Path to schema JSON")
        parser.add_argument("--name", default="FormData", help="Model name")

    def execute(self, ctx: CLIContext, args: argparse.Namespace) -> CommandResult:
        try:
            document = _read_json(args.schema)
        except (OSError, ValueError) as e:
            return CommandResult(success=False, error=str(e), exit_code=1)

        imported = import_schema(document)
        if imported.schema is None:
            return CommandResult(success=False, error=imported.error, exit_code=1)

        model = build_values_model(imported.schema, args.name)
        json_schema = model.model_json_schema()
        return CommandResult(
            success=True,
            message=json.dumps(json_schema, indent=2),
            data=json_schema if ctx.output_format == OutputFormat.JSON else None,
        )


def register_commands(registry: CommandRegistry = command_registry) -> CommandRegistry:
    """Register every built-in command."""
    for command in (ValidateCommand(), MaskCommand(), EvaluateCommand(), ModelCommand()):
        registry.register(command)
    return registry
