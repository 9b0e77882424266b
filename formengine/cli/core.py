"""
cli/core.py - Command registry and output rendering for the formengine CLI.

Commands subclass ``CLICommand`` and are registered on ``command_registry``;
``build_parser`` turns the registry into one argparse subparser per command.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional
from dataclasses import dataclass
from enum import Enum
from abc import ABC, abstractmethod
import argparse
import json
import logging

logger = logging.getLogger("cli")


class OutputFormat(Enum):
    TEXT = "text"
    JSON = "json"


@dataclass
class CLIContext:
    """Options shared by every command invocation."""

    output_format: OutputFormat = OutputFormat.TEXT
    verbose: bool = False
    config_path: Optional[str] = None


@dataclass
class CommandResult:
    """Outcome of one command; ``exit_code`` becomes the process status."""

    success: bool = True
    message: str = ""
    data: Any = None
    error: Optional[str] = None
    exit_code: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "data": self.data,
            "error": self.error,
            "exitCode": self.exit_code,
        }


class CLICommand(ABC):
    """One ``formengine <name>`` subcommand."""

    name: str = "command"
    description: str = ""
    aliases: List[str] = []

    def configure_parser(self, parser: argparse.ArgumentParser) -> None:
        """Add positional arguments and options for this command."""

    @abstractmethod
    def execute(self, ctx: CLIContext, args: argparse.Namespace) -> CommandResult:
        ...


class CommandRegistry:
    """Commands by name, with alias lookup."""

    def __init__(self):
        self._commands: Dict[str, CLICommand] = {}
        self._aliases: Dict[str, str] = {}

    def register(self, command: CLICommand) -> None:
        if command.name in self._commands:
            logger.debug(f"Replacing command '{command.name}'")
        self._commands[command.name] = command
        for alias in command.aliases:
            self._aliases[alias] = command.name

    def get(self, name: str) -> Optional[CLICommand]:
        return self._commands.get(self._aliases.get(name, name))

    def list_commands(self) -> List[str]:
        return list(self._commands)

    def build_parser(self, prog: str = "formengine") -> argparse.ArgumentParser:
        """Top-level parser with one subparser per registered command."""
        parser = argparse.ArgumentParser(
            prog=prog,
            description="Declarative form schema tooling",
        )
        parser.add_argument(
            "--format",
            choices=[f.value for f in OutputFormat],
            default=OutputFormat.TEXT.value,
            help="Output format",
        )
        parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
        parser.add_argument("-c", "--config", default=None, help="Path to configuration file")

        subparsers = parser.add_subparsers(dest="command")
        for command in self._commands.values():
            sub = subparsers.add_parser(
                command.name,
                aliases=list(command.aliases),
                help=command.description,
            )
            command.configure_parser(sub)
        return parser


command_registry = CommandRegistry()


def _render_lines(data: Any, indent: str = "  ") -> List[str]:
    if isinstance(data, dict):
        lines = []
        for key, value in data.items():
            if isinstance(value, (dict, list)) and value:
                lines.append(f"{indent}{key}:")
                lines.extend(_render_lines(value, indent + "  "))
            else:
                lines.append(f"{indent}{key}: {value}")
        return lines
    if isinstance(data, list):
        return [f"{indent}- {item}" for item in data]
    return [f"{indent}{data}"]


def format_output(result: CommandResult, format: OutputFormat) -> str:
    """Render a result as indented text or as JSON."""
    if format == OutputFormat.JSON:
        return json.dumps(result.to_dict(), indent=2, default=str)

    if not result.success:
        lines = [f"Error: {result.error}"]
    else:
        lines = [result.message] if result.message else []
    if result.data:
        lines.extend(_render_lines(result.data))
    return "\n".join(lines)
