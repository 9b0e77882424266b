"""
cli/ - Command Line Interface

Provides command-line access to formengine functionality:
- validate: static schema checks
- mask: apply an input mask
- evaluate: one resolver pass over a value set
- model: values model JSON schema
"""

from .core import (
    CLIContext,
    OutputFormat,
    CommandResult,
    CommandRegistry,
    CLICommand,
    command_registry,
    format_output,
)

from .commands import (
    ValidateCommand,
    MaskCommand,
    EvaluateCommand,
    ModelCommand,
    register_commands,
)


__all__ = [
    # Core
    "CLIContext",
    "OutputFormat",
    "CommandResult",
    "CommandRegistry",
    "CLICommand",
    "command_registry",
    "format_output",
    # Commands
    "ValidateCommand",
    "MaskCommand",
    "EvaluateCommand",
    "ModelCommand",
    "register_commands",
]
