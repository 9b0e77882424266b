"""
bootstrap/entrypoints.py - Application entry points

Provides CLI and API entry points.
"""

from __future__ import annotations
from typing import List, Optional
import argparse
import json
import logging
import sys

from .config import load_config

logger = logging.getLogger("bootstrap.entrypoints")

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record):
        return json.dumps({
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        })


def setup_logging(
    level: str = "INFO",
    log_file: str = None,
    json_format: bool = False,
    fmt: str = DEFAULT_LOG_FORMAT,
) -> None:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path
        json_format: Use JSON format for logs
        fmt: Format string for the plain formatter
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    formatter = JSONFormatter() if json_format else logging.Formatter(fmt)

    # Console handler
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(log_level)
        root_logger.addHandler(file_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def cli_main(args: Optional[List[str]] = None) -> int:
    """
    CLI entry point.

    Args:
        args: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code
    """
    from formengine.cli import (
        CLIContext,
        OutputFormat,
        command_registry,
        format_output,
        register_commands,
    )

    registry = command_registry
    if not registry.list_commands():
        register_commands(registry)

    parser = registry.build_parser()
    parsed = parser.parse_args(args)

    config = load_config(parsed.config)
    level = "DEBUG" if parsed.verbose else config.logging.level
    setup_logging(
        level=level,
        log_file=config.logging.log_file,
        json_format=config.logging.json_logs,
        fmt=config.logging.format,
    )

    if not parsed.command:
        parser.print_help()
        return 2

    ctx = CLIContext(
        output_format=OutputFormat(parsed.format),
        verbose=parsed.verbose,
        config_path=parsed.config,
    )
    command = registry.get(parsed.command)

    try:
        result = command.execute(ctx, parsed)
    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130

    print(format_output(result, ctx.output_format))
    return result.exit_code


def api_main(args: Optional[List[str]] = None) -> None:
    """
    API server entry point.

    Args:
        args: Command line arguments
    """
    parser = argparse.ArgumentParser(
        description="formengine API Server",
        prog="formengine-api",
    )
    parser.add_argument("-c", "--config", help="Path to configuration file", default=None)
    parser.add_argument("-p", "--port", type=int, help="API port", default=None)
    parser.add_argument("-H", "--host", help="API host", default=None)
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level",
    )

    parsed = parser.parse_args(args)

    config = load_config(parsed.config)
    setup_logging(
        level=parsed.log_level or config.logging.level,
        log_file=config.logging.log_file,
        json_format=config.logging.json_logs,
        fmt=config.logging.format,
    )

    if parsed.port:
        config.api.port = parsed.port
    if parsed.host:
        config.api.host = parsed.host

    import uvicorn
    from formengine.deployment.api import create_app

    try:
        uvicorn.run(
            create_app(config),
            host=config.api.host,
            port=config.api.port,
        )
    except KeyboardInterrupt:
        print("\nShutting down...")


if __name__ == "__main__":
    sys.exit(cli_main())
