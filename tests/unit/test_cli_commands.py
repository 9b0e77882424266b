"""
Unit tests for the formengine CLI
"""

import argparse
import json

import pytest

from formengine.bootstrap import FormEngineConfig, cli_main
from formengine.bootstrap import entrypoints
from formengine.cli import (
    CLIContext,
    CommandRegistry,
    CommandResult,
    EvaluateCommand,
    MaskCommand,
    ModelCommand,
    OutputFormat,
    ValidateCommand,
    format_output,
    register_commands,
)


@pytest.fixture
def write_json(tmp_path):
    def factory(name, data):
        path = tmp_path / name
        path.write_text(json.dumps(data))
        return str(path)
    return factory


@pytest.fixture
def quiet_entrypoint(monkeypatch):
    monkeypatch.setattr(entrypoints, "setup_logging", lambda **kwargs: None)
    monkeypatch.setattr(entrypoints, "load_config", lambda path=None: FormEngineConfig())


def run(command, ctx=None, **kwargs):
    return command.execute(ctx or CLIContext(), argparse.Namespace(**kwargs))


class TestRegistry:
    """Test command registration and parsing."""

    def test_register_and_aliases(self):
        registry = register_commands(CommandRegistry())
        assert registry.list_commands() == ["validate", "mask", "evaluate", "model"]
        assert isinstance(registry.get("check"), ValidateCommand)
        assert isinstance(registry.get("eval"), EvaluateCommand)
        assert registry.get("nope") is None

    def test_parser(self):
        parser = register_commands(CommandRegistry()).build_parser()
        parsed = parser.parse_args(["--format", "json", "mask", "123", "zip"])
        assert parsed.command == "mask"
        assert parsed.format == "json"
        assert parsed.raw == "123"


class TestValidateCommand:
    """Test the validate command."""

    def test_valid(self, write_json, contact_document):
        path = write_json("contact.json", contact_document)
        result = run(ValidateCommand(), schema=path)
        assert result.success
        assert result.message == f"{path}: valid (5 fields, 0 warning(s))"
        assert result.data is None

    def test_invalid(self, write_json):
        path = write_json("bad.json", {"fields": []})
        result = run(ValidateCommand(), schema=path)
        assert not result.success
        assert result.exit_code == 1
        assert result.error == 'Schema is missing required "title" property'

    def test_unreadable(self, tmp_path):
        result = run(ValidateCommand(), schema=str(tmp_path / "missing.json"))
        assert result.exit_code == 1


class TestMaskCommand:
    """Test the mask command."""

    def test_preset(self):
        result = run(MaskCommand(), raw="5551234567", mask="phone")
        assert result.message == "(555) 123-4567"

    def test_custom_verbose(self):
        result = run(MaskCommand(), ctx=CLIContext(verbose=True), raw="AB12", mask="custom:AA-00")
        assert result.message == "AB-12"
        assert result.data["complete"] is True


class TestEvaluateCommand:
    """Test the evaluate command."""

    def test_order_values(self, write_json, order_document):
        schema = write_json("order.json", order_document)
        values = write_json("values.json", {"price": 10, "quantity": 5})
        ctx = CLIContext(output_format=OutputFormat.JSON)
        result = run(EvaluateCommand(), ctx=ctx, schema=schema, values=values, touch_all=False)
        assert result.success
        assert result.data["resolvedValues"]["total"] == "50.00"

    def test_touch_all(self, write_json, contact_document):
        schema = write_json("contact.json", contact_document)
        ctx = CLIContext(output_format=OutputFormat.JSON)
        result = run(EvaluateCommand(), ctx=ctx, schema=schema, values=None, touch_all=True)
        assert result.data["touched"]["name"] is True
        assert result.data["errors"]["name"] == "Name is required"

    def test_refused_schema(self, write_json):
        schema = write_json("bad.json", {"title": "x"})
        result = run(EvaluateCommand(), schema=schema, values=None, touch_all=False)
        assert not result.success
        assert result.error.startswith("Invalid schema: ")


class TestModelCommand:
    """Test the model command."""

    def test_json_schema(self, write_json, signup_document):
        schema = write_json("signup.json", signup_document)
        ctx = CLIContext(output_format=OutputFormat.JSON)
        result = run(ModelCommand(), ctx=ctx, schema=schema, name="Signup")
        assert result.data["title"] == "Signup"
        assert result.data["required"] == ["username"]


class TestFormatOutput:
    """Test output rendering."""

    def test_text(self):
        result = CommandResult(message="done", data={"a": 1})
        assert format_output(result, OutputFormat.TEXT) == "done\n  a: 1"

    def test_nested_lists(self):
        result = CommandResult(message="form.json", data={"warnings": ["w1", "w2"], "errors": []})
        assert format_output(result, OutputFormat.TEXT) == (
            "form.json\n  warnings:\n    - w1\n    - w2\n  errors: []"
        )

    def test_error(self):
        result = CommandResult(success=False, error="bad")
        assert format_output(result, OutputFormat.TEXT) == "Error: bad"

    def test_error_keeps_data(self):
        result = CommandResult(success=False, error="bad", data={"errors": ["bad"]}, exit_code=1)
        assert format_output(result, OutputFormat.TEXT) == "Error: bad\n  errors:\n    - bad"

    def test_json(self):
        data = json.loads(format_output(CommandResult(message="ok"), OutputFormat.JSON))
        assert data["success"] is True
        assert data["message"] == "ok"
        assert data["exitCode"] == 0


class TestCliMain:
    """Test the CLI entry point end to end."""

    def test_mask(self, quiet_entrypoint, capsys):
        assert cli_main(["mask", "12345", "zip"]) == 0
        assert capsys.readouterr().out.strip() == "12345"

    def test_validate_failure_exit_code(self, quiet_entrypoint, write_json, capsys):
        path = write_json("bad.json", {"fields": []})
        assert cli_main(["check", path]) == 1
        assert capsys.readouterr().out.startswith("Error: ")

    def test_json_format(self, quiet_entrypoint, write_json, location_document, capsys):
        path = write_json("location.json", location_document)
        assert cli_main(["--format", "json", "validate", path]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["success"] is True

    def test_no_command(self, quiet_entrypoint, capsys):
        assert cli_main([]) == 2
        assert "usage" in capsys.readouterr().out
