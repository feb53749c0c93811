"""
Test suite for the command-line interface.
"""

import argparse
import json

import pytest

from firebatch import cli
from firebatch.database import Database

from conftest import BASE_URL, MockTransport, error_response, json_response


@pytest.fixture
def cli_transport(monkeypatch, test_config):
    """Route CLI database handles to a mock transport."""
    transport = MockTransport()
    original = Database.from_config.__func__

    def from_config(cls, config=None, **kwargs):
        return original(cls, config, transport=transport, **kwargs)

    monkeypatch.setattr(Database, "from_config", classmethod(from_config))
    monkeypatch.setenv("FIREBATCH_DATABASE_URL", BASE_URL)
    return transport


class TestArgumentParsing:
    """Tests for command-line parsing helpers."""

    def test_query_parameter_types(self):
        """Test that flags and numbers are typed."""
        assert cli.parse_query_parameter("shallow=true") == ("shallow", True)
        assert cli.parse_query_parameter("limitToFirst=10") == ("limitToFirst", 10)
        assert cli.parse_query_parameter("orderBy=$key") == ("orderBy", "$key")

    def test_query_parameter_requires_equals(self):
        """Test that malformed parameters are refused."""
        with pytest.raises(argparse.ArgumentTypeError):
            cli.parse_query_parameter("shallow")

    def test_write_command_parses_json(self):
        """Test that write data is parsed as JSON."""
        args = cli.create_parser().parse_args(["set", "users/ada", '{"age": 36}', "--param", "print=silent"])

        assert args.data == {"age": 36}
        assert args.param == [("print", "silent")]


class TestCommands:
    """Tests for running CLI commands."""

    def test_key_command(self, capsys):
        """Test escaping a key."""
        cli.main(["key", "ada.lovelace@example.com"])

        assert capsys.readouterr().out.strip() == "ada%2Elovelace@example%2Ecom"

    def test_no_command_prints_help(self):
        """Test that running without a command exits with an error."""
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])
        assert exc_info.value.code == 1

    def test_get_command(self, cli_transport, capsys):
        """Test reading a value."""
        cli_transport.queue("users/ada", json_response({"age": 36}))

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["get", "users/ada"])

        assert exc_info.value.code == 0
        assert json.loads(capsys.readouterr().out) == {"age": 36}

    def test_failed_command_exits_nonzero(self, cli_transport, capsys):
        """Test that a database error is reported on stderr."""
        cli_transport.queue("users/ada", error_response("Permission denied", 401))

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["get", "users/ada"])

        assert exc_info.value.code == 1
        assert "Permission denied" in capsys.readouterr().err

    def test_get_all_command(self, cli_transport, capsys, tmp_path):
        """Test running a batch from a file."""
        cli_transport.queue("a", json_response(1))
        cli_transport.queue("b", error_response("Permission denied", 401))
        requests_file = tmp_path / "requests.json"
        requests_file.write_text(json.dumps(["a", {"path": "b"}]))

        with pytest.raises(SystemExit):
            cli.main(["get-all", str(requests_file)])

        assert json.loads(capsys.readouterr().out) == [1, {"error": "Permission denied"}]

    def test_get_all_missing_file(self, cli_transport, capsys, tmp_path):
        """Test that an unreadable requests file is reported without a traceback."""
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["get-all", str(tmp_path / "missing.json")])

        assert exc_info.value.code == 1
        assert "Error: " in capsys.readouterr().err
        assert cli_transport.calls == []
