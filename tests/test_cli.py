"""Tests for the command line interface."""

import json
import logging
from pathlib import Path

import pytest
import structlog
import yaml
from click.testing import CliRunner

from matchboard.cli import main


@pytest.fixture(autouse=True)
def restore_logging(monkeypatch: pytest.MonkeyPatch):
    """Undo the global logging setup each command performs."""
    for name in ("PRESENTATION_API_BASE", "PRESENTATION_DB_PATH", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("matchboard").setLevel(logging.NOTSET)
    logging.getLogger("httpx").setLevel(logging.NOTSET)
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def cli_config(temp_dir: Path) -> Path:
    config_path = temp_dir / "cli.yaml"
    config_path.write_text(
        yaml.dump(
            {
                "storage": {"path": str(temp_dir / "cli.db")},
                "presentation_api": {"base_url": ""},
                "sync": {"context_name": "operator"},
                "logging": {"level": "ERROR", "format": "json"},
            }
        )
    )
    return config_path


def invoke(config_path: Path, *args: str):
    return CliRunner().invoke(main, ["--config", str(config_path), *args])


class TestCli:
    """Tests for the matchboard commands."""

    def test_show_seeds_defaults(self, cli_config: Path):
        result = invoke(cli_config, "show")

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[0].startswith("Updated ")
        assert lines[1].startswith("> default-1")
        assert "Arsenal vs Chelsea" in lines[1]

    def test_show_json(self, cli_config: Path):
        result = invoke(cli_config, "show", "--json")

        assert result.exit_code == 0
        records = json.loads(result.output)
        assert [r["id"] for r in records] == ["default-1", "default-2", "default-3"]
        assert records[0]["homeLeague"] == "english-premier-league"

    def test_advance(self, cli_config: Path):
        assert "index: 1" in invoke(cli_config, "advance").output
        assert "index: 2" in invoke(cli_config, "advance").output
        assert "index: 0" in invoke(cli_config, "advance").output

    def test_add_and_delete(self, cli_config: Path):
        draft = {
            "homeLeague": "ligue-1",
            "awayLeague": "ligue-1",
            "homeClub": "paris-saint-germain",
            "awayClub": "marseille",
            "kickoff": "2025-03-01T20:00:00Z",
        }

        added = invoke(cli_config, "add", json.dumps(draft))
        assert added.exit_code == 0
        match_id = added.output.strip().removeprefix("Added ")

        records = json.loads(invoke(cli_config, "show", "--json").output)
        assert records[-1]["id"] == match_id
        assert records[-1]["homeTeam"] == "Paris Saint-Germain"

        deleted = invoke(cli_config, "delete", match_id)
        assert deleted.exit_code == 0
        assert invoke(cli_config, "delete", match_id).exit_code == 1

    def test_add_rejects_bad_input(self, cli_config: Path):
        assert invoke(cli_config, "add", "{not json").exit_code != 0
        assert invoke(cli_config, "add", "[1, 2]").exit_code != 0
        assert invoke(cli_config, "add", json.dumps({"homeLeague": "x"})).exit_code == 1

    def test_reset(self, cli_config: Path):
        invoke(cli_config, "delete", "default-1")

        result = invoke(cli_config, "reset", "--yes")

        assert result.exit_code == 0
        records = json.loads(invoke(cli_config, "show", "--json").output)
        assert [r["id"] for r in records] == ["default-1", "default-2", "default-3"]

    def test_sync_without_remote(self, cli_config: Path):
        result = invoke(cli_config, "sync", "--date", "2025-01-01")

        assert result.exit_code == 0
        assert "No update available" in result.output

    def test_missing_config(self, temp_dir: Path):
        result = CliRunner().invoke(main, ["--config", str(temp_dir / "nope.yaml"), "show"])

        assert result.exit_code != 0
