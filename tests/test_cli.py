"""Tests for the hashdeck command line."""

import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from hashdeck.cli.main import app

runner = CliRunner()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def collection(temp_dir):
    (temp_dir / "capitals.md").write_text(
        "Q: What is the capital of France?\nA: Paris.\n\n"
        "Q: What is the capital of Spain?\nA: Madrid.\n"
    )
    (temp_dir / "biology").mkdir()
    (temp_dir / "biology" / "cells.md").write_text(
        "C: The [mitochondria] is the powerhouse of the cell.\n"
    )
    return temp_dir


class TestCheck:
    """Tests for `hashdeck check`."""

    def test_counts_cards(self, collection):
        result = runner.invoke(app, ["check", str(collection)])
        assert result.exit_code == 0
        assert "OK: 3 card(s) (2 basic, 1 cloze)" in result.output
        assert "biology/cells" in result.output

    def test_parse_error(self, collection):
        (collection / "broken.md").write_text("A: Answer before any question\n")
        result = runner.invoke(app, ["check", str(collection)])
        assert result.exit_code == 1
        assert "Parse error" in result.output

    def test_missing_directory(self, temp_dir):
        result = runner.invoke(app, ["check", str(temp_dir / "nope")])
        assert result.exit_code != 0


class TestDrill:
    """Tests for `hashdeck drill`."""

    def test_empty_collection(self, temp_dir):
        result = runner.invoke(app, ["drill", str(temp_dir), "--no-open"])
        assert result.exit_code == 0
        assert "No cards to review!" in result.output

    def test_runs_server_and_prints_summary(self, collection):
        with (
            patch("uvicorn.Server") as server_cls,
            patch("webbrowser.open") as open_browser,
        ):
            result = runner.invoke(
                app, ["drill", str(collection), "--port", "9123", "--card-limit", "2"]
            )

        assert result.exit_code == 0, result.output
        assert "2 card(s)" in result.output
        assert "http://127.0.0.1:9123/" in result.output
        assert "Session Stats" in result.output
        server_cls.return_value.run.assert_called_once()
        open_browser.assert_called_once_with("http://127.0.0.1:9123/")

    def test_answer_controls_from_env(self, collection):
        with patch("uvicorn.Server"), patch("webbrowser.open"):
            result = runner.invoke(
                app,
                ["drill", str(collection), "--no-open"],
                env={"HASHDECK_ANSWER_CONTROLS": "binary"},
            )
        assert result.exit_code == 0, result.output

    def test_invalid_answer_controls(self, collection):
        result = runner.invoke(app, ["drill", str(collection), "--answer-controls", "ternary"])
        assert result.exit_code != 0
