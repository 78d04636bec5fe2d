"""Tests for the command line interface."""

import json
from dataclasses import replace
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from hot_issues.config import LLMConfig
from hot_issues.db import create_session_factory
from hot_issues.main import cli, load_description, parse_time_range
from hot_issues.repository import TagRepository


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def patched_config(app_config):
    with patch("hot_issues.main.get_config", return_value=app_config):
        yield app_config


class TestParseTimeRange:
    """Tests for the stats window defaults."""

    def test_explicit_bounds(self):
        time_range = parse_time_range(datetime(2026, 1, 1), datetime(2026, 1, 31), days=7)
        assert time_range.start == datetime(2026, 1, 1, tzinfo=timezone.utc)
        assert time_range.end == datetime(2026, 1, 31, tzinfo=timezone.utc)

    def test_days_before_end(self):
        time_range = parse_time_range(None, datetime(2026, 1, 31), days=10)
        assert time_range.start == datetime(2026, 1, 21, tzinfo=timezone.utc)

    def test_inverted_bounds(self):
        with pytest.raises(ValueError):
            parse_time_range(datetime(2026, 2, 1), datetime(2026, 1, 1), days=7)


class TestLoadDescription:
    """Tests for reading description files."""

    def test_json_document(self, tmp_path, rich_document):
        path = tmp_path / "ticket.json"
        path.write_text(json.dumps(rich_document), encoding="utf-8")
        assert load_description(path) == rich_document

    def test_plain_text(self, tmp_path):
        path = tmp_path / "ticket.txt"
        path.write_text("pod keeps restarting", encoding="utf-8")
        assert load_description(path) == "pod keeps restarting"


class TestCommands:
    """Tests for CLI commands."""

    def test_init_db_then_empty_stats(self, runner, patched_config):
        result = runner.invoke(cli, ["init-db"])
        assert result.exit_code == 0, result.output

        result = runner.invoke(cli, ["stats", "--start", "2026-01-01", "--end", "2026-01-31"])
        assert result.exit_code == 0, result.output
        assert "No tagged tickets in this window" in result.output

    def test_stats_rows_and_report(self, runner, patched_config, engine, tmp_path):
        with create_session_factory(engine=engine)() as session:
            repository = TagRepository(session)
            tag = repository.create_tag("Database", "postgres ECONNREFUSED")
            repository.link_ticket_to_tag("t-1", tag.id, 0.8, created_at=datetime(2026, 1, 10))

        report = tmp_path / "stats.xlsx"
        result = runner.invoke(
            cli,
            ["stats", "--start", "2026-01-01", "--end", "2026-01-31", "--output", str(report)],
        )

        assert result.exit_code == 0, result.output
        assert "Database: postgres ECONNREFUSED" in result.output
        assert "Total: 1 links" in result.output
        assert report.exists()

    def test_analyze_missing_credential(self, runner, app_config):
        config = replace(app_config, llm=LLMConfig(api_key="", model="gpt-4o-mini"))
        with patch("hot_issues.main.get_config", return_value=config):
            result = runner.invoke(cli, ["analyze", "t-1", "--title", "Pull error"])

        assert result.exit_code == 1
        assert "OPENAI_API_KEY" in result.output

    def test_validate_command(self, runner, patched_config):
        result = runner.invoke(cli, ["validate"])
        assert result.exit_code == 0
        assert "Configuration is valid!" in result.output
