"""
Command line entry point for the Hot Issue Tagger.

Commands:
- init-db: create the tag tables
- analyze: tag one ticket from a JSON description file
- stats: print tag usage for a time window, optionally as an Excel report
"""

import json
import logging
import sys
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import click

from .analyzer import AnalysisServiceError
from .config import AppConfig, ConfigurationError, get_config
from .db import create_db_engine, init_db
from .models import TimeRange
from .report import ReportGeneratorError, generate_stats_report
from .repository import PersistenceError
from .service import analyze_and_save_hot_issue, get_hot_issues_stats


def setup_logging(level: str) -> None:
    """
    Configure application logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR).
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)

KNOWN_ERRORS = (
    ConfigurationError,
    AnalysisServiceError,
    PersistenceError,
    ReportGeneratorError,
)


def validate_config(config: AppConfig) -> None:
    """
    Validate configuration before running.

    Raises:
        ConfigurationError: If configuration is invalid.
    """
    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(f"Configuration error: {error}")
        raise ConfigurationError(
            f"Configuration validation failed with {len(errors)} error(s)"
        )


def parse_time_range(
    start: Optional[datetime],
    end: Optional[datetime],
    days: int,
) -> TimeRange:
    """Build the stats window, defaulting to the last ``days`` days."""
    end = end or datetime.now(timezone.utc)
    start = start or end - timedelta(days=days)
    return TimeRange(start=start, end=end)


def load_description(path: Path) -> object:
    """Read a ticket description; JSON documents are parsed, anything else is plain text."""
    raw = path.read_text(encoding="utf-8")
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug logging",
)
@click.pass_context
def cli(ctx: click.Context, debug: bool) -> None:
    """Hot Issue Tagger: classify support tickets into a reusable tag taxonomy."""
    config = get_config()
    if debug:
        config = replace(config, log_level="DEBUG")
    setup_logging(config.log_level)
    ctx.obj = config


@cli.command("init-db")
@click.pass_obj
def init_db_command(config: AppConfig) -> None:
    """Create the tag tables."""
    init_db(create_db_engine(config.database))
    click.echo("Database initialized")


@cli.command("validate")
@click.pass_obj
def validate_command(config: AppConfig) -> None:
    """Only validate configuration."""
    try:
        validate_config(config)
    except ConfigurationError as e:
        click.echo(f"Invalid configuration: {e}", err=True)
        sys.exit(1)
    click.echo("Configuration is valid!")


@cli.command("analyze")
@click.argument("ticket_id")
@click.option("--title", "-t", required=True, help="Ticket title")
@click.option(
    "--description-file",
    "-d",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Rich-text description as JSON (plain text is accepted)",
)
@click.pass_obj
def analyze_command(
    config: AppConfig,
    ticket_id: str,
    title: str,
    description_file: Optional[Path],
) -> None:
    """Tag a single ticket."""
    description = load_description(description_file) if description_file else None
    try:
        analyze_and_save_hot_issue(ticket_id, title, description, config=config)
    except KNOWN_ERRORS as e:
        click.echo(f"Analysis failed: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nOperation cancelled by user", err=True)
        sys.exit(130)
    click.echo(f"Ticket {ticket_id} analyzed")


@cli.command("stats")
@click.option("--start", type=click.DateTime(), help="Window start (default: --days before end)")
@click.option("--end", type=click.DateTime(), help="Window end (default: now, UTC)")
@click.option("--days", default=7, show_default=True, help="Window length when --start is omitted")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write an Excel report to this path",
)
@click.pass_obj
def stats_command(
    config: AppConfig,
    start: Optional[datetime],
    end: Optional[datetime],
    days: int,
    output: Optional[Path],
) -> None:
    """Show tag usage for a time window."""
    try:
        time_range = parse_time_range(start, end, days)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e

    try:
        stats = get_hot_issues_stats(time_range, config=config)
        if output:
            generate_stats_report(stats, config.output, time_range, output)
    except KNOWN_ERRORS as e:
        click.echo(f"Stats failed: {e}", err=True)
        sys.exit(1)

    if not stats.tag_stats:
        click.echo("No tagged tickets in this window")
        return

    for stat in stats.tag_stats:
        avg = f"{stat.avg_confidence:.2f}" if stat.avg_confidence is not None else "-"
        click.echo(f"{stat.count:>5}  {avg:>5}  {stat.tag_name}: {stat.tag_description}")
    click.echo(f"Total: {stats.total_links()} links")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
