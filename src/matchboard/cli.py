"""Command line entry point for the presentation store."""

import asyncio
import json
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import click

from matchboard.common.config import AppConfig, load_config
from matchboard.common.logging import bind_context, get_logger, setup_logging
from matchboard.presentation.admin import MatchAdmin
from matchboard.presentation.models import MatchRecord
from matchboard.presentation.sync import PresentationSync
from matchboard.storage.database import Database

logger = get_logger(__name__)


def _load(config_path: str) -> AppConfig:
    try:
        config = load_config(config_path)
    except Exception as e:
        click.echo(f"Error loading config: {e}", err=True)
        sys.exit(1)
    setup_logging(config.logging)
    bind_context(config.sync.context_name)
    return config


@contextmanager
def _open_sync(config: AppConfig) -> Iterator[PresentationSync]:
    with Database(config.storage.path) as db:
        yield PresentationSync.from_config(config, db)


def _format_match(index: int, match: MatchRecord, current: int) -> str:
    marker = ">" if index == current else " "
    source = "remote" if match.is_remote else "local"
    return (
        f"{marker} {match.id:<40} {source:<6} {match.kickoff}  "
        f"{match.home_team} vs {match.away_team}  "
        f"{match.home_probability}/{match.draw_probability}/{match.away_probability}"
    )


@click.group()
@click.option(
    "--config",
    "-c",
    "config_path",
    required=True,
    type=click.Path(exists=True),
    help="Path to configuration file",
)
@click.pass_context
def main(ctx: click.Context, config_path: str) -> None:
    """Manage the presentation match collection."""
    ctx.obj = _load(config_path)


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Print stored JSON records")
@click.pass_obj
def show(config: AppConfig, as_json: bool) -> None:
    """Print the current collection."""
    with _open_sync(config) as sync:
        matches = sync.reload()
        if as_json:
            click.echo(json.dumps([m.to_dict() for m in matches], ensure_ascii=False, indent=2))
            return
        current = sync.store.current_index(len(matches))
        click.echo(f"Updated {sync.store.last_updated_at().isoformat()}")
        for index, match in enumerate(matches):
            click.echo(_format_match(index, match, current))


@main.command()
@click.option("--date", default=None, help="Feed date (YYYY-MM-DD), today if omitted")
@click.pass_obj
def sync(config: AppConfig, date: str | None) -> None:
    """Fetch the remote feed once and merge it into the store."""
    with _open_sync(config) as service:
        service.reload()
        updated = asyncio.run(_refresh_once(service, date))
        click.echo(f"Merged {len(service.matches)} matches" if updated else "No update available")


async def _refresh_once(service: PresentationSync, date: str | None) -> bool:
    try:
        return await service.refresh(date)
    finally:
        await service.client.aclose()


@main.command()
@click.pass_obj
def advance(config: AppConfig) -> None:
    """Show the next match on every screen."""
    with _open_sync(config) as service:
        index = service.store.advance()
        click.echo(f"Current match index: {index}")


@main.command()
@click.argument("draft_json")
@click.pass_obj
def add(config: AppConfig, draft_json: str) -> None:
    """Add a match from a JSON object in stored field names."""
    try:
        draft = json.loads(draft_json)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"invalid JSON: {e}") from e
    if not isinstance(draft, dict):
        raise click.BadParameter("draft must be a JSON object")

    with _open_sync(config) as service:
        record = MatchAdmin(service.store).add(draft)
    if record is None:
        click.echo("Draft rejected: check leagues, clubs and kickoff", err=True)
        sys.exit(1)
    click.echo(f"Added {record.id}")


@main.command()
@click.argument("match_id")
@click.pass_obj
def delete(config: AppConfig, match_id: str) -> None:
    """Delete a match by id."""
    with _open_sync(config) as service:
        deleted = MatchAdmin(service.store).delete(match_id)
    if not deleted:
        click.echo(f"No match with id {match_id}", err=True)
        sys.exit(1)
    click.echo(f"Deleted {match_id}")


@main.command()
@click.confirmation_option(prompt="Replace all matches with the defaults?")
@click.pass_obj
def reset(config: AppConfig) -> None:
    """Replace the collection with the default seed."""
    with _open_sync(config) as service:
        defaults = MatchAdmin(service.store).reset()
    click.echo(f"Reset to {len(defaults)} default matches")


@main.command()
@click.pass_obj
def watch(config: AppConfig) -> None:
    """Refresh periodically and log changes from other contexts."""
    with _open_sync(config) as service:
        service.add_listener(
            lambda matches: logger.info("presentation_rendered", count=len(matches))
        )
        try:
            asyncio.run(
                service.run(
                    refresh_interval_seconds=config.sync.refresh_interval_seconds,
                    poll_interval_seconds=config.sync.poll_interval_seconds,
                )
            )
        except KeyboardInterrupt:
            logger.info("watch_interrupted")


if __name__ == "__main__":
    main()
