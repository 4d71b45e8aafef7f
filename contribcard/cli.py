"""CLI entry point: contribcard.

Subcommands:
    contribcard collect --settings-file settings.yml --name kubernetes
    contribcard contributions --name kubernetes
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click
from sqlalchemy.ext.asyncio import async_sessionmaker

from contribcard.core.database import create_readonly_engine
from contribcard.core.logging import setup_logging
from contribcard.core.settings import (
    MergeCommitPolicy,
    Settings,
    api_base_url,
    cache_db_path,
    load_tokens,
    merge_commit_policy,
    setup_cache_dir,
)
from contribcard.dao.contribution_dao import ContributionDAO
from contribcard.engines.contribution_collector import run_collection
from contribcard.exceptions import CollectionError, ContribCardError

_POLICY_CHOICES = click.Choice([p.value for p in MergeCommitPolicy])


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
def main(verbose: bool) -> None:
    """contribcard: collect GitHub contributions into a local cache."""
    setup_logging(verbose=verbose)


@main.command("collect")
@click.option(
    "--settings-file",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Settings file listing organizations and repositories",
)
@click.option("--name", required=True, help="Name of the contribcard site (i.e. kubernetes)")
@click.option("--cache-dir", type=click.Path(file_okay=False, path_type=Path), default=None)
@click.option("--merge-commits", type=_POLICY_CHOICES, default=None, help="exclude | record")
def collect(
    settings_file: Path,
    name: str,
    cache_dir: Path | None,
    merge_commits: str | None,
) -> None:
    """Collect commits, issues and pull requests into the cache database."""
    try:
        settings = Settings.from_file(settings_file)
        tokens = load_tokens()
        policy = merge_commit_policy(merge_commits)
        cache_path = cache_db_path(setup_cache_dir(cache_dir), name)
        results = asyncio.run(
            run_collection(
                settings,
                tokens,
                cache_path,
                base_url=api_base_url(),
                merge_commit_policy=policy,
            )
        )
    except CollectionError as exc:
        for repo, error in sorted(exc.failures.items()):
            click.echo(f"  {repo}: {error}", err=True)
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    except ContribCardError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    inserted = sum(sum(r.inserted.values()) for r in results)
    click.echo(f"Collected {len(results)} repositories ({inserted} new records) into {cache_path}")


@main.command("contributions")
@click.option("--name", required=True, help="Name of the contribcard site (i.e. kubernetes)")
@click.option("--cache-dir", type=click.Path(file_okay=False, path_type=Path), default=None)
@click.option("--merge-commits", type=_POLICY_CHOICES, default=None, help="exclude | record")
def contributions(name: str, cache_dir: Path | None, merge_commits: str | None) -> None:
    """Print the number of contributions per contributor found in the cache."""
    try:
        policy = merge_commit_policy(merge_commits)
        cache_path = cache_db_path(setup_cache_dir(cache_dir), name)
    except ContribCardError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    if not cache_path.exists():
        click.echo(f"Error: no cache database at {cache_path}, run collect first", err=True)
        sys.exit(1)

    counts = asyncio.run(_count_contributions(cache_path, policy))
    for login, total in counts.items():
        click.echo(f"{login}\t{total}")


async def _count_contributions(cache_path: Path, policy: MergeCommitPolicy) -> dict[str, int]:
    engine = create_readonly_engine(cache_path)
    try:
        async with async_sessionmaker(engine)() as session:
            return await ContributionDAO(policy).count_by_contributor(session)
    finally:
        await engine.dispose()
