"""
Gator command line interface.

Usage:
    gator register <name>            # Create a user and log in as them
    gator login <name>               # Switch the current user
    gator users                      # List users
    gator addfeed <name> <url>       # Add a feed and follow it
    gator feeds                      # List all feeds
    gator follow <url>               # Follow an existing feed
    gator following                  # Feeds the current user follows
    gator unfollow <url>             # Stop following a feed
    gator browse [limit]             # Newest posts from followed feeds
    gator agg <interval>             # Poll feeds every interval, e.g. 1m
    gator reset                      # Delete all users and their data
"""

import asyncio
import functools
import logging
import signal
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config.settings import load_settings
from .context import AppContext, open_app_context
from .database.models import User
from .database.schema import DatabaseSchema
from .processing.pipeline import CycleReport
from .utils.logging import configure_application_logging
from .utils.exceptions import GatorError, get_user_friendly_message
from .utils.validators import parse_interval

console = Console()
logger = logging.getLogger(__name__)


class GatorGroup(click.Group):
    """Command group that reports GatorError as a red message and exit status 1."""

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except GatorError as e:
            logger.debug(f"Command failed: {e}", extra=e.to_dict())
            console.print(f"[bold red]❌ {escape(get_user_friendly_message(e))}[/bold red]")
            ctx.exit(1)


def login_required(f):
    """Resolve the current user and pass it after the app context."""

    @click.pass_obj
    @functools.wraps(f)
    def wrapper(app: AppContext, *args, **kwargs):
        user = app.current_user()
        return f(app, user, *args, **kwargs)

    return wrapper


@click.group(cls=GatorGroup)
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.version_option(__version__, prog_name="gator")
@click.pass_context
def cli(ctx, debug):
    """Gator - RSS feed aggregator."""
    overrides = {"debug": True} if debug else {}
    settings = load_settings(**overrides)

    configure_application_logging(
        log_level=settings.get_effective_log_level(),
        log_file=settings.logging.file_path,
        enable_console=settings.logging.console_logging,
        structured_logging=settings.logging.structured_logging,
        max_file_size=settings.logging.max_file_size_mb * 1024 * 1024,
        backup_count=settings.logging.backup_count,
    )

    ctx.obj = ctx.with_resource(open_app_context(settings))


@cli.command()
@click.argument('name')
@click.pass_obj
def register(app: AppContext, name):
    """Create a user and log in as them."""
    user = app.user_service().register(name)
    console.print(f"[bold green]✅ User {escape(user.name)} created[/bold green]")
    console.print(f"  id: {user.id}")
    console.print(f"  created: {user.created_at.isoformat()}")


@cli.command()
@click.argument('name')
@click.pass_obj
def login(app: AppContext, name):
    """Switch the current user."""
    user = app.user_service().login(name)
    console.print(f"[green]Logged in as {escape(user.name)}[/green]")


@cli.command()
@click.pass_obj
def reset(app: AppContext):
    """Delete all users, feeds, follows and posts."""
    deleted = app.user_service().reset()
    console.print(f"[yellow]Database reset: {deleted} users deleted[/yellow]")


@cli.command()
@click.pass_obj
def users(app: AppContext):
    """List registered users."""
    service = app.user_service()
    current = service.current_user_name
    registered = service.list_users()
    if not registered:
        console.print("No users registered")
        return

    for user in registered:
        marker = " [bold](current)[/bold]" if user.name == current else ""
        console.print(f"* {escape(user.name)}{marker}")


@cli.command()
@click.argument('name')
@click.argument('url')
@login_required
def addfeed(app: AppContext, user: User, name, url):
    """Add a feed owned by the current user and follow it."""
    result = app.feed_service().add_feed(user, name, url)
    console.print(f"[bold green]✅ Feed {escape(result.feed.name)} added[/bold green]")
    console.print(f"  url: {escape(result.feed.url)}")
    console.print(f"  followed by: {escape(result.follow.user_name)}")


@cli.command()
@click.pass_obj
def feeds(app: AppContext):
    """List all feeds with the user who added them."""
    all_feeds = app.feed_service().list_feeds()
    if not all_feeds:
        console.print("No feeds found")
        return

    table = Table(title="Feeds")
    table.add_column("Name", style="cyan")
    table.add_column("URL")
    table.add_column("Added by", style="green")
    table.add_column("Last fetched")

    for feed in all_feeds:
        table.add_row(
            escape(feed.name),
            escape(feed.url),
            escape(feed.user_name),
            feed.last_fetched_at.strftime("%Y-%m-%d %H:%M") if feed.last_fetched_at else "never",
        )

    console.print(table)


@cli.command()
@click.argument('url')
@login_required
def follow(app: AppContext, user: User, url):
    """Follow an existing feed by URL."""
    followed = app.feed_service().follow(user, url)
    console.print(
        f"[green]{escape(followed.user_name)} now follows {escape(followed.feed_name)}[/green]"
    )


@cli.command()
@login_required
def following(app: AppContext, user: User):
    """List feeds the current user follows."""
    follows = app.feed_service().following(user)
    if not follows:
        console.print(f"{escape(user.name)} does not follow any feeds")
        return

    for followed in follows:
        console.print(f"* {escape(followed.feed_name)}")


@cli.command()
@click.argument('url')
@login_required
def unfollow(app: AppContext, user: User, url):
    """Stop following a feed."""
    feed = app.feed_service().unfollow(user, url)
    console.print(f"[green]{escape(user.name)} unfollowed {escape(feed.name)}[/green]")


@cli.command()
@click.argument('limit', type=int, required=False)
@login_required
def browse(app: AppContext, user: User, limit: Optional[int]):
    """Show the newest posts from followed feeds."""
    posts = app.feed_service().browse(user, limit)
    if not posts:
        console.print("No posts yet. Run 'gator agg' to collect some.")
        return

    for post in posts:
        console.print(
            f"[dim]{post.published_at.strftime('%a %b %d %Y %H:%M')} "
            f"from {escape(post.feed_name)}[/dim]"
        )
        console.print(f"[bold]--- {escape(post.title)} ---[/bold]")
        if post.description:
            console.print(f"    {escape(post.description)}")
        console.print(f"Link: {escape(post.url)}")
        console.print("=" * 40)


@cli.command()
@click.argument('time_between_reqs')
@click.option('--once', is_flag=True, help='Run a single cycle and exit')
@click.pass_obj
def agg(app: AppContext, time_between_reqs, once):
    """Collect feeds every TIME_BETWEEN_REQS (e.g. 30s, 1m, 1h30m)."""
    interval = parse_interval(time_between_reqs)
    user = app.current_user_or_none()

    if once:
        report = asyncio.run(app.pipeline().run_one_cycle(user))
        _print_report(report)
        return

    console.print(f"Collecting feeds every {escape(time_between_reqs)}")
    cycles = asyncio.run(_run_poll_loop(app, interval, user))
    console.print(f"[yellow]Stopped after {cycles} cycles[/yellow]")


async def _run_poll_loop(app: AppContext, interval: float, user: Optional[User]) -> int:
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
            installed.append(sig)
        except NotImplementedError:
            logger.debug(f"Signal handler for {sig} not supported on this platform")

    poll_loop = app.poll_loop(on_report=_print_report, on_error=_print_cycle_error)
    try:
        return await poll_loop.run(interval, user=user, stop_event=stop_event)
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


def _print_report(report: CycleReport) -> None:
    console.print(f"[bold blue]Feed: {escape(report.feed_name)}[/bold blue]")
    for title in report.item_titles:
        console.print(f" * {escape(title)}")
    console.print(
        f"[green]{report.items_inserted} new[/green], "
        f"{report.items_duplicate} already stored, "
        f"{report.items_seen} items"
    )


def _print_cycle_error(error: Exception) -> None:
    console.print(f"[red]Error: {escape(get_user_friendly_message(error))}[/red]")


@cli.command()
@click.pass_obj
def init_db(app: AppContext):
    """Create the database schema and show database information."""
    schema = DatabaseSchema(app.settings.database.path)
    schema.create_tables()

    if not schema.verify_schema():
        console.print("[bold red]❌ Database schema verification failed[/bold red]")
        raise click.exceptions.Exit(1)

    console.print("[bold green]✅ Database initialized successfully![/bold green]")

    info = app.db.get_database_info()
    info_table = Table(title="Database Information")
    info_table.add_column("Property", style="cyan")
    info_table.add_column("Value", style="green")

    info_table.add_row("Database Path", escape(app.settings.database.path))
    info_table.add_row("Size", f"{info['database_size_mb']:.2f} MB")
    for table_name, count in info['table_counts'].items():
        info_table.add_row(f"{table_name} rows", str(count))

    console.print(info_table)


def main():
    """Console script entry point."""
    cli(prog_name="gator")


if __name__ == "__main__":
    main()
