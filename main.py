#!/usr/bin/env python3
"""
Yomimono - RSS Ingestion Service
================================

Command line entry point for database setup, feed management, batch runs
and the HTTP API.

Usage:
    yomimono --help                    # Show all commands
    yomimono check-config              # Validate configuration
    yomimono init-db                   # Initialize database
    yomimono add-feed URL --name NAME  # Register a feed
    yomimono show-feeds                # List feeds
    yomimono run-batch                 # Run one batch (cron entry point)
    yomimono show-logs                 # Recent batch log rows
    yomimono serve                     # Start the HTTP API
"""

import sys
import asyncio
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from yomimono.config.settings import get_settings
from yomimono.database.schema import DatabaseSchema
from yomimono.database.connection import get_db_manager
from yomimono.database.models import BatchStatus, Feed
from yomimono.utils.logging import configure_application_logging
from yomimono.utils.exceptions import YomimonoError

console = Console()
logger = logging.getLogger(__name__)

STATUS_STYLES = {
    BatchStatus.COMPLETED: "✅ completed",
    BatchStatus.SUCCESS: "✅ success",
    BatchStatus.PARTIAL_FAILURE: "🟡 partial_failure",
    BatchStatus.ERROR: "❌ error",
    BatchStatus.IN_PROGRESS: "⏳ in_progress",
}


def _setup_logging(debug: bool = False) -> None:
    settings = get_settings()
    configure_application_logging(
        log_level="DEBUG" if debug else settings.get_effective_log_level(),
        log_file=settings.logging.file_path,
        enable_console=settings.logging.console_logging,
        structured_logging=settings.logging.structured_logging,
        max_file_size_mb=settings.logging.max_file_size_mb,
        backup_count=settings.logging.backup_count,
    )


@click.group(invoke_without_command=True)
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, debug):
    """Yomimono - RSS ingestion for the reading list."""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
def check_config():
    """Validate configuration and environment variables."""
    console.print("[bold blue]🔧 Checking Yomimono Configuration[/bold blue]")

    try:
        settings = get_settings()

        table = Table(title="Configuration Status")
        table.add_column("Component", style="cyan")
        table.add_column("Status", style="green")
        table.add_column("Details")

        checks = [
            ("Database", _check_database_config),
            ("Logging", _check_logging_config),
            ("Batch", _check_batch_config),
            ("Server", _check_server_config),
        ]

        all_passed = True
        for name, check_func in checks:
            status, details = check_func(settings)
            table.add_row(name, "✅ Valid" if status else "❌ Invalid", details)
            all_passed = all_passed and status

        console.print(table)

        if all_passed:
            console.print("[bold green]✅ All configuration checks passed![/bold green]")
        else:
            console.print("[bold red]❌ Configuration validation failed[/bold red]")
            sys.exit(1)

    except YomimonoError as e:
        console.print(f"[bold red]❌ Configuration error: {e}[/bold red]")
        sys.exit(1)


@cli.command()
def init_db():
    """Initialize database with schema."""
    console.print("[bold blue]🗄️ Initializing Yomimono Database[/bold blue]")

    try:
        settings = get_settings()
        schema = DatabaseSchema(settings.database.path)
        schema.create_tables()

        if not schema.verify_schema():
            console.print("[bold red]❌ Database schema verification failed[/bold red]")
            sys.exit(1)

        console.print("[bold green]✅ Database initialized successfully![/bold green]")

        info = get_db_manager().get_database_info()

        info_table = Table(title="Database Information")
        info_table.add_column("Property", style="cyan")
        info_table.add_column("Value", style="green")

        info_table.add_row("Database Path", settings.database.path)
        info_table.add_row("Size", f"{info['database_size_mb']:.2f} MB")
        for table_name, count in info['table_counts'].items():
            info_table.add_row(table_name, str(count))

        console.print(info_table)

    except YomimonoError as e:
        console.print(f"[bold red]❌ Database initialization error: {e}[/bold red]")
        sys.exit(1)


@cli.command()
@click.argument('url')
@click.option('--name', help='Display name (defaults to the URL)')
@click.option('--inactive', is_flag=True, help='Register the feed without enabling it')
def add_feed(url, name, inactive):
    """Register an RSS or Atom feed."""
    from yomimono.storage.feed_repository import FeedRepository

    try:
        feed = Feed(name=name or url, url=url, is_active=not inactive)
        feed_id = FeedRepository(get_db_manager()).create_feed(feed)
        console.print(f"[bold green]✅ Added feed {feed_id}: {feed.name}[/bold green]")

    except ValueError as e:
        console.print(f"[bold red]❌ Invalid feed: {e}[/bold red]")
        sys.exit(1)
    except YomimonoError as e:
        console.print(f"[bold red]❌ {e.user_message}[/bold red]")
        sys.exit(1)


@cli.command()
@click.option('--all', 'show_all', is_flag=True, help='Include inactive feeds')
def show_feeds(show_all):
    """Show feeds in the database with their status."""
    from yomimono.storage.feed_repository import FeedRepository

    console.print("[bold blue]📊 Feed Status Report[/bold blue]")

    try:
        feed_repo = FeedRepository(get_db_manager())
        feeds = feed_repo.get_all_feeds() if show_all else feed_repo.get_all_active_feeds()

        if not feeds:
            console.print("[yellow]⚠️ No feeds found in database[/yellow]")
            return

        feeds_table = Table(title="RSS Feeds")
        feeds_table.add_column("ID", style="yellow")
        feeds_table.add_column("Status", style="green")
        feeds_table.add_column("Name", style="cyan")
        feeds_table.add_column("URL", style="blue")
        feeds_table.add_column("Last Fetched")

        for feed in feeds:
            url = feed.url if len(feed.url) <= 40 else feed.url[:37] + "..."
            feeds_table.add_row(
                str(feed.id),
                "🟢" if feed.is_active else "⚪",
                feed.name[:30] + "..." if len(feed.name) > 30 else feed.name,
                url,
                feed.last_fetched_at.isoformat(timespec="seconds") if feed.last_fetched_at else "Never",
            )

        console.print(feeds_table)

    except YomimonoError as e:
        console.print(f"[bold red]❌ Error showing feeds: {e}[/bold red]")
        sys.exit(1)


@cli.command()
@click.option('--feed-id', 'feed_ids', multiple=True, type=int, help='Only process this feed (repeatable)')
@click.pass_context
def run_batch(ctx, feed_ids):
    """Run one RSS batch. Exits 0 even when feeds fail; see show-logs."""
    from yomimono.batch.orchestrator import BatchOrchestrator, describe_target

    _setup_logging(ctx.obj.get('debug', False))
    settings = get_settings()
    DatabaseSchema(settings.database.path).create_tables()

    orchestrator = BatchOrchestrator(get_db_manager(), settings=settings)
    summary = asyncio.run(
        orchestrator.run(
            feed_ids=list(feed_ids) or None,
            description=describe_target(feed_ids, manual=bool(feed_ids)),
        )
    )

    results_table = Table(title="Feed Processing Results")
    results_table.add_column("Feed", style="cyan")
    results_table.add_column("Status", style="green")
    results_table.add_column("Fetched", style="yellow")
    results_table.add_column("Created", style="yellow")
    results_table.add_column("Details")

    for result in summary.feed_results:
        details = result.error or ""
        results_table.add_row(
            result.feed_name,
            "✅ Success" if result.success else "❌ Failed",
            str(result.items_fetched),
            str(result.items_created),
            details[:50] + "..." if len(details) > 50 else details,
        )

    if summary.feed_results:
        console.print(results_table)

    console.print(
        f"\n[bold blue]📊 Batch {summary.batch_log_id}: {STATUS_STYLES[summary.status]} - "
        f"{summary.successful_feeds} successful, {summary.failed_feeds} failed, "
        f"{summary.total_items_created} new articles[/bold blue]"
    )
    if summary.error:
        console.print(f"[bold red]❌ Batch error: {summary.error}[/bold red]")
    console.print(f"⏱️ Processing time: {summary.processing_time_seconds:.2f} seconds")


@cli.command()
@click.option('--limit', default=10, show_default=True, help='Number of rows to show')
def show_logs(limit):
    """Show recent batch log rows."""
    from yomimono.batch.log_recorder import BatchLogRecorder

    try:
        entries = BatchLogRecorder(get_db_manager()).list_recent(limit=limit)

        if not entries:
            console.print("[yellow]⚠️ No batch logs yet[/yellow]")
            return

        logs_table = Table(title="Batch Logs")
        logs_table.add_column("ID", style="yellow")
        logs_table.add_column("Feed", style="cyan")
        logs_table.add_column("Status")
        logs_table.add_column("Fetched")
        logs_table.add_column("Created")
        logs_table.add_column("Started")
        logs_table.add_column("Error", style="red")

        for entry in entries:
            logs_table.add_row(
                str(entry.id),
                "batch" if entry.is_whole_batch else str(entry.feed_id),
                STATUS_STYLES[entry.status],
                str(entry.items_fetched),
                str(entry.items_created),
                entry.started_at.isoformat(timespec="seconds"),
                (entry.error_message or "")[:50],
            )

        console.print(logs_table)

    except YomimonoError as e:
        console.print(f"[bold red]❌ Error showing logs: {e}[/bold red]")
        sys.exit(1)


@cli.command()
@click.option('--host', help='Bind address (defaults to configured host)')
@click.option('--port', type=int, help='Bind port (defaults to configured port)')
@click.pass_context
def serve(ctx, host, port):
    """Start the HTTP API server."""
    import uvicorn
    from yomimono.api.app import create_app

    _setup_logging(ctx.obj.get('debug', False))
    settings = get_settings()
    console.print(f"[bold blue]🚀 Starting Yomimono API on {host or settings.server.host}:{port or settings.server.port}[/bold blue]")

    uvicorn.run(
        create_app(settings),
        host=host or settings.server.host,
        port=port or settings.server.port,
    )


# Helper functions for configuration checks
def _check_database_config(settings) -> tuple:
    try:
        Path(settings.database.path).parent.mkdir(parents=True, exist_ok=True)
        return True, f"Path: {settings.database.path}, pool: {settings.database.pool_size}"
    except OSError as e:
        return False, str(e)


def _check_logging_config(settings) -> tuple:
    try:
        if settings.logging.file_path:
            Path(settings.logging.file_path).parent.mkdir(parents=True, exist_ok=True)
        return True, f"Level: {settings.logging.level.value}, file: {settings.logging.file_path or 'disabled'}"
    except OSError as e:
        return False, str(e)


def _check_batch_config(settings) -> tuple:
    batch = settings.batch
    return True, (
        f"Chunk size: {batch.chunk_size}, timeout: {batch.request_timeout}s, "
        f"cache: {batch.cache_ttl_seconds}s"
    )


def _check_server_config(settings) -> tuple:
    return True, f"{settings.server.host}:{settings.server.port}"


if __name__ == "__main__":
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]👋 Yomimono interrupted by user[/yellow]")
        sys.exit(130)
