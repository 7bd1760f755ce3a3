"""TaskTrack CLI: run the server and maintain the database.

Usage:
    tasktrack serve                 # Run the API with uvicorn
    tasktrack serve --reload        # Auto-reload for development
    tasktrack init-db               # Create tables (dev; prod uses alembic)
    tasktrack prune-sessions        # Delete expired session tokens
"""

from __future__ import annotations

import asyncio

import click

from tasktrack.config import settings
from tasktrack.logging_setup import configure_logging


def _run(coro):
    """Run an async coroutine from a synchronous click handler."""
    return asyncio.run(coro)


@click.group()
def cli():
    """TaskTrack: task management API."""
    configure_logging(settings.log_level, json=settings.log_json)


@cli.command()
@click.option("--host", default=None, help="Bind address (default: TASKTRACK_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: TASKTRACK_PORT)")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: str | None, port: int | None, reload: bool):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run(
        "tasktrack.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@cli.command("init-db")
def init_db():
    """Create all tables that don't exist yet."""
    from tasktrack.db.engine import Database

    async def _init():
        db = Database(settings.database_url, echo=settings.db_echo)
        try:
            await db.create_all()
        finally:
            await db.dispose()

    _run(_init())
    click.secho("Database schema created.", fg="green")


@cli.command("prune-sessions")
def prune_sessions():
    """Delete session tokens past their expiry for every user."""
    from tasktrack.db.engine import Database
    from tasktrack.services.auth_service import AuthService

    async def _prune() -> int:
        db = Database(settings.database_url, echo=settings.db_echo)
        try:
            async with db.session_factory() as session:
                return await AuthService(session).prune_expired_sessions()
        finally:
            await db.dispose()

    count = _run(_prune())
    click.echo(f"Removed {count} expired session(s).")


if __name__ == "__main__":
    cli()
