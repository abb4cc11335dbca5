"""Command-line interface for StudyLink.

This module provides the CLI commands for running and managing
the StudyLink application.
"""

import asyncio
from typing import NoReturn

import click

from studylink.core.config import get_settings
from studylink.core.logging import configure_logging, get_logger


@click.group()
@click.version_option(version="0.1.0", prog_name="StudyLink")
def cli() -> None:
    """StudyLink - project group formation for classroom homework.

    Configuration is read from STUDYLINK_* environment variables and .env.
    """


@cli.command()
@click.option("--host", type=str, default=None, help="Host to bind to (overrides config)")
@click.option("--port", type=int, default=None, help="Port to bind to (overrides config)")
@click.option(
    "--workers",
    type=int,
    default=None,
    help="Number of worker processes (overrides config)",
)
@click.option(
    "--reload",
    is_flag=True,
    default=False,
    help="Enable auto-reload for development",
)
def serve(host: str | None, port: int | None, workers: int | None, reload: bool) -> None:
    """Start the StudyLink server."""
    import uvicorn

    settings = get_settings()

    bind_host = host or settings.host
    bind_port = port or settings.port
    bind_workers = workers or settings.workers

    configure_logging(settings)

    logger = get_logger(__name__)
    logger.info(
        "Starting StudyLink server",
        host=bind_host,
        port=bind_port,
        workers=bind_workers,
        reload=reload,
        environment=settings.environment,
    )

    uvicorn.run(
        "studylink.infrastructure.api.app:app",
        host=bind_host,
        port=bind_port,
        workers=1 if reload else bind_workers,
        reload=reload,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


@cli.command()
@click.option(
    "--force",
    is_flag=True,
    help="Skip confirmation prompt",
)
def init_db(force: bool) -> None:
    """Initialize the database.

    Creates all database tables. Use this only in development.
    In production, use migrations instead.
    """
    from studylink.infrastructure.persistence.database import (
        ensure_sqlite_directory,
        get_db_manager,
    )

    settings = get_settings()
    configure_logging(settings)

    if settings.is_production and not force:
        click.echo(
            "ERROR: Running in production mode. Use migrations instead of init-db.",
            err=True,
        )
        raise SystemExit(1)

    if not force:
        click.confirm(
            "This will create all database tables. Continue?",
            abort=True,
            default=False,
        )

    async def initialize() -> None:
        from studylink.infrastructure.persistence import models  # noqa: F401

        ensure_sqlite_directory(settings)
        db = get_db_manager()
        try:
            await db.create_tables()
            click.echo("Database initialized successfully.")
        finally:
            await db.disconnect()

    asyncio.run(initialize())


@cli.command()
@click.option("--students", type=click.IntRange(1, 200), default=7, help="Students to enroll")
@click.option("--min-size", type=click.IntRange(1, 10), default=2, help="Minimum group size")
@click.option("--max-size", type=click.IntRange(1, 10), default=4, help="Maximum group size")
def seed_demo(students: int, min_size: int, max_size: int) -> None:
    """Seed a demo teacher, class, students and a group-project assignment.

    Prints an access token for every seeded user so the API can be tried
    without the identity service.
    """
    from studylink.infrastructure.auth import jwt_service
    from studylink.infrastructure.persistence.database import (
        ensure_sqlite_directory,
        get_db_manager,
    )
    from studylink.infrastructure.persistence.seed import seed_demo_data

    if min_size > max_size:
        raise click.BadParameter("--min-size must not exceed --max-size")

    settings = get_settings()
    configure_logging(settings)

    async def seed() -> None:
        ensure_sqlite_directory(settings)
        db = get_db_manager()
        try:
            await db.create_tables()
            async with db.session() as session:
                demo = await seed_demo_data(
                    session, student_count=students, min_size=min_size, max_size=max_size
                )
        finally:
            await db.disconnect()

        click.echo(f"Assignment: {demo.assignment_id}")
        for user_id, name, role in demo.users:
            token = jwt_service.create_access_token(user_id, role, name)
            click.echo(f"{role:<8} {name:<12} {user_id}\n  token: {token}")

    asyncio.run(seed())


@cli.command()
def info() -> None:
    """Display StudyLink configuration."""
    settings = get_settings()

    click.echo(f"""
StudyLink v{settings.app_version}
{'=' * 40}

Configuration:
  Environment:  {settings.environment}
  Debug:        {settings.debug}
  API Prefix:   {settings.api_prefix}

Database:
  URL:          {settings.database_url}

Group Policy:
  Min Size:     {settings.group_default_min_size}
  Max Size:     {settings.group_default_max_size}
  Retries:      {settings.mutation_max_attempts}

Logging:
  Level:        {settings.log_level}
  Format:       {settings.log_format}
""")


def main() -> NoReturn:
    """Main entry point for the CLI.

    This function is called when the `studylink` command is run
    or when using `python -m studylink`.
    """
    cli()
