"""
Command line entry point for the storefront backend.

    storefront serve
    storefront init-db [--reset]
    storefront create-user --name Ada --email ada@example.com --role admin
    storefront cache-health
    storefront flush-cache
"""

import asyncio
import logging
from typing import Optional

import typer
from pydantic import ValidationError as PydanticValidationError
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table
from sqlalchemy.exc import IntegrityError

from . import __version__
from .context import create_cache
from .database.config import initialize_database
from .database.models import User
from .models.enums import UserRole
from .models.user import NewUserRequest, UserModel
from .utils.config import StorefrontConfig, load_config

app = typer.Typer(help="Storefront backend with a Valkey read-through cache")
console = Console()


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


def get_settings(env_file: Optional[str]) -> StorefrontConfig:
    try:
        settings = load_config(env_file)
    except ValueError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)
    setup_logging(settings.log_level)
    return settings


EnvFileOption = typer.Option(None, "--env-file", "-e", help="Path to a .env file")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address (default STOREFRONT_HOST)"),
    port: Optional[int] = typer.Option(None, help="Bind port (default STOREFRONT_PORT)"),
    env_file: Optional[str] = EnvFileOption,
):
    """Run the HTTP API with uvicorn"""
    import uvicorn

    from .app import create_app

    settings = get_settings(env_file)
    console.print(Panel.fit(
        f"[bold cyan]Storefront API {__version__}[/bold cyan]\n"
        f"[yellow]store[/yellow] {settings.database_url}  "
        f"[yellow]cache[/yellow] {settings.cache_backend}",
        border_style="cyan",
        box=box.DOUBLE,
    ))
    uvicorn.run(
        create_app(settings=settings),
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
        log_config=None,
    )


@app.command("init-db")
def init_db(
    reset: bool = typer.Option(False, "--reset", help="Drop existing tables first"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    env_file: Optional[str] = EnvFileOption,
):
    """Create the store tables"""
    settings = get_settings(env_file)
    if reset and not yes and not Confirm.ask("Drop every store table?", default=False):
        raise typer.Abort()

    db = initialize_database(settings.database_url, echo=settings.debug, create_tables=False)
    try:
        if reset:
            db.drop_tables()
        db.create_tables()
    finally:
        db.close()
    console.print(f"[green]✓[/green] Tables ready in {settings.database_url}")


@app.command("create-user")
def create_user(
    name: str = typer.Option(..., help="Display name"),
    email: str = typer.Option(..., help="Unique email address"),
    role: UserRole = typer.Option(UserRole.USER, help="Account role"),
    photo: Optional[str] = typer.Option(None, help="Avatar URL"),
    env_file: Optional[str] = EnvFileOption,
):
    """Create a user and print its id (used as the ?id= query parameter)"""
    settings = get_settings(env_file)
    try:
        request = NewUserRequest(name=name, email=email, role=role, photo=photo)
    except PydanticValidationError as e:
        console.print(f"[red]✗ Invalid user: {e.errors()[0]['msg']}[/red]")
        raise typer.Exit(code=1)

    db = initialize_database(settings.database_url)
    try:
        with db.get_session_context() as session:
            user = User(
                name=request.name,
                email=str(request.email),
                photo=request.photo,
                role=request.role.value,
            )
            session.add(user)
            session.flush()
            created = UserModel.model_validate(user)
    except IntegrityError:
        console.print(f"[red]✗ A user with email {email} already exists[/red]")
        raise typer.Exit(code=1)
    finally:
        db.close()

    table = Table(title="User created", box=box.ROUNDED)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    for field, value in created.to_json().items():
        table.add_row(field, str(value))
    console.print(table)


@app.command("cache-health")
def cache_health(env_file: Optional[str] = EnvFileOption):
    """Round-trip a probe through the configured cache"""
    settings = get_settings(env_file)

    async def check():
        cache = create_cache(settings)
        await cache.initialize()
        try:
            return await cache.health_check(), await cache.get_stats()
        finally:
            await cache.close()

    health, stats = asyncio.run(check())

    color = "green" if health["status"] == "healthy" else "yellow"
    console.print(f"Cache status: [{color}]{health['status']}[/{color}] ({health['backend']})")
    for error in health["errors"]:
        console.print(f"  [yellow]• {error}[/yellow]")

    table = Table(title="Cache statistics", box=box.ROUNDED)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="magenta", justify="right")
    for metric, value in stats.items():
        if not isinstance(value, dict):
            table.add_row(metric, str(value))
    console.print(table)

    if health["status"] != "healthy":
        raise typer.Exit(code=1)


@app.command("flush-cache")
def flush_cache(
    pattern: str = typer.Option("*", help="Glob pattern of keys to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    env_file: Optional[str] = EnvFileOption,
):
    """Delete cached entries matching a pattern"""
    settings = get_settings(env_file)
    if not yes and not Confirm.ask(f"Delete cache keys matching '{pattern}'?", default=False):
        raise typer.Abort()

    async def flush() -> int:
        cache = create_cache(settings)
        await cache.initialize()
        try:
            return await cache.clear_pattern(pattern)
        finally:
            await cache.close()

    deleted = asyncio.run(flush())
    console.print(f"[green]✓[/green] Deleted {deleted} key(s)")


if __name__ == "__main__":
    app()
