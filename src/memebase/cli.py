"""Command-line interface for Memebase."""

from typing import Optional

import typer
import uvicorn

from . import __version__
from .api.app import create_app
from .config.config import Settings

app = typer.Typer(help="Memebase catalog service")


@app.command()
def serve(
    port: Optional[int] = typer.Option(None, "--port", help="API server port"),
    env: Optional[str] = typer.Option(None, "--env", help="Environment (dev|test|prod)"),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level (trace|debug|info|warning|error)"
    ),
    backend: Optional[str] = typer.Option(None, "--backend", help="Store backend (mongo|sql|memory)"),
    db_uri: Optional[str] = typer.Option(None, "--db-uri", help="MongoDB URI"),
    db_user: Optional[str] = typer.Option(None, "--db-user", help="MongoDB user"),
    db_password: Optional[str] = typer.Option(None, "--db-password", help="MongoDB password"),
    database_url: Optional[str] = typer.Option(None, "--database-url", help="SQLAlchemy URL for the sql backend"),
    limiter_rps: Optional[float] = typer.Option(None, "--limiter-rps", help="Rate limiter maximum requests per second"),
    limiter_burst: Optional[int] = typer.Option(None, "--limiter-burst", help="Rate limiter maximum burst"),
    limiter_enabled: Optional[bool] = typer.Option(
        None, "--limiter-enabled/--no-limiter-enabled", help="Enable rate limiter"
    ),
    cors_trusted_origins: Optional[str] = typer.Option(
        None, "--cors-trusted-origins", help="Trusted CORS origins (space separated)"
    ),
) -> None:
    """Run the API server. Flags override MEMEBASE_* environment variables."""
    overrides = {
        "port": port,
        "app_env": env,
        "log_level": log_level,
        "store_backend": backend,
        "mongo_uri": db_uri,
        "mongo_user": db_user,
        "mongo_password": db_password,
        "database_url": database_url,
        "limiter_rps": limiter_rps,
        "limiter_burst": limiter_burst,
        "limiter_enabled": limiter_enabled,
        "cors_trusted_origins": cors_trusted_origins,
    }
    settings = Settings(**{key: value for key, value in overrides.items() if value is not None})

    uvicorn.run(
        create_app(settings),
        host="0.0.0.0",
        port=settings.port,
        timeout_keep_alive=60,
        timeout_graceful_shutdown=30,
        log_level=settings.log_level,
    )


@app.command()
def version() -> None:
    """Display version and exit."""
    typer.echo(f"Version:\t{__version__}")


if __name__ == "__main__":
    app()
