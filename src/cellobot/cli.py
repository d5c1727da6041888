import sys

import click
import uvicorn

from .config import Settings
from .llm_core.exceptions import ConfigurationError
from .llm_core.logger import setup_logging
from .server import create_app


@click.group()
def cli():
    """CelloBot backend."""


@cli.command("serve")
@click.option("--host", default=None, help="Host interface to bind. Defaults to $HOST or 127.0.0.1.")
@click.option("--port", default=None, type=int, help="Port to bind. Defaults to $PORT or 3000.")
@click.option("--log-level", default=None, help="Logging level. Defaults to $CELLOBOT_LOG_LEVEL or INFO.")
def serve(host, port, log_level):
    """Serve the chat API over HTTP."""
    try:
        settings = Settings.from_env()
    except ConfigurationError as err:
        click.echo(f"✗ {err}", err=True)
        sys.exit(1)

    overrides = {k: v for k, v in {"host": host, "port": port, "log_level": log_level}.items() if v is not None}
    settings = settings.model_copy(update=overrides)
    if settings.port < 1 or settings.port > 65535:
        click.echo("✗ --port must be within [1,65535]", err=True)
        sys.exit(1)

    setup_logging(settings.log_level.upper())
    if not settings.anthropic_api_key and not settings.openai_api_key:
        click.echo("! Neither ANTHROPIC_API_KEY nor OPENAI_API_KEY is set. Requests will fail.", err=True)

    click.echo(f"CelloBot backend on http://{settings.host}:{settings.port}")
    click.echo("  Endpoints: POST /stream, POST /chat, GET /tools, GET /health")
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    cli()
