"""
Main entry point for tusbridge.

This module provides the command-line interface for running the bridge
and managing its configuration.
"""

import asyncio
import logging
import sys
from typing import Optional

import aiohttp
import typer
import uvicorn

from .application.startup import ApplicationStartup
from .infrastructure.config.loader import ConfigLoader
from .infrastructure.config.models import ApplicationConfig
from .infrastructure.logging.setup import setup_logging
from .presentation.api.app import create_app

cli = typer.Typer(
    name="tusbridge",
    help="Resumable upload bridge supervising a tusd helper process"
)

logger = logging.getLogger(__name__)


@cli.command()
def start(
    config_file: Optional[str] = typer.Option(
        None, "--config", "-c", help="Configuration file path"
    ),
    host: Optional[str] = typer.Option(
        None, "--host", help="API host address"
    ),
    port: Optional[int] = typer.Option(
        None, "--port", "-p", help="API port"
    ),
    tus_host: Optional[str] = typer.Option(
        None, "--tus-host", help="tusd listen address as host:port"
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level"
    ),
    debug: bool = typer.Option(
        False, "--debug", help="Enable debug mode"
    )
) -> None:
    """Start the tus helper and serve the upload API."""

    config_loader = ConfigLoader()
    try:
        config = config_loader.load_config(config_file)
    except (OSError, ValueError, TypeError) as e:
        typer.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    if host:
        config.api.host = host
    if port:
        config.api.port = port
    if tus_host:
        config.tus.host = tus_host
    if log_level:
        config.logging.level = log_level.upper()
    if debug:
        config.debug = True
        config.logging.level = "DEBUG"

    setup_logging(config.logging)

    logger.info(f"Starting {config.name} v{config.version}")
    logger.info(f"Environment: {config.environment}")

    try:
        run_application(config)
    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
    except SystemExit as e:
        # uvicorn exits with its own status when the lifespan fails to start
        if e.code:
            logger.error(f"Application failed to start (server exit status {e.code})")
            sys.exit(1)
        raise
    except Exception as e:
        logger.error(f"Application failed to start: {e}")
        sys.exit(1)


@cli.command()
def init_config(
    output: str = typer.Option(
        "config.yaml", "--output", "-o", help="Output configuration file"
    ),
    format: str = typer.Option(
        "yaml", "--format", "-f", help="Configuration format (yaml/json)"
    )
) -> None:
    """Generate a default configuration file."""

    config = ApplicationConfig()
    config_loader = ConfigLoader()

    try:
        config_loader.save_config(config, output, format)
        typer.echo(f"Default configuration saved to {output}")
    except ValueError as e:
        typer.echo(f"Error saving configuration: {e}", err=True)
        sys.exit(1)


@cli.command()
def validate_config(
    config_file: str = typer.Argument(..., help="Configuration file to validate")
) -> None:
    """Validate a configuration file."""

    config_loader = ConfigLoader()

    try:
        config = config_loader.load_config(config_file)
        typer.echo(f"Configuration file {config_file} is valid")
        typer.echo(f"Application: {config.name} v{config.version}")
        typer.echo(f"Tus server: {config.tus.host} -> {config.tus.external_origin()}/files/")
    except (OSError, ValueError, TypeError) as e:
        typer.echo(f"Configuration validation failed: {e}", err=True)
        sys.exit(1)


@cli.command()
def health_check(
    host: str = typer.Option("localhost", "--host", help="Server host"),
    port: int = typer.Option(8080, "--port", help="Server port"),
    timeout: float = typer.Option(10.0, "--timeout", help="Request timeout")
) -> None:
    """Check the health of a running bridge."""

    async def check_health() -> bool:
        url = f"http://{host}:{port}/health/detailed"
        timeout_config = aiohttp.ClientTimeout(total=timeout)

        try:
            async with aiohttp.ClientSession(timeout=timeout_config) as session:
                async with session.get(url) as response:
                    if response.status != 200:
                        typer.echo(f"Server returned status {response.status}")
                        return False
                    data = await response.json()
                    status = data.get('status', 'unknown')
                    typer.echo(f"Server status: {status}")
                    return bool(status == "healthy")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            typer.echo(f"Health check failed: {e}")
            return False

    result = asyncio.run(check_health())
    if not result:
        sys.exit(1)


def run_application(config: ApplicationConfig) -> None:
    """
    Run the bridge with the given configuration.

    The tus helper is started and stopped by the API's lifespan, so it is
    killed on every shutdown path uvicorn takes.
    """
    config.ensure_directories()

    startup = ApplicationStartup(config)
    startup.configure_services()
    app = create_app(startup, config)

    uvicorn.run(
        app,
        host=config.api.host,
        port=config.api.port,
        log_level=config.logging.level.lower(),
        log_config=None,
        access_log=config.debug
    )


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
