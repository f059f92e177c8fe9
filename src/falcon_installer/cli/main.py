"""`falcon-linux-install` command.

The installer is driven by environment variables, like the shell script it
replaces; the command itself takes no positional arguments. Exit codes:
0 success, 1 fatal error, 2 after an uninstall.
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console

from falcon_installer.adapters import sensor_control
from falcon_installer.adapters.http_client import build_client
from falcon_installer.cli.ui_components import print_fatal, print_usage, step
from falcon_installer.core.config import InstallerSettings, load_settings
from falcon_installer.core.errors import InstallerError
from falcon_installer.core.log import configure_logging
from falcon_installer.core.os_info import detect_os
from falcon_installer.core.services.credentials import obtain_session
from falcon_installer.core.services.install_pipeline import (
    api_for,
    download_only,
    install_sensor,
    register_sensor,
    restart_sensor,
    uninstall_sensor,
)

logger = logging.getLogger(__name__)

app = typer.Typer(
    add_completion=False,
    help="Install and register the CrowdStrike Falcon sensor for Linux.",
)

_console = Console()
_err_console = Console(stderr=True)


def execute(settings: InstallerSettings) -> int:
    """Run the workflow selected by `settings`; returns the exit code."""

    if settings.uninstall:
        with step(_console, "Removing Falcon Sensor "):
            code = uninstall_sensor()
        _console.print("Falcon Sensor removed successfully.")
        return code

    if settings.allow_legacy_curl:
        logger.debug("ALLOW_LEGACY_CURL has no effect: requests are made in-process")

    with build_client(settings) as client:
        if settings.get_access_token:
            session = obtain_session(settings, client)
            typer.echo(session.token)
            return 0

        os_info = detect_os()

        if settings.download_only:
            with step(_console, "Downloading Falcon Sensor"):
                session = obtain_session(settings, client)
                destination = download_only(settings, api_for(settings, client, session), os_info)
            _console.print(f"Falcon Sensor downloaded to: {destination}", soft_wrap=True)
            return 0

        _console.print("Check if Falcon Sensor is running ... ", end="", soft_wrap=True)
        if sensor_control.is_sensor_running():
            _console.print("sensor is already running... exiting")
            return 0
        _console.print("[ Not present ]", markup=False)

        with step(_console, "Falcon Sensor Install "):
            session = obtain_session(settings, client)
            api = api_for(settings, client, session)
            install_sensor(settings, api, os_info)

        if not settings.install_only:
            with step(_console, "Falcon Sensor Register"):
                register_sensor(settings, api)
            with step(_console, "Falcon Sensor Restart "):
                restart_sensor()

    _console.print("Falcon Sensor installed successfully.")
    return 0


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def install(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Install, register and start the Falcon sensor (configured via FALCON_* variables)."""

    if ctx.args:
        print_usage(_console)
        raise typer.Exit(code=1)

    configure_logging(verbose)
    try:
        code = execute(load_settings())
    except InstallerError as exc:
        print_fatal(_err_console, str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    raise typer.Exit(code=code)


def run() -> None:
    app()

