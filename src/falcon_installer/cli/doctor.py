"""Doctor command for host diagnostics."""

from __future__ import annotations

import httpx
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from falcon_installer.adapters import package_manager, sensor_control
from falcon_installer.adapters.aws_ssm import is_aws_instance
from falcon_installer.adapters.http_client import build_client, describe_transport_error
from falcon_installer.cli.ui_components import build_os_table
from falcon_installer.core.config import InstallerSettings, load_settings, write_user_env_vars
from falcon_installer.core.domain.cloud import FalconCloud
from falcon_installer.core.errors import InstallerError
from falcon_installer.core.os_info import detect_os

app = typer.Typer(no_args_is_help=True, help="Host diagnostics and configuration checks.")

_console = Console()


def _check_api(cloud: FalconCloud, settings: InstallerSettings) -> tuple[bool, str]:
    try:
        with build_client(settings) as client:
            response = client.get(f"{cloud.base_url}/oauth2/token")
        return True, f"HTTP {response.status_code}"
    except httpx.TransportError as exc:
        return False, describe_transport_error(exc, settings.proxy_url)


@app.command()
def run() -> None:
    """Run baseline diagnostics and show what the installer would use."""

    table = Table(title="Falcon Installer Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    try:
        settings = load_settings()
    except InstallerError as exc:
        table.add_row("Settings", "FAIL", escape(str(exc)))
        _console.print(table)
        raise typer.Exit(code=1) from None
    table.add_row("Settings", "OK", "All FALCON_* values valid")

    if settings.access_token:
        table.add_row("Credentials", "OK", "Access token")
    elif settings.client_id and settings.client_secret:
        table.add_row("Credentials", "OK", "API client id/secret")
    else:
        table.add_row("Credentials", "MISSING", "Needs AWS SSM parameters or FALCON_CLIENT_ID/SECRET")

    # Host
    os_info = None
    try:
        os_info = detect_os()
        table.add_row("Operating system", "OK", f"{os_info.name} {os_info.version} ({os_info.arch})")
    except InstallerError as exc:
        table.add_row("Operating system", "FAIL", escape(str(exc)))

    manager = package_manager.rpm_manager() or (
        "apt-get" if package_manager.has_command("apt-get") else None
    )
    table.add_row("Package manager", "OK" if manager else "FAIL", manager or "none found")

    service = next(
        (name for name in ("systemctl", "service") if package_manager.has_command(name)), None
    )
    table.add_row("Service manager", "OK" if service else "FAIL", service or "none found")

    falconctl = sensor_control.FALCONCTL
    table.add_row(
        "falconctl",
        "PRESENT" if falconctl.exists() else "ABSENT",
        str(falconctl),
    )
    table.add_row(
        "Sensor process",
        "RUNNING" if sensor_control.is_sensor_running() else "STOPPED",
        sensor_control.SERVICE_NAME,
    )
    table.add_row("AWS EC2", "YES" if is_aws_instance() else "NO", "SSM credential source")

    # Connectivity (best-effort)
    cloud = settings.cloud or FalconCloud.default()
    ok_api, detail_api = _check_api(cloud, settings)
    table.add_row(f"API {cloud.api_host}", "OK" if ok_api else "FAIL", escape(detail_api))

    _console.print(table)
    if os_info is not None:
        _console.print(build_os_table(os_info))


@app.command(name="setup-credentials")
def setup_credentials() -> None:
    """Interactive API credential setup (stored in the user config .env)."""

    client_id = typer.prompt("Falcon API client ID").strip()
    client_secret = typer.prompt("Falcon API client secret", hide_input=True).strip()
    cloud = typer.prompt(
        f"Falcon cloud ({'|'.join(FalconCloud.choices())}, empty to auto-discover)",
        default="",
        show_default=False,
    ).strip()

    if not client_id or not client_secret:
        raise typer.BadParameter("client id and client secret are required")
    if cloud and cloud not in FalconCloud.choices():
        raise typer.BadParameter(f"cloud must be one of {', '.join(FalconCloud.choices())}")

    env_path = write_user_env_vars(
        {
            "FALCON_CLIENT_ID": client_id,
            "FALCON_CLIENT_SECRET": client_secret,
            "FALCON_CLOUD": cloud or None,
        }
    )

    _console.print(f"[green]Saved API credentials to:[/green] {env_path}")
