"""CLI UI components (Rich).

Why separate:
- Keeps command logic apart from how progress and errors look.
- The same step/fatal rendering is shared by the installer and the doctor.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from falcon_installer.core.domain.models import OSInfo

USAGE = """\
Installs and configures the CrowdStrike Falcon Sensor for Linux.

The installer recognizes the following environmental variables:

Authentication:
    - FALCON_CLIENT_ID                  (default: unset)
        Your CrowdStrike Falcon API client ID.

    - FALCON_CLIENT_SECRET              (default: unset)
        Your CrowdStrike Falcon API client secret.

    - FALCON_ACCESS_TOKEN               (default: unset)
        Your CrowdStrike Falcon API access token.
        If used, FALCON_CLOUD must also be set.

    - FALCON_CLOUD                      (default: unset)
        The cloud region where your CrowdStrike Falcon instance is hosted.
        Required if using FALCON_ACCESS_TOKEN.
        Accepted values are ['us-1', 'us-2', 'eu-1', 'us-gov-1'].

Other Options
    - FALCON_CID                        (default: auto)
        The customer ID that should be associated with the sensor.
        By default, the CID is automatically determined by your authentication credentials.

    - FALCON_SENSOR_VERSION_DECREMENT   (default: 0 [latest])
        The number of versions prior to the latest release to install.

    - FALCON_PROVISIONING_TOKEN         (default: unset)
        The provisioning token to use for installing the sensor.

    - FALCON_SENSOR_UPDATE_POLICY_NAME  (default: unset)
        The name of the sensor update policy to use for installing the sensor.

    - FALCON_TAGS                       (default: unset)
        A comma separated list of tags for sensor grouping.

    - FALCON_APD                        (default: unset)
        Configures if the proxy should be enabled or disabled.

    - FALCON_APH                        (default: unset)
        The proxy host for the sensor to use when communicating with CrowdStrike.

    - FALCON_APP                        (default: unset)
        The proxy port for the sensor to use when communicating with CrowdStrike.

    - FALCON_BILLING                    (default: default)
        To configure the sensor billing type.
        Accepted values are [default|metered].

    - FALCON_BACKEND                    (default: auto)
        For sensor backend.
        Accepted values are values: [auto|bpf|kernel].

    - FALCON_TRACE                      (default: none)
        To configure the trace level.
        Accepted values are [none|err|warn|info|debug]

    - FALCON_UNINSTALL                  (default: false)
        To uninstall the falcon sensor.

    - FALCON_INSTALL_ONLY               (default: false)
        To install the falcon sensor without registering it with CrowdStrike.

    - FALCON_DOWNLOAD_ONLY              (default: false)
        To download the falcon sensor without installing it.

    - FALCON_DOWNLOAD_PATH              (default: $PWD)
        The path to download the falcon sensor to.

    - FALCON_HTTP_TIMEOUT_SECONDS       (default: 30)
        Timeout for each request to the CrowdStrike API.

    - ALLOW_LEGACY_CURL                 (default: false)
        Accepted for compatibility with the shell installer. Has no effect.

    - GET_ACCESS_TOKEN                  (default: unset)
        Prints an access token and exits.
        Requires FALCON_CLIENT_ID and FALCON_CLIENT_SECRET.
        Accepted values are ['true', 'false'].
"""


def print_usage(console: Console) -> None:
    console.print(USAGE, markup=False, highlight=False, soft_wrap=True)


@contextmanager
def step(console: Console, label: str, done: str = "[ Ok ]") -> Iterator[None]:
    """Print `label ... ` before the block and `done` after it succeeds.

    On failure the line is terminated so the fatal message starts cleanly.
    """

    console.print(f"{label} ... ", end="", markup=False, highlight=False, soft_wrap=True)
    try:
        yield
    except BaseException:
        console.print()
        raise
    console.print(done, markup=False, highlight=False)


def print_fatal(console: Console, message: str) -> None:
    console.print(f"[bold red]Fatal error:[/bold red] {escape(message)}", highlight=False, soft_wrap=True)


def build_os_table(os_info: OSInfo) -> Table:
    """Rich table describing the detected host."""

    table = Table(title="Detected host")
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")
    table.add_row("Distribution", os_info.name)
    table.add_row("Version", os_info.version)
    table.add_row("Catalog OS", os_info.api_os_name)
    table.add_row("Catalog version", os_info.major_version)
    table.add_row("Architecture", os_info.arch)
    return table
