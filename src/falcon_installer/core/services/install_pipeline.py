"""Install workflow.

The steps are plain functions so the CLI can print progress between them
and tests can drive each one with fakes. Control only ever flows forward:
a failing step raises `InstallerError` and nothing is rolled back apart from
the scratch directory.
"""

from __future__ import annotations

import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path

import httpx

from falcon_installer.adapters import package_manager, sensor_control
from falcon_installer.adapters.falcon_api import FalconApi
from falcon_installer.core.config import InstallerSettings
from falcon_installer.core.domain.models import FalconSession, OSInfo, SensorInstaller
from falcon_installer.core.errors import InstallerError

logger = logging.getLogger(__name__)

UNINSTALL_EXIT_CODE = 2


@dataclass(frozen=True)
class VersionSelection:
    """How the catalog entry is picked: a pinned policy and/or an N-back offset."""

    policy_name: str | None
    decrement: int


def resolve_version_selection(settings: InstallerSettings) -> VersionSelection:
    """Apply the policy-versus-decrement rule.

    A sensor update policy pins the version, so a decrement would select
    nothing; it is dropped with a warning rather than failing the run.
    """

    decrement = settings.sensor_version_decrement
    policy_name = settings.sensor_update_policy_name
    if policy_name and decrement > 0:
        logger.warning(
            "Disabling FALCON_SENSOR_VERSION_DECREMENT because it conflicts with "
            "FALCON_SENSOR_UPDATE_POLICY_NAME"
        )
        decrement = 0
    return VersionSelection(policy_name=policy_name, decrement=decrement)


def select_installer(
    installers: list[SensorInstaller], decrement: int, os_info: OSInfo
) -> SensorInstaller:
    """Newest entry, or the one `decrement` releases back."""

    if not installers:
        raise InstallerError(f"No sensor found for with OS Name: {os_info.api_os_name}")
    if decrement >= len(installers):
        raise InstallerError(
            f"Unable to identify a sensor installer matching: {os_info.api_os_name}, "
            f"version: {os_info.major_version}, index: N-{decrement}"
        )
    return installers[decrement]


def api_for(settings: InstallerSettings, client: httpx.Client, session: FalconSession) -> FalconApi:
    return FalconApi(client, session.cloud, session.token, proxy=settings.proxy_url)


def download_sensor(
    settings: InstallerSettings,
    api: FalconApi,
    os_info: OSInfo,
    destination_dir: Path,
) -> Path:
    """Query the catalog, pick one installer and download it."""

    selection = resolve_version_selection(settings)
    sensor_version = None
    if selection.policy_name:
        sensor_version = api.get_policy_sensor_version(selection.policy_name, os_info.arch)
        logger.debug("Policy %s pins sensor version %s", selection.policy_name, sensor_version)

    installers = api.query_installers(
        os_name=os_info.api_os_name,
        os_version=os_info.major_version,
        arch_filter=os_info.arch_filter,
        sensor_version=sensor_version,
    )
    installer = select_installer(installers, selection.decrement, os_info)
    logger.debug("Selected installer %s (%s)", installer.version, installer.sha256)
    return api.download_installer(installer, destination_dir)


def download_only(
    settings: InstallerSettings, api: FalconApi, os_info: OSInfo
) -> Path:
    destination = settings.download_path or Path.cwd()
    return download_sensor(settings, api, os_info, destination)


def install_sensor(settings: InstallerSettings, api: FalconApi, os_info: OSInfo) -> None:
    """Download into a scratch directory and hand the package to the OS."""

    with tempfile.TemporaryDirectory(prefix="falcon-sensor-") as tempdir:
        package = download_sensor(settings, api, os_info, Path(tempdir))
        package_manager.install_package(package, os_info)


def register_sensor(settings: InstallerSettings, api: FalconApi) -> list[str]:
    """Configure the installed sensor with falconctl; returns the command used."""

    cid = settings.cid or api.get_cid()
    args = sensor_control.build_falconctl_args(settings, cid)
    sensor_control.configure_sensor(args)
    return args


def restart_sensor() -> None:
    sensor_control.restart_sensor_service()


def uninstall_sensor() -> int:
    package_manager.remove_package()
    return UNINSTALL_EXIT_CODE
