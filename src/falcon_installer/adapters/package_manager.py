"""Native package manager dispatch.

RPM-based hosts go through dnf/yum/zypper with a forced `rpm` fallback and
need the installer signing key imported first; Debian and Ubuntu go through
apt-get (dpkg on Ubuntu 14).
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Sequence

from falcon_installer.adapters.signing_key import FALCON_INSTALLER_GPG_KEY
from falcon_installer.core.domain.models import OSInfo
from falcon_installer.core.errors import InstallerError
from falcon_installer.core.os_info import RHEL_FAMILY

logger = logging.getLogger(__name__)

SENSOR_PACKAGE = "falcon-sensor"

RPM_FAMILY = ("Amazon", *RHEL_FAMILY, "SLES")

_NONINTERACTIVE = {"DEBIAN_FRONTEND": "noninteractive"}


def has_command(name: str) -> bool:
    return shutil.which(name) is not None


def _run(cmd: Sequence[str], *, env: dict[str, str] | None = None) -> bool:
    """Run `cmd` with its output captured; True on exit status 0."""

    logger.debug("$ %s", " ".join(cmd))
    full_env = {**os.environ, **env} if env else None
    try:
        proc = subprocess.run(
            list(cmd), capture_output=True, text=True, check=False, env=full_env
        )
    except OSError as exc:
        logger.debug("%s could not be started: %s", cmd[0], exc)
        return False
    if proc.returncode != 0:
        logger.debug(
            "%s exited with %s: %s", cmd[0], proc.returncode, (proc.stderr or "").strip()[-4096:]
        )
        return False
    return True


def _require(ok: bool, message: str) -> None:
    if not ok:
        raise InstallerError(message)


def rpm_manager() -> str | None:
    """First RPM front-end present on the host, if any."""

    for name in ("dnf", "yum", "zypper"):
        if has_command(name):
            return name
    return None


def import_signing_key() -> None:
    """Import the Falcon installer GPG key into the RPM keyring."""

    with tempfile.NamedTemporaryFile("w", suffix=".asc", delete=False) as fh:
        fh.write(FALCON_INSTALLER_GPG_KEY)
        key_path = fh.name
    try:
        _require(
            _run(["rpm", "--import", key_path]),
            "Failed to import the CrowdStrike installer signing key",
        )
    finally:
        Path(key_path).unlink(missing_ok=True)


def _rpm_install(package: Path) -> None:
    import_signing_key()

    pkg = str(package)
    manager = rpm_manager()
    installed = False
    if manager in ("dnf", "yum"):
        installed = _run([manager, "install", "-q", "-y", pkg])
    elif manager == "zypper":
        installed = _run(["zypper", "--quiet", "install", "-y", pkg])
    if not installed:
        installed = _run(["rpm", "-ivh", "--nodeps", pkg])
    _require(installed, f"Failed to install {package.name}")


def _apt_install(package: Path) -> None:
    _require(
        _run(["apt-get", "-qq", "install", "-y", str(package)], env=_NONINTERACTIVE),
        f"Failed to install {package.name}",
    )


def _dpkg_install(package: Path) -> None:
    # dpkg leaves dependencies unresolved; apt-get -f fixes them up.
    _run(["dpkg", "-i", str(package)], env=_NONINTERACTIVE)
    _require(
        _run(["apt-get", "-qq", "install", "-f", "-y"], env=_NONINTERACTIVE),
        f"Failed to install {package.name}",
    )


def install_package(package: Path, os_info: OSInfo) -> None:
    """Install the downloaded sensor package with the host's package manager."""

    if os_info.name in RPM_FAMILY:
        _rpm_install(package)
    elif os_info.name == "Debian":
        _apt_install(package)
    elif os_info.name == "Ubuntu":
        if os_info.major_version == "14":
            _dpkg_install(package)
        else:
            _apt_install(package)
    else:
        raise InstallerError(f"Unrecognized OS: {os_info.name}")


def remove_package(name: str = SENSOR_PACKAGE) -> None:
    """Remove `name` with whichever package manager is present."""

    rpm_fallback = ["rpm", "-e", "--nodeps", name]
    if has_command("dnf"):
        removed = _run(["dnf", "remove", "-q", "-y", name]) or _run(rpm_fallback)
    elif has_command("yum"):
        removed = _run(["yum", "remove", "-q", "-y", name]) or _run(rpm_fallback)
    elif has_command("zypper"):
        removed = _run(["zypper", "--quiet", "remove", "-y", name]) or _run(rpm_fallback)
    elif has_command("apt"):
        removed = _run(["apt", "purge", "-y", name], env=_NONINTERACTIVE)
    else:
        removed = _run(rpm_fallback)
    _require(removed, f"Failed to remove {name}")
