"""Local sensor control: falconctl registration and service lifecycle."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from falcon_installer.adapters.package_manager import has_command
from falcon_installer.core.config import InstallerSettings
from falcon_installer.core.errors import InstallerError

logger = logging.getLogger(__name__)

FALCONCTL = Path("/opt/CrowdStrike/falconctl")
SERVICE_NAME = "falcon-sensor"


def build_falconctl_args(
    settings: InstallerSettings, cid: str, *, falconctl: Path = FALCONCTL
) -> list[str]:
    """Full falconctl command line for the configured options.

    The CID is always passed; every other flag only when its option is set.
    """

    args = [str(falconctl), "-s", "-f", f"--cid={cid}"]
    optional = (
        ("provisioning-token", settings.provisioning_token),
        ("tags", settings.tags),
        ("apd", settings.apd),
        ("aph", settings.aph),
        ("app", settings.app),
        ("billing", settings.billing),
        ("backend", settings.backend),
        ("trace", settings.trace),
    )
    args.extend(f"--{flag}={value}" for flag, value in optional if value)
    return args


def _redacted(args: list[str]) -> str:
    return " ".join(
        "--provisioning-token=***" if a.startswith("--provisioning-token=") else a
        for a in args
    )


def configure_sensor(args: list[str]) -> None:
    logger.debug("$ %s", _redacted(args))
    try:
        proc = subprocess.run(args, capture_output=True, text=True, check=False)
    except OSError as exc:
        raise InstallerError(f"Unable to run {args[0]}: {exc}") from exc
    if proc.returncode != 0:
        detail = (proc.stderr or proc.stdout or "").strip()
        raise InstallerError(
            f"falconctl exited with status {proc.returncode}" + (f": {detail}" if detail else "")
        )


def restart_sensor_service() -> None:
    if has_command("systemctl"):
        cmd = ["systemctl", "restart", SERVICE_NAME]
    elif has_command("service"):
        cmd = ["service", SERVICE_NAME, "restart"]
    else:
        raise InstallerError("Could not restart falcon sensor")

    logger.debug("$ %s", " ".join(cmd))
    proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
    if proc.returncode != 0:
        raise InstallerError(
            f"Could not restart falcon sensor: {(proc.stderr or '').strip() or proc.returncode}"
        )


def is_sensor_running() -> bool:
    try:
        proc = subprocess.run(
            ["pgrep", "-u", "root", SERVICE_NAME], capture_output=True, check=False
        )
    except OSError:
        return False
    return proc.returncode == 0
