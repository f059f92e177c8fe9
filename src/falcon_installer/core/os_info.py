"""Host OS identification.

Reads the `/etc/*release` files (falling back to `lsb_release`, `rpm` and
`/etc/debian_version`) and maps what it finds onto the labels the Falcon
installer catalog understands. Unknown distributions and architectures are
fatal: there would be no installer to pick anyway.
"""

from __future__ import annotations

import logging
import platform
import re
import subprocess
from pathlib import Path
from typing import Callable, Sequence

from falcon_installer.core.domain.models import OSInfo
from falcon_installer.core.errors import InstallerError

logger = logging.getLogger(__name__)

CommandRunner = Callable[[Sequence[str]], str]

RHEL_FAMILY = ("CentOS", "Oracle", "RHEL", "Rocky", "AlmaLinux")

_API_OS_NAMES: dict[str, str] = {
    "Amazon": "Amazon Linux",
    **{name: "*RHEL*" for name in RHEL_FAMILY},
    "Debian": "Debian",
    "SLES": "SLES",
    "Ubuntu": "Ubuntu",
}

ARCH_FILTERS: dict[str, str] = {
    "x86_64": '+os_version:!~"arm64"+os_version:!~"zLinux"',
    "aarch64": '+os_version:~"arm64"',
    "s390x": '+os_version:~"zLinux"',
}

_NAME_REWRITES: tuple[tuple[str, str], ...] = (
    (r"Red Hat.*", "RHEL"),
    (r" Linux$", ""),
    (r" GNU/Linux$", ""),
    (r"Oracle.*", "Oracle"),
    (r"Amazon.*", "Amazon"),
)

_LEADING_DIGITS_RE = re.compile(r"^(\d+)")


def run_command(cmd: Sequence[str]) -> str:
    """Return the stripped stdout of `cmd`, or "" if it is missing or fails."""

    try:
        proc = subprocess.run(list(cmd), capture_output=True, text=True, check=False)
    except OSError as exc:
        logger.debug("%s unavailable: %s", cmd[0], exc)
        return ""
    if proc.returncode != 0:
        return ""
    return (proc.stdout or "").strip()


def read_release_lines(etc_dir: Path) -> list[str]:
    """Lines of every `*release` file under `etc_dir`, in shell glob order."""

    lines: list[str] = []
    for path in sorted(etc_dir.glob("*release")):
        if not path.is_file():
            continue
        try:
            lines.extend(path.read_text(encoding="utf-8", errors="replace").splitlines())
        except OSError as exc:
            logger.debug("Skipping %s: %s", path, exc)
    return lines


def _first_value(lines: Sequence[str], key: str) -> str:
    prefix = f"{key}="
    for line in lines:
        if line.startswith(prefix):
            first_field = line.split()[0]
            return first_field[len(prefix):].replace('"', "")
    return ""


def normalize_os_name(raw: str) -> str:
    """Collapse a release NAME into the short distribution label."""

    name = raw.replace('"', "").strip()
    for pattern, replacement in _NAME_REWRITES:
        name = re.sub(pattern, replacement, name)
    return name


def detect_os_name(lines: Sequence[str], runner: CommandRunner = run_command) -> str:
    name = ""
    for line in lines:
        if line.startswith("NAME="):
            name = normalize_os_name(line[len("NAME="):])
            break

    if not name:
        lsb_id = runner(["lsb_release", "-s", "-i"])
        if lsb_id.startswith("RedHat"):
            name = "RHEL"
        elif lsb_id:
            name = lsb_id

    if not name:
        raise InstallerError("Cannot recognise operating system")
    return name


def detect_os_version(
    lines: Sequence[str],
    etc_dir: Path,
    runner: CommandRunner = run_command,
) -> str:
    version = _first_value(lines, "VERSION_ID")

    if not version:
        rpm_version = runner(
            ["rpm", "-qf", str(etc_dir / "redhat-release"), "--queryformat", "%{VERSION}"]
        )
        match = _LEADING_DIGITS_RE.match(rpm_version)
        if match:
            version = match.group(1)

    if not version:
        debian_version = etc_dir / "debian_version"
        if debian_version.is_file():
            version = debian_version.read_text(encoding="utf-8").strip()

    if not version:
        lsb_release = runner(["lsb_release", "-r"])
        if lsb_release:
            version = lsb_release.split("\t", 1)[-1].strip()

    if not version:
        raise InstallerError("Could not determine distribution version")
    return version


def api_os_name(name: str) -> str:
    try:
        return _API_OS_NAMES[name]
    except KeyError:
        raise InstallerError(f"Unrecognized OS: {name}") from None


def api_os_version(name: str, version: str) -> str:
    """Major version as used by catalog queries.

    Amazon Linux 1 reports date-style versions (2017.09, 2018.03); those
    collapse to "1".
    """

    major = version.split(".")[0]
    if name == "Amazon" and major != "2" and major.isdigit() and int(major) <= 2018:
        return "1"
    return major


def arch_filter(arch: str) -> str:
    try:
        return ARCH_FILTERS[arch]
    except KeyError:
        raise InstallerError(f"Unrecognized OS architecture: {arch}") from None


def detect_os(
    *,
    etc_dir: Path = Path("/etc"),
    machine: str | None = None,
    runner: CommandRunner = run_command,
) -> OSInfo:
    """Identify the host and resolve the catalog labels for it."""

    lines = read_release_lines(etc_dir)
    name = detect_os_name(lines, runner)
    version = detect_os_version(lines, etc_dir, runner)
    arch = machine or platform.machine()

    info = OSInfo(
        name=name,
        version=version,
        major_version=api_os_version(name, version),
        arch=arch,
        api_os_name=api_os_name(name),
        arch_filter=arch_filter(arch),
    )
    logger.debug("Detected OS: %s", info)
    return info
