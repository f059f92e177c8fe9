from __future__ import annotations

from pathlib import Path
from typing import Sequence

import pytest

from falcon_installer.core.errors import InstallerError
from falcon_installer.core.os_info import (
    api_os_version,
    arch_filter,
    detect_os,
    normalize_os_name,
)


def _etc(tmp_path: Path, files: dict[str, str]) -> Path:
    etc = tmp_path / "etc"
    etc.mkdir()
    for name, content in files.items():
        (etc / name).write_text(content, encoding="utf-8")
    return etc


def _runner(outputs: dict[str, str] | None = None):
    outputs = outputs or {}

    def run(cmd: Sequence[str]) -> str:
        return outputs.get(" ".join(cmd[:2]), "")

    return run


@pytest.mark.parametrize(
    ("os_release", "name", "api_name", "major"),
    [
        ('NAME="Ubuntu"\nVERSION_ID="22.04"\n', "Ubuntu", "Ubuntu", "22"),
        ('NAME="Debian GNU/Linux"\nVERSION_ID="12"\n', "Debian", "Debian", "12"),
        ('NAME="Red Hat Enterprise Linux"\nVERSION_ID="8.6"\n', "RHEL", "*RHEL*", "8"),
        ('NAME="CentOS Linux"\nVERSION_ID="7"\n', "CentOS", "*RHEL*", "7"),
        ('NAME="Rocky Linux"\nVERSION_ID="9.2"\n', "Rocky", "*RHEL*", "9"),
        ('NAME="AlmaLinux"\nVERSION_ID="9.3"\n', "AlmaLinux", "*RHEL*", "9"),
        ('NAME="Oracle Linux Server"\nVERSION_ID="8.8"\n', "Oracle", "*RHEL*", "8"),
        ('NAME="SLES"\nVERSION_ID="15.4"\n', "SLES", "SLES", "15"),
        ('NAME="Amazon Linux"\nVERSION_ID="2"\n', "Amazon", "Amazon Linux", "2"),
        ('NAME="Amazon Linux"\nVERSION_ID="2023"\n', "Amazon", "Amazon Linux", "2023"),
        ('NAME="Amazon Linux AMI"\nVERSION_ID="2018.03"\n', "Amazon", "Amazon Linux", "1"),
    ],
)
def test_detects_supported_distributions(
    tmp_path: Path, os_release: str, name: str, api_name: str, major: str
) -> None:
    etc = _etc(tmp_path, {"os-release": os_release})

    info = detect_os(etc_dir=etc, machine="x86_64", runner=_runner())

    assert info.name == name
    assert info.api_os_name == api_name
    assert info.major_version == major


def test_first_name_wins_across_release_files(tmp_path: Path) -> None:
    etc = _etc(
        tmp_path,
        {
            "lsb-release": "DISTRIB_ID=Ubuntu\n",
            "os-release": 'NAME="Ubuntu"\nVERSION_ID="20.04"\n',
            "system-release": "NAME=Other\n",
        },
    )

    info = detect_os(etc_dir=etc, machine="aarch64", runner=_runner())

    assert info.name == "Ubuntu"
    assert info.version == "20.04"


def test_falls_back_to_lsb_release_and_rpm(tmp_path: Path) -> None:
    etc = _etc(tmp_path, {"redhat-release": "Red Hat Enterprise Linux Server release 7.9\n"})
    runner = _runner({"lsb_release -s": "RedHatEnterpriseServer", "rpm -qf": "7Server"})

    info = detect_os(etc_dir=etc, machine="x86_64", runner=runner)

    assert info.name == "RHEL"
    assert info.version == "7"
    assert info.api_os_name == "*RHEL*"


def test_falls_back_to_debian_version(tmp_path: Path) -> None:
    etc = _etc(tmp_path, {"os-release": 'NAME="Debian GNU/Linux"\n', "debian_version": "11.7\n"})

    info = detect_os(etc_dir=etc, machine="x86_64", runner=_runner())

    assert info.version == "11.7"
    assert info.major_version == "11"


def test_unknown_system_is_fatal(tmp_path: Path) -> None:
    etc = _etc(tmp_path, {})

    with pytest.raises(InstallerError, match="Cannot recognise operating system"):
        detect_os(etc_dir=etc, machine="x86_64", runner=_runner())


def test_missing_version_is_fatal(tmp_path: Path) -> None:
    etc = _etc(tmp_path, {"os-release": 'NAME="Ubuntu"\n'})

    with pytest.raises(InstallerError, match="Could not determine distribution version"):
        detect_os(etc_dir=etc, machine="x86_64", runner=_runner())


def test_unsupported_distribution_is_fatal(tmp_path: Path) -> None:
    etc = _etc(tmp_path, {"os-release": 'NAME="Gentoo"\nVERSION_ID="2.14"\n'})

    with pytest.raises(InstallerError, match="Unrecognized OS: Gentoo"):
        detect_os(etc_dir=etc, machine="x86_64", runner=_runner())


@pytest.mark.parametrize(
    ("arch", "expected"),
    [
        ("x86_64", '+os_version:!~"arm64"+os_version:!~"zLinux"'),
        ("aarch64", '+os_version:~"arm64"'),
        ("s390x", '+os_version:~"zLinux"'),
    ],
)
def test_architecture_filters(arch: str, expected: str) -> None:
    assert arch_filter(arch) == expected


@pytest.mark.parametrize("arch", ["ppc64le", "i686", "armv7l"])
def test_unsupported_architecture_is_fatal(arch: str) -> None:
    with pytest.raises(InstallerError, match=f"Unrecognized OS architecture: {arch}"):
        arch_filter(arch)


def test_normalize_os_name() -> None:
    assert normalize_os_name('"Red Hat Enterprise Linux Server"') == "RHEL"
    assert normalize_os_name("Amazon Linux AMI") == "Amazon"
    assert normalize_os_name("Debian GNU/Linux") == "Debian"


def test_amazon_version_mapping_leaves_other_distributions_alone() -> None:
    assert api_os_version("Amazon", "2017.09") == "1"
    assert api_os_version("Amazon", "2") == "2"
    assert api_os_version("Ubuntu", "14.04") == "14"
