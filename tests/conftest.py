from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Callable, Iterable

import httpx
import pytest

from falcon_installer.adapters.http_client import build_client
from falcon_installer.core.config import InstallerSettings
from falcon_installer.core.domain.models import OSInfo
from falcon_installer.core.os_info import ARCH_FILTERS, api_os_name

_UNPREFIXED = ("GET_ACCESS_TOKEN", "ALLOW_LEGACY_CURL")


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Isolate every test from the caller's FALCON_* variables and .env files."""

    for key in list(os.environ):
        if key.startswith("FALCON_") or key in _UNPREFIXED:
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.chdir(tmp_path)


def make_settings(**values: object) -> InstallerSettings:
    return InstallerSettings(_env_file=None, **values)


def make_os(
    name: str = "RHEL",
    major: str = "8",
    arch: str = "x86_64",
    version: str | None = None,
) -> OSInfo:
    return OSInfo(
        name=name,
        version=version or f"{major}.0",
        major_version=major,
        arch=arch,
        api_os_name=api_os_name(name),
        arch_filter=ARCH_FILTERS[arch],
    )


def mock_client(
    handler: Callable[[httpx.Request], httpx.Response],
    settings: InstallerSettings | None = None,
) -> httpx.Client:
    return build_client(settings or make_settings(), transport=httpx.MockTransport(handler))


class CommandRecorder:
    """Stand-in for `subprocess.run` that records argv and fails on demand."""

    def __init__(self, failing: Iterable[str] = ()) -> None:
        self.calls: list[list[str]] = []
        self.envs: list[dict[str, str] | None] = []
        self.failing = set(failing)

    def __call__(self, cmd, *args, **kwargs) -> subprocess.CompletedProcess:
        argv = [str(part) for part in cmd]
        self.calls.append(argv)
        self.envs.append(kwargs.get("env"))
        code = 1 if argv[0] in self.failing else 0
        return subprocess.CompletedProcess(argv, code, stdout="", stderr="")

    def commands(self) -> list[str]:
        return [" ".join(call) for call in self.calls]
