"""Installer configuration.

Why here:
- Centralizes the recognized environment variables (pydantic-settings)
  without leaking env parsing into the CLI or the adapters.
- Validation happens once, at startup, before any network or process call.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from falcon_installer.core.domain.cloud import FalconCloud
from falcon_installer.core.errors import InstallerError

APP_DIR_NAME = "falcon-linux-installer"

APD_CHOICES = ("true", "false")
BILLING_CHOICES = ("default", "metered")
BACKEND_CHOICES = ("auto", "bpf", "kernel")
TRACE_CHOICES = ("none", "err", "warn", "info", "debug")

MAX_SENSOR_VERSION_DECREMENT = 5

# Recognized without the FALCON_ prefix.
_UNPREFIXED_VARS = ("GET_ACCESS_TOKEN", "ALLOW_LEGACY_CURL")

_DIGITS_RE = re.compile(r"^[0-9]+$")


def get_user_config_dir() -> Path:
    """Per-user configuration directory (XDG aware)."""

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / APP_DIR_NAME
    return Path.home() / ".config" / APP_DIR_NAME


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


_ENV_FILE_HEADER = "# falcon-linux-installer user config (.env)"


def _is_installer_var(key: str) -> bool:
    return key.startswith("FALCON_") or key in _UNPREFIXED_VARS


def _split_env_file(text: str) -> tuple[list[str], dict[str, str]]:
    """Separate installer assignments from everything else in a .env file.

    Comments, blank lines and foreign variables are returned untouched so a
    rewrite does not lose them; `export KEY=value` is accepted like the shell.
    """

    other: list[str] = []
    installer: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if line == _ENV_FILE_HEADER:
            continue
        assignment = line.removeprefix("export ").lstrip()
        key, sep, value = assignment.partition("=")
        key = key.strip()
        if line.startswith("#") or not sep or not _is_installer_var(key):
            other.append(raw_line)
            continue
        installer[key] = value.strip().strip('"').strip("'")
    while other and not other[-1].strip():
        other.pop()
    return other, installer


def write_user_env_vars(values: dict[str, str | None]) -> Path:
    """Write or update installer variables in the per-user .env file.

    Only `FALCON_*` (and the two unprefixed switches) may be written. The
    file may hold an API client secret, so it is kept owner-readable only.
    """

    unknown = sorted(k for k in values if not _is_installer_var(k))
    if unknown:
        raise ValueError(f"Not installer variables: {', '.join(unknown)}")

    env_path = get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    other: list[str] = []
    installer: dict[str, str] = {}
    if env_path.exists():
        other, installer = _split_env_file(env_path.read_text(encoding="utf-8"))

    installer.update({k: v for k, v in values.items() if v is not None})

    lines = [_ENV_FILE_HEADER, *other]
    lines.extend(f"{key}={installer[key]}" for key in sorted(installer))
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    env_path.chmod(0o600)
    return env_path


def _one_of(name: str, value: object, choices: tuple[str, ...]) -> object:
    if value is None:
        return value
    if isinstance(value, FalconCloud):
        value = value.value
    if value not in choices:
        raise ValueError(
            f"Unrecognized {name}: {value} value must be one of : [{'|'.join(choices)}]"
        )
    return value


class InstallerSettings(BaseSettings):
    """Configuration snapshot for one installer run.

    Field names map to `FALCON_<NAME>` environment variables; the two legacy
    switches without the prefix are bound through aliases.
    """

    model_config = SettingsConfigDict(
        env_prefix="FALCON_",
        extra="ignore",
        case_sensitive=False,
        env_ignore_empty=True,
        populate_by_name=True,
        frozen=True,
        # Project first (dev), then the per-user config file.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    # Authentication
    client_id: str | None = Field(default=None, description="OAuth2 API client ID.")
    client_secret: str | None = Field(
        default=None, repr=False, description="OAuth2 API client secret."
    )
    access_token: str | None = Field(
        default=None,
        repr=False,
        description="Pre-issued API bearer token. Requires `cloud`.",
    )
    cloud: FalconCloud | None = Field(
        default=None,
        description="Cloud region of the Falcon tenant; discovered when unset.",
    )

    # Sensor selection and registration
    cid: str | None = Field(
        default=None,
        description="Customer ID; looked up with the API credentials when unset.",
    )
    sensor_version_decrement: int = Field(
        default=0,
        ge=0,
        le=MAX_SENSOR_VERSION_DECREMENT,
        description="How many releases before the latest to install (0 = latest).",
    )
    provisioning_token: str | None = Field(default=None, repr=False)
    sensor_update_policy_name: str | None = Field(
        default=None,
        description="Sensor update policy whose pinned version should be installed.",
    )
    tags: str | None = Field(default=None, description="Comma separated sensor grouping tags.")
    apd: Literal["true", "false"] | None = Field(
        default=None, description="Disable (true) or enable (false) the sensor proxy."
    )
    aph: str | None = Field(default=None, description="Proxy host used by the sensor.")
    app: str | None = Field(default=None, description="Proxy port used by the sensor.")
    billing: Literal["default", "metered"] | None = Field(default=None)
    backend: Literal["auto", "bpf", "kernel"] | None = Field(default=None)
    trace: Literal["none", "err", "warn", "info", "debug"] | None = Field(default=None)

    # Workflow switches
    uninstall: bool = Field(default=False, description="Remove the sensor and exit.")
    install_only: bool = Field(
        default=False, description="Install without registering or restarting."
    )
    download_only: bool = Field(default=False, description="Download the package and exit.")
    download_path: Path | None = Field(
        default=None, description="Destination directory for `download_only` (default: cwd)."
    )
    get_access_token: bool = Field(
        default=False,
        validation_alias="GET_ACCESS_TOKEN",
        description="Print an API access token and exit.",
    )
    allow_legacy_curl: bool = Field(
        default=False,
        validation_alias="ALLOW_LEGACY_CURL",
        description="Accepted for compatibility with the shell installer; no effect.",
    )

    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout per HTTP request (seconds).",
    )

    @field_validator("cloud", mode="before")
    @classmethod
    def _check_cloud(cls, value: object) -> object:
        return _one_of("CLOUD", value, tuple(FalconCloud.choices()))

    @field_validator("apd", mode="before")
    @classmethod
    def _check_apd(cls, value: object) -> object:
        return _one_of("APD", value, APD_CHOICES)

    @field_validator("billing", mode="before")
    @classmethod
    def _check_billing(cls, value: object) -> object:
        return _one_of("BILLING", value, BILLING_CHOICES)

    @field_validator("backend", mode="before")
    @classmethod
    def _check_backend(cls, value: object) -> object:
        return _one_of("BACKEND", value, BACKEND_CHOICES)

    @field_validator("trace", mode="before")
    @classmethod
    def _check_trace(cls, value: object) -> object:
        return _one_of("TRACE", value, TRACE_CHOICES)

    @field_validator("sensor_version_decrement", mode="before")
    @classmethod
    def _check_decrement(cls, value: object) -> object:
        text = str(value)
        if not _DIGITS_RE.match(text) or int(text) > MAX_SENSOR_VERSION_DECREMENT:
            raise ValueError(
                "The FALCON_SENSOR_VERSION_DECREMENT must be an integer greater than or "
                f'equal to 0 or less than {MAX_SENSOR_VERSION_DECREMENT}. '
                f'FALCON_SENSOR_VERSION_DECREMENT: "{value}"'
            )
        return int(text)

    @property
    def proxy_url(self) -> str | None:
        """Proxy URL derived from `aph`/`app`, or None when no proxy is set."""

        if not self.aph:
            return None
        proxy = re.sub(r"http.*://", "", self.aph, count=1)
        if self.app:
            proxy = f"{proxy}:{self.app}"
        proxy = re.sub(r"[\'\"]", "", proxy)
        if not proxy:
            return None
        return f"http://{proxy}"


def load_settings(**overrides: object) -> InstallerSettings:
    """Build `InstallerSettings`, converting validation failures into `InstallerError`."""

    try:
        return InstallerSettings(**overrides)
    except ValidationError as exc:
        raise InstallerError(_format_validation_error(exc)) from exc


def _format_validation_error(exc: ValidationError) -> str:
    messages: list[str] = []
    for error in exc.errors():
        ctx = error.get("ctx") or {}
        inner = ctx.get("error")
        if isinstance(inner, Exception):
            messages.append(str(inner))
            continue
        name = ".".join(str(part) for part in error.get("loc", ())).upper()
        if name not in _UNPREFIXED_VARS:
            name = f"FALCON_{name}"
        messages.append(f"Invalid {name}: {error.get('msg')}")
    return "; ".join(messages) or "Invalid configuration"
