"""Falcon REST API calls used by the installer.

Only the handful of endpoints the install workflow needs: OAuth2 token,
CID lookup, sensor update policy query, installer catalog and installer
download. Response bodies mentioning an authorization failure or an invalid
bearer token are fatal regardless of the HTTP status.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Any

import httpx
from pydantic import ValidationError

from falcon_installer.adapters.http_client import WRITE_FAILURE_MESSAGE, transport_errors
from falcon_installer.core.domain.cloud import FalconCloud
from falcon_installer.core.domain.models import (
    OAuthToken,
    SensorInstaller,
    SensorUpdatePolicy,
)
from falcon_installer.core.errors import InstallerError

logger = logging.getLogger(__name__)

TOKEN_PATH = "/oauth2/token"
CCID_PATH = "/sensors/queries/installers/ccid/v1"
UPDATE_POLICY_PATH = "/policy/combined/sensor-update/v2"
INSTALLERS_PATH = "/sensors/combined/installers/v1"
DOWNLOAD_PATH = "/sensors/entities/download-installer/v1"

REGION_HEADER = "x-cs-region"

_AUTHORIZATION_FAILED = "authorization failed"
_INVALID_BEARER_TOKEN = "invalid bearer token"

_DOWNLOAD_CHUNK_SIZE = 64 * 1024


def build_installer_filter(
    *,
    os_name: str,
    os_version: str,
    arch_filter: str,
    sensor_version: str | None = None,
) -> str:
    """FQL filter for the installer catalog query."""

    fql = f'os:"{os_name}"+os_version:"*{os_version}*"'
    if sensor_version:
        fql += f'+version:"{sensor_version}"'
    return fql + arch_filter


def region_hint_from(response: httpx.Response) -> str | None:
    """First X-CS-Region header across the redirect chain, lower-cased."""

    for hop in [*response.history, response]:
        value = hop.headers.get(REGION_HEADER)
        if value:
            return value.strip().lower()
    return None


class FalconApi:
    """Thin client over the installer-related Falcon endpoints."""

    def __init__(
        self,
        client: httpx.Client,
        cloud: FalconCloud,
        token: str | None = None,
        *,
        proxy: str | None = None,
    ) -> None:
        self._client = client
        self.cloud = cloud
        self.token = token
        self._proxy = proxy

    @property
    def base_url(self) -> str:
        return self.cloud.base_url

    def _auth_headers(self) -> dict[str, str]:
        if not self.token:
            raise InstallerError("No Falcon API access token available")
        return {"Authorization": f"Bearer {self.token}"}

    def _check_body(self, text: str, access_denied: str) -> None:
        if _AUTHORIZATION_FAILED in text:
            raise InstallerError(access_denied)
        if _INVALID_BEARER_TOKEN in text:
            raise InstallerError("Invalid Access Token")

    def _get(self, path: str, params: dict[str, str] | None = None) -> httpx.Response:
        url = f"{self.base_url}{path}"
        logger.debug("GET %s params=%s", url, params)
        with transport_errors(self._proxy):
            return self._client.get(url, params=params, headers=self._auth_headers())

    def _json(self, response: httpx.Response, what: str) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError:
            raise InstallerError(
                f"Unexpected response from CrowdStrike Falcon API while querying {what} "
                f"(HTTP {response.status_code})"
            ) from None
        if not isinstance(payload, dict):
            raise InstallerError(f"Unexpected response from CrowdStrike Falcon API while querying {what}")
        return payload

    def request_token(self, client_id: str, client_secret: str) -> OAuthToken:
        """Exchange an API client id/secret for a bearer token."""

        url = f"{self.base_url}{TOKEN_PATH}"
        logger.debug("POST %s", url)
        with transport_errors(self._proxy):
            response = self._client.post(
                url,
                data={"client_id": client_id, "client_secret": client_secret},
                headers={"Content-Type": "application/x-www-form-urlencoded; charset=utf-8"},
            )

        token = ""
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict) and isinstance(payload.get("access_token"), str):
            token = payload["access_token"].strip()
        if not token:
            raise InstallerError(
                "Unable to obtain CrowdStrike Falcon OAuth Token. Double check your "
                "credentials and/or ensure you set the correct cloud region."
            )
        return OAuthToken(access_token=token, region_hint=region_hint_from(response))

    def get_cid(self) -> str:
        response = self._get(CCID_PATH)
        self._check_body(
            response.text,
            "Access denied: Please make sure that your Falcon API credentials allow "
            "sensor download (scope Sensor Download [read])",
        )
        resources: list[Any] = []
        if response.text.strip():
            resources = self._json(response, "the CID").get("resources") or []
        cid = str(resources[0]).strip() if resources else ""
        if not cid:
            raise InstallerError(
                f"Unable to obtain CrowdStrike Falcon CID. Response was {response.text.strip()}"
            )
        return cid

    def get_policy_sensor_version(self, policy_name: str, arch: str) -> str:
        """Sensor version pinned by the named Linux sensor update policy."""

        response = self._get(
            UPDATE_POLICY_PATH,
            params={"filter": f'platform_name:"Linux"+name.raw:"{policy_name}"'},
        )
        self._check_body(
            response.text,
            "Access denied: Please make sure that your Falcon API credentials allow "
            "access to sensor update policies (scope Sensor update policies [read])",
        )

        versions: list[str] = []
        for raw in self._json(response, "sensor update policies").get("resources") or []:
            try:
                versions.extend(SensorUpdatePolicy.model_validate(raw).sensor_versions())
            except ValidationError:
                logger.debug("Ignoring malformed sensor update policy: %s", raw)
        if not versions:
            raise InstallerError(
                f"Could not find a sensor update policy with name: {policy_name}"
            )

        # The arm64 variant follows the policy's own version.
        if len(versions) > 1 and arch == "aarch64":
            return versions[1]
        return versions[0]

    def query_installers(
        self,
        *,
        os_name: str,
        os_version: str,
        arch_filter: str,
        sensor_version: str | None = None,
    ) -> list[SensorInstaller]:
        """Catalog entries for this OS, newest first."""

        fql = build_installer_filter(
            os_name=os_name,
            os_version=os_version,
            arch_filter=arch_filter,
            sensor_version=sensor_version,
        )
        response = self._get(INSTALLERS_PATH, params={"sort": "version|desc", "filter": fql})
        self._check_body(
            response.text,
            "Access denied: Please make sure that your Falcon API credentials allow "
            "sensor download (scope Sensor Download [read])",
        )

        installers: list[SensorInstaller] = []
        for raw in self._json(response, "sensor installers").get("resources") or []:
            try:
                installers.append(SensorInstaller.model_validate(raw))
            except ValidationError:
                logger.debug("Ignoring malformed installer entry: %s", raw)
        return installers

    def download_installer(self, installer: SensorInstaller, destination_dir: Path) -> Path:
        """Stream the installer into `destination_dir` and verify its checksum."""

        target = destination_dir / installer.filename
        url = f"{self.base_url}{DOWNLOAD_PATH}"
        logger.debug("Downloading installer %s to %s", installer.sha256, target)

        digest = hashlib.sha256()
        with transport_errors(self._proxy):
            with self._client.stream(
                "GET", url, params={"id": installer.sha256}, headers=self._auth_headers()
            ) as response:
                if response.status_code >= 400:
                    body = response.read().decode("utf-8", errors="replace")
                    self._check_body(
                        body,
                        "Access denied: Please make sure that your Falcon API credentials "
                        "allow sensor download (scope Sensor Download [read])",
                    )
                    raise InstallerError(
                        f"Failed to download sensor installer {installer.sha256} "
                        f"(HTTP {response.status_code})"
                    )
                try:
                    with target.open("wb") as fh:
                        for chunk in response.iter_bytes(_DOWNLOAD_CHUNK_SIZE):
                            fh.write(chunk)
                            digest.update(chunk)
                except OSError as exc:
                    raise InstallerError(WRITE_FAILURE_MESSAGE) from exc

        if digest.hexdigest().lower() != installer.sha256.strip().lower():
            raise InstallerError(
                f"Checksum mismatch for downloaded installer {target} "
                f"(expected {installer.sha256})"
            )
        return target
