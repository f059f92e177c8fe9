from __future__ import annotations

import hashlib
import json
import socket
from pathlib import Path

import httpx
import pytest

from falcon_installer.adapters.falcon_api import FalconApi, build_installer_filter
from falcon_installer.adapters.http_client import USER_AGENT
from falcon_installer.core.domain.cloud import FalconCloud
from falcon_installer.core.domain.models import SensorInstaller
from falcon_installer.core.errors import InstallerError
from tests.conftest import mock_client

PACKAGE = b"not really an rpm"
PACKAGE_SHA = hashlib.sha256(PACKAGE).hexdigest()


def _api(handler, cloud: FalconCloud = FalconCloud.US_1, token: str | None = "tok") -> FalconApi:
    return FalconApi(mock_client(handler), cloud, token)


def test_request_token_returns_token_and_region() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            201,
            json={"access_token": "abc123", "expires_in": 1799},
            headers={"X-CS-Region": "US-2"},
        )

    token = _api(handler, token=None).request_token("id", "secret")

    assert token.access_token == "abc123"
    assert token.region_hint == "us-2"
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == "https://api.crowdstrike.com/oauth2/token"
    assert request.headers["User-Agent"] == USER_AGENT
    assert request.content == b"client_id=id&client_secret=secret"


def test_region_header_is_read_across_redirects() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "api.crowdstrike.com":
            return httpx.Response(
                308,
                headers={
                    "Location": "https://api.eu-1.crowdstrike.com/oauth2/token",
                    "X-CS-Region": "eu-1",
                },
            )
        return httpx.Response(201, json={"access_token": "abc"})

    token = _api(handler, token=None).request_token("id", "secret")

    assert token.region_hint == "eu-1"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(401, json={"errors": [{"message": "access denied"}]}),
        httpx.Response(201, json={"access_token": ""}),
        httpx.Response(500, text="oops"),
    ],
)
def test_request_token_without_token_is_fatal(response: httpx.Response) -> None:
    with pytest.raises(InstallerError, match="Unable to obtain CrowdStrike Falcon OAuth Token"):
        _api(lambda request: response, token=None).request_token("id", "secret")


def test_get_cid() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer tok"
        assert request.url.path == "/sensors/queries/installers/ccid/v1"
        return httpx.Response(200, json={"resources": ["ABCDEF0123456789-AB"]})

    assert _api(handler).get_cid() == "ABCDEF0123456789-AB"


def test_get_cid_empty_resources_is_fatal() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"resources": []})

    with pytest.raises(InstallerError, match="Unable to obtain CrowdStrike Falcon CID"):
        _api(handler).get_cid()


def test_authorization_failure_body_is_fatal() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"errors": [{"code": 403, "message": "access denied, authorization failed"}]})

    with pytest.raises(InstallerError, match=r"scope Sensor Download \[read\]"):
        _api(handler).get_cid()


def test_invalid_bearer_token_does_not_echo_token() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"errors": [{"message": "invalid bearer token"}]})

    with pytest.raises(InstallerError) as excinfo:
        _api(handler, token="super-secret").query_installers(
            os_name="Ubuntu", os_version="22", arch_filter=""
        )

    assert str(excinfo.value) == "Invalid Access Token"
    assert "super-secret" not in str(excinfo.value)


def test_query_installers_filter_and_sort() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "resources": [
                    {"sha256": "aaa", "file_type": "rpm", "version": "7.11", "extra": 1},
                    {"sha256": "bbb", "file_type": "rpm", "version": "7.10"},
                    {"name": "no checksum"},
                ]
            },
        )

    installers = _api(handler).query_installers(
        os_name="*RHEL*",
        os_version="8",
        arch_filter='+os_version:~"arm64"',
        sensor_version="7.10.0-1",
    )

    assert [i.sha256 for i in installers] == ["aaa", "bbb"]
    params = seen[0].url.params
    assert params["sort"] == "version|desc"
    assert params["filter"] == (
        'os:"*RHEL*"+os_version:"*8*"+version:"7.10.0-1"+os_version:~"arm64"'
    )


def test_build_installer_filter_without_version() -> None:
    fql = build_installer_filter(
        os_name="Ubuntu", os_version="22", arch_filter='+os_version:~"zLinux"'
    )

    assert fql == 'os:"Ubuntu"+os_version:"*22*"+os_version:~"zLinux"'


def _policy_response(request: httpx.Request) -> httpx.Response:
    assert request.url.params["filter"] == 'platform_name:"Linux"+name.raw:"pinned"'
    return httpx.Response(
        200,
        json={
            "resources": [
                {
                    "name": "pinned",
                    "settings": {
                        "sensor_version": "7.10.17706",
                        "variants": [{"platform": "LinuxArm64", "sensor_version": "7.10.17707"}],
                    },
                }
            ]
        },
    )


def test_policy_version_for_x86() -> None:
    assert _api(_policy_response).get_policy_sensor_version("pinned", "x86_64") == "7.10.17706"


def test_policy_version_for_arm_uses_variant() -> None:
    assert _api(_policy_response).get_policy_sensor_version("pinned", "aarch64") == "7.10.17707"


def test_unknown_policy_is_fatal() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"resources": []})

    with pytest.raises(InstallerError, match="Could not find a sensor update policy with name: nope"):
        _api(handler).get_policy_sensor_version("nope", "x86_64")


def test_policy_authorization_failure_names_policy_scope() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, text=json.dumps({"errors": [{"message": "authorization failed"}]}))

    with pytest.raises(InstallerError, match=r"scope Sensor update policies \[read\]"):
        _api(handler).get_policy_sensor_version("pinned", "x86_64")


def _download_handler(body: bytes = PACKAGE, status: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/sensors/entities/download-installer/v1"
        assert request.url.params["id"] == PACKAGE_SHA
        return httpx.Response(status, content=body)

    return handler


def test_download_installer_writes_verified_file(tmp_path: Path) -> None:
    installer = SensorInstaller(sha256=PACKAGE_SHA, file_type="rpm")

    target = _api(_download_handler(), FalconCloud.EU_1).download_installer(installer, tmp_path)

    assert target == tmp_path / "falcon-sensor.rpm"
    assert target.read_bytes() == PACKAGE


def test_download_checksum_mismatch_is_fatal(tmp_path: Path) -> None:
    installer = SensorInstaller(sha256=PACKAGE_SHA, file_type="deb")

    with pytest.raises(InstallerError, match="Checksum mismatch"):
        _api(_download_handler(b"tampered")).download_installer(installer, tmp_path)


def test_download_into_missing_directory_is_fatal(tmp_path: Path) -> None:
    installer = SensorInstaller(sha256=PACKAGE_SHA, file_type="rpm")

    with pytest.raises(InstallerError, match="Failed writing received data to disk/destination"):
        _api(_download_handler()).download_installer(installer, tmp_path / "missing")


def test_download_http_error_is_fatal(tmp_path: Path) -> None:
    installer = SensorInstaller(sha256=PACKAGE_SHA, file_type="rpm")

    with pytest.raises(InstallerError, match="HTTP 404"):
        _api(_download_handler(b"not found", 404)).download_installer(installer, tmp_path)


def test_connect_error_is_translated() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(InstallerError, match="Failed to connect to host"):
        _api(handler).get_cid()


def test_timeout_mentions_proxy() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    api = FalconApi(mock_client(handler), FalconCloud.US_1, "tok", proxy="http://proxy:3128")

    with pytest.raises(InstallerError) as excinfo:
        api.get_cid()

    assert "Operation timed out." in str(excinfo.value)
    assert "http://proxy:3128" in str(excinfo.value)


def test_unresolvable_proxy_is_reported_as_proxy_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        try:
            raise socket.gaierror(-2, "Name or service not known")
        except socket.gaierror as exc:
            raise httpx.ConnectError("[Errno -2] Name or service not known", request=request) from exc

    api = FalconApi(
        mock_client(handler), FalconCloud.US_1, "tok", proxy="http://nonexistent-proxy.invalid:3128"
    )

    with pytest.raises(InstallerError) as excinfo:
        api.get_cid()

    assert str(excinfo.value).startswith("Couldn't resolve proxy.")
    assert "http://nonexistent-proxy.invalid:3128" in str(excinfo.value)
