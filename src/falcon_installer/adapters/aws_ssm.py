"""AWS SSM Parameter Store as an optional credential source.

On EC2 the API client id/secret may be stored as SSM parameters named
`FALCON_CLIENT_ID` / `FALCON_CLIENT_SECRET`. The instance role credentials
come from IMDSv2 and the `GetParameters` call is signed with SigV4 by hand,
so the installer needs no AWS SDK on the host.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path

import httpx
from pydantic import BaseModel, Field, ValidationError
from pydantic.config import ConfigDict

from falcon_installer.adapters.http_client import transport_errors
from falcon_installer.core.errors import InstallerError

logger = logging.getLogger(__name__)

IMDS_URL = "http://169.254.169.254"
IMDS_TOKEN_TTL_SECONDS = "21600"
SSM_TARGET = "AmazonSSM.GetParameters"
SSM_CONTENT_TYPE = "application/x-amz-json-1.1"
SIGNED_HEADERS = "content-type;host;x-amz-date;x-amz-security-token;x-amz-target"

_ASSET_TAG_RE = re.compile(r"^i-[a-z0-9]*$", re.MULTILINE)
_NOT_FOUND_RE = re.compile(r"not.*found", re.IGNORECASE)


class InstanceCredentials(BaseModel):
    """Temporary credentials of the instance IAM role."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    access_key_id: str = Field(..., alias="AccessKeyId")
    secret_access_key: str = Field(..., alias="SecretAccessKey", repr=False)
    token: str = Field(..., alias="Token", repr=False)
    region: str = Field(default="")


def is_aws_instance(
    *,
    sys_root: Path = Path("/sys"),
    client: httpx.Client | None = None,
) -> bool:
    """Best-effort EC2 detection: hypervisor uuid, DMI asset tag, then IMDS."""

    uuid_file = sys_root / "hypervisor" / "uuid"
    if uuid_file.is_file() and "ec2" in uuid_file.read_text(errors="replace").lower():
        return True

    asset_tag = sys_root / "devices" / "virtual" / "dmi" / "id" / "board_asset_tag"
    if asset_tag.is_file() and _ASSET_TAG_RE.search(asset_tag.read_text(errors="replace")):
        return True

    owns_client = client is None
    if client is None:
        client = httpx.Client(timeout=httpx.Timeout(5.0), trust_env=False)
    try:
        response = client.get(f"{IMDS_URL}/latest/dynamic/instance-identity/")
    except httpx.HTTPError as exc:
        logger.debug("Instance identity endpoint unreachable: %s", exc)
        return False
    finally:
        if owns_client:
            client.close()

    body = response.text.strip()
    return bool(body) and not _NOT_FOUND_RE.search(body)


def fetch_instance_credentials(imds: httpx.Client) -> InstanceCredentials:
    """Role credentials and region from the instance metadata service (IMDSv2)."""

    with transport_errors():
        token = imds.put(
            f"{IMDS_URL}/latest/api/token",
            headers={"X-aws-ec2-metadata-token-ttl-seconds": IMDS_TOKEN_TTL_SECONDS},
        ).text.strip()
        headers = {"X-aws-ec2-metadata-token": token}
        role = imds.get(
            f"{IMDS_URL}/latest/meta-data/iam/security-credentials/", headers=headers
        ).text.strip().splitlines()
        zone = imds.get(
            f"{IMDS_URL}/latest/meta-data/placement/availability-zone", headers=headers
        ).text.strip()
        if not role:
            raise InstallerError("No IAM role is attached to this instance")
        raw = imds.get(
            f"{IMDS_URL}/latest/meta-data/iam/security-credentials/{role[0]}",
            headers=headers,
        ).text

    try:
        creds = InstanceCredentials.model_validate_json(raw)
    except ValidationError as exc:
        raise InstallerError("Unable to read IAM role credentials from instance metadata") from exc
    return creds.model_copy(update={"region": zone[:-1]})


def _hmac(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def _sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def sign_ssm_request(
    creds: InstanceCredentials,
    body: bytes,
    *,
    now: datetime | None = None,
) -> dict[str, str]:
    """SigV4 headers for a `GetParameters` POST carrying `body`."""

    now = now or datetime.now(timezone.utc)
    amz_date = now.strftime("%Y%m%dT%H%M%SZ")
    date_stamp = now.strftime("%Y%m%d")
    host = f"ssm.{creds.region}.amazonaws.com"
    scope = f"{date_stamp}/{creds.region}/ssm/aws4_request"

    canonical_request = "\n".join(
        [
            "POST",
            "/",
            "",
            f"content-type:{SSM_CONTENT_TYPE}",
            f"host:{host}",
            f"x-amz-date:{amz_date}",
            f"x-amz-security-token:{creds.token}",
            f"x-amz-target:{SSM_TARGET}",
            "",
            SIGNED_HEADERS,
            _sha256_hex(body),
        ]
    )
    string_to_sign = "\n".join(
        [
            "AWS4-HMAC-SHA256",
            amz_date,
            scope,
            _sha256_hex(canonical_request.encode("utf-8")),
        ]
    )

    key = _hmac(f"AWS4{creds.secret_access_key}".encode("utf-8"), date_stamp)
    key = _hmac(key, creds.region)
    key = _hmac(key, "ssm")
    key = _hmac(key, "aws4_request")
    signature = hmac.new(key, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()

    return {
        "Authorization": (
            f"AWS4-HMAC-SHA256 Credential={creds.access_key_id}/{scope}, "
            f"SignedHeaders={SIGNED_HEADERS}, Signature={signature}"
        ),
        "Content-Type": SSM_CONTENT_TYPE,
        "X-Amz-Date": amz_date,
        "X-Amz-Security-Token": creds.token,
        "X-Amz-Target": SSM_TARGET,
    }


def get_ssm_parameter(
    name: str,
    *,
    imds: httpx.Client,
    ssm: httpx.Client,
    proxy: str | None = None,
    now: datetime | None = None,
) -> str:
    """Decrypted value of the SSM parameter `name`."""

    creds = fetch_instance_credentials(imds)
    body = json.dumps({"Names": [name], "WithDecryption": True}, separators=(",", ":")).encode()
    headers = sign_ssm_request(creds, body, now=now)

    logger.debug("Reading SSM parameter %s in %s", name, creds.region)
    with transport_errors(proxy):
        response = ssm.post(
            f"https://ssm.{creds.region}.amazonaws.com/", content=body, headers=headers
        )

    text = response.text
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if (
        not isinstance(payload, dict)
        or payload.get("InvalidParameters") != []
        or name not in text
    ):
        raise InstallerError(f"Unexpected response from AWS SSM Parameter Store: {text}")

    for parameter in payload.get("Parameters") or []:
        if isinstance(parameter, dict) and parameter.get("Name") == name:
            return str(parameter.get("Value", ""))
    raise InstallerError(f"Unexpected response from AWS SSM Parameter Store: {text}")
