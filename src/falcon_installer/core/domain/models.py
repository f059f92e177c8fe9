"""Domain models (Pydantic v2).

Why Pydantic here:
- API payloads are validated at the edge and reach the workflow as typed
  objects instead of loose dicts.
- `extra="ignore"` keeps the models stable when the Falcon API adds fields.

These models describe *what* the data is, not *how* it is fetched.
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from falcon_installer.core.domain.cloud import FalconCloud


class OSInfo(BaseModel):
    """Host operating system as seen by the installer."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(
        ...,
        min_length=1,
        description="Normalized distribution name (e.g. 'RHEL', 'Ubuntu', 'Amazon').",
    )
    version: str = Field(
        ...,
        min_length=1,
        description="Full distribution version as reported by the release files.",
    )
    major_version: str = Field(
        ...,
        min_length=1,
        description="Version label used in catalog queries (major version, '1' for Amazon Linux 1).",
    )
    arch: str = Field(
        ...,
        description="CPU architecture from uname (x86_64, aarch64, s390x).",
    )
    api_os_name: str = Field(
        ...,
        description="OS label understood by the installer catalog (e.g. '*RHEL*').",
    )
    arch_filter: str = Field(
        ...,
        description="FQL fragment selecting installers for this architecture.",
    )


class ClientCredentials(BaseModel):
    """OAuth2 API client pair."""

    client_id: str = Field(..., min_length=1)
    client_secret: str = Field(..., min_length=1, repr=False)


class OAuthToken(BaseModel):
    """Result of the OAuth2 token exchange."""

    access_token: str = Field(..., min_length=1, repr=False)
    region_hint: str | None = Field(
        default=None,
        description="Lower-cased X-CS-Region header, when the API sent one.",
    )


class FalconSession(BaseModel):
    """Bearer token plus the region it is valid for. Lives for one run."""

    token: str = Field(..., min_length=1, repr=False)
    cloud: FalconCloud


class SensorInstaller(BaseModel):
    """One entry of the installer catalog."""

    model_config = ConfigDict(extra="ignore")

    sha256: str = Field(..., min_length=1, description="Checksum, also the download id.")
    file_type: str = Field(..., min_length=1, description="Package extension (rpm, deb).")
    version: str = Field(default="")
    name: str = Field(default="")
    os: str = Field(default="")
    os_version: str = Field(default="")

    @property
    def filename(self) -> str:
        return f"falcon-sensor.{self.file_type.strip()}"


class SensorUpdatePolicyVariant(BaseModel):
    model_config = ConfigDict(extra="ignore")

    platform: str = Field(default="")
    sensor_version: str = Field(default="")


class SensorUpdatePolicySettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    sensor_version: str = Field(default="")
    variants: list[SensorUpdatePolicyVariant] = Field(default_factory=list)


class SensorUpdatePolicy(BaseModel):
    """Sensor update policy as returned by the combined policy query."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(default="")
    platform_name: str = Field(default="")
    settings: SensorUpdatePolicySettings = Field(default_factory=SensorUpdatePolicySettings)

    def sensor_versions(self) -> list[str]:
        """Pinned versions: the policy's own first, then each variant's."""

        versions = [self.settings.sensor_version]
        versions.extend(variant.sensor_version for variant in self.settings.variants)
        return [v.strip() for v in versions if v and v.strip()]
