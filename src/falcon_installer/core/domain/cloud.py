"""Falcon cloud regions.

Kept in the domain layer so config, the credential broker and the API
adapter share one mapping from region name to API host.
"""

from __future__ import annotations

from enum import Enum

from falcon_installer.core.errors import InstallerError


class FalconCloud(str, Enum):
    """Cloud regions a Falcon tenant can live in."""

    US_1 = "us-1"
    US_2 = "us-2"
    EU_1 = "eu-1"
    US_GOV_1 = "us-gov-1"

    @classmethod
    def default(cls) -> "FalconCloud":
        """Region used to start auto-discovery when none is configured."""

        return cls.US_1

    @classmethod
    def parse(cls, value: str) -> "FalconCloud":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise InstallerError(f"Unrecognized Falcon Cloud: {value}") from None

    @classmethod
    def choices(cls) -> list[str]:
        return [member.value for member in cls]

    @property
    def api_host(self) -> str:
        return _API_HOSTS[self]

    @property
    def base_url(self) -> str:
        return f"https://{self.api_host}"


_API_HOSTS: dict[FalconCloud, str] = {
    FalconCloud.US_1: "api.crowdstrike.com",
    FalconCloud.US_2: "api.us-2.crowdstrike.com",
    FalconCloud.EU_1: "api.eu-1.crowdstrike.com",
    FalconCloud.US_GOV_1: "api.laggar.gcw.crowdstrike.com",
}
