"""Credential broker.

Two mutually exclusive paths lead to a `FalconSession`:
- a pre-issued bearer token (`FALCON_ACCESS_TOKEN`), which needs an
  explicit cloud because nothing can be discovered from it;
- an API client id/secret exchanged at the OAuth2 endpoint, where the
  region comes from the `X-CS-Region` response header when not configured.
"""

from __future__ import annotations

import logging
from typing import Callable

import httpx

from falcon_installer.adapters.aws_ssm import get_ssm_parameter, is_aws_instance
from falcon_installer.adapters.falcon_api import FalconApi
from falcon_installer.adapters.http_client import build_client
from falcon_installer.core.config import InstallerSettings
from falcon_installer.core.domain.cloud import FalconCloud
from falcon_installer.core.domain.models import ClientCredentials, FalconSession
from falcon_installer.core.errors import InstallerError

logger = logging.getLogger(__name__)

AwsProbe = Callable[[], bool]
ParameterLookup = Callable[[str], str]

API_CLIENTS_URL = "https://falcon.crowdstrike.com/support/api-clients-and-keys"


def _missing(var: str, what: str) -> InstallerError:
    return InstallerError(
        f"Missing {var} environment variable. Please provide your OAuth2 API Client {what} "
        "for authentication with CrowdStrike Falcon platform. Establishing and retrieving "
        f"OAuth2 API credentials can be performed at {API_CLIENTS_URL}."
    )


def ssm_parameter_lookup(settings: InstallerSettings) -> ParameterLookup:
    """Parameter reader bound to fresh IMDS and SSM clients."""

    def lookup(name: str) -> str:
        with httpx.Client(timeout=httpx.Timeout(5.0), trust_env=False) as imds, build_client(
            settings
        ) as ssm:
            return get_ssm_parameter(name, imds=imds, ssm=ssm, proxy=settings.proxy_url)

    return lookup


def resolve_client_credentials(
    settings: InstallerSettings,
    *,
    aws_probe: AwsProbe | None = None,
    parameter_lookup: ParameterLookup | None = None,
) -> ClientCredentials:
    """Client id/secret from the environment, else from SSM when on EC2."""

    client_id = settings.client_id
    client_secret = settings.client_secret
    if client_id and client_secret:
        return ClientCredentials(client_id=client_id, client_secret=client_secret)

    on_aws = (aws_probe or is_aws_instance)()
    lookup = parameter_lookup or ssm_parameter_lookup(settings)

    if not client_id:
        if not on_aws:
            raise _missing("FALCON_CLIENT_ID", "ID")
        logger.debug("Reading FALCON_CLIENT_ID from AWS SSM Parameter Store")
        client_id = lookup("FALCON_CLIENT_ID")
    if not client_secret:
        if not on_aws:
            raise _missing("FALCON_CLIENT_SECRET", "Secret")
        logger.debug("Reading FALCON_CLIENT_SECRET from AWS SSM Parameter Store")
        client_secret = lookup("FALCON_CLIENT_SECRET")

    if not client_id:
        raise _missing("FALCON_CLIENT_ID", "ID")
    if not client_secret:
        raise _missing("FALCON_CLIENT_SECRET", "Secret")
    return ClientCredentials(client_id=client_id, client_secret=client_secret)


def obtain_session(
    settings: InstallerSettings,
    client: httpx.Client,
    *,
    aws_probe: AwsProbe | None = None,
    parameter_lookup: ParameterLookup | None = None,
) -> FalconSession:
    """Bearer token and region for the rest of the run."""

    if settings.access_token:
        if settings.cloud is None:
            raise InstallerError(
                "If setting the FALCON_ACCESS_TOKEN manually, you must also specify the FALCON_CLOUD"
            )
        return FalconSession(token=settings.access_token, cloud=settings.cloud)

    credentials = resolve_client_credentials(
        settings, aws_probe=aws_probe, parameter_lookup=parameter_lookup
    )
    api = FalconApi(client, settings.cloud or FalconCloud.default(), proxy=settings.proxy_url)
    token = api.request_token(credentials.client_id, credentials.client_secret)
    hint = token.region_hint

    if settings.cloud is None:
        if not hint:
            raise InstallerError(
                "Unable to obtain region hint from CrowdStrike Falcon OAuth API, "
                "Please provide FALCON_CLOUD environment variable as an override."
            )
        return FalconSession(token=token.access_token, cloud=FalconCloud.parse(hint))

    if hint != settings.cloud.value:
        logger.warning(
            "FALCON_CLOUD='%s' environment variable specified while credentials only exists in '%s'",
            settings.cloud.value,
            hint or "",
        )
    # Without a hint there is nothing better than the configured region.
    if hint and hint != settings.cloud.value:
        return FalconSession(token=token.access_token, cloud=FalconCloud.parse(hint))

    return FalconSession(token=token.access_token, cloud=settings.cloud)
