"""httpx wrapper.

Why a wrapper:
- Standardizes timeouts, headers, redirects and the proxy for every call.
- Turns transport failures into the installer's fatal messages in one place.
- Eases testing: a `httpx.MockTransport` can be plugged in.
"""

from __future__ import annotations

import socket
from contextlib import contextmanager
from typing import Iterator

import httpx

from falcon_installer import __version__
from falcon_installer.core.config import InstallerSettings
from falcon_installer.core.errors import InstallerError

USER_AGENT = f"crowdstrike-falcon-scripts/{__version__}"


def build_client(
    settings: InstallerSettings | None = None,
    *,
    transport: httpx.BaseTransport | None = None,
    extra_headers: dict[str, str] | None = None,
) -> httpx.Client:
    """Create an `httpx.Client` with the installer defaults.

    Why a builder:
    - Centralizes the user agent, proxy and timeout so every request behaves the same.
    - Tests inject a transport instead of patching the network.
    """

    settings = settings or InstallerSettings()
    headers: dict[str, str] = {
        "User-Agent": USER_AGENT,
        "Accept": "application/json",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.Client(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        proxy=settings.proxy_url,
        # FALCON_APH/FALCON_APP are the only proxy source.
        trust_env=False,
        transport=transport,
    )


def _with_proxy_hint(message: str, proxy: str | None) -> str:
    if not proxy:
        return message
    return f"{message} A proxy was used to communicate ({proxy}). Please check your proxy settings."


_RESOLUTION_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "temporary failure in name resolution",
    "no address associated with hostname",
)


def _is_name_resolution_failure(exc: BaseException) -> bool:
    """True when `exc` (or anything it was raised from) is a DNS lookup failure."""

    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, socket.gaierror):
            return True
        if any(marker in str(current).lower() for marker in _RESOLUTION_MARKERS):
            return True
        current = current.__cause__ or current.__context__
    return False


def describe_transport_error(exc: httpx.TransportError, proxy: str | None = None) -> str:
    """Human readable guidance for a failed request."""

    # httpx reports an unresolvable proxy host as a plain ConnectError.
    if isinstance(exc, httpx.ProxyError) or (
        proxy and isinstance(exc, httpx.ConnectError) and _is_name_resolution_failure(exc)
    ):
        return (
            f"Couldn't resolve proxy. The address ({proxy}) of the given proxy host "
            "could not be resolved. Please check your proxy settings."
        )
    if isinstance(exc, httpx.TimeoutException):
        return _with_proxy_hint("Operation timed out.", proxy)
    if isinstance(exc, httpx.ConnectError):
        return _with_proxy_hint(
            "Failed to connect to host. Host found, but unable to open connection with host.",
            proxy,
        )
    return f"HTTP request failed: {exc}"


WRITE_FAILURE_MESSAGE = (
    "Failed writing received data to disk/destination. "
    "Please check the destination path and permissions."
)


@contextmanager
def transport_errors(proxy: str | None = None) -> Iterator[None]:
    """Re-raise httpx transport failures as `InstallerError`."""

    try:
        yield
    except httpx.TransportError as exc:
        raise InstallerError(describe_transport_error(exc, proxy)) from exc
