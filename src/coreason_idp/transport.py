# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_idp

"""
HTTP plumbing shared by the identity resolver and the session validator:
an SSRF-safe transport and bounded JSON-over-HTTP helpers.
"""

import ipaddress
import json
import socket
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import anyio
import httpx

from coreason_idp.exceptions import InvalidResponseError, OversizedResponseError, SecurityError, TransportError
from coreason_idp.utils.logger import logger

DEFAULT_MAX_RESPONSE_BYTES = 1_000_000


class SafeHTTPTransport(httpx.AsyncHTTPTransport):
    """
    A secure HTTP transport that enforces DNS pinning to prevent SSRF/DNS Rebinding attacks.

    It resolves the hostname to an IP address, validates the IP against blocked ranges
    (private, loopback, link-local, reserved, multicast), and then forces the connection to
    that specific IP while preserving the original Host header and SNI for SSL verification.
    """

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        hostname = request.url.host

        # Literal IPs are validated as-is
        try:
            ip_obj = ipaddress.ip_address(hostname)
        except ValueError:
            ip_obj = None
        if ip_obj is not None:
            self._validate_ip(ip_obj, hostname)
            return await super().handle_async_request(request)

        try:
            addr_infos = await anyio.to_thread.run_sync(socket.getaddrinfo, hostname, None, 0, socket.SOCK_STREAM)
        except socket.gaierror as e:
            logger.error(f"DNS resolution failed for {hostname}: {e}")
            raise SecurityError(f"DNS resolution failed for {hostname}") from e

        # Connect only to the first resolved address that passes validation
        target_ip: str | None = None
        for _, _, _, _, sockaddr in addr_infos:
            try:
                self._validate_ip(ipaddress.ip_address(sockaddr[0]), hostname)
            except (SecurityError, ValueError):
                continue
            target_ip = str(sockaddr[0])
            break

        if not target_ip:
            logger.error(f"Security violation: No valid public IP found for {hostname}")
            raise SecurityError(f"Security violation: No valid public IP found for {hostname}")

        request.extensions["sni_hostname"] = hostname
        if "Host" not in request.headers:
            request.headers["Host"] = request.url.netloc.decode("ascii")
        request.url = request.url.copy_with(host=target_ip)

        logger.debug(f"DNS Pinned: {hostname} -> {target_ip}")
        return await super().handle_async_request(request)

    def _validate_ip(self, ip_obj: Any, hostname: str) -> None:
        """
        Validates an IP address object against blocked ranges.
        """
        if (
            ip_obj.is_private
            or ip_obj.is_loopback
            or ip_obj.is_link_local
            or ip_obj.is_reserved
            or ip_obj.is_multicast
        ):
            logger.warning(f"Security violation: Blocked access to {hostname} ({ip_obj})")
            raise SecurityError(f"SSRF Protection: Blocked access to {hostname} ({ip_obj})")


def bearer_headers(access_token: str) -> dict[str, str]:
    """
    Request headers presenting an access token to the provider.
    """
    return {
        "Accept": "application/json",
        "Authorization": f"Bearer {access_token}",
    }


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def redact_url(url: str) -> str:
    """Drops the query and fragment, which may carry credentials."""
    return urlunsplit(urlsplit(url)._replace(query="", fragment=""))


async def fetch(
    client: httpx.AsyncClient,
    url: str,
    *,
    method: str = "GET",
    headers: dict[str, str] | None = None,
    timeout: float | None = None,
    max_bytes: int = DEFAULT_MAX_RESPONSE_BYTES,
) -> tuple[int, bytes]:
    """
    Issues a single request and reads the body with a size cap. Never retries.

    Args:
        client: The async HTTP client.
        url: The absolute URL to request.
        method: The HTTP method.
        headers: Request headers.
        timeout: Deadline in seconds for this call. Defaults to the client's timeout.
        max_bytes: Maximum accepted body size.

    Returns:
        tuple[int, bytes]: The status code and the raw body.

    Raises:
        OversizedResponseError: If the body exceeds ``max_bytes``.
        TransportError: On any network failure.
    """
    request_timeout = timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT
    try:
        async with client.stream(method, url, headers=headers, timeout=request_timeout) as response:
            content_length = response.headers.get("Content-Length")
            if content_length and content_length.isdigit() and int(content_length) > max_bytes:
                raise OversizedResponseError(f"Response Content-Length {content_length} exceeds limit of {max_bytes}")

            body = bytearray()
            async for chunk in response.aiter_bytes():
                body.extend(chunk)
                if len(body) > max_bytes:
                    raise OversizedResponseError(f"Response size exceeds limit of {max_bytes} bytes")

            return response.status_code, bytes(body)
    except UnicodeEncodeError as e:
        # Header values must be ASCII
        raise TransportError(f"{method} {redact_url(url)} failed: request headers are not ASCII") from e
    except httpx.HTTPError as e:
        raise TransportError(f"{method} {redact_url(url)} failed: {e}") from e


async def request_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    method: str = "GET",
    headers: dict[str, str] | None = None,
    timeout: float | None = None,
    max_bytes: int = DEFAULT_MAX_RESPONSE_BYTES,
) -> Any:
    """
    Requests a JSON document from the provider.

    Returns:
        Any: The decoded JSON document.

    Raises:
        TransportError: On network failure or a non-2xx status.
        InvalidResponseError: If the body is not valid JSON.
        OversizedResponseError: If the body exceeds ``max_bytes``.
    """
    status_code, body = await fetch(
        client, url, method=method, headers=headers, timeout=timeout, max_bytes=max_bytes
    )
    if not is_success(status_code):
        snippet = body[:200].decode("utf-8", errors="replace")
        raise TransportError(f"got {status_code} from {redact_url(url)}: {snippet}")

    try:
        return json.loads(body)
    except ValueError as e:
        raise InvalidResponseError(f"Invalid JSON response from {redact_url(url)}: {e}") from e
