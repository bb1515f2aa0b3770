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
SessionValidator component for re-checking a session's access token against the provider.
"""

from urllib.parse import urlencode

import httpx
from opentelemetry import trace

from coreason_idp.models import EndpointSet, SessionState
from coreason_idp.transport import DEFAULT_MAX_RESPONSE_BYTES, bearer_headers, fetch, is_success
from coreason_idp.utils.logger import logger

tracer = trace.get_tracer(__name__)


async def validate_token(
    client: httpx.AsyncClient,
    validate_url: str | None,
    access_token: str,
    headers: dict[str, str] | None = None,
    timeout: float | None = None,
    max_bytes: int = DEFAULT_MAX_RESPONSE_BYTES,
) -> bool:
    """
    Asks the provider's validate endpoint whether an access token is accepted.

    When no headers are supplied the token is sent as an ``access_token``
    query parameter instead.

    Args:
        client: The async HTTP client.
        validate_url: The validate endpoint. ``None`` means validation is unsupported.
        access_token: The token to check.
        headers: Request headers, usually from :func:`bearer_headers`.
        timeout: Deadline in seconds for this call.
        max_bytes: Size cap of the response body.

    Returns:
        bool: True only if the endpoint answered with a 2xx status.
    """
    if not access_token or not validate_url:
        return False

    endpoint = validate_url
    if not headers:
        separator = "&" if "?" in endpoint else "?"
        endpoint = f"{endpoint}{separator}{urlencode({'access_token': access_token})}"

    try:
        status_code, _ = await fetch(client, endpoint, headers=headers, timeout=timeout, max_bytes=max_bytes)
    except Exception as e:
        logger.debug(f"Token validation request to {validate_url} failed: {e}")
        return False

    if is_success(status_code):
        return True

    logger.debug(f"Token validation request to {validate_url} failed: status {status_code}")
    return False


class SessionValidator:
    """
    Decides whether a session is still usable. All failures collapse to False.
    """

    def __init__(
        self,
        endpoints: EndpointSet,
        client: httpx.AsyncClient,
        max_response_bytes: int = DEFAULT_MAX_RESPONSE_BYTES,
    ) -> None:
        self.endpoints = endpoints
        self.client = client
        self.max_response_bytes = max_response_bytes

    async def validate_session(self, session: SessionState, timeout: float | None = None) -> bool:
        """
        Checks the session's access token against the validate endpoint.

        Args:
            session: The session to check.
            timeout: Deadline in seconds for the request.

        Returns:
            bool: True if the provider accepted the token, False otherwise.
        """
        with tracer.start_as_current_span("idp.validate_session") as span:
            valid = await validate_token(
                self.client,
                self.endpoints.validate_url,
                session.access_token,
                headers=bearer_headers(session.access_token),
                timeout=timeout,
                max_bytes=self.max_response_bytes,
            )
            span.set_attribute("idp.session_valid", valid)
            return valid
