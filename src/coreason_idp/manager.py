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
IdentityProviderManager component: owns the HTTP client and exposes the
configured provider's operations, with a synchronous facade.
"""

from typing import Any

import anyio
import httpx
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

from coreason_idp.config import CoreasonIdpConfig
from coreason_idp.models import SessionState
from coreason_idp.providers import IdentityProvider, new_provider
from coreason_idp.transport import SafeHTTPTransport
from coreason_idp.utils.logger import logger


class IdentityProviderManagerAsync:
    """
    Async implementation of IdentityProviderManager (The Core).
    Handles resources via async context manager.
    """

    def __init__(
        self,
        config: CoreasonIdpConfig,
        client: httpx.AsyncClient | None = None,
        keepalive: bool = True,
    ) -> None:
        """
        Initialize the IdentityProviderManagerAsync.

        Args:
            config: The configuration object.
            client: External async client (optional). If not provided, a `SafeHTTPTransport` client is created.
            keepalive: Pool connections of the internal client. Disabled when calls run on short-lived loops.

        Raises:
            ConfigurationError: If the provider configuration is incomplete.
        """
        self.config = config
        self._internal_client = client is None

        if client:
            self._client = client
        else:
            limits = httpx.Limits() if keepalive else httpx.Limits(max_keepalive_connections=0)
            # Local development talks to private addresses, so the SSRF guard is off there
            if config.unsafe_local_dev:
                transport = httpx.AsyncHTTPTransport(limits=limits)
            else:
                transport = SafeHTTPTransport(limits=limits)
            self._client = httpx.AsyncClient(transport=transport, timeout=config.http_timeout)

        HTTPXClientInstrumentor().instrument_client(self._client)

        self.provider: IdentityProvider = new_provider(config, self._client)
        logger.info(f"Identity provider configured: {self.provider.name}")

    async def __aenter__(self) -> "IdentityProviderManagerAsync":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._internal_client:
            await self._client.aclose()

    def get_login_url(self, redirect_uri: str, state: str) -> str:
        """
        Builds the authorization URL for a login attempt.

        Args:
            redirect_uri: Absolute callback URL.
            state: Opaque anti-forgery token generated by the caller.

        Returns:
            str: The authorization URL.
        """
        return self.provider.get_login_url(redirect_uri, state)

    async def get_email_address(self, session: SessionState, timeout: float | None = None) -> str:
        """
        Resolves the email of the session's user.

        Raises:
            IdentityError: If the session has no token or no email can be found.
            TransportError: If the profile request fails.
        """
        return await self.provider.get_email_address(session, timeout=timeout)

    async def validate_session(self, session: SessionState, timeout: float | None = None) -> bool:
        """
        Reports whether the session's access token is still accepted. Never raises.
        """
        return await self.provider.validate_session_state(session, timeout=timeout)


class IdentityProviderManager:
    """
    Sync facade for IdentityProviderManagerAsync.

    Each call runs on its own event loop via ``anyio.run``, so it must not be
    used from inside a running event loop. Pooled connections cannot outlive
    their loop, hence the internal client does not keep them alive.
    """

    def __init__(self, config: CoreasonIdpConfig, client: httpx.AsyncClient | None = None) -> None:
        """
        Args:
            config: The configuration object.
            client: External async client (optional). Only a client without keep-alive is supported,
                e.g. one built with ``httpx.Limits(max_keepalive_connections=0)``; pooled connections
                of a borrowed client would be reused on a loop that has already closed.
        """
        self._async = IdentityProviderManagerAsync(config, client, keepalive=False)

    def __enter__(self) -> "IdentityProviderManager":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        anyio.run(self._async.__aexit__, exc_type, exc_val, exc_tb)

    def get_login_url(self, redirect_uri: str, state: str) -> str:
        return self._async.get_login_url(redirect_uri, state)

    def get_email_address(self, session: SessionState, timeout: float | None = None) -> str:
        return anyio.run(self._async.get_email_address, session, timeout)

    def validate_session(self, session: SessionState, timeout: float | None = None) -> bool:
        return anyio.run(self._async.validate_session, session, timeout)
