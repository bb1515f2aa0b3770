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
Generic OAuth2/OIDC identity-provider adapter configured with explicit endpoints.
"""

import httpx
from pydantic import ValidationError

from coreason_idp.config import CoreasonIdpConfig
from coreason_idp.exceptions import ConfigurationError
from coreason_idp.identity_resolver import IdentityResolver
from coreason_idp.login_url import build_login_url
from coreason_idp.models import EndpointSet, ProviderIdentity, SessionState
from coreason_idp.session_validator import SessionValidator
from coreason_idp.transport import DEFAULT_MAX_RESPONSE_BYTES


class OAuth2Provider:
    """
    Adapter for any provider exposing standard authorize, token and userinfo
    endpoints at explicitly configured URLs.
    """

    name = "OAuth2"

    def __init__(
        self,
        endpoints: EndpointSet,
        identity: ProviderIdentity,
        client: httpx.AsyncClient,
        use_embedded_claims: bool = True,
        max_response_bytes: int = DEFAULT_MAX_RESPONSE_BYTES,
    ) -> None:
        self.endpoints = endpoints
        self.identity = identity
        self._resolver = IdentityResolver(
            endpoints, client, use_embedded_claims=use_embedded_claims, max_response_bytes=max_response_bytes
        )
        self._validator = SessionValidator(endpoints, client, max_response_bytes=max_response_bytes)

    @classmethod
    def from_config(cls, config: CoreasonIdpConfig, client: httpx.AsyncClient) -> "OAuth2Provider":
        """
        Builds the adapter from configuration.

        Raises:
            ConfigurationError: If an endpoint is missing or invalid.
        """
        try:
            endpoints = EndpointSet(
                authorize_url=config.login_url,
                token_url=config.redeem_url,
                profile_url=config.profile_url,
                validate_url=config.validate_url,
                unsafe_local_dev=config.unsafe_local_dev,
            )
            identity = ProviderIdentity(
                client_id=config.client_id,
                scope=config.scope or "openid email",
                approval_prompt=config.approval_prompt,
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid OAuth2 provider configuration: {e}") from e

        return cls(
            endpoints,
            identity,
            client,
            use_embedded_claims=config.use_embedded_claims,
            max_response_bytes=config.max_response_bytes,
        )

    def get_login_url(self, redirect_uri: str, state: str) -> str:
        return build_login_url(self.endpoints, self.identity, redirect_uri, state)

    async def get_email_address(self, session: SessionState, timeout: float | None = None) -> str:
        return await self._resolver.resolve_email(session, timeout=timeout)

    async def validate_session_state(self, session: SessionState, timeout: float | None = None) -> bool:
        return await self._validator.validate_session(session, timeout=timeout)
