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
The capability set every identity-provider adapter implements.
"""

from typing import Protocol, runtime_checkable

from coreason_idp.models import EndpointSet, ProviderIdentity, SessionState


@runtime_checkable
class IdentityProvider(Protocol):
    """
    An identity provider as seen by the proxy.

    Implementations are immutable once built and safe to share across requests.
    """

    name: str
    endpoints: EndpointSet
    identity: ProviderIdentity

    def get_login_url(self, redirect_uri: str, state: str) -> str:
        """Builds the authorization URL for a login attempt."""
        ...

    async def get_email_address(self, session: SessionState, timeout: float | None = None) -> str:
        """Resolves the email of the session's user. Raises on failure."""
        ...

    async def validate_session_state(self, session: SessionState, timeout: float | None = None) -> bool:
        """Reports whether the session's access token is still accepted. Never raises."""
        ...
