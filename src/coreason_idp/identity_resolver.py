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
IdentityResolver component for resolving a session's user email.
"""

import httpx
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from pydantic import ValidationError

from coreason_idp.claims import extract_subject_claim
from coreason_idp.exceptions import (
    ClaimExtractionError,
    CoreasonIdpError,
    InvalidResponseError,
    MissingTokenError,
    NoEmailError,
)
from coreason_idp.models import EndpointSet, RemoteProfile, SessionState
from coreason_idp.transport import DEFAULT_MAX_RESPONSE_BYTES, bearer_headers, request_json
from coreason_idp.utils.logger import logger

tracer = trace.get_tracer(__name__)


class IdentityResolver:
    """
    Resolves the canonical email of an authenticated session.

    The subject embedded in a structured access token is used when present,
    saving a round trip; otherwise the provider's profile endpoint is queried.
    The embedded subject is taken as the email, which only holds for providers
    that issue email-shaped subjects.

    Attributes:
        endpoints (EndpointSet): The provider endpoints.
        use_embedded_claims (bool): Whether to try the offline claim first.
    """

    def __init__(
        self,
        endpoints: EndpointSet,
        client: httpx.AsyncClient,
        use_embedded_claims: bool = True,
        max_response_bytes: int = DEFAULT_MAX_RESPONSE_BYTES,
    ) -> None:
        """
        Initialize the IdentityResolver.

        Args:
            endpoints: The provider endpoints.
            client: The async HTTP client used for the profile lookup.
            use_embedded_claims: Try the token's ``sub`` claim before the network. Defaults to True.
            max_response_bytes: Size cap of the profile response body.
        """
        self.endpoints = endpoints
        self.client = client
        self.use_embedded_claims = use_embedded_claims
        self.max_response_bytes = max_response_bytes

    async def resolve_email(self, session: SessionState, timeout: float | None = None) -> str:
        """
        Returns the email of the session's user.

        Args:
            session: The session holding the access token.
            timeout: Deadline in seconds for the profile request, if one is made.

        Returns:
            str: The user's email.

        Raises:
            MissingTokenError: If the session has no access token. No request is made.
            NoEmailError: If the profile response carries no email.
            TransportError: On network failure or a non-2xx profile response.
        """
        if not session.access_token:
            raise MissingTokenError("missing access token")

        with tracer.start_as_current_span("idp.resolve_email") as span:
            if self.use_embedded_claims:
                try:
                    subject = extract_subject_claim(session.access_token)
                    span.set_attribute("idp.identity_source", "token_claim")
                    return subject
                except ClaimExtractionError as e:
                    logger.debug(f"No embedded subject claim ({type(e).__name__}); querying profile endpoint")

            span.set_attribute("idp.identity_source", "profile_endpoint")
            try:
                email = await self._fetch_profile_email(session.access_token, timeout)
            except CoreasonIdpError as e:
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, str(e)))
                raise
            return email

    async def _fetch_profile_email(self, access_token: str, timeout: float | None) -> str:
        data = await request_json(
            self.client,
            self.endpoints.profile_url,
            headers=bearer_headers(access_token),
            timeout=timeout,
            max_bytes=self.max_response_bytes,
        )
        if not isinstance(data, dict):
            raise InvalidResponseError(f"Profile response from {self.endpoints.profile_url} is not a JSON object")

        try:
            profile = RemoteProfile.model_validate(data)
        except ValidationError as e:
            raise InvalidResponseError(f"Invalid profile response: {e}") from e

        if not profile.email:
            raise NoEmailError("no email")
        return profile.email
