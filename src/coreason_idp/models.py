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
Data models for the coreason-idp package.
"""

from datetime import UTC, datetime
from typing import Any
from urllib.parse import urlsplit

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator


class EndpointSet(BaseModel):
    """
    The provider's authorize, token, profile and validate endpoints.

    This model is frozen (immutable): it is built once at configuration time and
    shared read-only by every request.

    Attributes:
        authorize_url (str): Where the user is redirected to log in.
        token_url (str): Where authorization codes are redeemed.
        profile_url (str): The userinfo endpoint queried for the user's email.
        validate_url (str): The endpoint queried to check a session. Defaults to profile_url.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Declared first so the URL validators can read it from ValidationInfo.
    unsafe_local_dev: bool = Field(default=False, exclude=True, repr=False)

    authorize_url: str
    token_url: str
    profile_url: str
    validate_url: str

    @model_validator(mode="before")
    @classmethod
    def default_validate_url(cls, data: Any) -> Any:
        """
        Falls back to the profile endpoint when no validate endpoint is given.
        """
        if isinstance(data, dict) and not data.get("validate_url"):
            data = {**data, "validate_url": data.get("profile_url")}
        return data

    @field_validator("authorize_url", "token_url", "profile_url", "validate_url")
    @classmethod
    def require_absolute_https(cls, v: str, info: ValidationInfo) -> str:
        """
        Ensures every endpoint is a non-empty absolute HTTPS URL.

        Raises:
            ValueError: If the URL is empty, relative, or not HTTPS outside local dev.
        """
        v = v.strip()
        if not v:
            raise ValueError(f"{info.field_name} must not be empty")

        parsed = urlsplit(v)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f"{info.field_name} must be an absolute URL, got '{v}'")

        allowed = {"https", "http"} if info.data.get("unsafe_local_dev", False) else {"https"}
        if parsed.scheme.lower() not in allowed:
            raise ValueError(
                f"{info.field_name} must use HTTPS. Set 'unsafe_local_dev=True' only for local testing."
            )
        return v

    @classmethod
    def for_domain(cls, domain: str, **overrides: Any) -> "EndpointSet":
        """
        Builds the conventional endpoint layout of a tenant domain
        (``/authorize``, ``/oauth/token``, ``/userinfo``).

        Args:
            domain: The provider hostname (e.g. my-tenant.auth0.com).
            **overrides: Explicit endpoint URLs replacing the defaults. ``None`` values are ignored.

        Returns:
            EndpointSet: The endpoint set for the domain.
        """
        base = f"https://{domain}"
        fields: dict[str, Any] = {
            "authorize_url": f"{base}/authorize",
            "token_url": f"{base}/oauth/token",
            "profile_url": f"{base}/userinfo",
        }
        fields.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**fields)


class ProviderIdentity(BaseModel):
    """
    The client registration presented to the provider.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    client_id: str = Field(..., min_length=1, description="The OAuth2 client identifier.")
    scope: str = Field(default="openid profile email", description="Space-delimited scopes to request.")
    approval_prompt: str = Field(default="force", description="Value sent as the approval_prompt parameter.")


class SessionState(BaseModel):
    """
    A proxy session as handed over by the session store.

    Owned by the session store; this package only reads it. Tokens and email
    are redacted from the string representation.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    access_token: str = ""
    id_token: str | None = None
    refresh_token: str | None = None
    expires_on: datetime | None = None
    email: str | None = None
    user: str | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        """
        Reports whether the session's expiry lies in the past.
        Sessions without an expiry never expire.
        """
        if self.expires_on is None:
            return False
        current = now or datetime.now(UTC)
        expires_on = self.expires_on
        if expires_on.tzinfo is None:
            expires_on = expires_on.replace(tzinfo=UTC)
        return expires_on < current

    def __repr__(self) -> str:
        # Credentials and PII MUST be redacted in __repr__
        return (
            f"SessionState(access_token={_redact(self.access_token)}, "
            f"id_token={_redact(self.id_token)}, "
            f"refresh_token={_redact(self.refresh_token)}, "
            f"expires_on={self.expires_on!r}, "
            f"email={_redact(self.email)}, "
            f"user={_redact(self.user)})"
        )

    def __str__(self) -> str:
        return self.__repr__()


class RemoteProfile(BaseModel):
    """
    The subset of the provider's userinfo document used by the resolver.
    """

    model_config = ConfigDict(extra="ignore")

    email: str = Field(default="", validation_alias=AliasChoices("email", "Email"))

    @field_validator("email", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v


def _redact(value: str | None) -> str:
    if value is None:
        return "None"
    return "'<REDACTED>'" if value else "''"
