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
Configuration for the coreason-idp package.
"""

from enum import StrEnum
from typing import Any
from urllib.parse import urlparse

from pydantic import Field, SecretStr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from coreason_idp.exceptions import ConfigurationError


class ProviderKind(StrEnum):
    AUTH0 = "auth0"
    OAUTH2 = "oauth2"


DEFAULT_SCOPES = {
    ProviderKind.AUTH0: "openid profile email",
    ProviderKind.OAUTH2: "openid email",
}


class CoreasonIdpConfig(BaseSettings):
    """
    Configuration settings for coreason-idp.

    Attributes:
        provider (ProviderKind): Which provider adapter to build.
        client_id (str): The OAuth2 client identifier.
        client_secret (SecretStr | None): The client secret, kept for the code-redemption collaborator.
        domain (str | None): The provider tenant hostname (e.g. my-tenant.auth0.com). Required for auth0.
        login_url (str | None): Explicit authorize endpoint.
        redeem_url (str | None): Explicit token endpoint.
        profile_url (str | None): Explicit userinfo endpoint.
        validate_url (str | None): Explicit validate endpoint. Defaults to the profile endpoint.
        scope (str | None): Requested scopes. Defaults per provider.
        approval_prompt (str): The approval_prompt parameter value.
        use_embedded_claims (bool): Read the user identity from the token's ``sub`` claim when possible.
        http_timeout (float): Default timeout in seconds for all IdP network operations.
        max_response_bytes (int): Size cap of provider responses.
        unsafe_local_dev (bool): Allow plain HTTP endpoints and private addresses. Never in production.
    """

    model_config = SettingsConfigDict(
        env_prefix="COREASON_IDP_",
        case_sensitive=False,
    )

    provider: ProviderKind = ProviderKind.AUTH0
    client_id: str = Field(..., min_length=1)
    client_secret: SecretStr | None = None
    domain: str | None = None
    login_url: str | None = None
    redeem_url: str | None = None
    profile_url: str | None = None
    validate_url: str | None = None
    scope: str | None = None
    approval_prompt: str = "force"
    use_embedded_claims: bool = True
    http_timeout: float = Field(default=10.0, gt=0, description="Timeout in seconds for all IdP network operations.")
    max_response_bytes: int = Field(default=1_000_000, gt=0)
    unsafe_local_dev: bool = False

    @field_validator("domain")
    @classmethod
    def normalize_domain(cls, v: str | None) -> str | None:
        """
        Ensures domain is just the hostname (e.g. my-tenant.auth0.com).
        Strips scheme and path if present.
        """
        if v is None:
            return None
        v = v.strip().lower()
        if not v:
            return None
        if "://" not in v:
            v = f"https://{v}"

        parsed = urlparse(v)
        return parsed.netloc or v

    @model_validator(mode="after")
    def check_provider_requirements(self) -> "CoreasonIdpConfig":
        """
        Ensures the selected provider has every endpoint it needs.
        """
        if self.provider == ProviderKind.AUTH0 and not self.domain:
            raise ValueError("auth0 domain not set")

        if self.provider == ProviderKind.OAUTH2:
            missing = [
                name for name in ("login_url", "redeem_url", "profile_url") if not getattr(self, name)
            ]
            if missing:
                raise ValueError(f"oauth2 provider requires explicit endpoints: {', '.join(missing)}")

        if self.scope is None:
            self.scope = DEFAULT_SCOPES[self.provider]
        return self


def load_config(**overrides: Any) -> CoreasonIdpConfig:
    """
    Builds the configuration from the environment plus explicit overrides.

    Args:
        **overrides: Field values taking precedence over environment variables.

    Returns:
        CoreasonIdpConfig: The validated configuration.

    Raises:
        ConfigurationError: If a required setting is missing or invalid.
    """
    try:
        return CoreasonIdpConfig(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid identity provider configuration: {e}") from e
