# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_idp

from collections.abc import Callable
from typing import Any
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from coreason_idp.config import CoreasonIdpConfig, ProviderKind, load_config
from coreason_idp.exceptions import ConfigurationError, MissingTokenError
from coreason_idp.models import SessionState
from coreason_idp.providers import PROVIDERS, Auth0Provider, IdentityProvider, OAuth2Provider, new_provider

from conftest import StubIdP


@pytest.fixture
def auth0_config() -> CoreasonIdpConfig:
    return load_config(provider="auth0", domain="tenant.auth0.com", client_id="proxy-client")


@pytest.fixture
def oauth2_config() -> CoreasonIdpConfig:
    return load_config(
        provider="oauth2",
        client_id="proxy-client",
        login_url="https://idp.example/oauth2/authorize",
        redeem_url="https://idp.example/oauth2/token",
        profile_url="https://idp.example/oauth2/userinfo",
    )


def test_registry_covers_every_provider_kind() -> None:
    assert set(PROVIDERS) == set(ProviderKind)


def test_auth0_provider_from_config(auth0_config: CoreasonIdpConfig, client: httpx.AsyncClient) -> None:
    provider = new_provider(auth0_config, client)

    assert isinstance(provider, Auth0Provider)
    assert isinstance(provider, IdentityProvider)
    assert provider.name == "Auth0"
    assert provider.endpoints.authorize_url == "https://tenant.auth0.com/authorize"
    assert provider.endpoints.token_url == "https://tenant.auth0.com/oauth/token"
    assert provider.endpoints.profile_url == "https://tenant.auth0.com/userinfo"
    assert provider.endpoints.validate_url == provider.endpoints.profile_url
    assert provider.identity.scope == "openid profile email"


def test_auth0_login_url(auth0_config: CoreasonIdpConfig, client: httpx.AsyncClient) -> None:
    provider = new_provider(auth0_config, client)

    parts = urlsplit(provider.get_login_url("https://app.example/oauth2/callback", "abc123"))
    query = parse_qs(parts.query)
    assert parts.netloc == "tenant.auth0.com"
    assert parts.path == "/authorize"
    assert query["client_id"] == ["proxy-client"]
    assert query["state"] == ["abc123"]
    assert query["scope"] == ["openid profile email"]


def test_auth0_endpoint_overrides(client: httpx.AsyncClient) -> None:
    config = load_config(
        domain="tenant.auth0.com",
        client_id="c",
        profile_url="https://tenant.auth0.com/api/v2/me",
        validate_url="https://tenant.auth0.com/tokeninfo",
    )
    provider = new_provider(config, client)

    assert provider.endpoints.profile_url == "https://tenant.auth0.com/api/v2/me"
    assert provider.endpoints.validate_url == "https://tenant.auth0.com/tokeninfo"
    assert provider.endpoints.authorize_url == "https://tenant.auth0.com/authorize"


def test_auth0_requires_domain(oauth2_config: CoreasonIdpConfig, client: httpx.AsyncClient) -> None:
    with pytest.raises(ConfigurationError, match="auth0 domain not set"):
        Auth0Provider.from_config(oauth2_config, client)


def test_oauth2_provider_from_config(oauth2_config: CoreasonIdpConfig, client: httpx.AsyncClient) -> None:
    provider = new_provider(oauth2_config, client)

    assert isinstance(provider, OAuth2Provider)
    assert provider.endpoints.validate_url == "https://idp.example/oauth2/userinfo"
    assert provider.identity.scope == "openid email"
    assert urlsplit(provider.get_login_url("https://app.example/cb", "s")).path == "/oauth2/authorize"


def test_oauth2_provider_rejects_insecure_endpoints(client: httpx.AsyncClient) -> None:
    config = load_config(
        provider="oauth2",
        client_id="c",
        login_url="http://idp.example/authorize",
        redeem_url="https://idp.example/token",
        profile_url="https://idp.example/userinfo",
    )
    with pytest.raises(ConfigurationError, match="HTTPS"):
        new_provider(config, client)


def test_oauth2_provider_allows_http_in_local_dev(client: httpx.AsyncClient) -> None:
    config = load_config(
        provider="oauth2",
        client_id="c",
        login_url="http://localhost:9000/authorize",
        redeem_url="http://localhost:9000/token",
        profile_url="http://localhost:9000/userinfo",
        unsafe_local_dev=True,
    )
    assert new_provider(config, client).endpoints.profile_url == "http://localhost:9000/userinfo"


def test_oauth2_provider_requires_endpoints(client: httpx.AsyncClient) -> None:
    config = load_config(domain="tenant.auth0.com", client_id="c")
    with pytest.raises(ConfigurationError):
        OAuth2Provider.from_config(config, client)


@pytest.mark.asyncio
async def test_auth0_resolves_embedded_subject(
    auth0_config: CoreasonIdpConfig, client: httpx.AsyncClient, idp: StubIdP, make_token: Callable[[Any], str]
) -> None:
    provider = new_provider(auth0_config, client)
    session = SessionState(access_token=make_token({"sub": "user@example.com"}))

    assert await provider.get_email_address(session) == "user@example.com"
    assert idp.call_count == 0


@pytest.mark.asyncio
async def test_oauth2_resolves_via_profile(
    oauth2_config: CoreasonIdpConfig, client: httpx.AsyncClient, idp: StubIdP
) -> None:
    provider = new_provider(oauth2_config, client)
    idp.payload = {"Email": "carol@example.com"}

    assert await provider.get_email_address(SessionState(access_token="opaque")) == "carol@example.com"
    assert str(idp.requests[0].url) == "https://idp.example/oauth2/userinfo"


@pytest.mark.asyncio
async def test_embedded_claims_disabled_by_config(
    client: httpx.AsyncClient, idp: StubIdP, make_token: Callable[[Any], str]
) -> None:
    config = load_config(domain="tenant.auth0.com", client_id="c", use_embedded_claims=False)
    provider = new_provider(config, client)

    session = SessionState(access_token=make_token({"sub": "auth0|abc"}))
    assert await provider.get_email_address(session) == "alice@example.com"
    assert idp.call_count == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("kind", ["auth0", "oauth2"])
async def test_provider_operations(
    kind: str,
    auth0_config: CoreasonIdpConfig,
    oauth2_config: CoreasonIdpConfig,
    client: httpx.AsyncClient,
    idp: StubIdP,
) -> None:
    provider = new_provider(auth0_config if kind == "auth0" else oauth2_config, client)

    with pytest.raises(MissingTokenError):
        await provider.get_email_address(SessionState())
    assert await provider.validate_session_state(SessionState()) is False
    assert await provider.validate_session_state(SessionState(access_token="live")) is True

    idp.status_code = 401
    assert await provider.validate_session_state(SessionState(access_token="revoked")) is False
