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
Identity-provider adapters and the registry selecting one at configuration time.
"""

from collections.abc import Callable

import httpx

from coreason_idp.config import CoreasonIdpConfig, ProviderKind
from coreason_idp.exceptions import ConfigurationError
from coreason_idp.providers.auth0 import Auth0Provider
from coreason_idp.providers.base import IdentityProvider
from coreason_idp.providers.oauth2 import OAuth2Provider

ProviderFactory = Callable[[CoreasonIdpConfig, httpx.AsyncClient], IdentityProvider]

PROVIDERS: dict[ProviderKind, ProviderFactory] = {
    ProviderKind.AUTH0: Auth0Provider.from_config,
    ProviderKind.OAUTH2: OAuth2Provider.from_config,
}


def new_provider(config: CoreasonIdpConfig, client: httpx.AsyncClient) -> IdentityProvider:
    """
    Builds the adapter selected by ``config.provider``.

    Raises:
        ConfigurationError: If the provider is unknown or its configuration is incomplete.
    """
    factory = PROVIDERS.get(config.provider)
    if factory is None:
        raise ConfigurationError(f"Unknown identity provider: {config.provider}")
    return factory(config, client)


__all__ = ["Auth0Provider", "IdentityProvider", "OAuth2Provider", "PROVIDERS", "new_provider"]
