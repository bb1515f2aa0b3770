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
Pluggable identity-provider adapters for an authenticating reverse proxy:
login URL construction, user identity resolution and session validation.
"""

__version__ = "0.1.0"
__author__ = "Gowtham A Rao"
__email__ = "gowtham.rao@coreason.ai"

from .claims import extract_subject_claim
from .config import CoreasonIdpConfig, ProviderKind, load_config
from .exceptions import (
    ConfigurationError,
    CoreasonIdpError,
    IdentityError,
    MissingTokenError,
    NoEmailError,
    TransportError,
)
from .identity_resolver import IdentityResolver
from .login_url import build_login_url
from .manager import IdentityProviderManager, IdentityProviderManagerAsync
from .models import EndpointSet, ProviderIdentity, SessionState
from .providers import Auth0Provider, IdentityProvider, OAuth2Provider, new_provider
from .session_validator import SessionValidator, validate_token

__all__ = [
    "Auth0Provider",
    "ConfigurationError",
    "CoreasonIdpConfig",
    "CoreasonIdpError",
    "EndpointSet",
    "IdentityError",
    "IdentityProvider",
    "IdentityProviderManager",
    "IdentityProviderManagerAsync",
    "IdentityResolver",
    "MissingTokenError",
    "NoEmailError",
    "OAuth2Provider",
    "ProviderIdentity",
    "ProviderKind",
    "SessionState",
    "SessionValidator",
    "TransportError",
    "build_login_url",
    "extract_subject_claim",
    "load_config",
    "new_provider",
    "validate_token",
]
