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
Custom exceptions for the coreason-idp package.
"""


class CoreasonIdpError(Exception):
    """Base exception for all coreason-idp errors."""


class ConfigurationError(CoreasonIdpError):
    """
    Raised when the provider configuration is incomplete or invalid.
    Fatal: surfaced at startup, before any request is served.
    """


class IdentityError(CoreasonIdpError):
    """Raised when a user identity cannot be resolved from a session."""


class MissingTokenError(IdentityError):
    """Raised when the session carries no access token."""


class NoEmailError(IdentityError):
    """Raised when the profile endpoint returns an empty or absent email."""


class ClaimExtractionError(IdentityError):
    """
    Raised when no identity claim can be read from a token payload.
    Recoverable: callers fall back to the profile endpoint.
    """


class NotATokenError(ClaimExtractionError):
    """Raised when the token is not made of exactly three dot-separated segments."""


class ClaimDecodeError(ClaimExtractionError):
    """Raised when the token payload is not base64url-encoded JSON."""


class MissingClaimError(ClaimExtractionError):
    """Raised when the token payload has no usable subject claim."""


class TransportError(CoreasonIdpError):
    """Raised on network failures and non-2xx responses from the provider."""


class InvalidResponseError(TransportError):
    """Raised when a provider response body is not the expected JSON document."""


class OversizedResponseError(TransportError):
    """Raised when an HTTP response is too large."""


class SecurityError(TransportError):
    """Raised when a request destination is blocked by the SSRF guard."""
