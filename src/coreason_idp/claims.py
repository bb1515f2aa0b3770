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
Offline extraction of identity claims embedded in a structured token.

SECURITY: the payload is decoded WITHOUT signature verification. A claim read
here is only as trustworthy as the channel that delivered the token (the
provider's token endpoint over TLS). It must never be treated as a verified
credential.
"""

import re
from typing import Any

from authlib.common.encoding import json_loads, to_bytes, urlsafe_b64decode

from coreason_idp.exceptions import ClaimDecodeError, MissingClaimError, NotATokenError

_BASE64URL_RAW = re.compile(r"^[A-Za-z0-9_-]+$")


def decode_token_payload(token: str) -> dict[str, Any]:
    """
    Decodes the middle segment of a ``header.payload.signature`` token.

    Args:
        token: The raw token string.

    Returns:
        dict[str, Any]: The JSON object carried in the payload segment.

    Raises:
        NotATokenError: If the token does not have exactly three segments.
        ClaimDecodeError: If the payload is not unpadded base64url JSON object.
    """
    segments = token.split(".")
    if len(segments) != 3:
        raise NotATokenError(f"Not a structured token: expected 3 segments, got {len(segments)}")

    payload = segments[1]
    if not _BASE64URL_RAW.match(payload):
        raise ClaimDecodeError("Token payload is not unpadded base64url")

    try:
        claims = json_loads(urlsafe_b64decode(to_bytes(payload)))
    except ValueError as e:
        raise ClaimDecodeError(f"Token payload could not be decoded: {e}") from e

    if not isinstance(claims, dict):
        raise ClaimDecodeError("Token payload is not a JSON object")
    return claims


def extract_subject_claim(token: str) -> str:
    """
    Reads the ``sub`` claim from a structured token without any network call.

    Args:
        token: The raw access or ID token.

    Returns:
        str: The non-empty subject identifier.

    Raises:
        NotATokenError: If the token is not structured (recoverable).
        ClaimDecodeError: If the payload is malformed.
        MissingClaimError: If ``sub`` is absent or empty.
    """
    claims = decode_token_payload(token)

    subject = claims.get("sub")
    if subject is None or subject == "":
        raise MissingClaimError("Token payload has no subject claim")
    if not isinstance(subject, str):
        raise ClaimDecodeError("Token subject claim is not a string")
    return subject
