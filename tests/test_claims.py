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

import pytest

from coreason_idp.claims import decode_token_payload, extract_subject_claim
from coreason_idp.exceptions import (
    ClaimDecodeError,
    ClaimExtractionError,
    MissingClaimError,
    NotATokenError,
)

from conftest import encode_segment


def test_extracts_subject(make_token: Callable[[Any], str]) -> None:
    token = make_token({"sub": "user@example.com"})
    assert extract_subject_claim(token) == "user@example.com"


def test_extra_claims_are_ignored(make_token: Callable[[Any], str]) -> None:
    token = make_token({"sub": "auth0|123", "aud": ["api"], "exp": 1700000000, "email": "x@example.com"})
    assert extract_subject_claim(token) == "auth0|123"


@pytest.mark.parametrize(
    "token",
    ["", "opaque-access-token", "a.b", "a.b.c.d", "....", "header.payload"],
)
def test_not_a_structured_token(token: str) -> None:
    with pytest.raises(NotATokenError):
        extract_subject_claim(token)


@pytest.mark.parametrize("claims", [{"sub": ""}, {}, {"sub": None}, {"email": "alice@example.com"}])
def test_missing_subject(make_token: Callable[[Any], str], claims: dict[str, Any]) -> None:
    with pytest.raises(MissingClaimError):
        extract_subject_claim(make_token(claims))


def test_non_string_subject(make_token: Callable[[Any], str]) -> None:
    with pytest.raises(ClaimDecodeError, match="not a string"):
        extract_subject_claim(make_token({"sub": 12345}))


def test_payload_must_be_json_object(make_token: Callable[[Any], str]) -> None:
    with pytest.raises(ClaimDecodeError, match="not a JSON object"):
        extract_subject_claim(make_token(["sub", "user@example.com"]))


def test_payload_not_json() -> None:
    token = f"h.{encode_segment(b'not json at all')}.s"
    with pytest.raises(ClaimDecodeError):
        extract_subject_claim(token)


def test_payload_not_utf8() -> None:
    token = f"h.{encode_segment(bytes([0xFF, 0xFE, 0xFD]))}.s"
    with pytest.raises(ClaimDecodeError):
        extract_subject_claim(token)


@pytest.mark.parametrize(
    "payload",
    [
        "",  # empty segment
        "eyJzdWIiOiJhIn0=",  # padded
        "eyJzdWIi+OiJhIn0",  # standard alphabet, not url-safe
        "not base64!",
        "abcde",  # length is one more than a multiple of four
    ],
)
def test_payload_not_raw_base64url(payload: str) -> None:
    with pytest.raises(ClaimDecodeError):
        extract_subject_claim(f"h.{payload}.s")


def test_all_failures_are_recoverable_extraction_errors() -> None:
    for error in (NotATokenError, ClaimDecodeError, MissingClaimError):
        assert issubclass(error, ClaimExtractionError)


def test_signature_is_not_verified(make_token: Callable[[Any], str]) -> None:
    """The signature segment is opaque; any value is accepted."""
    token = make_token({"sub": "user@example.com"})
    header, payload, _ = token.split(".")
    assert extract_subject_claim(f"{header}.{payload}.forged") == "user@example.com"


def test_decode_token_payload_returns_all_claims(make_token: Callable[[Any], str]) -> None:
    claims = {"sub": "auth0|1", "scope": "openid email", "nested": {"a": 1}}
    assert decode_token_payload(make_token(claims)) == claims
