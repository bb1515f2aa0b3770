# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_idp

import base64
import json
from collections.abc import Callable, Generator
from typing import Any

import httpx
import pytest

from coreason_idp.models import EndpointSet, ProviderIdentity


class StubIdP:
    """
    Stands in for the provider's HTTP API. Records every request and answers
    each one with a fresh response built from the current attributes.
    """

    def __init__(self) -> None:
        self.status_code = 200
        self.payload: Any = {"email": "alice@example.com"}
        self.content: bytes | None = None
        self.error: Exception | None = None
        self.requests: list[httpx.Request] = []

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.content is not None:
            return httpx.Response(self.status_code, content=self.content)
        return httpx.Response(self.status_code, json=self.payload)


def encode_segment(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


@pytest.fixture
def make_token() -> Callable[[Any], str]:
    """Builds an unsigned header.payload.signature token around a claims value."""

    def _make(claims: Any) -> str:
        header = encode_segment(b'{"alg":"RS256","typ":"JWT"}')
        payload = encode_segment(json.dumps(claims).encode("utf-8"))
        return f"{header}.{payload}.c2lnbmF0dXJl"

    return _make


@pytest.fixture
def endpoints() -> EndpointSet:
    return EndpointSet(
        authorize_url="https://idp.example/authorize",
        token_url="https://idp.example/oauth/token",
        profile_url="https://idp.example/userinfo",
    )


@pytest.fixture
def identity() -> ProviderIdentity:
    return ProviderIdentity(client_id="proxy-client", scope="openid profile email")


@pytest.fixture
def idp() -> StubIdP:
    return StubIdP()


@pytest.fixture
def client(idp: StubIdP) -> Generator[httpx.AsyncClient, None, None]:
    yield httpx.AsyncClient(transport=httpx.MockTransport(idp))
