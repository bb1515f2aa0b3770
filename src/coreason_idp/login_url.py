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
Builder for the provider's authorization redirect URL.
"""

import re
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

from coreason_idp.models import EndpointSet, ProviderIdentity

# A stray "%" without two hex digits, or a ";" separator
_MALFORMED_QUERY = re.compile(r"%(?![0-9A-Fa-f]{2})|;")


def build_login_url(endpoints: EndpointSet, identity: ProviderIdentity, redirect_uri: str, state: str) -> str:
    """
    Builds the authorization URL the user is redirected to.

    Query parameters already present on the authorize endpoint are kept.
    ``redirect_uri``, ``approval_prompt``, ``client_id`` and ``response_type``
    are overwritten; ``scope`` and ``state`` are appended, so a pre-seeded
    value survives as a repeated parameter. A malformed pre-existing query
    (bad percent-escape or ";" separator) is treated as empty.

    Args:
        endpoints: The provider endpoints.
        identity: The client registration.
        redirect_uri: Absolute callback URL the provider redirects back to.
        state: Opaque anti-forgery token generated by the caller.

    Returns:
        str: The absolute authorization URL.
    """
    parts = urlsplit(endpoints.authorize_url)

    params: dict[str, list[str]] = {}
    if not _MALFORMED_QUERY.search(parts.query):
        # Valueless keys are kept as empty values and empty pairs are skipped.
        params = parse_qs(parts.query, keep_blank_values=True)

    params["redirect_uri"] = [redirect_uri]
    params["approval_prompt"] = [identity.approval_prompt]
    params.setdefault("scope", []).append(identity.scope)
    # OAuth2 names this parameter client_id; "client" is never sent.
    params["client_id"] = [identity.client_id]
    params["response_type"] = ["code"]
    params.setdefault("state", []).append(state)

    query = urlencode(sorted(params.items()), doseq=True)
    return urlunsplit(parts._replace(query=query))
