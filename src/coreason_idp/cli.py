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
Command-line entry point for operating the configured identity provider.

Configuration is read from ``COREASON_IDP_*`` environment variables.
"""

import argparse
import sys

from coreason_idp.config import load_config
from coreason_idp.exceptions import ConfigurationError, CoreasonIdpError
from coreason_idp.manager import IdentityProviderManager
from coreason_idp.models import SessionState
from coreason_idp.utils.logger import logger

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="coreason-idp",
        description="Build login URLs, resolve identities and validate sessions against an identity provider.",
    )
    parser.add_argument("--timeout", type=float, default=None, help="Deadline in seconds for network calls.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    login = subparsers.add_parser("login-url", help="Print the authorization URL for a login attempt.")
    login.add_argument("--redirect-uri", required=True, help="Absolute callback URL.")
    login.add_argument("--state", required=True, help="Anti-forgery state token.")

    whoami = subparsers.add_parser("whoami", help="Print the email of an access token's user.")
    whoami.add_argument("--access-token", required=True)

    validate = subparsers.add_parser("validate", help="Exit 0 if an access token is still valid, 1 otherwise.")
    validate.add_argument("--access-token", required=True)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        config = load_config()
        manager = IdentityProviderManager(config)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR

    with manager:
        if args.command == "login-url":
            print(manager.get_login_url(args.redirect_uri, args.state))
            return EXIT_OK

        session = SessionState(access_token=args.access_token)

        if args.command == "whoami":
            try:
                print(manager.get_email_address(session, timeout=args.timeout))
            except CoreasonIdpError as e:
                logger.error(f"Unable to resolve identity: {e}")
                return EXIT_FAILURE
            return EXIT_OK

        valid = manager.validate_session(session, timeout=args.timeout)
        print("valid" if valid else "invalid")
        return EXIT_OK if valid else EXIT_FAILURE


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
