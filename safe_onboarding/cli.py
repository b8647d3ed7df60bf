#!/usr/bin/env python3
"""Command line entry point for Safe onboarding"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from eth_utils import is_address

from .config import get_settings
from .core.errors import OnboardingError, OnboardingFailedError
from .core.onboarding.factory import create_onboarding_client_from_env
from .core.policy.fee_policy import FeeFallbackMode, FeePolicyResolver, is_configured_endpoint
from .core.roles.permissions import DEFAULT_ROLE_LABEL, role_key_from_label
from .logging_config import setup_logging
from .providers.fee_api import FeeApiProvider


def print_json(payload) -> None:
    print(json.dumps(payload, indent=2))


def print_failure(exc: OnboardingError) -> None:
    """Pretty print an onboarding failure to stderr"""
    print(f"❌ {exc.message}", file=sys.stderr)
    if exc.step:
        print(f"   step: {exc.step}", file=sys.stderr)
    if exc.tx_hash:
        print(f"   transaction: {exc.tx_hash}", file=sys.stderr)
    applied = exc.context.details.get("applied_hashes")
    if applied:
        print("   already applied (not rolled back):", file=sys.stderr)
        for tx_hash in applied:
            print(f"     - {tx_hash}", file=sys.stderr)


async def cli_onboard(args: argparse.Namespace) -> int:
    """Run a full onboarding and print the result record"""
    client = create_onboarding_client_from_env(
        fee_fallback_mode=FeeFallbackMode.STRICT if args.strict_fee_policy else None,
        safe_salt_nonce=args.safe_salt_nonce,
        roles_salt_nonce=args.roles_salt_nonce,
    )
    async with client:
        try:
            result = await client.onboard_client(args.client)
        except OnboardingFailedError as exc:
            print_failure(exc)
            return 1
    print_json(result.to_dict())
    return 0


async def cli_fee_config(args: argparse.Namespace) -> int:
    """Resolve and print the fee split for a client"""
    settings = get_settings()
    api = None
    if is_configured_endpoint(settings.p2p_api_url):
        api = FeeApiProvider(
            settings.p2p_api_url,
            api_token=settings.p2p_api_token or None,
            timeout_s=settings.request_timeout_seconds,
        )
    mode = FeeFallbackMode.STRICT if args.strict_fee_policy else settings.fee_fallback_mode
    config = await FeePolicyResolver(api=api, fallback_mode=mode).resolve(args.client)
    print_json({**config.to_dict(), "source": config.source})
    return 0


def cli_role_key(args: argparse.Namespace) -> int:
    print("0x" + role_key_from_label(args.label).hex())
    return 0


def _address(value: str) -> str:
    if not is_address(value):
        raise argparse.ArgumentTypeError(f"not an address: {value}")
    return value


def _non_negative_int(value: str) -> int:
    number = int(value, 0)
    if number < 0:
        raise argparse.ArgumentTypeError("must be non-negative")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="safe-onboarding",
        description="Provision a Safe with a scoped Roles module",
    )
    parser.add_argument("--log-level", help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command")

    onboard_parser = subparsers.add_parser("onboard", help="Deploy and configure a client Safe")
    onboard_parser.add_argument("--client", type=_address, help="Client address (default: signer)")
    onboard_parser.add_argument("--safe-salt-nonce", type=_non_negative_int, help="Safe CREATE2 salt nonce")
    onboard_parser.add_argument("--roles-salt-nonce", type=_non_negative_int, help="Roles CREATE2 salt nonce")
    onboard_parser.add_argument(
        "--strict-fee-policy",
        action="store_true",
        help="Abort instead of using the fallback fee split",
    )

    fee_parser = subparsers.add_parser("fee-config", help="Resolve the fee split for a client")
    fee_parser.add_argument("client", type=_address, help="Client address")
    fee_parser.add_argument("--strict-fee-policy", action="store_true", help="Fail instead of falling back")

    role_parser = subparsers.add_parser("role-key", help="Print the role key for a label")
    role_parser.add_argument("--label", default=DEFAULT_ROLE_LABEL, help=f"Role label (default: {DEFAULT_ROLE_LABEL})")

    return parser


async def run(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 2

    if args.command == "role-key":
        return cli_role_key(args)

    try:
        setup_logging(args.log_level)
        if args.command == "onboard":
            return await cli_onboard(args)
        return await cli_fee_config(args)
    except OnboardingError as exc:
        print_failure(exc)
        return 1


def main() -> None:
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
