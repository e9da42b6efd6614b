from typing import List
import argparse
import asyncio
import json
import logging
from logging.config import dictConfig
import os
import sys

import aiohttp
import sentry_sdk

from social.graze.webfinger.client import WebFinger
from social.graze.webfinger.config import Settings
from social.graze.webfinger.errors import WebFingerException
from social.graze.webfinger.normalize import LINK_CATEGORIES

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    logging_config_file = os.getenv("LOGGING_CONFIG_FILE", "")

    if len(logging_config_file) > 0:
        with open(logging_config_file) as fl:
            dictConfig(json.load(fl))
        return

    logging.basicConfig()
    logging.getLogger().setLevel(logging.DEBUG if verbose else logging.INFO)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webfinger", description="Look up WebFinger addresses"
    )
    parser.add_argument("address", nargs="+", help="The address(es) to look up.")
    parser.add_argument(
        "--rel",
        choices=LINK_CATEGORIES,
        help="Print only the first link in this relation category.",
    )
    parser.add_argument(
        "--no-tls-only",
        dest="tls_only",
        action="store_false",
        default=None,
        help="Retry over plain HTTP when HTTPS fails.",
    )
    parser.add_argument(
        "--uri-fallback",
        action="store_true",
        default=None,
        help="Also try the host-meta and host-meta.json endpoints.",
    )
    parser.add_argument(
        "--webfist-fallback",
        action="store_true",
        default=None,
        help="Fall back to the webfist.org relay (deprecated).",
    )
    parser.add_argument(
        "--allow-private-addresses",
        action="store_true",
        default=None,
        help="Allow lookups of private and internal addresses.",
    )
    parser.add_argument(
        "--timeout",
        dest="request_timeout",
        type=int,
        default=None,
        help="Per-request timeout in milliseconds.",
    )
    parser.add_argument("--verbose", action="store_true", help="Log debug output.")
    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    """Settings from the environment, overridden by any flags given."""
    overrides = {
        key: value
        for key, value in vars(args).items()
        if key in Settings.model_fields and value is not None
    }
    return Settings(**overrides)


async def realMain(argv: List[str]) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    settings = settings_from_args(args)
    if settings.sentry_dsn:
        sentry_sdk.init(dsn=settings.sentry_dsn)

    failures = 0
    async with aiohttp.ClientSession() as session:
        webfinger = WebFinger(settings, session=session)
        for address in args.address:
            try:
                if args.rel:
                    link = await webfinger.lookup_link(address, args.rel)
                    print(link.model_dump_json(exclude_none=True))
                else:
                    result = await webfinger.lookup(address)
                    print(result.model_dump_json(indent=2))
            except WebFingerException as e:
                failures += 1
                logger.error("Lookup of %s failed: %s", address, e.message)
            except Exception:
                failures += 1
                sentry_sdk.capture_exception()
                logger.exception("Exception looking up %s", address)

    return 1 if failures else 0


def main() -> None:
    sys.exit(asyncio.run(realMain(sys.argv[1:])))


if __name__ == "__main__":
    main()
