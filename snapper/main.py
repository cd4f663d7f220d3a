"""
Local CLI for the ranking snapper.

Usage:
    python -m snapper.main [RAKUTEN_URL] [AMAZON_URL] [KEYWORD] [STORE_CODE] [--screenshot]

When no URL is given, RAKUTEN_URL / AMAZON_URL from the environment (or
.env) are used.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv

from shared.config import get_config
from shared.logging import configure_logging, get_logger
from snapper.handler import InvocationRequest
from snapper.models import ScrapeOptions
from snapper.orchestrator import snap_rankings

load_dotenv()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Snapshot Rakuten/Amazon ranking pages and check the top item."
    )
    parser.add_argument("rakuten_url", nargs="?", help="Rakuten ranking URL ('' to skip)")
    parser.add_argument("amazon_url", nargs="?", help="Amazon ranking URL ('' to skip)")
    parser.add_argument("keyword", nargs="?", help="Keyword the top item title must contain")
    parser.add_argument("store_code", nargs="?", help="Rakuten shop code the top item URL must contain")
    parser.add_argument(
        "--screenshot",
        action="store_true",
        help="Capture and upload a screenshot even if the condition is not met",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = get_config()
    configure_logging(
        level=logging.getLevelName(config.log_level.upper()),
        log_file=config.log_file,
        log_stdout=config.log_stdout,
    )
    logger = get_logger(__name__)

    request = InvocationRequest.from_event(
        {
            "rakutenUrl": args.rakuten_url,
            "amazonUrl": args.amazon_url,
            "keyword": args.keyword,
            "storeCode": args.store_code,
            "takeScreenshot": args.screenshot,
        }
    )
    if not request.has_targets:
        request = InvocationRequest(
            rakuten_url=config.rakuten_url,
            amazon_url=config.amazon_url,
            options=request.options,
        )
    if not request.has_targets:
        print("ERROR: Please provide Rakuten URL and/or Amazon URL.", file=sys.stderr)
        return 1

    logger.info(
        "local_run.started",
        rakuten_url=request.rakuten_url or "Not provided",
        amazon_url=request.amazon_url or "Not provided",
        keyword=request.options.keyword or "Not provided",
        store_code=request.options.store_code or "Not provided",
    )
    try:
        aggregate = asyncio.run(
            snap_rankings(request.rakuten_url, request.amazon_url, request.options, config)
        )
    except Exception as e:
        logger.error("local_run.failed", error=str(e), error_type=type(e).__name__, exc_info=True)
        return 1

    print(json.dumps(aggregate.to_dict(), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
