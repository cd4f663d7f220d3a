"""
Orchestrator: run each configured platform in turn and collect results.

Platforms run one after another in PLATFORM_ORDER. A crash escaping one
platform's runner is recorded as that platform's failure and the next
platform still runs.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional

from shared.config import AppConfig
from shared.logging import get_logger
from snapper.constants import PLATFORM_ORDER
from snapper.drive import DriveUploader
from snapper.models import AggregateResult, RunResult, ScrapeOptions, Target
from snapper.runner import snap_platform

logger = get_logger(__name__)

PlatformRunner = Callable[..., Awaitable[RunResult]]


def build_targets(rakuten_url: Optional[str], amazon_url: Optional[str]) -> list[Target]:
    """Targets for the platforms that have a URL, in PLATFORM_ORDER."""
    urls = {"rakuten": rakuten_url, "amazon": amazon_url}
    return [
        Target(platform=platform, url=urls[platform])
        for platform in PLATFORM_ORDER
        if urls[platform]
    ]


async def snap_rankings(
    rakuten_url: Optional[str],
    amazon_url: Optional[str],
    options: ScrapeOptions,
    config: AppConfig,
    *,
    uploader: Optional[DriveUploader] = None,
    platform_runner: PlatformRunner = snap_platform,
) -> AggregateResult:
    """
    Snapshot every platform that has a URL; platforms without one are
    recorded as skipped.
    """
    targets = {target.platform: target for target in build_targets(rakuten_url, amazon_url)}
    if uploader is None:
        uploader = DriveUploader.from_config(config)

    aggregate = AggregateResult()
    logger.info("snapshot_process.started", platforms=list(targets))

    for platform in PLATFORM_ORDER:
        target = targets.get(platform)
        if target is None:
            logger.info("platform_skipped", platform=platform, reason="url_not_provided")
            aggregate.results[platform] = RunResult.skipped_result()
            continue

        logger.info(
            "platform_processing.started",
            platform=platform,
            keyword=options.keyword,
            store_code=options.store_code,
        )
        try:
            result = await platform_runner(target.platform, target.url, options, config, uploader)
        except Exception as e:
            logger.error(
                "platform_processing.uncaught_error",
                platform=platform,
                error=str(e),
                error_type=type(e).__name__,
            )
            result = RunResult.failure(f"Uncaught error: {e}")
        aggregate.results[platform] = result

    logger.info(
        "snapshot_process.finished",
        failed=sorted(aggregate.failed()),
        condition_met=[p for p in aggregate.results if aggregate.condition_met(p)],
    )
    return aggregate
