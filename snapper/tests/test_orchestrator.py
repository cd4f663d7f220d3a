"""
Tests for the orchestrator: platform order, skipping, crash containment
and a full two-platform run over fake pages.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from snapper.models import RunResult, ScrapeOptions, Target
from snapper.orchestrator import build_targets, snap_rankings
from snapper.runner import snap_platform
from snapper.tests.fakes import make_page, session_factory_for

RAKUTEN_URL = "https://ranking.rakuten.co.jp/daily/100533/"
AMAZON_URL = "https://www.amazon.co.jp/gp/bestsellers/pet-supplies/"


@pytest.mark.asyncio
async def test_missing_urls_are_skipped(config, uploader):
    runner = AsyncMock(return_value=RunResult(success=True, html_content="<html/>"))

    aggregate = await snap_rankings(
        RAKUTEN_URL, None, ScrapeOptions(), config, uploader=uploader, platform_runner=runner
    )

    assert list(aggregate.results) == ["rakuten", "amazon"]
    assert aggregate.results["amazon"].to_dict() == {
        "success": True,
        "html_content": None,
        "condition_met": False,
        "skipped": True,
        "message": "URL not provided",
    }
    runner.assert_awaited_once()
    assert runner.await_args.args[:2] == ("rakuten", RAKUTEN_URL)


@pytest.mark.asyncio
async def test_platforms_run_in_order(config, uploader):
    seen: list[str] = []

    async def runner(platform, url, options, config, uploader):
        seen.append(platform)
        return RunResult(success=True)

    await snap_rankings(
        RAKUTEN_URL, AMAZON_URL, ScrapeOptions(), config, uploader=uploader, platform_runner=runner
    )

    assert seen == ["rakuten", "amazon"]


@pytest.mark.asyncio
async def test_runner_crash_is_contained(config, uploader):
    async def runner(platform, url, options, config, uploader):
        if platform == "rakuten":
            raise RuntimeError("browser exploded")
        return RunResult(success=True, html_content="<html>amazon</html>")

    aggregate = await snap_rankings(
        RAKUTEN_URL, AMAZON_URL, ScrapeOptions(), config, uploader=uploader, platform_runner=runner
    )

    rakuten = aggregate.results["rakuten"]
    assert rakuten.success is False
    assert rakuten.error == "Uncaught error: browser exploded"
    assert rakuten.error_time is not None
    assert aggregate.results["amazon"].success is True
    assert list(aggregate.failed()) == ["rakuten"]


@pytest.mark.asyncio
async def test_full_run_rakuten_match_amazon_miss(config, uploader, tmp_path):
    pages = {
        "rakuten": make_page(
            html="<html>rakuten ranking</html>",
            top_item=("https://item.rakuten.co.jp/chelseas-choice/nyans-01/", "nyans premium food"),
        ),
        "amazon": make_page(
            html="<html>amazon ranking</html>",
            top_item=("/dp/B000000001/ref=zg_bs_1", "other product"),
        ),
    }

    async def runner(platform, url, options, config, uploader):
        return await snap_platform(
            platform, url, options, config, uploader,
            session_factory=session_factory_for(pages[platform]),
        )

    aggregate = await snap_rankings(
        RAKUTEN_URL,
        AMAZON_URL,
        ScrapeOptions(keyword="nyans", store_code="chelseas-choice"),
        config,
        uploader=uploader,
        platform_runner=runner,
    )
    body = aggregate.to_dict()

    assert body["rakuten"]["success"] is True
    assert body["rakuten"]["condition_met"] is True
    assert body["rakuten"]["html_content"] == "<html>rakuten ranking</html>"
    assert body["rakuten"]["google_drive"]["screenshot_url"].startswith("https://drive.google.com/file/d/")
    assert body["rakuten"]["google_drive"]["html_url"].startswith("https://drive.google.com/file/d/")

    assert body["amazon"]["success"] is True
    assert body["amazon"]["condition_met"] is False
    assert body["amazon"]["google_drive"] == {}
    pages["amazon"].screenshot.assert_not_awaited()

    assert aggregate.condition_met("rakuten") is True
    assert aggregate.condition_met("amazon") is False
    assert len(uploader.calls) == 2
    assert list(tmp_path.iterdir()) == []


def test_build_targets_keeps_order_and_drops_missing():
    assert build_targets(RAKUTEN_URL, AMAZON_URL) == [
        Target(platform="rakuten", url=RAKUTEN_URL),
        Target(platform="amazon", url=AMAZON_URL),
    ]
    assert build_targets(None, AMAZON_URL) == [Target(platform="amazon", url=AMAZON_URL)]
    assert build_targets("", None) == []
