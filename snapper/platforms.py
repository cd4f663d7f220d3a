"""
Platform rules: how to find the rank-1 item on each ranking page.

Each supported platform is one frozen `PlatformRule` in `PLATFORM_RULES`;
callers dispatch by platform name through the table. The store-code check
only exists for Rakuten (item URLs carry the shop slug as a path segment).
Amazon URLs have no equivalent, so Amazon never applies a store check.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional
from urllib.parse import urljoin

from playwright.async_api import ElementHandle, Page

from shared.logging import get_logger
from snapper.constants import Platform
from snapper.models import ConditionCheck, TopItem

logger = get_logger(__name__)

AMAZON_JP_ORIGIN = "https://www.amazon.co.jp"


def _keep_href(href: str) -> str:
    return href


def _normalize_amazon_href(href: str) -> str:
    """Drop the tracking `/ref=...` tail and make the link absolute."""
    return urljoin(AMAZON_JP_ORIGIN, href.split("/ref=")[0])


@dataclass(frozen=True)
class PlatformRule:
    name: Platform
    rank1_selector: str
    link_selector: str
    title_selector: str
    applies_store_check: bool
    full_page_screenshot: bool
    normalize_href: Callable[[str], str] = _keep_href


RAKUTEN_RULE = PlatformRule(
    name="rakuten",
    rank1_selector="#rnkRankingMain div.rnkRanking_top3box:first-of-type",
    link_selector=".rnkRanking_itemName a",
    title_selector=".rnkRanking_itemName a",
    applies_store_check=True,
    full_page_screenshot=False,
)

AMAZON_RULE = PlatformRule(
    name="amazon",
    rank1_selector='#gridItemRoot:first-of-type div[id^="p13n-asin-index-0"]',
    link_selector='a.a-link-normal[href*="/dp/"]',
    title_selector='a.a-link-normal[href*="/dp/"] span > div[class*="line-clamp"]',
    applies_store_check=False,
    full_page_screenshot=True,
    normalize_href=_normalize_amazon_href,
)

PLATFORM_RULES: dict[str, PlatformRule] = {
    RAKUTEN_RULE.name: RAKUTEN_RULE,
    AMAZON_RULE.name: AMAZON_RULE,
}


def get_platform_rule(platform: str) -> PlatformRule:
    try:
        return PLATFORM_RULES[platform]
    except KeyError:
        raise ValueError(f"Unsupported platform: {platform!r}") from None


async def _read_href(box: ElementHandle, selector: str) -> Optional[str]:
    try:
        element = await box.query_selector(selector)
        if element is None:
            return None
        return await element.get_attribute("href")
    except Exception:
        return None


async def _read_text(box: ElementHandle, selector: str) -> Optional[str]:
    try:
        element = await box.query_selector(selector)
        if element is None:
            return None
        text = await element.text_content()
    except Exception:
        return None
    if text is None:
        return None
    return text.strip()


async def locate_top_item(
    page: Page,
    rule: PlatformRule,
    timeout_ms: int = 5_000,
) -> Optional[TopItem]:
    """
    Find the rank-1 item's link and title.

    Returns None when the rank-1 container does not appear in time or the
    lookup fails; a failed lookup never raises.
    """
    logger.debug("top_item.lookup", platform=rule.name, selector=rule.rank1_selector)
    try:
        box = await page.wait_for_selector(rule.rank1_selector, timeout=timeout_ms)
    except Exception as e:
        logger.warning(
            "top_item.lookup_failed",
            platform=rule.name,
            selector=rule.rank1_selector,
            error=str(e),
            error_type=type(e).__name__,
        )
        return None
    if box is None:
        logger.warning("top_item.not_found", platform=rule.name, selector=rule.rank1_selector)
        return None

    href = await _read_href(box, rule.link_selector)
    title = await _read_text(box, rule.title_selector)
    url = rule.normalize_href(href) if href else None
    return TopItem(url=url, title=title)


def evaluate_condition(
    rule: PlatformRule,
    item: TopItem,
    keyword: str,
    store_code: Optional[str] = None,
) -> ConditionCheck:
    """
    Title must contain `keyword` (case-sensitive). On platforms with a store
    check, a supplied `store_code` must also appear as `/{store_code}/` in
    the item URL.
    """
    title_match = bool(item.title) and keyword in item.title

    store_match = True
    if rule.applies_store_check and store_code:
        store_match = bool(item.url) and f"/{store_code}/" in item.url

    return ConditionCheck(title_match=title_match, store_match=store_match)
