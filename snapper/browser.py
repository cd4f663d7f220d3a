"""
Browser session factory: one stealth-configured Chromium per platform run.

Launch options depend on where we run. Hosted (serverless) execution uses
the Chromium binary shipped with the deployment plus sandbox-friendly
flags. Local runs use Playwright's bundled browser unless CHROMIUM_PATH
points elsewhere.
"""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from playwright.async_api import Browser, BrowserContext, Page, async_playwright

from shared.config import DEFAULT_HOSTED_CHROMIUM_PATH, AppConfig
from shared.logging import get_logger
from snapper.constants import (
    ACCEPT_LANGUAGE,
    DEFAULT_BROWSER_ARGS,
    HOSTED_BROWSER_ARGS,
    LOCALE,
    STEALTH_INIT_SCRIPT,
    TIMEZONE_ID,
    USER_AGENT,
)

logger = get_logger(__name__)


def build_launch_options(config: AppConfig) -> dict[str, Any]:
    """Keyword arguments for `chromium.launch`."""
    args = [
        *DEFAULT_BROWSER_ARGS,
        f"--window-size={config.window_width},{config.window_height}",
    ]
    if config.hosted:
        args.extend(HOSTED_BROWSER_ARGS)
        executable_path = config.chromium_path or DEFAULT_HOSTED_CHROMIUM_PATH
    else:
        executable_path = config.chromium_path

    options: dict[str, Any] = {"headless": True, "args": args}
    if executable_path:
        options["executable_path"] = executable_path
    return options


async def create_stealth_context(browser: Browser, config: AppConfig) -> BrowserContext:
    """
    Create a browser context that looks like a Japanese desktop Chrome.

    Uses fixed UA, viewport, locale and timezone, and patches navigator
    properties before any page script runs.
    """
    context = await browser.new_context(
        viewport={"width": config.window_width, "height": config.window_height},
        user_agent=USER_AGENT,
        locale=LOCALE,
        timezone_id=TIMEZONE_ID,
        extra_http_headers={"Accept-Language": ACCEPT_LANGUAGE},
    )
    await context.add_init_script(STEALTH_INIT_SCRIPT)
    return context


@asynccontextmanager
async def open_browser_session(config: AppConfig) -> AsyncIterator[Page]:
    """
    Yield a fresh page in a stealth context.

    Browser and context are closed on every exit path; teardown errors are
    logged, not raised.
    """
    launch_options = build_launch_options(config)
    if config.debug:
        logger.debug("browser.launch_options", options=json.dumps(launch_options))

    async with async_playwright() as pw:
        logger.info("browser.launching", hosted=config.hosted)
        try:
            browser = await pw.chromium.launch(**launch_options)
        except Exception as e:
            logger.error("browser.launch_failed", error=str(e), error_type=type(e).__name__)
            raise

        context = None
        try:
            context = await create_stealth_context(browser, config)
            page = await context.new_page()
            yield page
        finally:
            logger.info("browser.closing")
            try:
                if context is not None:
                    await context.close()
                await browser.close()
            except Exception as e:
                logger.warning("browser.close_failed", error=str(e), error_type=type(e).__name__)
