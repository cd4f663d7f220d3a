"""
Platform runner: one ranking page from navigation to Drive upload.

snap_platform never raises. Navigation, extraction and upload failures
all come back as a failed RunResult carrying whatever HTML was captured.
The browser session and every temp file are released on all exit paths.
"""

from __future__ import annotations

import asyncio
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from playwright.async_api import Page

from shared.config import AppConfig, ScreenshotPolicy
from shared.logging import bind_request_context, clear_request_context, get_logger
from snapper.browser import open_browser_session
from snapper.constants import DRIVE_FILE_URL
from snapper.drive import DriveUploader
from snapper.files import current_timestamp, remove_file, save_debug_artifacts, save_html
from snapper.models import ConditionCheck, RunResult, ScrapeOptions
from snapper.platforms import PlatformRule, evaluate_condition, get_platform_rule, locate_top_item

logger = get_logger(__name__)

SessionFactory = Callable[[AppConfig], AbstractAsyncContextManager[Page]]


@dataclass
class _Progress:
    """What the run has produced so far; read by the failure path."""

    html_content: Optional[str] = None
    condition_met: bool = False
    temp_files: list[Path] = field(default_factory=list)


def should_capture_screenshot(
    policy: ScreenshotPolicy,
    force_screenshot: bool,
    condition_met: bool,
) -> bool:
    """`always` captures every run; `on_match` only when the condition holds."""
    if policy == "always" or force_screenshot:
        return True
    return condition_met


async def check_top_rank_condition(
    page: Page,
    rule: PlatformRule,
    keyword: str,
    store_code: Optional[str],
    timeout_ms: int,
) -> ConditionCheck:
    """Locate the rank-1 item and evaluate it; a failed lookup is a non-match."""
    item = await locate_top_item(page, rule, timeout_ms=timeout_ms)
    if item is None:
        logger.warning("condition_check.top_item_missing", platform=rule.name)
        return ConditionCheck(title_match=False, store_match=False)

    logger.info("condition_check.top_item_found", item_url=item.url, item_title=item.title)
    check = evaluate_condition(rule, item, keyword, store_code)
    logger.info(
        "condition_check.result",
        title_match=check.title_match,
        store_match=check.store_match if rule.applies_store_check else None,
        condition_met=check.met,
    )
    return check


async def _upload(uploader: DriveUploader, path: Path, prefix: str, folder_id: Optional[str]):
    # The Drive client is blocking; keep the event loop free.
    return await asyncio.to_thread(uploader.upload, path, prefix, folder_id, path.suffix.lstrip("."))


async def _upload_snapshots(
    uploader: DriveUploader,
    config: AppConfig,
    platform: str,
    timestamp: str,
    html_path: Path,
    screenshot_path: Optional[Path],
) -> dict[str, str]:
    if screenshot_path is None:
        logger.info("drive.upload_skipped", reason="no_screenshot")
        return {}

    html_file = await _upload(
        uploader, html_path, f"{platform}_html_{timestamp}", config.drive_html_folder_id
    )
    screenshot_file = await _upload(
        uploader,
        screenshot_path,
        f"{platform}_screenshot_{timestamp}",
        config.drive_screenshot_folder_id,
    )
    return {
        "html_id": html_file.id,
        "html_url": DRIVE_FILE_URL.format(file_id=html_file.id),
        "screenshot_id": screenshot_file.id,
        "screenshot_url": DRIVE_FILE_URL.format(file_id=screenshot_file.id),
    }


async def _capture(
    page: Page,
    rule: PlatformRule,
    url: str,
    options: ScrapeOptions,
    config: AppConfig,
    uploader: DriveUploader,
    progress: _Progress,
) -> RunResult:
    logger.info("navigation.started", timeout_ms=config.nav_timeout_ms)
    await page.goto(url, wait_until="networkidle", timeout=config.nav_timeout_ms)
    await asyncio.sleep(config.settle_ms / 1000)
    logger.info("navigation.completed")

    timestamp = current_timestamp()
    filename_base = f"{timestamp}_{rule.name}_snapshot"

    html = await page.content()
    progress.html_content = html
    html_path = Path(config.temp_dir) / f"{filename_base}.html"
    progress.temp_files.append(html_path)
    save_html(config.temp_dir, html_path.name, html)

    if options.keyword:
        check = await check_top_rank_condition(
            page, rule, options.keyword, options.store_code, config.top_rank_timeout_ms
        )
        progress.condition_met = check.met
    else:
        logger.info("condition_check.skipped", reason="no_keyword")

    screenshot_path: Optional[Path] = None
    if should_capture_screenshot(
        config.screenshot_policy, options.force_screenshot, progress.condition_met
    ):
        screenshot_path = Path(config.temp_dir) / f"{filename_base}.png"
        progress.temp_files.append(screenshot_path)
        logger.info("screenshot.capturing", path=str(screenshot_path), full_page=rule.full_page_screenshot)
        await page.screenshot(path=str(screenshot_path), full_page=rule.full_page_screenshot)
    else:
        logger.info("screenshot.skipped", reason="condition_not_met")

    try:
        google_drive = await _upload_snapshots(
            uploader, config, rule.name, timestamp, html_path, screenshot_path
        )
    except Exception as e:
        logger.error("drive.snapshot_upload_failed", error=str(e), error_type=type(e).__name__)
        return RunResult.failure(
            f"Google Drive upload failed: {e}",
            html_content=progress.html_content,
            condition_met=progress.condition_met,
        )

    logger.info("platform_run.succeeded", condition_met=progress.condition_met)
    return RunResult(
        success=True,
        html_content=html,
        condition_met=progress.condition_met,
        google_drive=google_drive,
    )


async def _upload_debug_artifacts(
    page: Page,
    platform: str,
    config: AppConfig,
    uploader: DriveUploader,
) -> None:
    """Capture and upload error screenshot + HTML. Best-effort; never raises."""
    debug_files = await save_debug_artifacts(page, config.temp_dir, platform)
    if not debug_files:
        return
    try:
        for path in debug_files:
            await _upload(uploader, path, f"error_{path.stem}", config.drive_screenshot_folder_id)
            logger.info("debug_artifacts.uploaded", file=path.name)
    except Exception as e:
        logger.error("debug_artifacts.upload_failed", error=str(e), error_type=type(e).__name__)
    finally:
        for path in debug_files:
            remove_file(path)


async def _fail(
    page: Page,
    rule: PlatformRule,
    exc: Exception,
    config: AppConfig,
    uploader: DriveUploader,
    progress: _Progress,
) -> RunResult:
    logger.error(
        "platform_run.failed",
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )
    if progress.html_content is None:
        try:
            progress.html_content = await page.content()
        except Exception as content_error:
            logger.warning(
                "platform_run.html_on_error_failed",
                error=str(content_error),
                error_type=type(content_error).__name__,
            )

    await _upload_debug_artifacts(page, rule.name, config, uploader)

    return RunResult.failure(
        str(exc) or type(exc).__name__,
        html_content=progress.html_content,
        condition_met=progress.condition_met,
    )


async def snap_platform(
    platform: str,
    url: str,
    options: ScrapeOptions,
    config: AppConfig,
    uploader: DriveUploader,
    *,
    session_factory: SessionFactory = open_browser_session,
) -> RunResult:
    """
    Load one ranking page, check its top item, and upload the snapshot.

    Always returns a RunResult; the browser is closed and temp files are
    removed before returning.
    """
    try:
        rule = get_platform_rule(platform)
    except ValueError as e:
        logger.error("platform_run.unsupported_platform", platform=platform, error=str(e))
        return RunResult.failure(str(e))

    bind_request_context(
        platform=platform,
        url=url,
        keyword=options.keyword,
        store_code=options.store_code,
    )
    progress = _Progress()
    logger.info("platform_run.started")

    result: Optional[RunResult] = None
    try:
        async with session_factory(config) as page:
            try:
                result = await _capture(page, rule, url, options, config, uploader, progress)
            except Exception as e:
                result = await _fail(page, rule, e, config, uploader, progress)
    except Exception as e:
        if result is not None:
            # Teardown failed after the run finished; its outcome stands.
            logger.warning(
                "platform_run.session_teardown_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
        else:
            # Launch failed before a page existed.
            logger.error("platform_run.session_failed", error=str(e), error_type=type(e).__name__)
            result = RunResult.failure(
                str(e) or type(e).__name__,
                html_content=progress.html_content,
                condition_met=progress.condition_met,
            )
    finally:
        for path in progress.temp_files:
            remove_file(path)
        clear_request_context()
    return result
