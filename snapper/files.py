"""
Local temp-file helpers: timestamps, HTML/screenshot writes, removal,
and debug-artifact capture on failure.

Every file written here is short-lived; the runner removes it before
returning regardless of outcome.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from playwright.async_api import Page

from shared.logging import get_logger

logger = get_logger(__name__)


def current_timestamp(now: Optional[datetime] = None) -> str:
    """UTC timestamp as YYYYMMDDHHMMSS."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y%m%d%H%M%S")


def ensure_directory(directory: Path) -> None:
    """Create the directory (and parents) if missing."""
    if not directory.exists():
        directory.mkdir(parents=True, exist_ok=True)
        logger.info("directory_created", path=str(directory))


def save_html(temp_dir: str | Path, filename: str, content: str) -> Path:
    """
    Write HTML content (UTF-8) under temp_dir.

    Returns the written path. May raise OSError on write failure.
    """
    directory = Path(temp_dir)
    ensure_directory(directory)
    path = directory / filename
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        logger.error("html_save_failed", path=str(path), error=str(e), error_type=type(e).__name__)
        raise
    logger.info("html_saved", path=str(path), size_bytes=len(content.encode("utf-8")))
    return path


def remove_file(path: str | Path) -> None:
    """
    Delete a temp file. A missing file is fine; other failures only warn.
    """
    try:
        Path(path).unlink()
        logger.info("file_removed", path=str(path))
    except FileNotFoundError:
        return
    except OSError as e:
        logger.warning("file_remove_failed", path=str(path), error=str(e), error_type=type(e).__name__)


async def save_debug_artifacts(page: Optional[Page], temp_dir: str | Path, platform: str) -> list[Path]:
    """
    Best-effort capture of a full-page screenshot and the current HTML.

    Returns the paths that were written (possibly empty). Never raises.
    """
    if page is None:
        return []

    saved: list[Path] = []
    directory = Path(temp_dir)
    stem = f"error_{platform}_{current_timestamp()}"
    screenshot_path = directory / f"{stem}.png"

    logger.debug("debug_artifacts.capturing", platform=platform)
    try:
        ensure_directory(directory)
        await page.screenshot(path=str(screenshot_path), full_page=True)
        saved.append(screenshot_path)

        html = await page.content()
        saved.append(save_html(directory, f"{stem}.html", html))
    except Exception as e:
        logger.warning(
            "debug_artifacts.capture_failed",
            platform=platform,
            error=str(e),
            error_type=type(e).__name__,
        )
        return saved

    logger.debug("debug_artifacts.saved", platform=platform, files=[str(p) for p in saved])
    return saved
