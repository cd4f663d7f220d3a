"""
Snapper constants: browser identity, launch flags, Drive settings.
"""

from __future__ import annotations

from typing import Literal

Platform = Literal["rakuten", "amazon"]

# Processing order within one invocation
PLATFORM_ORDER: tuple[Platform, ...] = ("rakuten", "amazon")

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/123.0.0.0 Safari/537.36"
)
ACCEPT_LANGUAGE = "ja-JP,ja;q=0.9,en-US;q=0.8,en;q=0.7"
LOCALE = "ja-JP"
TIMEZONE_ID = "Asia/Tokyo"

DEFAULT_BROWSER_ARGS = (
    "--no-sandbox",
    "--disable-gpu",
    "--disable-dev-shm-usage",
    "--disable-setuid-sandbox",
    "--disable-blink-features=AutomationControlled",
)
# Extra flags for constrained serverless sandboxes
HOSTED_BROWSER_ARGS = (
    "--single-process",
    "--no-zygote",
    "--no-first-run",
    "--disable-extensions",
)

# Injected before any page script runs; hides common automation tells.
STEALTH_INIT_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', { get: () => false });
Object.defineProperty(navigator, 'languages', { get: () => ['ja-JP', 'ja'] });
Object.defineProperty(navigator, 'plugins', {
  get: () => ({ length: 0, item: () => null, namedItem: () => null, refresh: () => {} }),
});
const originalQuery = window.navigator.permissions.query;
window.navigator.permissions.query = (parameters) =>
  parameters.name === 'notifications'
    ? Promise.resolve({ state: Notification.permission })
    : originalQuery(parameters);
Object.defineProperty(navigator, 'platform', { get: () => 'Win32' });
"""

DRIVE_SCOPES = (
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/drive.file",
)
DRIVE_FILE_URL = "https://drive.google.com/file/d/{file_id}"
CREDENTIALS_FILENAME = "google-credentials.json"

CONTENT_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".html": "text/html",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"
