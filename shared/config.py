"""
Environment-based configuration for the ranking snapper.

This module exposes a small, typed configuration surface shared by the
serverless handler and the local CLI. All values are sourced from
environment variables with sensible, non-secret defaults.

No secrets or credentials are hard-coded here; they must be provided via
the environment (or tooling such as python-dotenv in local development).
The config is built once at process entry and passed explicitly into the
runner, uploader and browser factory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal, Optional

Environment = Literal["local", "dev", "staging", "prod"]
ScreenshotPolicy = Literal["on_match", "always"]

DEFAULT_HOSTED_CHROMIUM_PATH = "/usr/bin/chromium"


@dataclass(frozen=True)
class AppConfig:
    """
    Top-level application configuration.

    Every field is read once in `from_env`; nothing below the entry points
    touches `os.environ`.
    """

    environment: Environment
    log_level: str

    # Optional file path for structured JSON logs; when set, logs are written
    # to file (and stdout if log_stdout).
    log_file: Optional[str]
    log_stdout: bool

    # Slack Incoming Webhook; notifications are skipped when unset.
    slack_webhook_url: Optional[str]

    # Google Drive destinations and credential sources.
    drive_screenshot_folder_id: Optional[str]
    drive_html_folder_id: Optional[str]
    google_credentials_json: Optional[str]
    google_application_credentials: Optional[str]

    # Browser and filesystem
    chromium_path: Optional[str]
    temp_dir: str
    window_width: int
    window_height: int

    debug: bool
    # Kept for parity with the ranking page size; the condition check only
    # looks at rank 1.
    max_items: int

    screenshot_policy: ScreenshotPolicy

    # Timing (milliseconds)
    nav_timeout_ms: int
    settle_ms: int
    top_rank_timeout_ms: int

    # Fallback targets for local CLI runs
    rakuten_url: Optional[str]
    amazon_url: Optional[str]

    @property
    def hosted(self) -> bool:
        """True when running in a deployed (non-local) environment."""
        return self.environment != "local"

    @classmethod
    def from_env(cls) -> "AppConfig":
        """
        Construct configuration from environment variables.

        All fields have sensible defaults suitable for local development.
        Production deployments are expected to override these via env vars.
        """

        environment = os.getenv("APP_ENV", "local")
        if environment not in {"local", "dev", "staging", "prod"}:
            raise ValueError(f"Unsupported APP_ENV value: {environment!r}")

        screenshot_policy = (os.getenv("SCREENSHOT_POLICY") or "on_match").strip().lower()
        if screenshot_policy not in {"on_match", "always"}:
            raise ValueError(f"Unsupported SCREENSHOT_POLICY value: {screenshot_policy!r}")

        def _bool_env(name: str, default: bool) -> bool:
            raw = (os.getenv(name) or str(default)).strip().lower()
            return raw in ("true", "1", "yes")

        def _int_env(name: str, default: int, minimum: int = 1) -> int:
            raw = (os.getenv(name) or "").strip()
            try:
                value = int(raw)
            except ValueError:
                return default
            # Playwright treats a 0 timeout as "no timeout".
            return value if value >= minimum else default

        return cls(
            environment=environment,  # type: ignore[arg-type]
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE") or None,
            log_stdout=_bool_env("LOG_STDOUT", True),
            slack_webhook_url=os.getenv("SLACK_WEBHOOK_URL") or None,
            drive_screenshot_folder_id=os.getenv("GOOGLE_DRIVE_SCREENSHOT_FOLDER_ID") or None,
            drive_html_folder_id=os.getenv("GOOGLE_DRIVE_HTML_FOLDER_ID") or None,
            google_credentials_json=os.getenv("GOOGLE_CREDENTIALS_JSON") or None,
            google_application_credentials=os.getenv("GOOGLE_APPLICATION_CREDENTIALS") or None,
            chromium_path=os.getenv("CHROMIUM_PATH") or None,
            temp_dir=os.getenv("TEMP_DIR") or "/tmp",
            window_width=_int_env("WINDOW_WIDTH", 1920),
            window_height=_int_env("WINDOW_HEIGHT", 1080),
            debug=_bool_env("DEBUG", False),
            max_items=_int_env("MAX_ITEMS", 30),
            screenshot_policy=screenshot_policy,  # type: ignore[arg-type]
            nav_timeout_ms=_int_env("NAV_TIMEOUT_MS", 60_000),
            settle_ms=_int_env("SETTLE_MS", 3_000, minimum=0),
            top_rank_timeout_ms=_int_env("TOP_RANK_TIMEOUT_MS", 5_000),
            rakuten_url=os.getenv("RAKUTEN_URL") or None,
            amazon_url=os.getenv("AMAZON_URL") or None,
        )


def get_config() -> AppConfig:
    """
    Helper to obtain the current configuration.

    Call this at the entry points only (handler, CLI) and pass the
    resulting `AppConfig` explicitly through the rest of the code.
    """

    return AppConfig.from_env()
