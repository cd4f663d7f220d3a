"""
Serverless entry point for the ranking snapper.

Thin entrypoint: build config, configure logging, parse the event, call the
orchestrator, notify Slack, and shape the `{statusCode, body}` response.
Only failures in this control flow produce a 500; per-platform failures
are reported inside `results` with a 200.
"""

from __future__ import annotations

import asyncio
import json
import logging
import traceback
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

from shared.config import AppConfig, get_config
from shared.logging import configure_logging, get_logger
from shared.slack import send_slack_message
from snapper.drive import DriveUploader
from snapper.models import AggregateResult, ScrapeOptions
from snapper.orchestrator import snap_rankings

load_dotenv()

logger = get_logger(__name__)

COMPLETION_MESSAGE = "Successfully completed ranking processing."
NO_TARGETS_MESSAGE = "No target URLs provided."
FAILURE_MESSAGE = "Failed to run ranking snapshots"
DEFAULT_FUNCTION_NAME = "ranking-snapper"


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _present(value: Any) -> Optional[str]:
    # Match terms are used verbatim; only absent or empty values become None.
    if value is None or value == "":
        return None
    return str(value)


@dataclass(frozen=True)
class InvocationRequest:
    rakuten_url: Optional[str]
    amazon_url: Optional[str]
    options: ScrapeOptions

    @property
    def has_targets(self) -> bool:
        return bool(self.rakuten_url or self.amazon_url)

    @classmethod
    def from_event(cls, event: Optional[Mapping[str, Any]]) -> "InvocationRequest":
        """Read `rakutenUrl`, `amazonUrl`, `keyword`, `storeCode`, `takeScreenshot`."""
        event = event or {}
        if not isinstance(event, Mapping):
            raise ValueError(f"Event must be a JSON object, got {type(event).__name__}")
        return cls(
            rakuten_url=_clean(event.get("rakutenUrl")),
            amazon_url=_clean(event.get("amazonUrl")),
            options=ScrapeOptions(
                keyword=_present(event.get("keyword")),
                store_code=_present(event.get("storeCode")),
                force_screenshot=event.get("takeScreenshot") is True,
            ),
        )


def _response(status_code: int, body: dict[str, Any]) -> dict[str, Any]:
    return {"statusCode": status_code, "body": json.dumps(body, ensure_ascii=False)}


def build_summary_text(aggregate: AggregateResult, options: ScrapeOptions) -> str:
    """Slack text: completion line, then one line per match or failure."""
    lines = [COMPLETION_MESSAGE]
    for platform, result in aggregate.results.items():
        label = platform.capitalize()
        if result.success and result.condition_met and result.google_drive:
            detail = f"keyword: {options.keyword}"
            if platform == "rakuten":
                detail += f", store: {options.store_code}"
            lines.append(f"{label} condition met ({detail}). Screenshot taken.")
        if not result.success:
            lines.append(f"{label} failed: {result.error}")
    return "\n".join(lines)


def build_error_text(function_name: str, stack: str) -> str:
    return f"Lambda Function Error in {function_name}:\n```\n{stack}\n```"


async def run_invocation(
    request: InvocationRequest,
    config: AppConfig,
    *,
    uploader: Optional[DriveUploader] = None,
) -> dict[str, Any]:
    """Run all targets in the request; returns the success-shaped response."""
    if not request.has_targets:
        logger.warning("no_target_urls")
        return _response(200, {"message": NO_TARGETS_MESSAGE, "results": {}})

    logger.info(
        "invocation.targets",
        rakuten_url=request.rakuten_url or "Not provided",
        amazon_url=request.amazon_url or "Not provided",
        keyword=request.options.keyword or "Not provided",
        store_code=request.options.store_code or "Not provided",
    )
    aggregate = await snap_rankings(
        request.rakuten_url,
        request.amazon_url,
        request.options,
        config,
        uploader=uploader,
    )
    logger.info("invocation.completed")

    if config.slack_webhook_url:
        send_slack_message(config.slack_webhook_url, build_summary_text(aggregate, request.options))

    return _response(200, {"message": COMPLETION_MESSAGE, "results": aggregate.to_dict()})


def handler(event: Optional[Mapping[str, Any]], context: Any = None) -> dict[str, Any]:
    """
    Lambda-style handler.

    Returns `{statusCode, body}` where body is a JSON string with `message`
    and `results` (plus `error` and `stack` on a 500).
    """
    config: Optional[AppConfig] = None
    try:
        config = get_config()
        configure_logging(
            level=logging.getLevelName(config.log_level.upper()),
            log_file=config.log_file,
            log_stdout=config.log_stdout,
        )
        logger.info("invocation.started", event_keys=sorted(event or {}))

        request = InvocationRequest.from_event(event)
        return asyncio.run(run_invocation(request, config))
    except Exception as e:
        stack = traceback.format_exc()
        logger.error("invocation.failed", error=str(e), error_type=type(e).__name__, exc_info=True)

        webhook_url = config.slack_webhook_url if config is not None else None
        if webhook_url:
            function_name = getattr(context, "function_name", None) or DEFAULT_FUNCTION_NAME
            send_slack_message(webhook_url, build_error_text(function_name, stack))
        else:
            logger.warning("slack_notification_skipped", reason="webhook_not_configured")

        return _response(500, {"message": FAILURE_MESSAGE, "error": str(e), "stack": stack})
