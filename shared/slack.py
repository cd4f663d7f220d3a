"""
Slack notification helper for posting messages to an Incoming Webhook.

Used by the handler to report run summaries and top-level failures.
Delivery problems are logged and never escalated to the caller.
"""

from __future__ import annotations

from typing import Optional

import requests

from shared.logging import get_logger

logger = get_logger(__name__)

SLACK_TIMEOUT_SECONDS = 10
# Slack truncates very long messages; keep tracebacks readable.
MAX_TEXT_LENGTH = 3500


class SlackNotificationError(Exception):
    """Webhook rejected the message or could not be reached."""


def post_to_slack(webhook_url: str, text: str) -> str:
    """
    POST `{"text": text}` to the webhook.

    Returns the response body. Raises SlackNotificationError on a non-2xx
    response or a transport failure.
    """
    try:
        response = requests.post(
            webhook_url,
            json={"text": text},
            timeout=SLACK_TIMEOUT_SECONDS,
        )
    except requests.RequestException as e:
        raise SlackNotificationError(f"Failed to send request to Slack: {e}") from e

    if not 200 <= response.status_code < 300:
        raise SlackNotificationError(f"Slack API Error: {response.status_code} - {response.text}")
    return response.text


def send_slack_message(webhook_url: Optional[str], text: str) -> bool:
    """
    Send a message to Slack, best-effort.

    Returns True if delivered, False if skipped or failed.
    """
    if not webhook_url:
        logger.warning("slack_webhook_not_configured")
        return False

    if len(text) > MAX_TEXT_LENGTH:
        text = text[: MAX_TEXT_LENGTH - 3] + "..."

    try:
        post_to_slack(webhook_url, text)
        logger.info("slack_notification_sent")
        return True
    except SlackNotificationError as e:
        logger.warning("slack_notification_failed", error=str(e), error_type=type(e).__name__)
        return False
