"""
Tests for the serverless handler: event parsing, response shaping and
Slack notifications. The orchestrator is mocked.
"""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from snapper.handler import (
    COMPLETION_MESSAGE,
    InvocationRequest,
    build_error_text,
    build_summary_text,
    handler,
)
from snapper.models import AggregateResult, RunResult, ScrapeOptions
from snapper.runner import snap_platform
from snapper.tests.fakes import make_config, make_page, session_factory_for

EVENT = {
    "rakutenUrl": "https://ranking.rakuten.co.jp/daily/100533/",
    "amazonUrl": "https://www.amazon.co.jp/gp/bestsellers/pet-supplies/",
    "keyword": "nyans",
    "storeCode": "chelseas-choice",
}


def _aggregate() -> AggregateResult:
    return AggregateResult(
        results={
            "rakuten": RunResult(
                success=True,
                html_content="<html/>",
                condition_met=True,
                google_drive={"screenshot_url": "https://drive.google.com/file/d/s"},
            ),
            "amazon": RunResult.failure("Timeout 60000ms exceeded", html_content="<html/>"),
        }
    )


@pytest.fixture
def patched_handler(tmp_path):
    """Handler dependencies replaced; yields (config holder, snap mock, slack mock)."""
    holder = {"config": make_config(tmp_path, slack_webhook_url="https://hooks.slack.test/x")}
    snap = AsyncMock(return_value=_aggregate())
    with patch("snapper.handler.get_config", side_effect=lambda: holder["config"]), patch(
        "snapper.handler.configure_logging"
    ), patch("snapper.handler.snap_rankings", snap), patch(
        "snapper.handler.send_slack_message", return_value=True
    ) as slack:
        yield holder, snap, slack


# --- Event parsing ---


def test_from_event_reads_keys():
    request = InvocationRequest.from_event({**EVENT, "takeScreenshot": True})

    assert request.rakuten_url == EVENT["rakutenUrl"]
    assert request.amazon_url == EVENT["amazonUrl"]
    assert request.options == ScrapeOptions(
        keyword="nyans", store_code="chelseas-choice", force_screenshot=True
    )


def test_from_event_blank_values_become_none():
    request = InvocationRequest.from_event({"rakutenUrl": "  ", "keyword": "", "takeScreenshot": "yes"})

    assert request.rakuten_url is None
    assert request.options.keyword is None
    assert request.options.force_screenshot is False
    assert request.has_targets is False


def test_from_event_keeps_match_terms_verbatim():
    request = InvocationRequest.from_event(
        {"rakutenUrl": f"  {EVENT['rakutenUrl']} ", "keyword": "cat ", "storeCode": " shop"}
    )

    assert request.rakuten_url == EVENT["rakutenUrl"]
    assert request.options.keyword == "cat "
    assert request.options.store_code == " shop"


@pytest.mark.asyncio
async def test_keyword_whitespace_reaches_condition_check(config, uploader):
    request = InvocationRequest.from_event({"rakutenUrl": EVENT["rakutenUrl"], "keyword": "cat "})
    page = make_page(top_item=("https://item.rakuten.co.jp/shop/1/", "nyans catfood"))

    result = await snap_platform(
        "rakuten", request.rakuten_url, request.options, config, uploader,
        session_factory=session_factory_for(page),
    )

    assert result.success is True
    assert result.condition_met is False


def test_from_event_rejects_non_object():
    with pytest.raises(ValueError):
        InvocationRequest.from_event(["not", "an", "object"])


# --- Text builders ---


def test_build_summary_text_lists_matches_and_failures():
    text = build_summary_text(_aggregate(), ScrapeOptions(keyword="nyans", store_code="chelseas-choice"))

    assert text.splitlines() == [
        COMPLETION_MESSAGE,
        "Rakuten condition met (keyword: nyans, store: chelseas-choice). Screenshot taken.",
        "Amazon failed: Timeout 60000ms exceeded",
    ]


def test_build_summary_text_amazon_match_has_no_store():
    aggregate = AggregateResult(
        results={
            "amazon": RunResult(
                success=True, condition_met=True, google_drive={"screenshot_id": "s"}
            )
        }
    )
    text = build_summary_text(aggregate, ScrapeOptions(keyword="nyans", store_code="x"))
    assert "Amazon condition met (keyword: nyans). Screenshot taken." in text


def test_build_summary_text_upload_failure_reports_no_screenshot():
    aggregate = AggregateResult(
        results={
            "rakuten": RunResult.failure(
                "Google Drive upload failed: quota exceeded",
                html_content="<html/>",
                condition_met=True,
            )
        }
    )
    text = build_summary_text(aggregate, ScrapeOptions(keyword="nyans", store_code="shop"))

    assert "Screenshot taken" not in text
    assert "Rakuten failed: Google Drive upload failed: quota exceeded" in text


def test_build_error_text_wraps_stack():
    text = build_error_text("ranking-fn", "Traceback ...")
    assert text == "Lambda Function Error in ranking-fn:\n```\nTraceback ...\n```"


# --- Handler ---


def test_handler_success_returns_results_and_notifies(patched_handler):
    holder, snap, slack = patched_handler

    response = handler(EVENT)

    assert response["statusCode"] == 200
    body = json.loads(response["body"])
    assert body["message"] == COMPLETION_MESSAGE
    assert body["results"]["rakuten"]["condition_met"] is True
    assert body["results"]["amazon"]["success"] is False
    assert "errorTime" in body["results"]["amazon"]

    snap.assert_awaited_once()
    assert snap.await_args.args[:2] == (EVENT["rakutenUrl"], EVENT["amazonUrl"])
    webhook, text = slack.call_args.args
    assert webhook == "https://hooks.slack.test/x"
    assert "Rakuten condition met" in text


def test_handler_no_targets_returns_empty_results(patched_handler):
    holder, snap, slack = patched_handler

    response = handler({"keyword": "nyans"})

    assert response["statusCode"] == 200
    assert json.loads(response["body"]) == {"message": "No target URLs provided.", "results": {}}
    snap.assert_not_awaited()
    slack.assert_not_called()


def test_handler_without_webhook_skips_slack(patched_handler, tmp_path):
    holder, snap, slack = patched_handler
    holder["config"] = make_config(tmp_path)

    assert handler(EVENT)["statusCode"] == 200
    slack.assert_not_called()


def test_handler_orchestrator_crash_returns_500_and_reports(patched_handler):
    holder, snap, slack = patched_handler
    snap.side_effect = RuntimeError("event loop broke")

    response = handler(EVENT, SimpleNamespace(function_name="ranking-snapper-prod"))

    assert response["statusCode"] == 500
    body = json.loads(response["body"])
    assert body["message"] == "Failed to run ranking snapshots"
    assert body["error"] == "event loop broke"
    assert "RuntimeError" in body["stack"]

    text = slack.call_args.args[1]
    assert text.startswith("Lambda Function Error in ranking-snapper-prod:")


def test_handler_invalid_event_returns_500(patched_handler):
    holder, snap, slack = patched_handler

    response = handler(["bad"])

    assert response["statusCode"] == 500
    snap.assert_not_awaited()
    assert slack.call_args.args[1].startswith("Lambda Function Error in ranking-snapper:")


def test_handler_config_error_returns_500_without_slack(patched_handler):
    holder, snap, slack = patched_handler
    with patch("snapper.handler.get_config", side_effect=ValueError("Unsupported APP_ENV value: 'qa'")):
        response = handler(EVENT)

    assert response["statusCode"] == 500
    assert "APP_ENV" in json.loads(response["body"])["error"]
    slack.assert_not_called()
