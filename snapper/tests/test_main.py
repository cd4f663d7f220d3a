"""
Tests for the local CLI entry point.
"""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest

from snapper.main import build_parser, main
from snapper.models import AggregateResult, RunResult, ScrapeOptions
from snapper.tests.fakes import make_config

RAKUTEN_URL = "https://ranking.rakuten.co.jp/daily/100533/"


@pytest.fixture
def cli_env(tmp_path):
    holder = {"config": make_config(tmp_path)}
    snap = AsyncMock(
        return_value=AggregateResult(
            results={
                "rakuten": RunResult(success=True, html_content="<html/>", google_drive={}),
                "amazon": RunResult.skipped_result(),
            }
        )
    )
    with patch("snapper.main.get_config", side_effect=lambda: holder["config"]), patch(
        "snapper.main.configure_logging"
    ), patch("snapper.main.snap_rankings", snap):
        yield holder, snap


def test_parser_positionals_and_flag():
    args = build_parser().parse_args([RAKUTEN_URL, "", "nyans", "shop", "--screenshot"])

    assert args.rakuten_url == RAKUTEN_URL
    assert args.amazon_url == ""
    assert args.keyword == "nyans"
    assert args.store_code == "shop"
    assert args.screenshot is True


def test_main_without_urls_exits_1(cli_env, capsys):
    holder, snap = cli_env

    assert main([]) == 1
    assert "Please provide Rakuten URL and/or Amazon URL" in capsys.readouterr().err
    snap.assert_not_awaited()


def test_main_prints_results_json(cli_env, capsys):
    holder, snap = cli_env

    assert main([RAKUTEN_URL, "", "nyans", "chelseas-choice", "--screenshot"]) == 0

    rakuten_url, amazon_url, options, _config = snap.await_args.args
    assert rakuten_url == RAKUTEN_URL
    assert amazon_url is None
    assert options == ScrapeOptions(keyword="nyans", store_code="chelseas-choice", force_screenshot=True)

    printed = json.loads(capsys.readouterr().out)
    assert printed["rakuten"]["success"] is True
    assert printed["amazon"]["skipped"] is True


def test_main_falls_back_to_env_urls(cli_env, tmp_path):
    holder, snap = cli_env
    holder["config"] = make_config(tmp_path, amazon_url="https://www.amazon.co.jp/gp/bestsellers/")

    assert main([]) == 0
    assert snap.await_args.args[1] == "https://www.amazon.co.jp/gp/bestsellers/"


def test_main_crash_exits_1(cli_env):
    holder, snap = cli_env
    snap.side_effect = RuntimeError("boom")

    assert main([RAKUTEN_URL]) == 1
