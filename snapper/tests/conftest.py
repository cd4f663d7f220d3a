"""
Shared fixtures for snapper tests.

No Playwright browser, network or Google credentials are required: pages
and element handles are AsyncMocks, the browser session factory yields a
prepared page, and the Drive uploader is an in-memory fake.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from shared.config import AppConfig
from snapper.tests.fakes import FakeUploader, make_config


@pytest.fixture
def config(tmp_path: Path) -> AppConfig:
    return make_config(tmp_path)


@pytest.fixture
def uploader() -> FakeUploader:
    return FakeUploader()
