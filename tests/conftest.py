"""
Shared pytest fixtures for Scan Hub tests.

Codes used throughout (check digits computed by hand):
    4820000001236  article 82, 0 kg 123 g
    2150000019002  article 15, 1 kg 900 g
    2150000002004  article 15, 0 kg 200 g
    2270000025008  article 27, 2 kg 500 g
    2270000009992  article 27, 0 kg 999 g
"""
from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from scan_hub.json_store import JsonFileStore
from scan_hub.main import create_app
from scan_hub.models import ParseField, ParseFieldRole, ParseType
from scan_hub.runtime import Hub, build_hub
from scan_hub.services.settings_service import SettingsRepository, SettingsService
from scan_hub.settings import Settings
from scan_hub.write_behind import CoalescingWriter


def make_settings(root: Path, delay_ms: int = 0) -> Settings:
    return Settings(
        SCAN_HUB_DATA_ROOT=root,
        SCAN_HUB_WRITE_DELAY_MS=delay_ms,
        SCAN_HUB_LOG_TO_FILE=False,
    )


def weight_parse_type(parse_type_id: str = "weight", prefixes=None) -> ParseType:
    """Article at 2-3, kilograms at 8-9, grams at 10-12."""
    return ParseType(
        id=parse_type_id,
        name="Weight",
        prefixes=list(prefixes or []),
        fields=[
            ParseField(id="article", title="Article", start=2, length=2, role=ParseFieldRole.GROUP),
            ParseField(id="kg", title="kg", start=8, length=2, role=ParseFieldRole.SUM, unit="kg"),
            ParseField(id="g", title="g", start=10, length=3, role=ParseFieldRole.SUM, unit="g"),
        ],
    )


# ============================================================================
# Storage fixtures
# ============================================================================

@pytest.fixture
def store(tmp_path: Path) -> JsonFileStore:
    return JsonFileStore(tmp_path / "data")


@pytest.fixture
def writer(store: JsonFileStore) -> Iterator[CoalescingWriter]:
    w = CoalescingWriter(store, delay_ms=0)
    yield w
    w.close()


@pytest.fixture
def settings_service(store: JsonFileStore) -> Iterator[SettingsService]:
    service = SettingsService(SettingsRepository(store), poll_interval=0.02)
    yield service
    service.close()


# ============================================================================
# Service / API fixtures
# ============================================================================

@pytest.fixture
def hub(tmp_path: Path) -> Iterator[Hub]:
    h = build_hub(make_settings(tmp_path / "hub"))
    h.settings.initialize()
    yield h
    h.close()


@pytest.fixture
def client(tmp_path: Path) -> Iterator[TestClient]:
    app = create_app(make_settings(tmp_path / "api"))
    with TestClient(app) as c:
        yield c
