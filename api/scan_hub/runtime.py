# scan_hub/runtime.py
"""
Wiring of stores, repositories and services for one data root.
"""
from __future__ import annotations
from dataclasses import dataclass
import logging

from fastapi import Request

from scan_hub.json_store import JsonFileStore
from scan_hub.repositories import (
    ParseTypeRepository, ProductRepository, ScanListRepository, ScanLogRepository,
)
from scan_hub.services.parse_types import ParseTypeService
from scan_hub.services.products import ProductService
from scan_hub.services.scan_lists import ScanListService
from scan_hub.services.settings_service import SettingsRepository, SettingsService
from scan_hub.settings import Settings
from scan_hub.write_behind import CoalescingWriter

logger = logging.getLogger(__name__)


@dataclass
class Hub:
    store: JsonFileStore
    writer: CoalescingWriter
    settings: SettingsService
    parse_types: ParseTypeService
    products: ProductService
    scan_lists: ScanListService

    def close(self) -> None:
        self.settings.close()
        self.writer.close()


def build_hub(settings: Settings) -> Hub:
    store = JsonFileStore(settings.SCAN_HUB_DATA_ROOT)
    writer = CoalescingWriter(store, delay_ms=settings.SCAN_HUB_WRITE_DELAY_MS)

    settings_service = SettingsService(
        SettingsRepository(store),
        poll_interval=settings.SCAN_HUB_SETTINGS_POLL_MS / 1000,
    )
    parse_types = ParseTypeService(ParseTypeRepository(writer), settings_service)
    products = ProductService(ProductRepository(writer))
    scan_lists = ScanListService(
        ScanListRepository(writer),
        ScanLogRepository(writer),
        parse_types,
        products,
        settings_service,
    )
    parse_types.usage = scan_lists.list_ids_using

    logger.info("Scan Hub data root: %s", store.root)
    return Hub(
        store=store,
        writer=writer,
        settings=settings_service,
        parse_types=parse_types,
        products=products,
        scan_lists=scan_lists,
    )


def get_hub(request: Request) -> Hub:
    return request.app.state.hub
