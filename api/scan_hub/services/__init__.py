# scan_hub/services/__init__.py
"""
Business logic services for Scan Hub.
"""
from scan_hub.services.scan_processor import ScanProcessor
from scan_hub.services.settings_service import SettingsService
from scan_hub.services.products import ProductService
from scan_hub.services.parse_types import ParseTypeService
from scan_hub.services.scan_lists import ScanListService

__all__ = [
    "ScanProcessor",
    "SettingsService",
    "ProductService",
    "ParseTypeService",
    "ScanListService",
]
