# scan_hub/errors.py
"""
Domain exceptions raised by Scan Hub services.

Parse problems are NOT exceptions: the scan processor returns them as typed
results (see services/scan_processor.py). Everything here is a management
error the HTTP layer turns into a status code.
"""
from __future__ import annotations

from fastapi import HTTPException


class ScanHubError(Exception):
    """Base class for all Scan Hub domain errors."""


class InvalidFormatError(ValueError):
    """Code is not a checksum-valid EAN-13."""


class SchemaInvalidError(ScanHubError):
    """Parse type fields are out of range or overlap; it must not be saved."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ParseTypeNotFoundError(ScanHubError):
    def __init__(self, parse_type_id: str):
        super().__init__(f"Parse type not found: {parse_type_id}")
        self.parse_type_id = parse_type_id


class ParseTypeInUseError(ScanHubError):
    def __init__(self, parse_type_id: str, list_ids: list[str]):
        super().__init__(f"Parse type {parse_type_id} is used by {len(list_ids)} scan list(s)")
        self.parse_type_id = parse_type_id
        self.list_ids = list_ids


class ScanListNotFoundError(ScanHubError):
    def __init__(self, list_id: str):
        super().__init__(f"Scan list not found: {list_id}")
        self.list_id = list_id


class ScanEntryNotFoundError(ScanHubError):
    def __init__(self, list_id: str, entry_id: str):
        super().__init__(f"Scan entry {entry_id} not found in list {list_id}")
        self.list_id = list_id
        self.entry_id = entry_id


class ProductNotFoundError(ScanHubError):
    def __init__(self, product_id: str):
        super().__init__(f"Product not found: {product_id}")
        self.product_id = product_id


def as_http_error(exc: ScanHubError) -> HTTPException:
    """HTTPException for a domain error: 404 missing, 409 in use, 422 invalid schema."""
    if isinstance(exc, (ParseTypeNotFoundError, ScanListNotFoundError, ScanEntryNotFoundError, ProductNotFoundError)):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ParseTypeInUseError):
        return HTTPException(status_code=409, detail={"message": str(exc), "listIds": exc.list_ids})
    if isinstance(exc, SchemaInvalidError):
        return HTTPException(status_code=422, detail=exc.reason)
    return HTTPException(status_code=400, detail=str(exc))
