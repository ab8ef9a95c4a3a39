# scan_hub/repositories.py
"""
JSON-backed repositories for parse types, products, scan lists and scan logs.

Each repository owns one document (scan logs: one document per list) and
reads/writes it whole. Reads go through the write-behind queue so a document
that is still waiting to be flushed is seen in its newest form. Entries that
fail validation are skipped with a warning instead of failing the whole load.
"""
from __future__ import annotations
from typing import Dict, List, Optional, Type, TypeVar
import logging, uuid

from pydantic import BaseModel, ValidationError

from scan_hub.models import (
    ParseField, ParseFieldRole, ParseType,
    Product, ScanList, ScanLogEntry, ScanStatus,
    now_ms,
)
from scan_hub.write_behind import CoalescingWriter

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def new_id() -> str:
    return str(uuid.uuid4())


def dump_models(items: List[BaseModel]) -> List[dict]:
    return [i.model_dump(mode="json", by_alias=True, exclude_none=True) for i in items]


class _JsonRepository:
    def __init__(self, writer: CoalescingWriter):
        self.writer = writer

    def _load(self, name: str, model: Type[M]) -> List[M]:
        raw = self.writer.read(name)
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning("%s: expected a JSON array, got %s; ignoring", name, type(raw).__name__)
            return []
        out: List[M] = []
        for idx, obj in enumerate(raw):
            try:
                out.append(model.model_validate(obj))
            except ValidationError as e:
                logger.warning("%s: skipping entry #%d: %s", name, idx, e.errors()[:1])
        return out

    def _save(self, name: str, items: List[BaseModel]) -> None:
        self.writer.submit(name, dump_models(items))


# ============================================================================
# Parse types
# ============================================================================

class ParseTypeRepository(_JsonRepository):
    FILE_NAME = "parse_types.json"

    def load_all(self) -> List[ParseType]:
        return self._load(self.FILE_NAME, ParseType)

    def save_all(self, items: List[ParseType]) -> None:
        self._save(self.FILE_NAME, items)

    @staticmethod
    def new_parse_type(name: str) -> ParseType:
        """Fresh schema with a single GROUP field (article at positions 2-3)."""
        ts = now_ms()
        return ParseType(
            id=new_id(),
            name=name,
            prefixes=[],
            fields=[ParseField(id="article", title="Article", start=2, length=2, role=ParseFieldRole.GROUP)],
            created_at=ts,
            updated_at=ts,
        )


# ============================================================================
# Products
# ============================================================================

class ProductRepository(_JsonRepository):
    FILE_NAME = "products.json"

    def load_all(self) -> List[Product]:
        return self._load(self.FILE_NAME, Product)

    def save_all(self, items: List[Product]) -> None:
        self._save(self.FILE_NAME, items)

    @staticmethod
    def new_product(name: str) -> Product:
        ts = now_ms()
        return Product(id=new_id(), name=name, aliases=[], created_at=ts, updated_at=ts)


# ============================================================================
# Scan lists
# ============================================================================

class ScanListRepository(_JsonRepository):
    FILE_NAME = "scan_lists.json"

    def load_all(self) -> List[ScanList]:
        return self._load(self.FILE_NAME, ScanList)

    def save_all(self, items: List[ScanList]) -> None:
        self._save(self.FILE_NAME, items)

    @staticmethod
    def new_list(name: str, parse_type_id: str) -> ScanList:
        ts = now_ms()
        return ScanList(id=new_id(), name=name, parse_type_id=parse_type_id, created_at=ts, updated_at=ts)


class ScanLogRepository(_JsonRepository):
    """One log document per scan list: scan_logs_{list_id}.json"""

    @staticmethod
    def file_name(list_id: str) -> str:
        return f"scan_logs_{list_id}.json"

    def load(self, list_id: str) -> List[ScanLogEntry]:
        return self._load(self.file_name(list_id), ScanLogEntry)

    def save(self, list_id: str, entries: List[ScanLogEntry]) -> None:
        self._save(self.file_name(list_id), entries)

    def delete(self, list_id: str) -> None:
        self.writer.submit_delete(self.file_name(list_id))

    @staticmethod
    def new_entry(
        status: ScanStatus,
        code: str,
        parse_type_id: str,
        group_key: Optional[str] = None,
        product_name: Optional[str] = None,
        field_values: Optional[Dict[str, str]] = None,
        status_message: Optional[str] = None,
        error_code: Optional[str] = None,
    ) -> ScanLogEntry:
        return ScanLogEntry(
            id=new_id(),
            timestamp=now_ms(),
            code=code,
            status=status,
            status_message=status_message,
            error_code=error_code,
            parse_type_id=parse_type_id,
            group_key=group_key,
            product_name=product_name,
            field_values=dict(field_values or {}),
        )
