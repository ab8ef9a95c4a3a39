# scan_hub/services/scan_session.py
"""
In-memory state of one scan list.

The scan log is the source of truth: every scan (accepted or rejected) becomes
a log entry, and the accepted ones are the list's items. Aggregates and totals
are recomputed from the items, so removing an entry or clearing the list never
leaves stale sums behind.
"""
from __future__ import annotations
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional, Tuple
import logging

from scan_hub.models import (
    ParseType, ScanAggregate, ScanList, ScanLogEntry, ScanStatus, ScannedItem,
    now_ms, plain_decimal,
)
from scan_hub.repositories import ScanLogRepository
from scan_hub.services.messages import error_message, success_message
from scan_hub.services.products import ProductService
from scan_hub.services.scan_processor import ScanProcessor, ScanResult, ScanSuccess
from scan_hub.services.settings_service import UiContext
from scan_hub.services.totals import WeightCarry, grand_total, group_by_key, total_count

logger = logging.getLogger(__name__)


def field_values_of(result: ScanSuccess, parse_type: ParseType) -> Dict[str, str]:
    values = {parse_type.group_field.id: result.group_key}
    values.update({k: plain_decimal(v) for k, v in result.sum_values.items()})
    values.update(result.info_values)
    return values


def item_from_entry(entry: ScanLogEntry, parse_type: ParseType) -> Optional[ScannedItem]:
    """Rebuild the scanned item of an accepted log entry; None for rejected or unusable entries."""
    if entry.status != ScanStatus.OK or not entry.group_key:
        return None
    sums: Dict[str, Decimal] = {}
    for f in parse_type.sum_fields:
        raw = entry.field_values.get(f.id)
        if raw is None:
            continue
        try:
            sums[f.id] = Decimal(raw)
        except InvalidOperation:
            logger.warning("Log entry %s: %s=%r is not a number, skipped", entry.id, f.id, raw)
            return None
    infos = {f.id: entry.field_values[f.id] for f in parse_type.info_fields if f.id in entry.field_values}
    return ScannedItem(
        code=entry.code,
        group_key=entry.group_key,
        sum_values=sums,
        info_values=infos,
        timestamp=entry.timestamp,
    )


class ScanSession:
    def __init__(self, parse_type: ParseType, products: Optional[ProductService] = None):
        self.parse_type = parse_type
        self.products = products
        self.processor = ScanProcessor(parse_type)
        self.carry = WeightCarry.for_parse_type(parse_type)
        self._log: List[ScanLogEntry] = []
        self._items: Dict[str, ScannedItem] = {}

    @classmethod
    def from_log(cls, parse_type: ParseType, entries: List[ScanLogEntry],
                 products: Optional[ProductService] = None) -> "ScanSession":
        session = cls(parse_type, products)
        for entry in entries:
            session._log.append(entry)
            item = item_from_entry(entry, parse_type)
            if item is not None:
                session._items[entry.id] = item
        return session

    # ---------- mutations ----------
    def scan(self, code: str, ui: Optional[UiContext] = None) -> Tuple[ScanResult, ScanLogEntry]:
        ui = ui or UiContext()
        result = self.processor.parse(code)
        if isinstance(result, ScanSuccess):
            product = self._product_for(result.group_key, code)
            entry = ScanLogRepository.new_entry(
                ScanStatus.OK, code, self.parse_type.id,
                group_key=result.group_key,
                product_name=product.name if product else None,
                field_values=field_values_of(result, self.parse_type),
                status_message=success_message(ui.language),
            )
            self._items[entry.id] = ScannedItem(
                code=code,
                group_key=result.group_key,
                sum_values=result.sum_values,
                info_values=result.info_values,
                timestamp=entry.timestamp,
            )
        else:
            entry = ScanLogRepository.new_entry(
                ScanStatus.ERROR, code, self.parse_type.id,
                status_message=error_message(result.error, ui.language),
                error_code=result.error.error_code,
            )
        self._log.append(entry)
        return result, entry

    def remove(self, entry_id: str) -> bool:
        before = len(self._log)
        self._log = [e for e in self._log if e.id != entry_id]
        self._items.pop(entry_id, None)
        return len(self._log) != before

    def clear(self) -> None:
        self._log = []
        self._items = {}

    # ---------- views ----------
    def log(self) -> List[ScanLogEntry]:
        return list(self._log)

    def items(self) -> List[ScannedItem]:
        return list(self._items.values())

    def aggregates(self) -> List[ScanAggregate]:
        groups = group_by_key(self._items.values(), self.carry)
        if self.products is None:
            return groups
        latest_code = {item.group_key: item.code for item in sorted(self._items.values(), key=lambda i: i.timestamp)}
        out = []
        for group in groups:
            product = self._product_for(group.group_key, latest_code.get(group.group_key))
            if product is not None:
                group = group.model_copy(update={"product_id": product.id, "product_name": product.name})
            out.append(group)
        return out

    def grand_total(self) -> Dict[str, Decimal]:
        return grand_total(group_by_key(self._items.values()), self.carry)

    def snapshot(self, base: ScanList, touch: bool = True) -> ScanList:
        """Copy of base with counts, totals and aggregates recomputed from the items."""
        groups = self.aggregates()
        update = {
            "total_count": total_count(groups),
            "total_sum_values": self.grand_total(),
            "aggregates": groups,
        }
        if touch:
            update["updated_at"] = max(now_ms(), base.updated_at)
        return base.model_copy(update=update)

    def _product_for(self, group_key: str, code: Optional[str]):
        if self.products is None:
            return None
        return self.products.resolve(self.parse_type.id, group_key, code)
