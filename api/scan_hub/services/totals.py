# scan_hub/services/totals.py
"""
Grouping and summation of scanned items.

Sums are exact (Decimal, never float). When a schema carries both a kilogram
and a gram SUM field, whole kilograms hidden in the gram total are carried
over: kg += g // 1000, g %= 1000. The carry runs once per result, after all
raw values have been added.
"""
from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from scan_hub.models import ParseType, ScanAggregate, ScannedItem, strip_trailing_zeros

GRAMS_PER_KG = 1000

KG_UNITS = {"kg", "кг"}
G_UNITS = {"g", "г"}


@dataclass(frozen=True)
class WeightCarry:
    kg_field_id: str
    g_field_id: str

    @classmethod
    def for_parse_type(cls, parse_type: ParseType) -> Optional["WeightCarry"]:
        """Carry rule for schemas with exactly one kg and one g SUM field."""
        kg = [f for f in parse_type.sum_fields if (f.unit or "").strip().lower() in KG_UNITS]
        g = [f for f in parse_type.sum_fields if (f.unit or "").strip().lower() in G_UNITS]
        if len(kg) == 1 and len(g) == 1:
            return cls(kg_field_id=kg[0].id, g_field_id=g[0].id)
        return None

    def apply(self, values: Dict[str, Decimal]) -> Dict[str, Decimal]:
        if self.g_field_id not in values and self.kg_field_id not in values:
            return values
        kg = values.get(self.kg_field_id, Decimal(0))
        g = values.get(self.g_field_id, Decimal(0))
        carried, g = divmod(g, GRAMS_PER_KG)
        out = dict(values)
        out[self.kg_field_id] = kg + carried
        out[self.g_field_id] = g
        return out


def _normalized(values: Mapping[str, Decimal]) -> Dict[str, Decimal]:
    return {k: strip_trailing_zeros(v) for k, v in values.items()}


def _accumulate(target: Dict[str, Decimal], values: Mapping[str, Decimal]) -> None:
    for field_id, value in values.items():
        target[field_id] = target.get(field_id, Decimal(0)) + value


def group_by_key(items: Iterable[ScannedItem], carry: Optional[WeightCarry] = None) -> List[ScanAggregate]:
    """One aggregate per group key, most recently scanned group first (later items win ties)."""
    sums: Dict[str, Dict[str, Decimal]] = {}
    counts: Dict[str, int] = {}
    latest: Dict[str, int] = {}
    touched: Dict[str, int] = {}  # position of the item that set latest; breaks same-millisecond ties
    for position, item in enumerate(items):
        key = item.group_key
        _accumulate(sums.setdefault(key, {}), item.sum_values)
        counts[key] = counts.get(key, 0) + 1
        if key not in latest or item.timestamp >= latest[key]:
            latest[key] = item.timestamp
            touched[key] = position

    groups = []
    for key, values in sums.items():
        if carry is not None:
            values = carry.apply(values)
        groups.append(ScanAggregate(
            group_key=key,
            count=counts[key],
            sum_values=_normalized(values),
            latest_timestamp=latest[key],
        ))
    groups.sort(key=lambda a: (a.latest_timestamp, touched[a.group_key]), reverse=True)
    return groups


def grand_total(groups: Iterable[ScanAggregate], carry: Optional[WeightCarry] = None) -> Dict[str, Decimal]:
    """Sum the groups' raw values, then carry once."""
    totals: Dict[str, Decimal] = {}
    for group in groups:
        _accumulate(totals, group.sum_values)
    if carry is not None:
        totals = carry.apply(totals)
    return _normalized(totals)


def total_count(groups: Iterable[ScanAggregate]) -> int:
    return sum(g.count for g in groups)


def split_weight(values: Mapping[str, Decimal], carry: WeightCarry) -> Tuple[Decimal, Decimal]:
    """(kg, g) pair from an already-carried value map."""
    return (
        values.get(carry.kg_field_id, Decimal(0)),
        values.get(carry.g_field_id, Decimal(0)),
    )
