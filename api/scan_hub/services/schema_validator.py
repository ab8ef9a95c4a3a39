# scan_hub/services/schema_validator.py
"""
Range checks for parse schemas.

A field covers the 1-based positions [start, start + length - 1]; every field
must lie inside the 13-character code and no two fields may share a position.
Invalid schemas are rejected at save time, never repaired.
"""
from __future__ import annotations
from typing import Iterable, List, Optional, Tuple

from scan_hub.errors import SchemaInvalidError
from scan_hub.models import ParseField, ParseType, ParserConfig
from scan_hub.services.ean13 import EAN13_LENGTH


def is_range_valid(start: int, length: int) -> bool:
    if not 1 <= start <= EAN13_LENGTH:
        return False
    if length < 1:
        return False
    return start + length - 1 <= EAN13_LENGTH


def _zero_based(start: int, length: int) -> Tuple[int, int]:
    """Inclusive 0-based (first, last) index pair."""
    return start - 1, start - 1 + length - 1


def _overlaps(a: Tuple[int, int], b: Tuple[int, int]) -> bool:
    return a[0] <= b[1] and b[0] <= a[1]


def find_schema_problem(ranges: List[Tuple[str, int, int]]) -> Optional[str]:
    """First reason the (name, start, length) ranges are invalid, or None."""
    for name, start, length in ranges:
        if not is_range_valid(start, length):
            return f"Field '{name}' range {start}+{length} is outside 1..{EAN13_LENGTH}"
    spans = [(name, _zero_based(start, length)) for name, start, length in ranges]
    for i in range(len(spans)):
        for j in range(i + 1, len(spans)):
            if _overlaps(spans[i][1], spans[j][1]):
                return f"Fields '{spans[i][0]}' and '{spans[j][0]}' overlap"
    return None


def is_schema_valid(fields: Iterable[ParseField]) -> bool:
    return find_schema_problem([(f.title, f.start, f.length) for f in fields]) is None


def is_parser_config_valid(config: ParserConfig) -> bool:
    return find_schema_problem([
        ("article", config.article_start, config.article_length),
        ("kg", config.kg_start, config.kg_length),
        ("g", config.g_start, config.g_length),
    ]) is None


def validate_parse_type(parse_type: ParseType) -> ParseType:
    """Raise SchemaInvalidError unless every field is in range and none overlap."""
    problem = find_schema_problem([(f.title, f.start, f.length) for f in parse_type.fields])
    if problem:
        raise SchemaInvalidError(problem)
    return parse_type
