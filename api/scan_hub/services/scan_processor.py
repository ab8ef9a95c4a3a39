# scan_hub/services/scan_processor.py
"""
Schema-driven barcode parsing.

A ScanProcessor is built once per ParseType and turns a raw scanned string into
either ScanSuccess (group key + SUM/INFO values) or ScanFailure carrying a typed
ScanError. Parse problems are returned, never raised, so the caller decides how
to report them.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, Optional, Union

from scan_hub.models import ParseField, ParseType, strip_trailing_zeros
from scan_hub.services import ean13

SUM_PRECISION = Decimal("0.000001")  # 6 fractional digits


# ============================================================================
# Errors and results
# ============================================================================

@dataclass(frozen=True)
class ScanError:
    error_code = "scan_error"

    @property
    def field_title(self) -> Optional[str]:
        return None


@dataclass(frozen=True)
class InvalidChecksum(ScanError):
    error_code = "invalid_checksum"


@dataclass(frozen=True)
class InvalidPrefix(ScanError):
    error_code = "invalid_prefix"


@dataclass(frozen=True)
class FieldOutOfRange(ScanError):
    error_code = "field_out_of_range"


@dataclass(frozen=True)
class RequiredFieldEmpty(ScanError):
    title: str = ""
    error_code = "required_field_empty"

    @property
    def field_title(self) -> Optional[str]:
        return self.title


@dataclass(frozen=True)
class FieldNotNumeric(ScanError):
    title: str = ""
    error_code = "field_not_numeric"

    @property
    def field_title(self) -> Optional[str]:
        return self.title


@dataclass(frozen=True)
class ScanSuccess:
    code: str
    group_key: str
    sum_values: Dict[str, Decimal] = field(default_factory=dict)
    info_values: Dict[str, str] = field(default_factory=dict)

    ok = True


@dataclass(frozen=True)
class ScanFailure:
    code: str
    error: ScanError

    ok = False


ScanResult = Union[ScanSuccess, ScanFailure]


class _SliceOutOfRange(IndexError):
    pass


def slice_field(code: str, parse_field: ParseField) -> str:
    """Raw 1-based slice; raises instead of silently truncating past the end."""
    start = parse_field.start - 1
    end = start + parse_field.length
    if start < 0 or end > len(code):
        raise _SliceOutOfRange(f"{parse_field.id}: {parse_field.start}+{parse_field.length} exceeds {len(code)} chars")
    return code[start:end]


def _trimmed(value: str, parse_field: ParseField) -> str:
    return value.lstrip("0") if parse_field.trim_leading_zeros else value


# ============================================================================
# Processor
# ============================================================================

class ScanProcessor:
    def __init__(self, parse_type: ParseType):
        self.parse_type = parse_type
        self._prefixes = list(parse_type.prefixes)
        self._group_field = parse_type.group_field
        self._sum_fields = parse_type.sum_fields
        self._info_fields = parse_type.info_fields

    def accepts_prefix(self, code: str) -> bool:
        if not self._prefixes:
            return True
        return any(code.startswith(p) for p in self._prefixes)

    def parse(self, code: str) -> ScanResult:
        if not ean13.is_valid(code):
            return ScanFailure(code, InvalidChecksum())
        if not self.accepts_prefix(code):
            return ScanFailure(code, InvalidPrefix())
        try:
            return self._extract(code)
        except _SliceOutOfRange:
            return ScanFailure(code, FieldOutOfRange())

    def _extract(self, code: str) -> ScanResult:
        group_value = _trimmed(slice_field(code, self._group_field), self._group_field)
        if not group_value:
            return ScanFailure(code, RequiredFieldEmpty(self._group_field.title))

        sums: Dict[str, Decimal] = {}
        for f in self._sum_fields:
            raw = slice_field(code, f)
            if not raw:
                return ScanFailure(code, RequiredFieldEmpty(f.title))
            try:
                numeric = Decimal(raw)
            except InvalidOperation:
                return ScanFailure(code, FieldNotNumeric(f.title))
            if not numeric.is_finite():
                return ScanFailure(code, FieldNotNumeric(f.title))
            value = (numeric / Decimal(f.divisor)).quantize(SUM_PRECISION, rounding=ROUND_HALF_UP)
            sums[f.id] = strip_trailing_zeros(value)

        infos: Dict[str, str] = {}
        for f in self._info_fields:
            infos[f.id] = _trimmed(slice_field(code, f), f) or "0"

        return ScanSuccess(code=code, group_key=group_value, sum_values=sums, info_values=infos)
