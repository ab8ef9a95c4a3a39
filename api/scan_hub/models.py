import enum
import time
from decimal import Decimal
from typing import Optional, Dict, List, Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator, model_validator
from pydantic.alias_generators import to_camel


def now_ms() -> int:
    return int(time.time() * 1000)


def strip_trailing_zeros(value: Decimal) -> Decimal:
    """Drop trailing fractional zeros without switching to exponent notation (100 stays 100)."""
    normalized = value.normalize()
    if normalized.as_tuple().exponent > 0:
        return normalized.quantize(Decimal(1))
    return normalized


def plain_decimal(value: Decimal) -> str:
    return format(strip_trailing_zeros(value), "f")


# Decimals travel as plain strings in JSON ("1.5", "100"), never as floats
PlainDecimal = Annotated[Decimal, PlainSerializer(plain_decimal, return_type=str, when_used="json")]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Parse schemas
# ============================================================================

class ParseFieldRole(str, enum.Enum):
    GROUP = "GROUP"   # aggregation key (article)
    SUM = "SUM"       # accumulated across scans (weight, quantity)
    INFO = "INFO"     # carried to the log only (batch, series)


class ParseField(CamelModel):
    id: str
    title: str
    start: int = Field(ge=1)          # 1-based
    length: int = Field(ge=1)
    role: ParseFieldRole
    divisor: int = Field(default=1, ge=1)
    trim_leading_zeros: bool = False
    unit: Optional[str] = None


class ParseType(CamelModel):
    id: str
    name: str
    prefixes: List[str] = Field(default_factory=list)
    fields: List[ParseField]
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)

    @field_validator("prefixes")
    @classmethod
    def _prefixes_not_blank(cls, v: List[str]) -> List[str]:
        if any(not p.strip() for p in v):
            raise ValueError("Prefixes must not be blank")
        return v

    @model_validator(mode="after")
    def _single_group_field(self) -> "ParseType":
        groups = sum(1 for f in self.fields if f.role == ParseFieldRole.GROUP)
        if groups != 1:
            raise ValueError(f"Parse type must have exactly one GROUP field, got {groups}")
        return self

    @property
    def group_field(self) -> ParseField:
        return next(f for f in self.fields if f.role == ParseFieldRole.GROUP)

    @property
    def sum_fields(self) -> List[ParseField]:
        return [f for f in self.fields if f.role == ParseFieldRole.SUM]

    @property
    def info_fields(self) -> List[ParseField]:
        return [f for f in self.fields if f.role == ParseFieldRole.INFO]


# ============================================================================
# Products
# ============================================================================

class ProductAlias(CamelModel):
    parse_type_id: str
    group_key: str
    prefixes: List[str] = Field(default_factory=list)

    def matches(self, parse_type_id: str, group_key: str, code: Optional[str] = None) -> bool:
        if self.parse_type_id != parse_type_id or self.group_key != group_key:
            return False
        if not self.prefixes or code is None:
            return True
        return any(code.startswith(p) for p in self.prefixes)


class Product(CamelModel):
    id: str
    name: str
    aliases: List[ProductAlias] = Field(default_factory=list)
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)


# ============================================================================
# Scans, aggregates, lists
# ============================================================================

class ScannedItem(CamelModel):
    model_config = ConfigDict(frozen=True)

    code: str
    group_key: str
    sum_values: Dict[str, PlainDecimal] = Field(default_factory=dict)
    info_values: Dict[str, str] = Field(default_factory=dict)
    timestamp: int = Field(default_factory=now_ms)


class ScanAggregate(CamelModel):
    group_key: str
    product_id: Optional[str] = None
    product_name: Optional[str] = None
    count: int = 0
    sum_values: Dict[str, PlainDecimal] = Field(default_factory=dict)
    latest_timestamp: int = 0


class ScanList(CamelModel):
    id: str
    name: str
    parse_type_id: str
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)
    total_count: int = 0
    total_sum_values: Dict[str, PlainDecimal] = Field(default_factory=dict)
    aggregates: List[ScanAggregate] = Field(default_factory=list)


class ScanStatus(str, enum.Enum):
    OK = "OK"
    ERROR = "ERROR"


class ScanLogEntry(CamelModel):
    id: str
    timestamp: int = Field(default_factory=now_ms)
    code: str
    status: ScanStatus
    status_message: Optional[str] = None
    error_code: Optional[str] = None
    parse_type_id: str
    group_key: Optional[str] = None
    product_name: Optional[str] = None
    field_values: Dict[str, str] = Field(default_factory=dict)


# ============================================================================
# User settings
# ============================================================================

class ParserConfig(CamelModel):
    """1-based positions of article / kilograms / grams in a weight barcode."""

    model_config = ConfigDict(frozen=True)

    article_start: int = 2
    article_length: int = 2
    kg_start: int = 8
    kg_length: int = 2
    g_start: int = 10
    g_length: int = 3


class AppLanguage(str, enum.Enum):
    UK = "uk"
    EN = "en"


class AppTheme(str, enum.Enum):
    LIGHT = "light"
    DARK = "dark"


class SettingsState(CamelModel):
    model_config = ConfigDict(frozen=True)

    parser_config: ParserConfig = Field(default_factory=ParserConfig)
    confirm_delete: bool = True
    allowed_prefixes: List[str] = Field(default_factory=list)
    language: AppLanguage = AppLanguage.UK
    theme: AppTheme = AppTheme.LIGHT


# ============================================================================
# API payloads
# ============================================================================

class NameIn(BaseModel):
    name: str = Field(min_length=1)

class ScanListIn(CamelModel):
    name: str = Field(min_length=1)
    parse_type_id: str = "default"

class CodeIn(BaseModel):
    code: str

class ScanErrorOut(CamelModel):
    code: str
    message: str
    field_title: Optional[str] = None

class ParseOut(CamelModel):
    ok: bool
    code: str
    group_key: Optional[str] = None
    sum_values: Dict[str, PlainDecimal] = Field(default_factory=dict)
    info_values: Dict[str, str] = Field(default_factory=dict)
    error: Optional[ScanErrorOut] = None

class ProductIn(CamelModel):
    name: str = Field(min_length=1)
    aliases: List[ProductAlias] = Field(default_factory=list)

class ScanOut(CamelModel):
    result: ParseOut
    entry: ScanLogEntry
    scan_list: ScanList
