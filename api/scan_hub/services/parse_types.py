# scan_hub/services/parse_types.py
"""
Parse type management.

The built-in "default" parse type is not stored: it is derived on every lookup
from the user's ParserConfig and allowed prefixes (article / kg / g), so a
settings change is picked up by the next scan.
"""
from __future__ import annotations
from typing import Callable, Iterable, List, Optional
import logging, threading

from scan_hub.errors import ParseTypeInUseError, ParseTypeNotFoundError, SchemaInvalidError
from scan_hub.models import ParseField, ParseFieldRole, ParseType, ParserConfig, now_ms
from scan_hub.repositories import ParseTypeRepository
from scan_hub.services.scan_processor import ScanProcessor, ScanResult
from scan_hub.services.schema_validator import validate_parse_type
from scan_hub.services.settings_service import SettingsService

logger = logging.getLogger(__name__)

DEFAULT_PARSE_TYPE_ID = "default"


def parse_type_from_config(config: ParserConfig, prefixes: Iterable[str] = (), name: str = "Default") -> ParseType:
    return ParseType(
        id=DEFAULT_PARSE_TYPE_ID,
        name=name,
        prefixes=list(prefixes),
        fields=[
            ParseField(id="article", title="Article", start=config.article_start,
                       length=config.article_length, role=ParseFieldRole.GROUP),
            ParseField(id="kg", title="kg", start=config.kg_start,
                       length=config.kg_length, role=ParseFieldRole.SUM, unit="kg"),
            ParseField(id="g", title="g", start=config.g_start,
                       length=config.g_length, role=ParseFieldRole.SUM, unit="g"),
        ],
        created_at=0,
        updated_at=0,
    )


class ParseTypeService:
    def __init__(self, repository: ParseTypeRepository, settings: SettingsService):
        self.repository = repository
        self.settings = settings
        # list ids referencing a parse type; wired by the runtime once scan lists exist
        self.usage: Callable[[str], List[str]] = lambda parse_type_id: []
        self._lock = threading.RLock()
        self._stored: Optional[List[ParseType]] = None

    def _all_stored(self) -> List[ParseType]:
        if self._stored is None:
            self._stored = self.repository.load_all()
        return self._stored

    def default(self) -> ParseType:
        state = self.settings.current
        return parse_type_from_config(state.parser_config, state.allowed_prefixes)

    def list_all(self) -> List[ParseType]:
        with self._lock:
            return [self.default()] + list(self._all_stored())

    def get(self, parse_type_id: str) -> ParseType:
        if parse_type_id == DEFAULT_PARSE_TYPE_ID:
            return self.default()
        with self._lock:
            for pt in self._all_stored():
                if pt.id == parse_type_id:
                    return pt
        raise ParseTypeNotFoundError(parse_type_id)

    def create(self, name: str) -> ParseType:
        return self.save(self.repository.new_parse_type(name))

    def save(self, parse_type: ParseType) -> ParseType:
        """Insert or replace; invalid ranges raise SchemaInvalidError and nothing is stored."""
        if parse_type.id == DEFAULT_PARSE_TYPE_ID:
            raise SchemaInvalidError("The default parse type is defined by the parser settings")
        validate_parse_type(parse_type)
        with self._lock:
            stored = self._all_stored()
            existing = next((i for i, pt in enumerate(stored) if pt.id == parse_type.id), None)
            if existing is None:
                saved = parse_type.model_copy(update={"updated_at": now_ms()})
                stored.append(saved)
            else:
                saved = parse_type.model_copy(update={
                    "created_at": stored[existing].created_at,
                    "updated_at": max(now_ms(), stored[existing].updated_at + 1),
                })
                stored[existing] = saved
            self.repository.save_all(stored)
        logger.info("Parse type saved: %s (%s)", saved.name, saved.id)
        return saved

    def delete(self, parse_type_id: str) -> None:
        if parse_type_id == DEFAULT_PARSE_TYPE_ID:
            raise ParseTypeInUseError(parse_type_id, [])
        with self._lock:
            self.get(parse_type_id)
            in_use = self.usage(parse_type_id)
            if in_use:
                raise ParseTypeInUseError(parse_type_id, in_use)
            self._stored = [pt for pt in self._all_stored() if pt.id != parse_type_id]
            self.repository.save_all(self._stored)
        logger.info("Parse type deleted: %s", parse_type_id)

    def processor(self, parse_type_id: str) -> ScanProcessor:
        return ScanProcessor(self.get(parse_type_id))

    def parse(self, parse_type_id: str, code: str) -> ScanResult:
        return self.processor(parse_type_id).parse(code)
