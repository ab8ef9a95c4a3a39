# scan_hub/services/scan_lists.py
"""
Scan list service.

- One lock per list id serializes scans/removals/clears on that list; other
  lists proceed in parallel.
- The list index (scan_lists.json) has its own lock. Lock order is always
  list lock -> index lock.
- Documents are handed to the write-behind queue; the in-memory state is
  authoritative while the process runs.
"""
from __future__ import annotations
from collections import defaultdict
from dataclasses import dataclass
from typing import DefaultDict, Dict, List, Optional
import logging, threading

from scan_hub.errors import ScanEntryNotFoundError, ScanListNotFoundError
from scan_hub.models import ScanList, ScanLogEntry, now_ms
from scan_hub.repositories import ScanListRepository, ScanLogRepository
from scan_hub.services.parse_types import DEFAULT_PARSE_TYPE_ID, ParseTypeService
from scan_hub.services.products import ProductService
from scan_hub.services.scan_processor import ScanResult
from scan_hub.services.scan_session import ScanSession
from scan_hub.services.settings_service import SettingsService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanOutcome:
    result: ScanResult
    entry: ScanLogEntry
    scan_list: ScanList


class ScanListService:
    def __init__(
        self,
        lists: ScanListRepository,
        logs: ScanLogRepository,
        parse_types: ParseTypeService,
        products: ProductService,
        settings: SettingsService,
    ):
        self.lists = lists
        self.logs = logs
        self.parse_types = parse_types
        self.products = products
        self.settings = settings

        self._locks: DefaultDict[str, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()
        self._index_lock = threading.RLock()
        self._index: Optional[Dict[str, ScanList]] = None
        self._sessions: Dict[str, ScanSession] = {}

    # ---------- internals ----------
    def _lock_for(self, list_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks[list_id]

    def _all(self) -> Dict[str, ScanList]:
        with self._index_lock:
            if self._index is None:
                self._index = {sl.id: sl for sl in self.lists.load_all()}
            return self._index

    def _persist_index(self) -> None:
        with self._index_lock:
            self.lists.save_all(list(self._all().values()))

    def _require(self, list_id: str) -> ScanList:
        with self._index_lock:
            scan_list = self._all().get(list_id)
        if scan_list is None:
            raise ScanListNotFoundError(list_id)
        return scan_list

    def _session(self, scan_list: ScanList) -> ScanSession:
        """Cached session, rebuilt from the log when the list's parse type changed."""
        parse_type = self.parse_types.get(scan_list.parse_type_id)
        session = self._sessions.get(scan_list.id)
        if session is None or session.parse_type != parse_type:
            session = ScanSession.from_log(parse_type, self.logs.load(scan_list.id), self.products)
            self._sessions[scan_list.id] = session
        return session

    def _commit(self, scan_list: ScanList, session: ScanSession, touch: bool = True) -> ScanList:
        snapshot = session.snapshot(scan_list, touch=touch)
        with self._index_lock:
            self._all()[snapshot.id] = snapshot
            self._persist_index()
        self.logs.save(snapshot.id, session.log())
        return snapshot

    # ---------- queries ----------
    def list_all(self) -> List[ScanList]:
        with self._index_lock:
            items = list(self._all().values())
        return sorted(items, key=lambda sl: sl.updated_at, reverse=True)

    def get(self, list_id: str) -> ScanList:
        return self._require(list_id)

    def log(self, list_id: str) -> List[ScanLogEntry]:
        with self._lock_for(list_id):
            return self._session(self._require(list_id)).log()

    def summary(self, list_id: str) -> ScanList:
        """Aggregates recomputed against the current product directory, not persisted."""
        with self._lock_for(list_id):
            scan_list = self._require(list_id)
            return self._session(scan_list).snapshot(scan_list, touch=False)

    def list_ids_using(self, parse_type_id: str) -> List[str]:
        with self._index_lock:
            return [sl.id for sl in self._all().values() if sl.parse_type_id == parse_type_id]

    # ---------- list management ----------
    def create(self, name: str, parse_type_id: str = DEFAULT_PARSE_TYPE_ID) -> ScanList:
        self.parse_types.get(parse_type_id)
        scan_list = self.lists.new_list(name.strip(), parse_type_id)
        with self._index_lock:
            self._all()[scan_list.id] = scan_list
            self._persist_index()
        self.logs.save(scan_list.id, [])
        logger.info("Scan list created: %s (%s, parse type %s)", scan_list.name, scan_list.id, parse_type_id)
        return scan_list

    def rename(self, list_id: str, name: str) -> ScanList:
        with self._lock_for(list_id):
            scan_list = self._require(list_id)
            renamed = scan_list.model_copy(update={"name": name.strip(), "updated_at": max(now_ms(), scan_list.updated_at)})
            with self._index_lock:
                self._all()[list_id] = renamed
                self._persist_index()
        return renamed

    def delete(self, list_id: str) -> None:
        with self._lock_for(list_id):
            self._require(list_id)
            with self._index_lock:
                self._all().pop(list_id, None)
                self._persist_index()
            self._sessions.pop(list_id, None)
            self.logs.delete(list_id)
        with self._locks_guard:
            self._locks.pop(list_id, None)
        logger.info("Scan list deleted: %s", list_id)

    # ---------- scanning ----------
    def scan(self, list_id: str, code: str) -> ScanOutcome:
        ui = self.settings.ui_context()
        with self._lock_for(list_id):
            scan_list = self._require(list_id)
            session = self._session(scan_list)
            result, entry = session.scan(code, ui)
            snapshot = self._commit(scan_list, session)
        if result.ok:
            logger.debug("List %s: %s -> %s", list_id, entry.code, entry.group_key)
        else:
            logger.info("List %s: rejected %r (%s)", list_id, entry.code, entry.error_code)
        return ScanOutcome(result=result, entry=entry, scan_list=snapshot)

    def remove_entry(self, list_id: str, entry_id: str) -> ScanList:
        with self._lock_for(list_id):
            scan_list = self._require(list_id)
            session = self._session(scan_list)
            if not session.remove(entry_id):
                raise ScanEntryNotFoundError(list_id, entry_id)
            return self._commit(scan_list, session)

    def clear(self, list_id: str) -> ScanList:
        with self._lock_for(list_id):
            scan_list = self._require(list_id)
            session = self._session(scan_list)
            session.clear()
            snapshot = self._commit(scan_list, session)
        logger.info("Scan list cleared: %s", list_id)
        return snapshot

    def refresh_products(self) -> None:
        """Re-resolve product names on every list after the product directory changed."""
        for list_id in [sl.id for sl in self.list_all()]:
            with self._lock_for(list_id):
                try:
                    scan_list = self._require(list_id)
                except ScanListNotFoundError:
                    continue
                self._commit(scan_list, self._session(scan_list), touch=False)
