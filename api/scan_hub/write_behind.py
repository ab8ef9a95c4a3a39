# scan_hub/write_behind.py
"""
Write-behind queue for JSON documents.

Scans must not wait for the disk. Each document name holds at most one pending
payload; a newer submit for the same name replaces the older one (last write
wins), so a burst of scans on one list ends in a single write.
"""
from __future__ import annotations
from typing import Any, Dict, Optional, Tuple
import logging, threading

from scan_hub.json_store import JsonFileStore

logger = logging.getLogger(__name__)

_DELETE = object()


class CoalescingWriter:
    def __init__(self, store: JsonFileStore, delay_ms: int = 0):
        self.store = store
        self._delay = max(0, delay_ms) / 1000.0
        self._pending: Dict[str, Any] = {}
        self._inflight: Dict[str, Any] = {}
        self._cond = threading.Condition()
        self._flush_requested = False
        self._closed = False
        self._thread = threading.Thread(target=self._run, name="scan-hub-writer", daemon=True)
        self._thread.start()

    # ---------- producer side ----------
    def submit(self, name: str, payload: Any) -> None:
        with self._cond:
            if self._closed:
                raise RuntimeError("Writer is closed")
            self._pending[name] = payload
            self._cond.notify_all()

    def submit_delete(self, name: str) -> None:
        self.submit(name, _DELETE)

    def read(self, name: str) -> Optional[Any]:
        """Latest known document: pending or in-flight payload first, then disk."""
        found, payload = self._peek(name)
        if found:
            return None if payload is _DELETE else payload
        return self.store.read(name)

    def _peek(self, name: str) -> Tuple[bool, Any]:
        with self._cond:
            if name in self._pending:
                return True, self._pending[name]
            if name in self._inflight:
                return True, self._inflight[name]
        return False, None

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Block until everything submitted so far is on disk."""
        with self._cond:
            self._flush_requested = True
            self._cond.notify_all()
            done = self._cond.wait_for(lambda: not self._pending and not self._inflight, timeout)
            if done:
                self._flush_requested = False
            return done

    def close(self, timeout: Optional[float] = 5.0) -> None:
        self.flush(timeout)
        with self._cond:
            self._closed = True
            self._cond.notify_all()
        self._thread.join(timeout)

    # ---------- consumer side ----------
    def _run(self) -> None:
        while True:
            with self._cond:
                self._cond.wait_for(lambda: self._pending or self._closed)
                if self._closed and not self._pending:
                    return
                if self._delay and not self._flush_requested and not self._closed:
                    # let superseding writes pile up
                    self._cond.wait_for(lambda: self._flush_requested or self._closed, self._delay)
                batch, self._pending = self._pending, {}
                self._inflight = batch
                self._flush_requested = False

            for name, payload in batch.items():
                try:
                    if payload is _DELETE:
                        self.store.delete(name)
                    else:
                        self.store.write_atomic(name, payload)
                except (OSError, TypeError, ValueError):
                    logger.exception("Failed to persist %s", name)

            with self._cond:
                self._inflight = {}
                self._cond.notify_all()
