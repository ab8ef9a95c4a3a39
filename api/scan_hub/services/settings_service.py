# scan_hub/services/settings_service.py
"""
User settings: parser positions, allowed prefixes, delete confirmation, language, theme.

SettingsRepository  - settings.json on disk, normalization, queue of saved updates
SettingsChannel     - publish/subscribe holding the last published value
SettingsService     - blocking first load, then a listener thread feeding the channel with
                      saved updates and with changes other processes make to settings.json
UiContext           - language/theme snapshot handed explicitly to whoever renders text
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Iterable, List, NamedTuple, Optional, Tuple
import itertools, logging, queue, re, threading

from pydantic import ValidationError

from scan_hub.errors import SchemaInvalidError
from scan_hub.json_store import JsonFileStore
from scan_hub.models import AppLanguage, AppTheme, ParserConfig, SettingsState
from scan_hub.services.schema_validator import is_parser_config_valid

logger = logging.getLogger(__name__)

PREFIX_RE = re.compile(r"\d{1,13}")


def normalize_prefixes(raw: Iterable[str]) -> List[str]:
    """Strip whitespace, keep 1-13 digit strings, drop duplicates, sort by length then value."""
    cleaned = set()
    for prefix in raw or []:
        compact = "".join(str(prefix).split())
        if compact and PREFIX_RE.fullmatch(compact):
            cleaned.add(compact)
    return sorted(cleaned, key=lambda p: (len(p), p))


class SettingsUpdate(NamedTuple):
    revision: int
    state: SettingsState


@dataclass(frozen=True)
class UiContext:
    language: AppLanguage = AppLanguage.UK
    theme: AppTheme = AppTheme.LIGHT

    @classmethod
    def from_settings(cls, state: SettingsState) -> "UiContext":
        return cls(language=state.language, theme=state.theme)


# ============================================================================
# Repository
# ============================================================================

class SettingsRepository:
    FILE_NAME = "settings.json"

    def __init__(self, store: JsonFileStore):
        self.store = store
        self.updates: "queue.Queue[Optional[SettingsUpdate]]" = queue.Queue()
        self._lock = threading.Lock()
        self._revisions = itertools.count(1)
        self._stamp: Optional[Tuple[int, int, int]] = None
        self.revision = 0

    def load(self) -> SettingsState:
        """Stored settings; anything unreadable or invalid falls back to defaults."""
        with self._lock:
            self._stamp = self.store.stamp(self.FILE_NAME)
            return self._read()

    def reload(self) -> Optional[SettingsUpdate]:
        """New revision when settings.json was rewritten by someone else since the last load/save."""
        with self._lock:
            stamp = self.store.stamp(self.FILE_NAME)
            if stamp == self._stamp:
                return None
            self._stamp = stamp
            self.revision = next(self._revisions)
            update = SettingsUpdate(self.revision, self._read())
        logger.info("settings.json changed on disk, reloaded (revision %d)", update.revision)
        return update

    def save(self, state: SettingsState) -> SettingsUpdate:
        if not is_parser_config_valid(state.parser_config):
            raise SchemaInvalidError("Parser config ranges are outside 1..13 or overlap")
        normalized = state.model_copy(update={"allowed_prefixes": normalize_prefixes(state.allowed_prefixes)})
        with self._lock:
            self.store.write_atomic(self.FILE_NAME, normalized.model_dump(mode="json", by_alias=True))
            self._stamp = self.store.stamp(self.FILE_NAME)
            self.revision = next(self._revisions)
            update = SettingsUpdate(self.revision, normalized)
            self.updates.put(update)
        logger.info("Settings saved (revision %d)", update.revision)
        return update

    def reset(self) -> SettingsUpdate:
        return self.save(SettingsState())

    def _read(self) -> SettingsState:
        raw = self.store.read(self.FILE_NAME)
        if raw is None:
            return SettingsState()
        try:
            state = SettingsState.model_validate(raw)
        except ValidationError as e:
            logger.warning("settings.json is invalid, using defaults: %s", e.errors()[:1])
            return SettingsState()

        parser_config = state.parser_config
        if not is_parser_config_valid(parser_config):
            logger.warning("Stored parser config %s is invalid, using defaults", parser_config)
            parser_config = ParserConfig()
        return state.model_copy(update={
            "parser_config": parser_config,
            "allowed_prefixes": normalize_prefixes(state.allowed_prefixes),
        })


# ============================================================================
# Channel
# ============================================================================

Subscriber = Callable[[SettingsState], None]


class SettingsChannel:
    """Last-value pub/sub; new subscribers immediately receive the current value."""

    def __init__(self):
        self._lock = threading.Lock()
        self._value: Optional[SettingsState] = None
        self._revision = -1
        self._subscribers: List[Subscriber] = []

    @property
    def value(self) -> Optional[SettingsState]:
        return self._value

    def publish(self, state: SettingsState, revision: Optional[int] = None) -> bool:
        """Returns False (and notifies nobody) when revision is older than the current one."""
        with self._lock:
            if revision is not None:
                if revision <= self._revision:
                    return False
                self._revision = revision
            self._value = state
            subscribers = list(self._subscribers)
        for callback in subscribers:
            self._notify(callback, state)
        return True

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(callback)
            current = self._value
        if current is not None:
            self._notify(callback, current)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    @staticmethod
    def _notify(callback: Subscriber, state: SettingsState) -> None:
        try:
            callback(state)
        except Exception:
            logger.exception("Settings subscriber %r failed", callback)


# ============================================================================
# Service
# ============================================================================

class SettingsService:
    def __init__(self, repository: SettingsRepository, channel: Optional[SettingsChannel] = None,
                 poll_interval: float = 0.25):
        self.repository = repository
        self.poll_interval = poll_interval
        self.channel = channel or SettingsChannel()
        self._init_lock = threading.Lock()
        self._ready = threading.Event()
        self._listener: Optional[threading.Thread] = None

    def initialize(self) -> SettingsState:
        """Load settings once (callers block until it is done), then follow updates in the background."""
        if self._ready.is_set():
            return self.channel.value
        with self._init_lock:
            if not self._ready.is_set():
                self.channel.publish(self.repository.load(), revision=self.repository.revision)
                self._listener = threading.Thread(target=self._listen, name="scan-hub-settings", daemon=True)
                self._listener.start()
                self._ready.set()
        return self.channel.value

    @property
    def current(self) -> SettingsState:
        return self.initialize()

    def ui_context(self) -> UiContext:
        return UiContext.from_settings(self.current)

    def update(self, state: SettingsState) -> SettingsState:
        self.initialize()
        saved = self.repository.save(state)
        self.channel.publish(saved.state, revision=saved.revision)
        return saved.state

    def reset(self) -> SettingsState:
        self.initialize()
        saved = self.repository.reset()
        self.channel.publish(saved.state, revision=saved.revision)
        return saved.state

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        return self.channel.subscribe(callback)

    def close(self, timeout: float = 2.0) -> None:
        if self._listener is None:
            return
        self.repository.updates.put(None)
        self._listener.join(timeout)
        self._listener = None

    def _listen(self) -> None:
        """Publish queued saves; between them, pick up edits other processes make to settings.json."""
        while True:
            try:
                update = self.repository.updates.get(timeout=self.poll_interval)
            except queue.Empty:
                update = self.repository.reload()
                if update is not None:
                    self.channel.publish(update.state, revision=update.revision)
                continue
            if update is None:
                return
            self.channel.publish(update.state, revision=update.revision)
