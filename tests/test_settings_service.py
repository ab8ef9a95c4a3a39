"""Settings repository, channel and service tests."""
import threading

import pytest

from scan_hub.errors import SchemaInvalidError
from scan_hub.models import AppLanguage, ParserConfig, SettingsState
from scan_hub.services.settings_service import (
    SettingsChannel,
    SettingsRepository,
    UiContext,
    normalize_prefixes,
)


class TestNormalizePrefixes:
    def test_cleans_and_sorts(self):
        raw = [" 2 1", "21", "200", "abc", "", "2", "12345678901234", "0"]
        assert normalize_prefixes(raw) == ["0", "2", "21", "200"]

    def test_empty(self):
        assert normalize_prefixes([]) == []


class TestSettingsRepository:
    def test_defaults_when_missing(self, store):
        assert SettingsRepository(store).load() == SettingsState()

    def test_corrupt_file_falls_back_to_defaults(self, store, caplog):
        store.path_for("settings.json").write_text("[[[", encoding="utf-8")
        assert SettingsRepository(store).load() == SettingsState()

    def test_invalid_parser_config_replaced(self, store):
        store.write_atomic("settings.json", {
            "parserConfig": {"articleStart": 1, "articleLength": 5, "kgStart": 4, "kgLength": 3,
                             "gStart": 10, "gLength": 3},
            "confirmDelete": False,
        })
        state = SettingsRepository(store).load()
        assert state.parser_config == ParserConfig()
        assert state.confirm_delete is False

    def test_save_normalizes_and_queues_update(self, store):
        repo = SettingsRepository(store)
        update = repo.save(SettingsState(allowed_prefixes=["21 ", "x", "2"], language=AppLanguage.EN))
        assert update.state.allowed_prefixes == ["2", "21"]
        assert repo.updates.get_nowait() == update
        assert repo.load() == update.state

    def test_save_rejects_invalid_parser_config(self, store):
        repo = SettingsRepository(store)
        with pytest.raises(SchemaInvalidError):
            repo.save(SettingsState(parser_config=ParserConfig(g_start=12)))
        assert not store.exists("settings.json")

    def test_reload_picks_up_external_write(self, store):
        repo = SettingsRepository(store)
        repo.load()
        assert repo.reload() is None
        SettingsRepository(store).save(SettingsState(language=AppLanguage.EN))
        update = repo.reload()
        assert update.state.language == AppLanguage.EN
        assert update.revision == repo.revision
        assert repo.reload() is None

    def test_own_save_is_not_reloaded(self, store):
        repo = SettingsRepository(store)
        repo.load()
        repo.save(SettingsState(confirm_delete=False))
        assert repo.reload() is None


class TestSettingsChannel:
    def test_late_subscriber_gets_last_value(self):
        channel = SettingsChannel()
        channel.publish(SettingsState(confirm_delete=False))
        seen = []
        channel.subscribe(seen.append)
        assert seen == [SettingsState(confirm_delete=False)]

    def test_stale_revision_ignored(self):
        channel = SettingsChannel()
        assert channel.publish(SettingsState(confirm_delete=False), revision=2)
        assert not channel.publish(SettingsState(), revision=1)
        assert channel.value.confirm_delete is False

    def test_unsubscribe(self):
        channel = SettingsChannel()
        seen = []
        unsubscribe = channel.subscribe(seen.append)
        unsubscribe()
        channel.publish(SettingsState())
        assert seen == []


class TestSettingsService:
    def test_initialize_loads_stored_settings(self, store, settings_service):
        store.write_atomic("settings.json", {"language": "en", "theme": "dark"})
        state = settings_service.initialize()
        assert state.language == AppLanguage.EN
        assert settings_service.ui_context() == UiContext(language=AppLanguage.EN, theme=state.theme)

    def test_initialize_runs_once_across_threads(self, settings_service):
        results = []
        threads = [threading.Thread(target=lambda: results.append(settings_service.initialize())) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(results) == 8
        assert all(r is results[0] for r in results)

    def test_subscribers_see_saved_values(self, settings_service):
        settings_service.initialize()
        got = threading.Event()
        seen = []

        def on_change(state):
            seen.append(state)
            if state.language == AppLanguage.EN:
                got.set()

        settings_service.subscribe(on_change)
        settings_service.update(SettingsState(language=AppLanguage.EN))
        assert got.wait(2)
        assert seen[0] == SettingsState()
        assert settings_service.current.language == AppLanguage.EN

    def test_reset(self, settings_service):
        settings_service.update(SettingsState(confirm_delete=False))
        assert settings_service.reset() == SettingsState()

    def test_listener_follows_changes_from_another_process(self, store, settings_service):
        assert settings_service.initialize().language == AppLanguage.UK
        got = threading.Event()
        settings_service.subscribe(lambda s: got.set() if s.language == AppLanguage.EN else None)

        SettingsRepository(store).save(SettingsState(language=AppLanguage.EN))

        assert got.wait(2)
        assert settings_service.current.language == AppLanguage.EN
        assert settings_service.ui_context().language == AppLanguage.EN

    def test_listener_reloads_deleted_file_as_defaults(self, store, settings_service):
        settings_service.update(SettingsState(confirm_delete=False))
        got = threading.Event()
        settings_service.subscribe(lambda s: got.set() if s.confirm_delete else None)

        store.delete("settings.json")

        assert got.wait(2)
        assert settings_service.current == SettingsState()
