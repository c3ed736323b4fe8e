import json

from cellmonitor.config import SAVE_ENABLED_KEY, SETTINGS_KEY
from cellmonitor.models import SavedSettings
from cellmonitor.storage import KeyValueStore, SettingsStore, decode_settings


def test_round_trip_when_remembered(settings_store):
    settings_store.set_remember(True)
    settings_store.save(SavedSettings(host="A", user="B", password="C", database="D"))
    assert settings_store.load() == SavedSettings(host="A", user="B", password="C", database="D")


def test_empty_when_not_remembered(settings_store):
    assert settings_store.remember is False
    assert settings_store.load() == SavedSettings()


def test_save_is_noop_without_remember(settings_store):
    settings_store.save(SavedSettings(host="A"))
    assert settings_store.kv.get(SETTINGS_KEY) is None


def test_turning_remember_off_deletes_saved_settings(settings_store):
    settings_store.set_remember(True)
    settings_store.save(SavedSettings(host="A", user="B"))
    settings_store.set_remember(False)
    assert settings_store.kv.get(SETTINGS_KEY) is None
    assert settings_store.kv.get(SAVE_ENABLED_KEY) == "false"

    settings_store.set_remember(True)
    assert settings_store.load() == SavedSettings()


def test_settings_survive_a_new_store_instance(tmp_path):
    path = tmp_path / "settings.json"
    first = SettingsStore(KeyValueStore(path))
    first.set_remember(True)
    first.save(SavedSettings(host="SRV\\X", user="u", password="p;w", database="db"))

    second = SettingsStore(KeyValueStore(path))
    assert second.remember is True
    assert second.load().password == "p;w"


def test_corrupt_blob_loads_as_empty(settings_store, caplog):
    settings_store.set_remember(True)
    settings_store.kv.set(SETTINGS_KEY, "{not json")
    assert settings_store.load() == SavedSettings()
    assert "corrupt" in caplog.text


def test_non_object_blob_loads_as_empty(settings_store):
    settings_store.set_remember(True)
    settings_store.kv.set(SETTINGS_KEY, "[1, 2]")
    assert settings_store.load() == SavedSettings()


def test_missing_fields_default_to_empty():
    settings = decode_settings(json.dumps({"host": "A", "user": 5}))
    assert settings == SavedSettings(host="A", user="", password="", database="")


def test_unreadable_file_is_treated_as_empty(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("garbage", encoding="utf-8")
    store = SettingsStore(KeyValueStore(path))
    assert store.remember is False
    assert store.load() == SavedSettings()
    store.set_remember(True)
    assert store.remember is True
