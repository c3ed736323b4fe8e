import pytest

from cellmonitor.storage import KeyValueStore, SettingsStore
from fakes import ManualDispatcher


@pytest.fixture
def dispatcher():
    return ManualDispatcher()


@pytest.fixture
def settings_store(tmp_path):
    return SettingsStore(KeyValueStore(tmp_path / "settings.json"))
