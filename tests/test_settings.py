from pathlib import Path

import pytest
from PySide6.QtCore import QSettings

from workbench_core.settings import DEFAULT_UPDATE_ENDPOINT, SettingsManager, WorkbenchSettings


@pytest.fixture
def store(tmp_path):
    settings = QSettings(str(tmp_path / "workbench.ini"), QSettings.Format.IniFormat)
    yield settings
    settings.clear()


def test_empty_store_yields_defaults(store):
    settings = SettingsManager(store=store, environ={}).read_settings()

    assert settings == WorkbenchSettings()
    assert settings.update_endpoint == DEFAULT_UPDATE_ENDPOINT


def test_stored_values_are_used(store):
    store.setValue("app/version", "1.1.4")
    store.setValue("update/target", "darwin-aarch64")
    store.setValue("update/stagingDir", "/tmp/workbench-updates")
    store.setValue("host/url", "http://127.0.0.1:9000")

    settings = SettingsManager(store=store, environ={}).read_settings()

    assert settings.current_version == "1.1.4"
    assert settings.update_target == "darwin-aarch64"
    assert settings.staging_dir == Path("/tmp/workbench-updates")
    assert settings.host_url == "http://127.0.0.1:9000"


@pytest.mark.parametrize("raw, expected", [(5, 30), (90, 90), (100000, 1440), ("bogus", 360)])
def test_check_interval_is_clamped(store, raw, expected):
    store.setValue("update/checkIntervalMinutes", raw)

    settings = SettingsManager(store=store, environ={}).read_settings()

    assert settings.check_interval_minutes == expected


@pytest.mark.parametrize(
    "raw, expected",
    [("false", False), ("off", False), ("0", False), ("yes", True), ("sometimes", True)],
)
def test_auto_check_flag_parsing(store, raw, expected):
    store.setValue("update/autoCheck", raw)

    settings = SettingsManager(store=store, environ={}).read_settings()

    assert settings.auto_update_check is expected


def test_blank_strings_fall_back_to_defaults(store):
    store.setValue("host/url", "   ")

    settings = SettingsManager(store=store, environ={}).read_settings()

    assert settings.host_url == WorkbenchSettings().host_url


def test_environment_overrides_store(store):
    store.setValue("update/endpoint", "https://stored.example.com/update.json")
    store.setValue("host/url", "http://stored:1")
    environ = {
        "WORKBENCH_UPDATE_ENDPOINT": "https://env.example.com/update.json",
        "WORKBENCH_HOST_URL": "http://env:2",
    }

    settings = SettingsManager(store=store, environ=environ).read_settings()

    assert settings.update_endpoint == "https://env.example.com/update.json"
    assert settings.host_url == "http://env:2"
