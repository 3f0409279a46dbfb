import pytest

from keyedarchive.archive import Archive
from keyedarchive.settings import Settings
from keyedarchive.settings_store import SETTINGS_FILE, WATCHDOG_FILE, SettingsStore
from keyedarchive.values import Variant, VariantType


def make_settings(version=1):
    settings = Settings()
    settings.set("app.version", version)
    settings.set("app.language", "en")
    settings.set("volume", 5)
    settings.set_blob("progress", b"\x00\x00\x00\x00")
    settings.set("arg.debug", "off")
    return settings


def test_file_names_are_fixed():
    store = SettingsStore(Settings(), "/data")
    assert store.settings_path.name == "settings.arch"
    assert store.watchdog_path.name == "watchdog.dat"


def test_save_then_load_restores_values(tmp_path):
    first = make_settings()
    first.set("volume", 9)
    first.set("app.language", "fr")
    SettingsStore(first, tmp_path).save()

    second = make_settings()
    store = SettingsStore(second, tmp_path)
    store.load()
    assert second.get("volume") == 9
    assert second.get("app.language") == "fr"
    assert store.first_time_user is False


def test_saved_file_is_a_keyed_archive(tmp_path):
    settings = make_settings()
    SettingsStore(settings, tmp_path).save()
    data = (tmp_path / SETTINGS_FILE).read_bytes()
    assert data[:2] == b"KA"
    assert Archive.from_bytes(data).get("volume") == 5


def test_load_without_file_is_first_time_user(tmp_path):
    store = SettingsStore(make_settings(), tmp_path / "new")
    store.load()
    assert store.first_time_user is True
    assert not (tmp_path / "new" / SETTINGS_FILE).exists()


def test_merge_ignores_unknown_keys():
    settings = make_settings()
    other = Archive({"unknown": 3, "volume": 7})
    SettingsStore(settings, "/unused").merge(other)
    assert settings.get("volume") == 7
    assert "unknown" not in settings


def test_merge_skips_version_and_arg_keys():
    settings = make_settings()
    other = Archive({"app.version": 1, "arg.debug": "on"})
    other.set("app.version", Variant(VariantType.INT32, 4))
    SettingsStore(settings, "/unused").merge(other)
    assert settings.get("app.version") == 1
    assert settings.get("arg.debug") == "off"


def test_merge_skips_type_mismatch():
    settings = make_settings()
    other = Archive({"volume": "loud"})
    SettingsStore(settings, "/unused").merge(other)
    assert settings.get("volume") == 5


def test_merge_blob_same_size_and_version():
    settings = make_settings()
    other = Archive({"app.version": 1})
    other.set_blob("progress", b"\x01\x02\x03\x04")
    SettingsStore(settings, "/unused").merge(other)
    assert settings.get_blob("progress") == b"\x01\x02\x03\x04"


def test_merge_blob_different_size_skipped():
    settings = make_settings()
    other = Archive({"app.version": 1})
    other.set_blob("progress", b"\x01\x02")
    SettingsStore(settings, "/unused").merge(other)
    assert settings.get_blob("progress") == b"\x00\x00\x00\x00"


def test_merge_blob_different_version_skipped():
    settings = make_settings()
    other = Archive({"app.version": 2})
    other.set_blob("progress", b"\x01\x02\x03\x04")
    SettingsStore(settings, "/unused").merge(other)
    assert settings.get_blob("progress") == b"\x00\x00\x00\x00"


def test_merge_fires_change_signal():
    settings = make_settings()
    seen = []
    settings.connect("volume", seen.append)
    SettingsStore(settings, "/unused").merge(Archive({"volume": 8}))
    assert seen == [8]


def test_corrupt_file_is_overwritten(tmp_path):
    (tmp_path / SETTINGS_FILE).write_bytes(b"garbage")
    settings = make_settings()
    store = SettingsStore(settings, tmp_path)
    store.load()
    assert store.first_time_user is True
    restored = Archive.from_bytes((tmp_path / SETTINGS_FILE).read_bytes())
    assert restored.get("volume") == 5


def test_first_run_test_does_not_merge(tmp_path):
    saved = make_settings()
    saved.set("volume", 9)
    SettingsStore(saved, tmp_path).save()

    settings = make_settings()
    store = SettingsStore(settings, tmp_path, first_run_test=True)
    store.load()
    assert settings.get("volume") == 5
    assert store.first_time_user is True


def test_load_from_none_changes_nothing():
    settings = make_settings()
    store = SettingsStore(settings, "/unused")
    store.load_from(None)
    assert settings.get("volume") == 5
    assert store.first_time_user is False


def test_watchdog_lifecycle(tmp_path):
    store = SettingsStore(make_settings(), tmp_path)
    store.load()
    assert (tmp_path / WATCHDOG_FILE).exists()
    assert store.previous_launch_failed is False
    store.confirm_loaded()
    assert not (tmp_path / WATCHDOG_FILE).exists()


def test_unconfirmed_load_is_reported_next_time(tmp_path):
    SettingsStore(make_settings(), tmp_path).load()
    store = SettingsStore(make_settings(), tmp_path)
    store.load()
    assert store.previous_launch_failed is True


def test_apply_string_setting():
    settings = make_settings()
    SettingsStore(settings, "/unused").apply_arguments(
        ["--setting", "app.language", "de", "extra"]
    )
    assert settings.get("app.language") == "de"


def test_apply_int_setting():
    settings = make_settings()
    SettingsStore(settings, "/unused").apply_arguments(["--settingInt", "volume", "12"])
    assert settings.get("volume") == 12
    assert settings.get_variant("volume").type is VariantType.INT32


def test_apply_int_setting_with_invalid_number_stores_zero():
    settings = make_settings()
    SettingsStore(settings, "/unused").apply_arguments(["--settingInt", "volume", "abc"])
    assert settings.get("volume") == 0


def test_apply_int_setting_reads_leading_digits():
    settings = make_settings()
    SettingsStore(settings, "/unused").apply_arguments(["--settingInt", "volume", "-7x"])
    assert settings.get("volume") == -7


def test_apply_arguments_missing_value_raises():
    with pytest.raises(ValueError):
        SettingsStore(make_settings(), "/unused").apply_arguments(["--setting", "volume"])