import pytest

from keyedarchive.archive import Archive
from keyedarchive.settings import Settings
from keyedarchive.values import VariantType


def test_instance_is_shared():
    first = Settings.instance()
    second = Settings.instance()
    assert first is second
    first.set("test.shared.value", 3)
    try:
        assert second.get("test.shared.value") == 3
    finally:
        first.remove_key("test.shared.value")
    assert not second.has_key("test.shared.value")


def test_settings_is_an_archive():
    settings = Settings()
    settings.set("app.version", 1)
    data = settings.to_bytes()
    assert Archive.from_bytes(data).get("app.version") == 1


def test_set_returns_stored_variant():
    settings = Settings()
    variant = settings.set("volume", 5)
    assert variant is settings.get_variant("volume")
    assert variant.type is VariantType.INT32
    assert settings.get("volume") == 5


def test_connect_calls_slot_with_new_value():
    settings = Settings()
    settings.set("app.language", "en")
    seen = []
    settings.connect("app.language", seen.append)
    settings.set("app.language", "fr")
    assert seen == ["fr"]


def test_connect_not_called_when_value_unchanged():
    settings = Settings()
    settings.set("app.language", "en")
    seen = []
    settings.connect("app.language", seen.append)
    settings.set("app.language", "en")
    assert seen == []


def test_disconnect_stops_notifications():
    settings = Settings()
    settings.set("level", 1)
    seen = []
    disconnect = settings.connect("level", seen.append)
    settings.set("level", 2)
    disconnect()
    settings.set("level", 3)
    assert seen == [2]


def test_connect_unknown_key_raises():
    with pytest.raises(KeyError):
        Settings().connect("missing", lambda value: None)


def test_connect_validator_unknown_key_raises():
    with pytest.raises(KeyError):
        Settings().connect_validator("missing", lambda old, new: True)


def test_validator_can_reject():
    settings = Settings()
    settings.set("level", 1)
    settings.connect_validator("level", lambda old, new: new >= 0)
    settings.set("level", -4)
    assert settings.get("level") == 1
    settings.set("level", 7)
    assert settings.get("level") == 7


def test_validator_receives_old_and_new():
    settings = Settings()
    settings.set("level", 1)
    calls = []

    def validator(old, new):
        calls.append((old, new))
        return True

    settings.connect_validator("level", validator)
    settings.set("level", 2)
    assert calls == [(1, 2)]
    assert settings.get("level") == 2


def test_validator_can_adjust_value():
    settings = Settings()
    settings.set("level", 1)
    settings.connect_validator("level", lambda old, new: min(new, 10))
    seen = []
    settings.connect("level", seen.append)
    settings.set("level", 50)
    assert settings.get("level") == 10
    assert seen == [10]


def test_removed_validator_no_longer_applies():
    settings = Settings()
    settings.set("level", 1)
    remove = settings.connect_validator("level", lambda old, new: False)
    settings.set("level", 2)
    assert settings.get("level") == 1
    remove()
    settings.set("level", 2)
    assert settings.get("level") == 2


def test_validator_returning_none_raises():
    settings = Settings()
    settings.set("level", 1)
    settings.connect_validator("level", lambda old, new: None)
    with pytest.raises(TypeError):
        settings.set("level", 2)