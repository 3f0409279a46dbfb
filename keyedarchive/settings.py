"""Application-wide settings: a keyed archive with change hooks."""

from __future__ import annotations

from typing import Any, Callable, ClassVar

from keyedarchive.archive import Archive
from keyedarchive.values import Variant

Slot = Callable[[Any], Any]
Validator = Callable[[Any, Any], Any]


class Settings(Archive):
    """Archive holding the application's settings.

    Components register their keys with default values, so that the whole
    set can be serialized and restored.  ``instance`` returns the shared
    object for the class.
    """

    _instances: ClassVar[dict[type, "Settings"]] = {}

    @classmethod
    def instance(cls) -> "Settings":
        """The shared settings object, created on first use."""
        existing = Settings._instances.get(cls)
        if existing is None:
            existing = cls()
            Settings._instances[cls] = existing
        return existing

    def set(self, key: str, value: Any) -> Variant:
        """Store ``value`` under ``key`` and return the stored variant."""
        return super().set(key, value)

    def _require(self, key: str) -> Variant:
        variant = self.get_variant(key)
        if variant is None or variant.is_empty:
            raise KeyError(f"no setting named {key!r}")
        return variant

    def connect(self, key: str, slot: Slot) -> Callable[[], None]:
        """Call ``slot(new_value)`` whenever the setting changes.

        Returns a function that disconnects the slot.  KeyError is raised if
        the setting does not exist.
        """
        variant = self._require(key)

        def _on_change(changed: Variant) -> None:
            slot(changed.value)

        variant.value_changed.connect(_on_change)
        return lambda: variant.value_changed.disconnect(_on_change)

    def connect_validator(self, key: str, validator: Validator) -> Callable[[], None]:
        """Check every change of the setting with ``validator(old, new)``.

        A bool result accepts or rejects the change; any other result is
        stored instead of the proposed value.  Returns a function that
        removes the validator.  KeyError is raised if the setting does not
        exist.
        """
        variant = self._require(key)

        def _check(current: Variant, candidate: Variant) -> bool:
            result = validator(current.value, candidate.value)
            if isinstance(result, bool):
                return result
            if result is None:
                raise TypeError("a settings validator must return a bool or a value")
            if result != candidate.value:
                candidate.value = result
            return True

        variant.validators.append(_check)
        return lambda: variant.validators.remove(_check)