"""Loading, merging and saving settings in a user data folder."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from keyedarchive.archive import Archive
from keyedarchive.memory_stream import MemoryStream
from keyedarchive.settings import Settings
from keyedarchive.values import ArchiveFormatError, VariantType

SETTINGS_FILE = "settings.arch"
WATCHDOG_FILE = "watchdog.dat"

_INT_PREFIX = re.compile(r"-?[0-9]+")
_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1


def _parse_int(text: str) -> int:
    """Leading decimal integer of ``text``; 0 if absent or out of range."""
    match = _INT_PREFIX.match(text)
    if match is None:
        return 0
    value = int(match.group())
    if not _INT32_MIN <= value <= _INT32_MAX:
        return 0
    return value


class SettingsStore:
    """Persists a Settings object to ``settings.arch`` in a data folder.

    While settings are loading a watchdog file is kept in the folder; if it
    is still there at the next load, the previous launch did not finish
    loading.
    """

    def __init__(
        self,
        settings: Settings,
        data_folder: Union[str, Path],
        first_run_test: bool = False,
    ):
        self.settings = settings
        self.data_folder = Path(data_folder)
        self.first_run_test = first_run_test
        self.first_time_user = False
        self.previous_launch_failed = False
        self._watchdog_pending = False

    @property
    def settings_path(self) -> Path:
        return self.data_folder / SETTINGS_FILE

    @property
    def watchdog_path(self) -> Path:
        return self.data_folder / WATCHDOG_FILE

    def load(self) -> None:
        """Create the watchdog file and load the settings file if present."""
        self.first_time_user = True
        self.data_folder.mkdir(parents=True, exist_ok=True)

        self.previous_launch_failed = self.watchdog_path.exists()
        self.watchdog_path.touch()
        self._watchdog_pending = True

        try:
            data = self.settings_path.read_bytes()
        except FileNotFoundError:
            return
        self.load_from(MemoryStream(data))

    def load_from(self, stream: Optional[Any]) -> None:
        """Load settings from a readable stream and merge them in.

        If the data cannot be read, the current settings are saved over it.
        """
        if stream is None:
            return
        archive = Archive()
        try:
            archive.deserialize(stream)
        except ArchiveFormatError:
            self.save()
            return
        if self.first_run_test:
            return
        self.merge(archive)
        self.first_time_user = False

    def merge(self, other: Archive) -> None:
        """Update known settings from ``other``.

        Only keys already present are updated, and only when the types
        match; ``app.version`` and ``arg.*`` keys are never taken over.
        Byte arrays are taken over only if both the sizes and the
        ``app.version`` values of the two archives are equal.
        """
        source_version = self.settings.get("app.version", 0)
        dest_version = other.get("app.version", 0)
        for key in self.settings.common_keys(other):
            if key == "app.version" or key.startswith("arg."):
                continue
            current = self.settings.get_variant(key)
            loaded = other.get_variant(key)
            if current is None or loaded is None or current.type != loaded.type:
                continue
            if current.type is VariantType.BYTE_ARRAY:
                if current.blob_size() != loaded.blob_size() or source_version != dest_version:
                    continue
            current.value = loaded

    def save(self) -> None:
        """Write the settings to the settings file."""
        stream = MemoryStream()
        self.settings.serialize(stream)
        self.data_folder.mkdir(parents=True, exist_ok=True)
        self.settings_path.write_bytes(stream.getvalue())

    def apply_arguments(self, argv: Sequence[str]) -> None:
        """Apply ``--setting KEY VALUE`` and ``--settingInt KEY VALUE`` options.

        ``argv`` holds the arguments without the program name; other
        arguments are ignored.  A value that is not an integer is stored as 0.
        """
        args = iter(argv)
        for arg in args:
            if arg not in ("--setting", "--settingInt"):
                continue
            try:
                key = next(args)
                value = next(args)
            except StopIteration:
                raise ValueError(f"{arg} needs a key and a value") from None
            if arg == "--setting":
                self.settings.set(key, value)
            else:
                self.settings.set(key, _parse_int(value))

    def confirm_loaded(self) -> None:
        """Mark loading as finished by removing the watchdog file."""
        if not self._watchdog_pending:
            return
        self._watchdog_pending = False
        self.watchdog_path.unlink(missing_ok=True)