"""Base class for loadable resources."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class Asset(ABC):
    """A resource loaded from a URL, or built in memory when it has none."""

    def __init__(self, url: Optional[str] = None):
        self._url = url

    @property
    def url(self) -> Optional[str]:
        return self._url

    @property
    @abstractmethod
    def type_name(self) -> str:
        """Name of the asset type."""

    @abstractmethod
    def reload(self) -> bool:
        """Load the asset again from its URL; return True on success."""

    def __str__(self) -> str:
        source = self._url if self._url is not None else "memory"
        return f"<{self.type_name} from '{source}'>"