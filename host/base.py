"""
Interface to the photo-catalog application that owns selection, develop
settings, history and preferences. The coach only talks to the host through
these classes; ``host.catalog.JsonCatalogHost`` is the file-backed reference
implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Callable, Optional


class Photo(ABC):
    """One catalog item with a full develop-settings record."""

    @property
    @abstractmethod
    def photo_id(self) -> str:
        ...

    @property
    @abstractmethod
    def is_video(self) -> bool:
        ...

    @abstractmethod
    def develop_settings(self) -> dict:
        """Deep copy of the full develop-settings record."""

    @abstractmethod
    def apply_develop_settings(self, settings: dict) -> None:
        """Merge ``settings`` into the record. Only valid inside write_access()."""

    @abstractmethod
    def restore_develop_settings(self, settings: dict) -> None:
        """Replace the whole record. Only valid inside write_access()."""


class Host(ABC):
    """The editing application as seen by the coach."""

    @abstractmethod
    def target_photos(self) -> list[Photo]:
        """Currently selected photos, primary selection first."""

    @abstractmethod
    def active_module_name(self) -> str:
        ...

    @abstractmethod
    def write_access(self, name: str) -> AbstractContextManager:
        """One named, separately undoable step in the host history."""

    @abstractmethod
    def preferences(self) -> dict:
        """Plug-in preferences persisted by the host (API keys live here)."""

    @abstractmethod
    def request_thumbnail(
        self,
        photo: Photo,
        width: int,
        height: int,
        callback: Callable[[Optional[bytes]], None],
    ) -> None:
        """Start rendering a JPEG thumbnail; ``callback`` receives the bytes (or None)."""

    def target_photo(self) -> Optional[Photo]:
        photos = self.target_photos()
        return photos[0] if photos else None
