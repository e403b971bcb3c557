"""
File-backed reference host.

Keeps photos, selection, active module, plug-in preferences and a named
history log in one JSON document. Used by the CLI and the Gradio panel, and
as the host in tests (pass ``path=None`` to stay in memory).

Catalog document:
    {
      "module": "Develop",
      "preferences": {"gemini_api_key": "..."},
      "selection": ["p1"],
      "photos": [{"id": "p1", "path": "img.jpg", "is_video": false, "settings": {...}}],
      "history": [{"name": "AI Coach: Exposure", "photo_ids": ["p1"]}]
    }
"""

from __future__ import annotations

import copy
import io
import json
import os
import threading
from contextlib import contextmanager
from typing import Callable, Optional

from PIL import Image

from protocol.errors import HostError
from .base import Host, Photo

DEFAULT_SETTINGS = {
    "Exposure2012": 0.0,
    "Contrast2012": 0,
    "Highlights2012": 0,
    "Shadows2012": 0,
    "Whites2012": 0,
    "Blacks2012": 0,
    "Temperature": 0,
    "Tint": 0,
}


class CatalogPhoto(Photo):
    def __init__(self, catalog: "JsonCatalogHost", record: dict):
        self._catalog = catalog
        self._record = record

    @property
    def photo_id(self) -> str:
        return self._record["id"]

    @property
    def is_video(self) -> bool:
        return bool(self._record.get("is_video", False))

    @property
    def path(self) -> str:
        return self._record.get("path", "")

    def develop_settings(self) -> dict:
        return copy.deepcopy(self._record.setdefault("settings", {}))

    def apply_develop_settings(self, settings: dict) -> None:
        self._catalog._require_write(self)
        self._record.setdefault("settings", {}).update(copy.deepcopy(settings))

    def restore_develop_settings(self, settings: dict) -> None:
        self._catalog._require_write(self)
        self._record["settings"] = copy.deepcopy(settings)

    def __repr__(self) -> str:
        return f"CatalogPhoto({self.photo_id!r})"


class JsonCatalogHost(Host):
    def __init__(self, data: Optional[dict] = None, path: Optional[str] = None):
        self.path = path
        self.data = data if data is not None else {}
        self.data.setdefault("module", "Library")
        self.data.setdefault("preferences", {})
        self.data.setdefault("selection", [])
        self.data.setdefault("photos", [])
        self.data.setdefault("history", [])
        self._photos = {rec["id"]: CatalogPhoto(self, rec) for rec in self.data["photos"]}
        self._writing: Optional[list] = None
        self._lock = threading.RLock()

    # -- persistence -------------------------------------------------------

    @classmethod
    def load(cls, path: str) -> "JsonCatalogHost":
        with open(path, "r", encoding="utf-8") as f:
            return cls(json.load(f), path=path)

    @classmethod
    def from_images(cls, image_paths: list[str], path: Optional[str] = None) -> "JsonCatalogHost":
        """New catalog with one photo per image, all selected, in Develop."""
        photos = []
        for i, image_path in enumerate(image_paths, start=1):
            photos.append({
                "id": f"p{i}",
                "path": image_path,
                "is_video": os.path.splitext(image_path)[1].lower() in {".mp4", ".mov", ".avi"},
                "settings": _default_settings_for(image_path),
            })
        data = {
            "module": "Develop",
            "selection": [p["id"] for p in photos],
            "photos": photos,
        }
        host = cls(data, path=path)
        host.save()
        return host

    def save(self) -> None:
        if not self.path:
            return
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self.data, f, indent=2, ensure_ascii=False)

    # -- Host interface ----------------------------------------------------

    def target_photos(self) -> list[Photo]:
        return [self._photos[pid] for pid in self.data["selection"] if pid in self._photos]

    def active_module_name(self) -> str:
        return self.data.get("module") or "Unknown"

    def preferences(self) -> dict:
        return self.data["preferences"]

    @contextmanager
    def write_access(self, name: str):
        with self._lock:
            if self._writing is not None:
                raise HostError("write access is already held")
            before = copy.deepcopy(self.data["photos"])
            self._writing = []
            try:
                yield self
            except Exception:
                # a failed step leaves no trace in the catalog
                for record, prior in zip(self.data["photos"], before):
                    record.clear()
                    record.update(prior)
                raise
            else:
                self.data["history"].append({"name": name, "photo_ids": list(self._writing)})
            finally:
                self._writing = None
        self.save()

    def request_thumbnail(
        self,
        photo: Photo,
        width: int,
        height: int,
        callback: Callable[[Optional[bytes]], None],
    ) -> None:
        worker = threading.Thread(
            target=self._render_thumbnail,
            args=(photo, width, height, callback),
            daemon=True,
        )
        worker.start()

    # -- helpers -----------------------------------------------------------

    def select(self, photo_ids: list[str]) -> None:
        self.data["selection"] = [pid for pid in photo_ids if pid in self._photos]

    def set_module(self, name: str) -> None:
        self.data["module"] = name

    def history_names(self) -> list[str]:
        return [step["name"] for step in self.data["history"]]

    def photo(self, photo_id: str) -> CatalogPhoto:
        return self._photos[photo_id]

    def _require_write(self, photo: CatalogPhoto) -> None:
        if self._writing is None:
            raise HostError("develop settings can only change inside write_access()")
        if photo.photo_id not in self._writing:
            self._writing.append(photo.photo_id)

    def _render_thumbnail(self, photo, width, height, callback) -> None:
        path = getattr(photo, "path", "")
        if not path or not os.path.exists(path):
            print(f"[Catalog] No image file for {photo.photo_id}")
            callback(None)
            return
        try:
            with Image.open(path) as img:
                img = img.convert("RGB")
                img.thumbnail((width, height), Image.LANCZOS)
                with io.BytesIO() as buffer:
                    img.save(buffer, format="JPEG", quality=90)
                    data = buffer.getvalue()
        except OSError as e:
            print(f"[Catalog] Thumbnail failed for {photo.photo_id}: {e}")
            data = None
        callback(data)


def _default_settings_for(image_path: str) -> dict:
    """Raw files get Kelvin white balance, rendered files the relative slider."""
    settings = dict(DEFAULT_SETTINGS)
    ext = os.path.splitext(image_path)[1].lower()
    if ext in {".dng", ".cr2", ".cr3", ".nef", ".arw", ".raf", ".orf", ".rw2"}:
        settings["Temperature"] = 5500
        settings["Tint"] = 10
    return settings
