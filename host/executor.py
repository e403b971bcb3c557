"""
Edit executor: applies a TranslatedEdit to the host selection as a sequence of
named history steps, and reverts the most recent edit on request.

Each setting is committed in its own host transaction so the history panel
shows one labelled step per adjustment. There is no rollback across steps: if
a later transaction fails the earlier ones stay applied.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from protocol.errors import (
    HostError,
    NoSelectionError,
    NothingToUndoError,
    UnsupportedMediaError,
)
from protocol.translator import TranslatedEdit

HISTORY_PREFIX = "AI Coach"
UNDO_STEP_NAME = "Undo AI Coach Settings"


@dataclass
class EditSnapshot:
    """Full prior settings of every photo an edit touched."""
    photos: list                                          # List[Photo]
    prior_settings: dict = field(default_factory=dict)    # photo_id -> full record

    @property
    def photo_ids(self) -> set:
        return {p.photo_id for p in self.photos}


@dataclass
class ApplyResult:
    applied: list = field(default_factory=list)     # labels committed
    failed: list = field(default_factory=list)      # (label, error message)
    photo_count: int = 0

    @property
    def success(self) -> bool:
        return bool(self.applied) and self.photo_count > 0

    def to_dict(self) -> dict:
        return {
            "applied": list(self.applied),
            "failed": [list(item) for item in self.failed],
            "photo_count": self.photo_count,
            "success": self.success,
        }


class UndoSlot:
    """Holds at most one pending snapshot; a new edit replaces the previous one."""

    def __init__(self):
        self._snapshot: Optional[EditSnapshot] = None

    @property
    def pending(self) -> bool:
        return self._snapshot is not None

    def store(self, snapshot: EditSnapshot) -> None:
        self._snapshot = snapshot

    def peek(self) -> EditSnapshot:
        if self._snapshot is None:
            raise NothingToUndoError("No recent AI Coach edit to undo.")
        return self._snapshot

    def clear(self) -> None:
        self._snapshot = None


class EditExecutor:
    def __init__(self, host, undo_slot: UndoSlot):
        self.host = host
        self.undo_slot = undo_slot

    def apply(self, edit: TranslatedEdit) -> ApplyResult:
        """
        Apply ``edit`` to every selected photo, one history step per setting.

        Raises NoSelectionError / UnsupportedMediaError before touching anything.
        """
        photos = self.host.target_photos()
        if not photos:
            raise NoSelectionError("No photos selected. Please select photos to edit.")
        if photos[0].is_video:
            raise UnsupportedMediaError("Cannot apply develop settings to videos.")

        snapshot = EditSnapshot(
            photos=list(photos),
            prior_settings={p.photo_id: p.develop_settings() for p in photos},
        )

        result = ApplyResult(photo_count=len(photos))
        for key, value, label in edit.entries():
            try:
                with self.host.write_access(f"{HISTORY_PREFIX}: {label}"):
                    for photo in photos:
                        photo.apply_develop_settings({key: value})
            except HostError as e:
                print(f"[Executor] {label} failed: {e}")
                result.failed.append((label, str(e)))
                continue
            result.applied.append(label)

        if result.success:
            self.undo_slot.store(snapshot)
        print(
            f"[Executor] Applied {len(result.applied)}/{len(edit)} settings "
            f"to {len(photos)} photo(s)"
        )
        return result

    def undo(self) -> int:
        """
        Restore the pending snapshot in one transaction; returns photos restored.

        The snapshot is discarded only once the transaction commits, so a failed
        undo can be retried.
        """
        snapshot = self.undo_slot.peek()
        with self.host.write_access(UNDO_STEP_NAME):
            for photo in snapshot.photos:
                photo.restore_develop_settings(snapshot.prior_settings[photo.photo_id])
        self.undo_slot.clear()
        print(f"[Executor] Restored {len(snapshot.photos)} photo(s)")
        return len(snapshot.photos)
