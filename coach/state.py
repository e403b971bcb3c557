"""
Core data structures for the Lightroom Coach conversation.

CoachState is the LangGraph TypedDict that flows through all nodes. It only
carries plain data (dicts, lists, strings) so the checkpointer can persist it;
the host, the model client and the undo slot are bound into the nodes instead.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Annotated, TypedDict


# ---------------------------------------------------------------------------
# Reducer helper: append-only list (LangGraph accumulates instead of replacing)
# ---------------------------------------------------------------------------

def _append_reducer(existing: list, new: list) -> list:
    if existing is None:
        existing = []
    if new is None:
        return existing
    return existing + new


class SessionStatus(str, Enum):
    """Request lifecycle the UI observes (send is enabled only when idle-like)."""
    IDLE = "idle"
    SENDING = "sending"
    AWAITING_REVIEW = "awaiting_review"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class TranscriptEntry:
    """One line in the visible chat transcript."""
    role: str       # "user" | "assistant" | "status"
    text: str

    def to_dict(self) -> dict:
        return asdict(self)


class CoachState(TypedDict, total=False):
    """Complete state flowing through the LangGraph StateGraph."""
    # Request
    mode: str                   # "chat" | "vision"
    user_text: str
    history: list               # [{"role", "text"}]; prior turns, user turn last
    context: dict               # ContextSnapshot.to_dict()

    # Model output
    response_ok: bool
    response_text: str          # raw model text
    display_text: str           # cleaned text shown to the user

    # Extraction / translation
    action: dict                # ActionRequest.to_payload() or {}
    edit: list                  # TranslatedEdit.to_list()

    # Application
    apply_result: dict          # ApplyResult.to_dict()
    review_request: dict
    review_decision: str        # "keep" | "undo" | ""

    # Transcript lines produced by this request
    messages: Annotated[list, _append_reducer]      # List[TranscriptEntry dict]

    # Error handling
    error_message: str
    error_kind: str

    # Runtime config snapshot (loaded from configs/coach_config.yaml)
    coach_config: dict
