"""
Session management for the Lightroom Coach.

CoachSession is the conversation orchestrator: it owns the chat history, the
visible transcript, the single undo slot and the request state machine, and
runs every request through the LangGraph coach graph.
"""

from __future__ import annotations

import os
import sqlite3
import threading
import uuid
from typing import Callable, Optional

import yaml
from langgraph.types import Command

from host.context import read_context
from host.executor import EditExecutor, UndoSlot
from inference.core import create_model_client
from protocol.errors import CoachError, NothingToUndoError, SessionBusyError
from .display import error_display_text
from .graph import build_coach_graph
from .prompts import SUGGESTIONS, WELCOME_TEXT
from .state import CoachState, SessionStatus, TranscriptEntry

DEFAULT_COACH_CONFIG = {
    "model": {
        "provider": "gemini",
        "timeout": 60,
        "gemini": {
            "model": "gemini-3-pro-preview",
            "vision_model": "gemini-3-pro-image-preview",
            "base_url": "https://generativelanguage.googleapis.com/v1beta",
            "preference_key": "gemini_api_key",
            "api_key_env": "GEMINI_API_KEY",
        },
        "openai": {
            "model": "gpt-4o-mini",
            "vision_model": "gpt-4o-mini",
            "base_url": "",
            "preference_key": "openai_api_key",
            "api_key_env": "OPENAI_API_KEY",
        },
    },
    "chat": {
        "temperature": 0.7,
        "max_output_tokens": 1000,
    },
    "vision": {
        "temperature": 0.4,
        "max_output_tokens": 2000,
        "thumbnail_size": 512,
        "thumbnail_timeout": 5.0,
    },
    "review": {
        "confirm_edits": True,
    },
    "session": {
        "checkpoint_backend": "memory",
        "sqlite_path": "./sessions/checkpoints.db",
        "catalog_path": "./sessions/catalog.json",
    },
    "updates": {
        "enabled": True,
        "timeout": 5,
    },
}

# Statuses in which a new request may start
_READY = (SessionStatus.IDLE, SessionStatus.SUCCESS, SessionStatus.FAILED)


def _deep_merge(base: dict, override: dict) -> dict:
    result = dict(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_coach_config(config_path: str = "configs/coach_config.yaml") -> dict:
    """Load coach configuration from YAML, merged over the defaults."""
    if not os.path.exists(config_path):
        print(f"[Session] No config at {config_path}, using defaults")
        return _deep_merge(DEFAULT_COACH_CONFIG, {})
    with open(config_path, "r", encoding="utf-8") as f:
        loaded = yaml.safe_load(f) or {}
    return _deep_merge(DEFAULT_COACH_CONFIG, loaded)


def create_checkpointer(config: dict):
    """
    Build checkpointer from coach config.

    Supported backends:
      - memory (default)
      - sqlite (requires the langgraph-checkpoint-sqlite package)
    """
    backend = str(config.get("session", {}).get("checkpoint_backend", "memory")).lower()
    if backend == "sqlite":
        sqlite_path = config.get("session", {}).get("sqlite_path", "./sessions/checkpoints.db")
        os.makedirs(os.path.dirname(sqlite_path) or ".", exist_ok=True)
        try:
            from langgraph.checkpoint.sqlite import SqliteSaver
        except ImportError as exc:
            print(f"[Session] SqliteSaver unavailable, fallback to MemorySaver: {exc}")
        else:
            return SqliteSaver(sqlite3.connect(sqlite_path, check_same_thread=False))

    from langgraph.checkpoint.memory import MemorySaver
    return MemorySaver()


class CoachSession:
    """
    One chat window's worth of state.

    Only one request runs at a time: ``send``/``analyze`` raise SessionBusyError
    while a request is in flight or an applied edit is waiting for review.
    """

    def __init__(
        self,
        host,
        config: Optional[dict] = None,
        client_factory: Optional[Callable] = None,
        checkpointer=None,
        session_id: Optional[str] = None,
    ):
        self.host = host
        self.config = _deep_merge(DEFAULT_COACH_CONFIG, config or {})
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self.undo_slot = UndoSlot()
        self.executor = EditExecutor(host, self.undo_slot)
        self.client_factory = client_factory or (
            lambda: create_model_client(self.config, self.host.preferences())
        )
        self.graph = build_coach_graph(
            host,
            self.client_factory,
            self.executor,
            checkpointer=checkpointer or create_checkpointer(self.config),
        )

        self.history: list = []         # {"role", "text"} turns sent to the model
        self.transcript: list = []      # TranscriptEntry shown to the user
        self.status = SessionStatus.IDLE
        self.review_request: dict = {}

        self._lock = threading.Lock()
        self._request_id = 0
        self._seen_messages = 0

    # -- state the UI observes -----------------------------------------------

    @property
    def can_send(self) -> bool:
        return self.status in _READY

    @property
    def awaiting_review(self) -> bool:
        return self.status == SessionStatus.AWAITING_REVIEW

    @property
    def suggestions(self) -> list:
        """Prompt suggestions, shown until the first message of a chat."""
        return list(SUGGESTIONS) if not self.history else []

    @property
    def welcome_text(self) -> str:
        return WELCOME_TEXT

    # -- requests ------------------------------------------------------------

    def send(self, text: str) -> SessionStatus:
        """Send one user message; applies any edit the model asks for."""
        text = (text or "").strip()
        if not text:
            return self.status
        self._begin()
        self.transcript.append(TranscriptEntry("user", text))
        self.history.append({"role": "user", "text": text})
        print(f"[Session] {self.session_id} send #{self._request_id}")
        return self._start("chat", text)

    def analyze(self) -> SessionStatus:
        """Critique the primary selected photo and apply the suggested edit."""
        self._begin()
        print(f"[Session] {self.session_id} analyze #{self._request_id}")
        return self._start("vision", "")

    def resolve_review(self, decision: str) -> SessionStatus:
        """Answer the keep/undo question for the edit just applied."""
        with self._lock:
            if self.status != SessionStatus.AWAITING_REVIEW:
                raise CoachError("No edit is waiting for review.")
            self.status = SessionStatus.SENDING
        return self._run(Command(resume={"decision": decision}))

    def undo(self) -> bool:
        """Revert the most recent edit. Returns False if there was nothing to undo."""
        if self.awaiting_review:
            self.resolve_review("undo")
            return not self.undo_slot.pending
        if self.status == SessionStatus.SENDING:
            raise SessionBusyError("A request is already in progress.")
        try:
            count = self.executor.undo()
        except NothingToUndoError as e:
            self.transcript.append(TranscriptEntry("status", error_display_text(str(e))))
            return False
        self.transcript.append(
            TranscriptEntry("status", f"Reverted {count} photo(s) to their previous settings.")
        )
        return True

    def new_chat(self) -> None:
        """Clear the conversation. A pending review is left as kept."""
        with self._lock:
            if self.status == SessionStatus.SENDING:
                raise SessionBusyError("A request is already in progress.")
            self.history = []
            self.transcript = []
            self.review_request = {}
            self.status = SessionStatus.IDLE
        print(f"[Session] {self.session_id} new chat")

    # -- internals -----------------------------------------------------------

    def _begin(self) -> None:
        with self._lock:
            if not self.can_send:
                raise SessionBusyError("A request is already in progress.")
            self.status = SessionStatus.SENDING
            self._request_id += 1
            self._seen_messages = 0

    @property
    def _thread(self) -> dict:
        return {"configurable": {"thread_id": f"{self.session_id}-{self._request_id}"}}

    def _initial_state(self, mode: str, text: str) -> CoachState:
        return {
            "mode": mode,
            "user_text": text,
            "history": list(self.history),
            "context": read_context(self.host).to_dict(),
            "response_ok": False,
            "response_text": "",
            "display_text": "",
            "action": {},
            "edit": [],
            "apply_result": {},
            "review_request": {},
            "review_decision": "",
            "messages": [],
            "error_message": "",
            "error_kind": "",
            "coach_config": self.config,
        }

    def _start(self, mode: str, text: str) -> SessionStatus:
        try:
            graph_input = self._initial_state(mode, text)
        except CoachError as e:
            print(f"[Session] {self.session_id} #{self._request_id} context read failed: {e}")
            self.transcript.append(TranscriptEntry("status", error_display_text(str(e))))
            self.status = SessionStatus.FAILED
            return self.status
        except Exception:
            self.status = SessionStatus.FAILED
            raise
        return self._run(graph_input)

    def _run(self, graph_input) -> SessionStatus:
        try:
            self.graph.invoke(graph_input, config=self._thread)
        except Exception:
            self.status = SessionStatus.FAILED
            raise

        snapshot = self.graph.get_state(self._thread)
        values = snapshot.values
        messages = values.get("messages", [])
        for entry in messages[self._seen_messages:]:
            self.transcript.append(TranscriptEntry(entry.get("role", "status"), entry.get("text", "")))
        self._seen_messages = len(messages)

        if snapshot.next and "review" in snapshot.next:
            self.review_request = _interrupt_value(snapshot)
            self.status = SessionStatus.AWAITING_REVIEW
            return self.status

        self.history = list(values.get("history", self.history))
        self.review_request = {}
        failed = not values.get("response_ok") or bool(values.get("error_message"))
        self.status = SessionStatus.FAILED if failed else SessionStatus.SUCCESS
        print(f"[Session] {self.session_id} #{self._request_id} {self.status.value}")
        return self.status


def _interrupt_value(snapshot) -> dict:
    for task in getattr(snapshot, "tasks", ()):
        for pending in getattr(task, "interrupts", ()):
            if isinstance(pending.value, dict):
                return pending.value
    return {}
