"""
Node implementations for the Lightroom Coach StateGraph.

Nodes: model, extract, apply, review, finalize.
Each node takes CoachState and returns a partial state update dict. The host,
the model client factory and the edit executor are bound by make_nodes(), so
the checkpointed state only holds plain data.
"""

from __future__ import annotations

from typing import Any, Callable

from host.context import read_context
from host.executor import EditExecutor
from host.thumbnail import thumbnail_base64
from protocol.errors import CoachError, NoSelectionError, UnsupportedMediaError
from protocol.extractor import ActionKind, extract
from protocol.translator import TranslatedEdit, translate
from .display import error_display_text, response_display_text
from .prompts import (
    SYSTEM_PROMPT,
    VISION_SYSTEM_PROMPT,
    VISION_USER_TEXT,
    build_chat_turns,
    format_context_block,
)
from .state import CoachState, TranscriptEntry


def make_nodes(host, client_factory: Callable, executor: EditExecutor) -> dict:
    """Build the node callables bound to one session's collaborators."""

    # -----------------------------------------------------------------------
    # 1. Model
    # -----------------------------------------------------------------------

    def model_node(state: CoachState) -> dict:
        """
        Send the request to the model.

        Reads: mode, history, context
        Writes: response_ok, response_text, error_message, error_kind, messages
        """
        try:
            client = client_factory()
            if state.get("mode") == "vision":
                response = _ask_vision(state, client)
            else:
                turns = build_chat_turns(state.get("history", []), state.get("context", {}))
                response = client.generate(
                    SYSTEM_PROMPT,
                    turns,
                    temperature=float(_cfg(state, "chat", "temperature", default=0.7)),
                    max_output_tokens=int(_cfg(state, "chat", "max_output_tokens", default=1000)),
                )
        except CoachError as e:
            print(f"[Model] {e.kind}: {e}")
            return _failure(str(e), e.kind)

        if not response.success:
            return _failure(response.text, response.error)

        print(f"[Model] Received {len(response.text)} chars")
        return {
            "response_ok": True,
            "response_text": response.text,
            "error_message": "",
            "error_kind": "",
        }

    def _ask_vision(state: CoachState, client):
        photo = host.target_photo()
        if photo is None:
            raise NoSelectionError("No photo selected. Please select a photo to analyze.")
        if photo.is_video:
            raise UnsupportedMediaError("Cannot analyze videos.")

        image_b64 = thumbnail_base64(
            host,
            photo,
            size=int(_cfg(state, "vision", "thumbnail_size", default=512)),
            timeout=float(_cfg(state, "vision", "thumbnail_timeout", default=5.0)),
        )
        text = VISION_USER_TEXT + format_context_block(
            state.get("context", {}), include_white_balance=True
        )
        return client.generate_with_image(
            VISION_SYSTEM_PROMPT,
            text,
            image_b64,
            mime_type="image/jpeg",
            temperature=float(_cfg(state, "vision", "temperature", default=0.4)),
            max_output_tokens=int(_cfg(state, "vision", "max_output_tokens", default=2000)),
        )

    # -----------------------------------------------------------------------
    # 2. Extract
    # -----------------------------------------------------------------------

    def extract_node(state: CoachState) -> dict:
        """
        Find an action in the model text and translate it for the host.

        Writes: action, edit, display_text, messages
        """
        raw = state.get("response_text", "")
        action = extract(raw)
        applicable = action is not None and action.kind is ActionKind.APPLY_DEVELOP_SETTINGS
        display = response_display_text(raw, applicable)
        messages = [TranscriptEntry("assistant", display).to_dict()]

        if action is None:
            return {"action": {}, "edit": [], "display_text": display, "messages": messages}

        if action.kind is not ActionKind.APPLY_DEVELOP_SETTINGS:
            print(f"[Extract] Unrecognized action: {action.name}")
            messages.append(TranscriptEntry("status", f"Unsupported action: {action.name}").to_dict())
            return {
                "action": action.to_payload(),
                "edit": [],
                "display_text": display,
                "messages": messages,
            }

        # sanitizing needs the white balance as it is now, not when the request started
        edit = translate(action.params, read_context(host))
        print(f"[Extract] {action.name}: {len(edit)} setting(s)")
        if not edit:
            messages.append(TranscriptEntry("status", "No usable settings in the response.").to_dict())
        return {
            "action": action.to_payload(),
            "edit": edit.to_list(),
            "display_text": display,
            "messages": messages,
        }

    # -----------------------------------------------------------------------
    # 3. Apply
    # -----------------------------------------------------------------------

    def apply_node(state: CoachState) -> dict:
        """
        Apply the translated edit, one history step per setting.

        Writes: apply_result, messages
        """
        edit = TranslatedEdit.from_list(state.get("edit", []))
        try:
            result = executor.apply(edit)
        except CoachError as e:
            print(f"[Apply] {e.kind}: {e}")
            return {
                "apply_result": {"applied": [], "failed": [], "photo_count": 0, "success": False},
                "error_message": str(e),
                "error_kind": e.kind,
                "messages": [TranscriptEntry("status", error_display_text(str(e))).to_dict()],
            }

        lines = []
        if result.applied:
            applied = [
                line
                for (_, _, label), line in zip(edit.entries(), edit.summary_lines())
                if label in result.applied
            ]
            lines.append(f"Applied {len(result.applied)} setting(s) to {result.photo_count} photo(s):")
            lines.extend(applied)
        for label, message in result.failed:
            lines.append(f"Could not apply {label}: {message}")
        return {
            "apply_result": result.to_dict(),
            "messages": [TranscriptEntry("status", "\n".join(lines)).to_dict()],
        }

    # -----------------------------------------------------------------------
    # 4. Review (keep / undo)
    # -----------------------------------------------------------------------

    def review_node(state: CoachState) -> dict:
        """
        Pause for the user to keep or undo the edit just applied.

        Expects Command(resume={"decision": "keep"|"undo"}) from the UI.
        Writes: review_request, review_decision, messages
        """
        from langgraph.types import interrupt

        review_payload = {
            "applied": state.get("apply_result", {}).get("applied", []),
            "photo_count": state.get("apply_result", {}).get("photo_count", 0),
            "summary": TranslatedEdit.from_list(state.get("edit", [])).summary_lines(),
        }

        # Interrupt and wait for the user
        human_input = interrupt(review_payload)

        decision = human_input.get("decision", "keep") if isinstance(human_input, dict) else "keep"
        decision = str(decision).lower()
        print(f"[Review] Decision: {decision}")

        if decision != "undo":
            return {
                "review_request": review_payload,
                "review_decision": "keep",
                "messages": [TranscriptEntry("status", "Kept the changes.").to_dict()],
            }

        try:
            count = executor.undo()
            text = f"Reverted {count} photo(s) to their previous settings."
        except CoachError as e:
            print(f"[Review] Undo failed: {e}")
            text = error_display_text(str(e))
        return {
            "review_request": review_payload,
            "review_decision": "undo",
            "messages": [TranscriptEntry("status", text).to_dict()],
        }

    # -----------------------------------------------------------------------
    # 5. Finalize
    # -----------------------------------------------------------------------

    def finalize_node(state: CoachState) -> dict:
        """
        Record the assistant turn in the conversation history.

        The displayed text is stored, not the raw response, so action payloads
        are not fed back to the model on later turns.
        """
        history = list(state.get("history", []))
        if state.get("response_ok"):
            if state.get("mode") == "vision":
                history.append({"role": "user", "text": VISION_USER_TEXT})
            history.append({"role": "assistant", "text": state.get("display_text", "")})
        return {"history": history}

    return {
        "model": model_node,
        "extract": extract_node,
        "apply": apply_node,
        "review": review_node,
        "finalize": finalize_node,
    }


# ---------------------------------------------------------------------------
# Routing functions
# ---------------------------------------------------------------------------

def route_after_model(state: CoachState) -> str:
    """Route after model: extract | finalize."""
    return "extract" if state.get("response_ok") else "finalize"


def route_after_extract(state: CoachState) -> str:
    """Route after extract: apply | finalize."""
    return "apply" if state.get("edit") else "finalize"


def route_after_apply(state: CoachState) -> str:
    """Route after apply: review | finalize."""
    if not state.get("apply_result", {}).get("success"):
        return "finalize"
    if not _cfg(state, "review", "confirm_edits", default=True):
        return "finalize"
    return "review"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _failure(message: str, kind: str) -> dict:
    return {
        "response_ok": False,
        "response_text": "",
        "error_message": message,
        "error_kind": kind,
        "messages": [TranscriptEntry("status", error_display_text(message)).to_dict()],
    }


def _cfg(state: CoachState, *keys: str, default: Any = None) -> Any:
    """Read nested config from state['coach_config'] with safe defaults."""
    value: Any = state.get("coach_config", {})
    for key in keys:
        if not isinstance(value, dict):
            return default
        value = value.get(key)
        if value is None:
            return default
    return value
