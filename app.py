"""
Lightroom Coach Gradio Demo: chat panel over a JSON catalog.

Layout:
  Left column:   Primary photo + develop settings + history steps
  Middle column: Chat transcript, suggestions, input, Send / Analyze
  Review row:    Keep / Undo for the edit just applied, New Chat
  Setup:         Photos to load, API key
Buttons follow CoachSession.can_send so only one request runs at a time.
"""

from __future__ import annotations

import json

import gradio as gr

from coach.prompts import SUGGESTIONS
from coach.session import CoachSession, load_coach_config
from coach.updates import check_for_updates
from host.catalog import JsonCatalogHost
from protocol.errors import CoachError


# ---------------------------------------------------------------------------
# Global state
# ---------------------------------------------------------------------------

_session = None
_host = None
_config = None
_config_path = "configs/coach_config.yaml"


def _get_config() -> dict:
    global _config
    if _config is None:
        _config = load_coach_config(_config_path)
    return _config


# ---------------------------------------------------------------------------
# Core handlers
# ---------------------------------------------------------------------------

def init_session(image_paths: list, api_key: str):
    """Load photos into a fresh catalog and open a chat on it."""
    global _session, _host

    if not image_paths:
        return _outputs("Please add at least one photo first.")

    config = _get_config()
    _host = JsonCatalogHost.from_images(
        list(image_paths), path=config.get("session", {}).get("catalog_path")
    )
    if api_key and api_key.strip():
        provider = config["model"]["provider"]
        preference_key = config["model"][provider].get("preference_key", f"{provider}_api_key")
        _host.preferences()[preference_key] = api_key.strip()
        _host.save()
    _session = CoachSession(_host, config=config)
    return _outputs(f"Session {_session.session_id}: {len(image_paths)} photo(s) selected")


def send_message(user_message: str):
    if _session is None:
        return _outputs("Please start a session first.")
    try:
        _session.send(user_message)
    except CoachError as e:
        return _outputs(f"Error: {e}")
    return _outputs()


def analyze_photo():
    if _session is None:
        return _outputs("Please start a session first.")
    try:
        _session.analyze()
    except CoachError as e:
        return _outputs(f"Error: {e}")
    return _outputs()


def handle_review(decision: str):
    """Keep or undo the edit waiting for review; outside a review Undo reverts the last edit."""
    if _session is None:
        return _outputs("Please start a session first.")
    try:
        if _session.awaiting_review:
            _session.resolve_review(decision)
        elif decision == "undo":
            _session.undo()
        else:
            return _outputs("No edit is waiting for review.")
    except CoachError as e:
        return _outputs(f"Error: {e}")
    return _outputs()


def new_chat():
    if _session is None:
        return _outputs("Please start a session first.")
    try:
        _session.new_chat()
    except CoachError as e:
        return _outputs(f"Error: {e}")
    return _outputs("New chat started.")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _outputs(status: str = ""):
    """(chatbot, message box, status, photo, settings JSON, history, send, analyze, keep, undo)."""
    can_send = _session is not None and _session.can_send
    reviewing = _session is not None and _session.awaiting_review
    if not status and _session is not None:
        status = f"Status: {_session.status.value}"
    return (
        _chat_messages(),
        "",
        status,
        _primary_photo_path(),
        _format_settings(),
        "\n".join(_host.history_names()) if _host is not None else "",
        gr.update(interactive=can_send),
        gr.update(interactive=can_send),
        gr.update(interactive=reviewing),
        gr.update(interactive=_session is not None and (reviewing or _session.undo_slot.pending)),
    )


def _chat_messages() -> list:
    if _session is None:
        return []
    messages = [{"role": "assistant", "content": _session.welcome_text}]
    for entry in _session.transcript:
        if entry.role == "user":
            messages.append({"role": "user", "content": entry.text})
        elif entry.role == "assistant":
            messages.append({"role": "assistant", "content": entry.text})
        else:
            messages.append({"role": "assistant", "content": f"_{entry.text}_"})
    return messages


def _primary_photo_path():
    if _host is None:
        return None
    photo = _host.target_photo()
    return getattr(photo, "path", None) if photo is not None else None


def _format_settings() -> str:
    """Develop settings of the primary selected photo."""
    if _host is None:
        return "{}"
    photo = _host.target_photo()
    if photo is None:
        return "{}"
    return json.dumps(photo.develop_settings(), indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Gradio UI
# ---------------------------------------------------------------------------

def build_demo():
    """Build and return the Gradio demo interface."""
    config = _get_config()
    update = None
    if config.get("updates", {}).get("enabled", True):
        update = check_for_updates(timeout=float(config["updates"].get("timeout", 5)))

    with gr.Blocks(title="Lightroom Coach", theme=gr.themes.Soft()) as demo:
        gr.Markdown("# Lightroom Coach")
        if update:
            gr.Markdown(f"**Update available: v{update.display_version}** [Download]({update.url})")

        with gr.Row():
            # Left: photo and settings
            with gr.Column(scale=2):
                photo_view = gr.Image(label="Primary photo", type="filepath", interactive=False)
                settings_json = gr.Code(label="Develop settings", language="json")
                history_text = gr.Textbox(label="History", lines=8, interactive=False)

            # Middle: chat
            with gr.Column(scale=3):
                chatbot = gr.Chatbot(label="Coach", type="messages", height=450)
                with gr.Row():
                    suggestion_btns = [gr.Button(text, size="sm") for text in SUGGESTIONS]
                with gr.Row():
                    msg_input = gr.Textbox(
                        placeholder="Ask a question or describe an edit...",
                        label="Message",
                        scale=5,
                    )
                    send_btn = gr.Button("Send", variant="primary", scale=1, interactive=False)
                with gr.Row():
                    analyze_btn = gr.Button("Analyze & Coach", interactive=False)
                    keep_btn = gr.Button("Keep", variant="primary", interactive=False)
                    undo_btn = gr.Button("Undo", variant="stop", interactive=False)
                    new_chat_btn = gr.Button("New Chat")
                status_text = gr.Textbox(label="Status", interactive=False)

        # Session controls
        with gr.Accordion("Session Setup", open=True):
            with gr.Row():
                upload = gr.File(label="Photos", file_count="multiple", type="filepath")
                api_key = gr.Textbox(label="API key (optional if set in the environment)", type="password")
                init_btn = gr.Button("Start Session", variant="primary")

        outputs = [
            chatbot, msg_input, status_text, photo_view, settings_json, history_text,
            send_btn, analyze_btn, keep_btn, undo_btn,
        ]

        # --- Event handlers ---
        init_btn.click(fn=init_session, inputs=[upload, api_key], outputs=outputs)
        send_btn.click(fn=send_message, inputs=[msg_input], outputs=outputs)
        msg_input.submit(fn=send_message, inputs=[msg_input], outputs=outputs)
        analyze_btn.click(fn=analyze_photo, outputs=outputs)
        keep_btn.click(fn=lambda: handle_review("keep"), outputs=outputs)
        undo_btn.click(fn=lambda: handle_review("undo"), outputs=outputs)
        new_chat_btn.click(fn=new_chat, outputs=outputs)
        for btn in suggestion_btns:
            btn.click(fn=lambda text: text, inputs=[btn], outputs=[msg_input])

    return demo


if __name__ == "__main__":
    demo = build_demo()
    # one request at a time per session
    demo.queue(default_concurrency_limit=1)
    demo.launch(server_name="0.0.0.0", server_port=7860)
