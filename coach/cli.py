"""
Interactive CLI for the Lightroom Coach.

Usage:
    python -m coach.cli --catalog sessions/catalog.json
    python -m coach.cli --image photo.dng --image other.jpg

Commands: /analyze, /undo, /new, /select p1 p2, /module Develop, /suggest, quit
"""

from __future__ import annotations

import argparse
import os

from host.catalog import JsonCatalogHost
from protocol.errors import CoachError
from .display import plain_text
from .session import CoachSession, load_coach_config
from .updates import check_for_updates


def main():
    parser = argparse.ArgumentParser(description="Lightroom Coach Interactive CLI")
    parser.add_argument("--catalog", default=None, help="JSON catalog path")
    parser.add_argument("--image", action="append", default=[], help="Start a new catalog from image(s)")
    parser.add_argument("--config", default="configs/coach_config.yaml", help="Coach config path")
    parser.add_argument("--provider", choices=["gemini", "openai"], default=None, help="Override model provider")
    parser.add_argument("--no-review", action="store_true", help="Keep edits without asking")
    args = parser.parse_args()

    config = load_coach_config(args.config)
    if args.provider:
        config["model"]["provider"] = args.provider
    if args.no_review:
        config["review"]["confirm_edits"] = False

    host = _open_catalog(args, config)
    session = CoachSession(host, config=config)

    if config.get("updates", {}).get("enabled", True):
        update = check_for_updates(timeout=float(config["updates"].get("timeout", 5)))
        if update:
            print(f"Update available: v{update.display_version}  {update.url}")

    print(f"Session: {session.session_id}")
    print(f"Catalog: {host.path or '(in memory)'}  Module: {host.active_module_name()}")
    print(session.welcome_text)
    _print_suggestions(session)
    print("Type a message, /analyze, /undo, /new, or 'quit' to exit.\n")

    while True:
        try:
            user_input = input("YOU > ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nExiting.")
            break

        if user_input.lower() in ("quit", "exit", "q"):
            break
        if not user_input:
            continue

        shown = len(session.transcript)
        try:
            if not _run_command(session, host, user_input):
                session.send(user_input)
                shown += 1  # the user line is already on screen
        except CoachError as e:
            print(f"Error: {e}")
            continue

        _print_transcript(session, shown)
        while session.awaiting_review:
            shown = len(session.transcript)
            _handle_review(session)
            _print_transcript(session, shown)


def _open_catalog(args, config) -> JsonCatalogHost:
    if args.image:
        path = args.catalog or config.get("session", {}).get("catalog_path")
        return JsonCatalogHost.from_images(args.image, path=path)
    path = args.catalog or config.get("session", {}).get("catalog_path")
    if path and os.path.exists(path):
        return JsonCatalogHost.load(path)
    print("No catalog found; starting an empty in-memory catalog.")
    return JsonCatalogHost()


def _run_command(session: CoachSession, host: JsonCatalogHost, user_input: str) -> bool:
    """Handle slash commands; False means the input is a chat message."""
    if not user_input.startswith("/"):
        return False
    command, *rest = user_input.split()
    command = command.lower()

    if command == "/analyze":
        print("Analyzing photo... (may take up to 30 seconds)")
        session.analyze()
    elif command == "/undo":
        session.undo()
    elif command == "/new":
        session.new_chat()
        print(session.welcome_text)
        _print_suggestions(session)
    elif command == "/select":
        host.select(rest)
        print(f"Selected: {', '.join(p.photo_id for p in host.target_photos()) or 'nothing'}")
    elif command == "/module":
        host.set_module(" ".join(rest) or "Develop")
        print(f"Module: {host.active_module_name()}")
    elif command == "/suggest":
        _print_suggestions(session)
    else:
        print(f"Unknown command: {command}")
    return True


def _handle_review(session: CoachSession):
    """Handle the keep/undo interrupt at the CLI."""
    print("\n--- Review ---")
    for line in session.review_request.get("summary", []):
        print(f"  {line}")
    choice = input("Keep these changes? [K]eep / [u]ndo: ").strip().lower()
    session.resolve_review("undo" if choice in ("u", "undo") else "keep")


def _print_transcript(session: CoachSession, start: int):
    for entry in session.transcript[start:]:
        prefix = {"user": "YOU: ", "assistant": "COACH: "}.get(entry.role, "")
        print(f"{prefix}{plain_text(entry.text)}\n")


def _print_suggestions(session: CoachSession):
    for suggestion in session.suggestions:
        print(f"  • {suggestion}")


if __name__ == "__main__":
    main()
