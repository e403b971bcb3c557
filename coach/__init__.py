"""
Lightroom Coach: chat assistant that answers Lightroom questions and applies
develop settings the model asks for.

Built on LangGraph: model → extract → apply → review (keep/undo) → finalize.
"""

from .state import CoachState, SessionStatus, TranscriptEntry
from .session import CoachSession, create_checkpointer, load_coach_config
from .graph import build_coach_graph

__all__ = [
    "CoachState",
    "SessionStatus",
    "TranscriptEntry",
    "CoachSession",
    "build_coach_graph",
    "create_checkpointer",
    "load_coach_config",
]
