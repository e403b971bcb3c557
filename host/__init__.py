"""
Host-side adapters: the editing application interface, context provider,
edit executor with single-slot undo, and thumbnail export.
"""

from .base import Host, Photo
from .context import ContextSnapshot, WhiteBalanceMode, read_context
from .executor import ApplyResult, EditExecutor, EditSnapshot, UndoSlot
from .thumbnail import thumbnail_base64
from .catalog import JsonCatalogHost

__all__ = [
    "Host",
    "Photo",
    "ContextSnapshot",
    "WhiteBalanceMode",
    "read_context",
    "ApplyResult",
    "EditExecutor",
    "EditSnapshot",
    "UndoSlot",
    "thumbnail_base64",
    "JsonCatalogHost",
]
