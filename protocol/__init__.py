"""
Model-response action protocol: structured-data codec, action extraction and
parameter translation. Pure functions, no host or network access.
"""

from .codec import decode, decode_strict, encode
from .extractor import ActionKind, ActionRequest, extract, normalize_action_name
from .translator import TranslatedEdit, translate, sanitize_temperature, sanitize_tint
from .errors import CoachError

__all__ = [
    "decode",
    "decode_strict",
    "encode",
    "ActionKind",
    "ActionRequest",
    "extract",
    "normalize_action_name",
    "TranslatedEdit",
    "translate",
    "sanitize_temperature",
    "sanitize_tint",
    "CoachError",
]
