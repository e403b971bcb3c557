"""
Translate semantic edit parameters into host develop-setting identifiers.

Values are sanitized against the host's ranges. White-balance temperature is
the only context-dependent rule: raw files report an absolute Kelvin value,
rendered files (JPEG/TIFF) a relative -100..+100 slider, and models emit
either convention.
"""

from __future__ import annotations

import math
import re
from typing import Any, Iterator, Optional, Tuple

# ---------------------------------------------------------------------------
# Parameter tables
# ---------------------------------------------------------------------------

HSL_COLORS = ["Red", "Orange", "Yellow", "Green", "Aqua", "Blue", "Purple", "Magenta"]

PARAM_MAP = {
    "exposure": "Exposure2012",
    "contrast": "Contrast2012",
    "highlights": "Highlights2012",
    "shadows": "Shadows2012",
    "whites": "Whites2012",
    "blacks": "Blacks2012",
    "clarity": "Clarity2012",
    "vibrance": "Vibrance",
    "saturation": "Saturation",
    "temperature": "Temperature",
    "tint": "Tint",
    "texture": "Texture",
    "dehaze": "Dehaze",
    "sharpness": "Sharpness",
    "luminanceNoise": "LuminanceSmoothing",
    "colorNoise": "ColorNoiseReduction",
    "vignetteAmount": "PostCropVignetteAmount",
    "grainAmount": "GrainAmount",

    # Tone curve (parametric regions)
    "toneCurveHighlights": "ParametricHighlights",
    "toneCurveLights": "ParametricLights",
    "toneCurveDarks": "ParametricDarks",
    "toneCurveShadows": "ParametricShadows",
}
for _color in HSL_COLORS:
    PARAM_MAP[f"hue{_color}"] = f"HueAdjustment{_color}"
    PARAM_MAP[f"sat{_color}"] = f"SaturationAdjustment{_color}"
    PARAM_MAP[f"lum{_color}"] = f"LuminanceAdjustment{_color}"

HISTORY_NAMES = {
    "Exposure2012": "Exposure",
    "Contrast2012": "Contrast",
    "Highlights2012": "Highlights",
    "Shadows2012": "Shadows",
    "Whites2012": "Whites",
    "Blacks2012": "Blacks",
    "Clarity2012": "Clarity",
    "Vibrance": "Vibrance",
    "Saturation": "Saturation",
    "Temperature": "Temperature",
    "Tint": "Tint",
    "Texture": "Texture",
    "Dehaze": "Dehaze",
    "Sharpness": "Sharpening",
    "LuminanceSmoothing": "Noise Reduction (Luminance)",
    "ColorNoiseReduction": "Noise Reduction (Color)",
    "PostCropVignetteAmount": "Vignette",
    "GrainAmount": "Grain",
    "ParametricHighlights": "Tone Curve (Highlights)",
    "ParametricLights": "Tone Curve (Lights)",
    "ParametricDarks": "Tone Curve (Darks)",
    "ParametricShadows": "Tone Curve (Shadows)",
}
for _color in HSL_COLORS:
    HISTORY_NAMES[f"HueAdjustment{_color}"] = f"Hue ({_color})"
    HISTORY_NAMES[f"SaturationAdjustment{_color}"] = f"Saturation ({_color})"
    HISTORY_NAMES[f"LuminanceAdjustment{_color}"] = f"Luminance ({_color})"

_HSL_KEYS = [
    f"{prefix}Adjustment{color}"
    for prefix in ("Hue", "Saturation", "Luminance")
    for color in HSL_COLORS
]

# Application order: each bucket reads as one step of a typical develop workflow.
BUCKETS = [
    ("basic", [
        "Temperature", "Tint",
        "Exposure2012", "Contrast2012", "Highlights2012",
        "Shadows2012", "Whites2012", "Blacks2012",
    ]),
    ("presence", [
        "Texture", "Clarity2012", "Dehaze", "Vibrance", "Saturation",
        *_HSL_KEYS,
    ]),
    ("tone_curve", [
        "ParametricHighlights", "ParametricLights", "ParametricDarks", "ParametricShadows",
    ]),
    ("effects", [
        "Sharpness", "LuminanceSmoothing", "ColorNoiseReduction",
        "PostCropVignetteAmount", "GrainAmount",
    ]),
]

_BUCKET_RANK = {}
for _rank, (_name, _keys) in enumerate(BUCKETS):
    for _position, _key in enumerate(_keys):
        _BUCKET_RANK[_key] = (_rank, _position)

# Temperature and Tint are handled by their own sanitizers.
RANGES = {
    "Exposure2012": (-5.0, 5.0),
    "Sharpness": (0, 150),
    "LuminanceSmoothing": (0, 100),
    "ColorNoiseReduction": (0, 100),
    "GrainAmount": (0, 100),
}
for _key in _BUCKET_RANK:
    RANGES.setdefault(_key, (-100, 100))
del RANGES["Temperature"], RANGES["Tint"]

KELVIN_MIN = 2000
KELVIN_MAX = 50000
KELVIN_PER_SLIDER_UNIT = 20
SLIDER_NUDGE_LIMIT = 100
SLIDER_MIN, SLIDER_MAX = -100, 100
TINT_MIN, TINT_MAX = -150, 150

_SEPARATORS = re.compile(r"[\s_\-.]+")
_LOOKUP = {_SEPARATORS.sub("", name).lower(): host_key for name, host_key in PARAM_MAP.items()}
_LOOKUP.update({host_key.lower(): host_key for host_key in _BUCKET_RANK})
for _color in HSL_COLORS:
    _LOOKUP[f"saturation{_color}".lower()] = f"SaturationAdjustment{_color}"
    _LOOKUP[f"luminance{_color}".lower()] = f"LuminanceAdjustment{_color}"


# ---------------------------------------------------------------------------
# TranslatedEdit
# ---------------------------------------------------------------------------

class TranslatedEdit:
    """Ordered host-setting -> value mapping with a display label per setting."""

    def __init__(self, entries: list[Tuple[str, Any, str]] | None = None):
        self._entries = list(entries or [])

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def keys(self) -> list[str]:
        return [key for key, _, _ in self._entries]

    def items(self) -> list[Tuple[str, Any]]:
        return [(key, value) for key, value, _ in self._entries]

    def entries(self) -> list[Tuple[str, Any, str]]:
        return list(self._entries)

    @property
    def settings(self) -> dict:
        return dict(self.items())

    @property
    def labels(self) -> dict:
        return {key: label for key, _, label in self._entries}

    def summary_lines(self) -> list[str]:
        return [f"- {label}: {_format_value(value)}" for _, value, label in self._entries]

    def to_list(self) -> list[list]:
        """Plain-data form for graph state."""
        return [[key, value, label] for key, value, label in self._entries]

    @classmethod
    def from_list(cls, data: list) -> "TranslatedEdit":
        return cls([(key, value, label) for key, value, label in data or []])

    def __repr__(self) -> str:
        return f"TranslatedEdit({self.items()!r})"


# ---------------------------------------------------------------------------
# Translation
# ---------------------------------------------------------------------------

def host_key_for(name: str) -> str:
    """Semantic name -> host identifier; unknown names pass through unchanged."""
    return _LOOKUP.get(_SEPARATORS.sub("", str(name)).lower(), name)


def label_for(host_key: str) -> str:
    return HISTORY_NAMES.get(host_key, host_key)


def translate(params: dict, context) -> TranslatedEdit:
    """
    Map and sanitize ``params`` using the current host ``context``
    (a ContextSnapshot read just before this call).
    """
    # Later aliases of the same setting overwrite earlier ones.
    mapped: dict = {}
    for name, raw_value in (params or {}).items():
        host_key = host_key_for(name)
        value = sanitize(host_key, raw_value, context)
        if value is None:
            print(f"[Translator] Dropping {name}: unusable value {raw_value!r}")
            continue
        mapped[host_key] = value

    known = sorted((key for key in mapped if key in _BUCKET_RANK), key=_BUCKET_RANK.get)
    unknown = [key for key in mapped if key not in _BUCKET_RANK]
    return TranslatedEdit([(key, mapped[key], label_for(key)) for key in known + unknown])


def sanitize(host_key: str, value: Any, context=None) -> Any:
    """Clamp ``value`` into the host range for ``host_key``; None if unusable."""
    if host_key == "Temperature":
        number = _to_number(value)
        if number is None:
            return None
        current = context.current_temperature if context is not None else None
        return sanitize_temperature(number, current)

    if host_key == "Tint":
        number = _to_number(value)
        return None if number is None else sanitize_tint(number)

    bounds = RANGES.get(host_key)
    if bounds is None:
        return value
    number = _to_number(value)
    if number is None:
        return None
    return _clamp(number, *bounds)


def is_kelvin_mode(current_temperature: Optional[float]) -> bool:
    current = _to_number(current_temperature)
    return current is not None and current > KELVIN_MIN


def sanitize_temperature(value: float, current_temperature: Optional[float]) -> float:
    """
    Kelvin mode (current value > 2000K):
      |value| <= 100  relative slider nudge, 20K per unit added to current
      value < -100    Kelvin delta added to current ("-5000" = 5000K cooler)
      value > 100     absolute Kelvin target
    and the result is clamped to 2000..50000.
    Slider mode: clamped to -100..+100, no reinterpretation.
    """
    if not is_kelvin_mode(current_temperature):
        return _clamp(value, SLIDER_MIN, SLIDER_MAX)

    current = float(current_temperature)
    if abs(value) <= SLIDER_NUDGE_LIMIT:
        target = current + value * KELVIN_PER_SLIDER_UNIT
    elif value < -SLIDER_NUDGE_LIMIT:
        target = current + value
    else:
        target = value
    return _clamp(target, KELVIN_MIN, KELVIN_MAX)


def sanitize_tint(value: float) -> float:
    return _clamp(value, TINT_MIN, TINT_MAX)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            number = float(value.strip().lstrip("+"))
        except ValueError:
            return None
        if not math.isfinite(number):
            return None
        return int(number) if number.is_integer() else number
    return None


def _clamp(value, low, high):
    return max(low, min(high, value))


def _format_value(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, (int, float)) and value > 0:
        return f"+{value}"
    return str(value)
