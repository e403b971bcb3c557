"""
Context provider: a fresh snapshot of host state for prompts and sanitizing.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Optional

from protocol.errors import HostError
from protocol.translator import is_kelvin_mode


class WhiteBalanceMode(str, Enum):
    KELVIN = "kelvin"
    SLIDER = "slider"


@dataclass
class ContextSnapshot:
    """Host state at one instant. Never cached: selection and module change between turns."""
    active_module_name: str = "Unknown"
    selected_count: int = 0
    current_temperature: Optional[float] = None
    current_tint: Optional[float] = None

    @property
    def white_balance_mode(self) -> WhiteBalanceMode:
        if is_kelvin_mode(self.current_temperature):
            return WhiteBalanceMode.KELVIN
        return WhiteBalanceMode.SLIDER

    def to_dict(self) -> dict:
        data = asdict(self)
        data["white_balance_mode"] = self.white_balance_mode.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ContextSnapshot":
        data = data or {}
        return cls(
            active_module_name=data.get("active_module_name", "Unknown"),
            selected_count=int(data.get("selected_count", 0)),
            current_temperature=data.get("current_temperature"),
            current_tint=data.get("current_tint"),
        )


def read_context(host) -> ContextSnapshot:
    """Read module, selection and white balance of the primary photo."""
    try:
        module_name = host.active_module_name() or "Unknown"
    except HostError as e:
        print(f"[Context] Module lookup failed: {e}")
        module_name = "Unknown"

    photos = host.target_photos()
    temperature = tint = None
    if photos and not photos[0].is_video:
        settings = photos[0].develop_settings()
        temperature = settings.get("Temperature")
        tint = settings.get("Tint")

    return ContextSnapshot(
        active_module_name=module_name,
        selected_count=len(photos),
        current_temperature=temperature,
        current_tint=tint,
    )
