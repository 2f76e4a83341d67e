from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Union

from .color import Color
from .config import DEFAULT_FEATHER_RADIUS, DEFAULT_SMOOTH, DEFAULT_THRESHOLD, get_timeout_s
from .contracts import ProcessingConfig


class Preset(str, Enum):
    AUTO = "auto"
    WHITE = "white"
    RED = "red"
    GREEN = "green"
    BLUE = "blue"
    BLACK = "black"
    GRAY = "gray"
    CYAN = "cyan"
    MAGENTA = "magenta"
    YELLOW = "yellow"


@dataclass(frozen=True)
class PresetSpec:
    color: Optional[Color]
    threshold: float
    feather_radius: float


# Dark and neutral backgrounds need more slack to absorb shading.
PRESET_SPECS: Dict[Preset, PresetSpec] = {
    Preset.AUTO: PresetSpec(None, DEFAULT_THRESHOLD, DEFAULT_FEATHER_RADIUS),
    Preset.WHITE: PresetSpec((255, 255, 255), 8.0, 1.8),
    Preset.RED: PresetSpec((255, 0, 0), 12.0, 1.5),
    Preset.GREEN: PresetSpec((0, 255, 0), 12.0, 1.5),
    Preset.BLUE: PresetSpec((0, 0, 255), 12.0, 1.5),
    Preset.BLACK: PresetSpec((0, 0, 0), 15.0, 2.0),
    Preset.GRAY: PresetSpec((128, 128, 128), 20.0, 2.5),
    Preset.CYAN: PresetSpec((0, 255, 255), 10.0, 1.5),
    Preset.MAGENTA: PresetSpec((255, 0, 255), 10.0, 1.5),
    Preset.YELLOW: PresetSpec((255, 255, 0), 12.0, 1.8),
}

_missing = set(Preset) - set(PRESET_SPECS)
if _missing:
    raise RuntimeError(f"Presets without specs: {sorted(p.value for p in _missing)}")


class Profile(str, Enum):
    """Quality/speed trade-offs for auto-detected backgrounds."""

    AI_OPTIMIZED = "ai_optimized"
    SIMPLE = "simple"
    SUPER_SMOOTH = "super_smooth"
    PHOTO_GRADE = "photo_grade"


@dataclass(frozen=True)
class ProfileSpec:
    threshold: float
    smooth: bool
    feather_radius: float


PROFILE_SPECS: Dict[Profile, ProfileSpec] = {
    Profile.AI_OPTIMIZED: ProfileSpec(6.0, True, 1.5),
    Profile.SIMPLE: ProfileSpec(8.0, False, 0.0),
    Profile.SUPER_SMOOTH: ProfileSpec(7.0, True, 3.0),
    Profile.PHOTO_GRADE: ProfileSpec(8.0, True, 2.0),
}


def parse_preset(name: Union[str, Preset]) -> Preset:
    if isinstance(name, Preset):
        return name
    try:
        return Preset(str(name).strip().lower())
    except ValueError as e:
        choices = ", ".join(p.value for p in Preset)
        raise ValueError(f"Unknown preset {name!r}; expected one of: {choices}") from e


def parse_profile(name: Union[str, Profile]) -> Profile:
    if isinstance(name, Profile):
        return name
    try:
        return Profile(str(name).strip().lower())
    except ValueError as e:
        choices = ", ".join(p.value for p in Profile)
        raise ValueError(f"Unknown profile {name!r}; expected one of: {choices}") from e


def resolve_config(
    preset: Union[str, Preset] = Preset.AUTO,
    *,
    threshold: Optional[float] = None,
    smooth: Optional[bool] = None,
    feather_radius: Optional[float] = None,
    target_color: Optional[Color] = None,
    timeout_s: Optional[float] = None,
) -> ProcessingConfig:
    """
    Build a ProcessingConfig: explicit arguments win over the preset's tuned
    defaults, which win over the global defaults.
    """
    spec = PRESET_SPECS[parse_preset(preset)]
    return ProcessingConfig(
        threshold=spec.threshold if threshold is None else threshold,
        smooth=DEFAULT_SMOOTH if smooth is None else smooth,
        feather_radius=spec.feather_radius if feather_radius is None else feather_radius,
        target_color=spec.color if target_color is None else target_color,
        timeout_s=get_timeout_s() if timeout_s is None else timeout_s,
    )


def profile_config(
    profile: Union[str, Profile],
    *,
    target_color: Optional[Color] = None,
    timeout_s: Optional[float] = None,
) -> ProcessingConfig:
    spec = PROFILE_SPECS[parse_profile(profile)]
    return ProcessingConfig(
        threshold=spec.threshold,
        smooth=spec.smooth,
        feather_radius=spec.feather_radius,
        target_color=target_color,
        timeout_s=get_timeout_s() if timeout_s is None else timeout_s,
    )
