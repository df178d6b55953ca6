"""
TabScope Backend — Specialty Tab Presets
==========================================

What:  Read-only catalog of named tab layouts for medical specialties.
How:   Each preset lists (key, visible, order) entries. Applying a preset is
       done by TabConfigService.apply_preset, which writes one override per
       entry at the requested scope.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class PresetItem:
    key: str
    is_visible: bool
    display_order: int


@dataclass(frozen=True)
class TabPreset:
    name: str
    description: str
    icon: str
    items: Tuple[PresetItem, ...]


def _items(*entries: Tuple[str, bool, int]) -> Tuple[PresetItem, ...]:
    return tuple(PresetItem(key, visible, order) for key, visible, order in entries)


SPECIALTY_PRESETS: List[TabPreset] = [
    TabPreset(
        name="Cardiology",
        description="Optimized for cardiovascular care - emphasizes vitals, lab results, and imaging",
        icon="Heart",
        items=_items(
            ("overview", True, 10), ("vitals", True, 20), ("visits", True, 30),
            ("lab", True, 40), ("imaging", True, 50), ("medications", True, 60),
            ("procedures", True, 70), ("allergies", True, 80), ("timeline", True, 90),
            ("documents", True, 100), ("safety", True, 110), ("immunizations", False, 120),
        ),
    ),
    TabPreset(
        name="Pediatrics",
        description="Child-focused view with growth charts, immunizations, and developmental tracking",
        icon="Baby",
        items=_items(
            ("overview", True, 10), ("visits", True, 20), ("vitals", True, 30),
            ("immunizations", True, 40), ("medications", True, 50), ("allergies", True, 60),
            ("lab", True, 70), ("timeline", True, 80), ("documents", True, 90),
            ("safety", True, 100), ("imaging", True, 110), ("procedures", True, 120),
        ),
    ),
    TabPreset(
        name="Psychiatry",
        description="Mental health focused - emphasizes timeline, medications, and safety assessments",
        icon="Brain",
        items=_items(
            ("overview", True, 10), ("visits", True, 20), ("medications", True, 30),
            ("timeline", True, 40), ("safety", True, 50), ("allergies", True, 60),
            ("lab", True, 70), ("documents", True, 80), ("vitals", True, 90),
            ("imaging", False, 100), ("procedures", False, 110), ("immunizations", False, 120),
        ),
    ),
    TabPreset(
        name="Orthopedics",
        description="Musculoskeletal care - highlights imaging, procedures, and physical therapy",
        icon="Bone",
        items=_items(
            ("overview", True, 10), ("visits", True, 20), ("imaging", True, 30),
            ("procedures", True, 40), ("vitals", True, 50), ("medications", True, 60),
            ("allergies", True, 70), ("lab", True, 80), ("documents", True, 90),
            ("timeline", True, 100), ("safety", True, 110), ("immunizations", False, 120),
        ),
    ),
    TabPreset(
        name="General Practice",
        description="Comprehensive primary care view with all tabs balanced",
        icon="Stethoscope",
        items=_items(
            ("overview", True, 10), ("visits", True, 20), ("medications", True, 30),
            ("vitals", True, 40), ("lab", True, 50), ("allergies", True, 60),
            ("immunizations", True, 70), ("timeline", True, 80), ("documents", True, 90),
            ("imaging", True, 100), ("procedures", True, 110), ("safety", True, 120),
        ),
    ),
]

_BY_NAME: Dict[str, TabPreset] = {preset.name.lower(): preset for preset in SPECIALTY_PRESETS}


def find_preset(name: str) -> Optional[TabPreset]:
    """Case-insensitive lookup; None when no preset has that name."""
    return _BY_NAME.get(name.strip().lower())
