"""
Switch field catalog.

Single source of truth for the importable switch schema: field keys,
human labels (also used as CSV template/export headers), normalization
category, and the accepted range for numeric fields.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class FieldCategory(str, Enum):
    """How a raw CSV cell is normalized for a field."""
    NUMERIC = "numeric"
    CLOSED_ENUM = "closed_enum"
    DIRECTIONAL = "directional"
    UNIT_TEXT = "unit_text"
    FREE_TEXT = "free_text"


@dataclass(frozen=True)
class FieldDefinition:
    """One importable switch field."""
    key: str
    label: str
    category: FieldCategory = FieldCategory.FREE_TEXT
    required: bool = False
    min_value: Optional[float] = None
    max_value: Optional[float] = None


# =============================================================================
# NUMERIC RANGES
# =============================================================================

# Forces in grams
FORCE_RANGE = (0.0, 1000.0)

# Travel distances in millimeters
TRAVEL_RANGE = (0.0, 10.0)

# Magnetic flux in Gauss
FLUX_RANGE = (0.0, 10000.0)


def _numeric(key: str, label: str, value_range: tuple[float, float]) -> FieldDefinition:
    return FieldDefinition(
        key=key,
        label=label,
        category=FieldCategory.NUMERIC,
        min_value=value_range[0],
        max_value=value_range[1],
    )


# =============================================================================
# CATALOG
# =============================================================================
# Order matters: it is the template/export column order and the order in
# which the column mapper's containment pass tries candidates.

SWITCH_FIELDS: tuple[FieldDefinition, ...] = (
    FieldDefinition("name", "Switch Name", required=True),
    FieldDefinition("chinese_name", "Chinese Name"),
    FieldDefinition("type", "Type", FieldCategory.CLOSED_ENUM),
    FieldDefinition("technology", "Technology", FieldCategory.CLOSED_ENUM),
    FieldDefinition("magnet_orientation", "Magnetic Pole Orientation", FieldCategory.DIRECTIONAL),
    FieldDefinition("magnet_position", "Magnet Position", FieldCategory.DIRECTIONAL),
    FieldDefinition("magnet_polarity", "Magnet Polarity", FieldCategory.DIRECTIONAL),
    _numeric("initial_force", "Initial Force (g)", FORCE_RANGE),
    _numeric("initial_magnetic_flux", "Initial Magnetic Flux (Gs)", FLUX_RANGE),
    _numeric("bottom_out_magnetic_flux", "Bottom Out Magnetic Flux (Gs)", FLUX_RANGE),
    FieldDefinition("pcb_thickness", "PCB Thickness"),
    FieldDefinition("compatibility", "Compatibility"),
    FieldDefinition("manufacturer", "Manufacturer"),
    FieldDefinition("spring_weight", "Spring Weight", FieldCategory.UNIT_TEXT),
    FieldDefinition("spring_length", "Spring Length", FieldCategory.UNIT_TEXT),
    _numeric("actuation_force", "Actuation Force (g)", FORCE_RANGE),
    _numeric("bottom_out_force", "Bottom Out Force (g)", FORCE_RANGE),
    _numeric("tactile_force", "Tactile Force (g)", FORCE_RANGE),
    _numeric("pre_travel", "Pre-travel (mm)", TRAVEL_RANGE),
    _numeric("tactile_position", "Tactile Position (mm)", TRAVEL_RANGE),
    _numeric("bottom_out", "Bottom Out (mm)", TRAVEL_RANGE),
    FieldDefinition("top_housing", "Top Housing"),
    FieldDefinition("bottom_housing", "Bottom Housing"),
    FieldDefinition("stem", "Stem"),
    FieldDefinition("franken_top", "Franken Top"),
    FieldDefinition("franken_bottom", "Franken Bottom"),
    FieldDefinition("franken_stem", "Franken Stem"),
    FieldDefinition("notes", "Notes"),
    FieldDefinition("image_url", "Image URL"),
    FieldDefinition("date_obtained", "Date Obtained"),
)

FIELDS_BY_KEY: dict[str, FieldDefinition] = {f.key: f for f in SWITCH_FIELDS}

SWITCH_FIELD_KEYS: tuple[str, ...] = tuple(f.key for f in SWITCH_FIELDS)

# Sample row for the downloadable template, aligned with SWITCH_FIELDS
TEMPLATE_SAMPLE_ROW: dict[str, str] = {
    "name": "Cherry MX Red",
    "type": "LINEAR",
    "technology": "MECHANICAL",
    "manufacturer": "Cherry",
    "spring_weight": "45g",
    "spring_length": "11.5mm",
    "actuation_force": "45",
    "bottom_out_force": "60",
    "pre_travel": "2.0",
    "bottom_out": "4.0",
    "top_housing": "Nylon",
    "bottom_housing": "Nylon",
    "stem": "POM",
    "notes": "Great for gaming",
    "date_obtained": "2024-01-15",
}
