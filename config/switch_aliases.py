"""
Alias tables for switch enum normalization.

Plain key -> canonical value mappings, kept out of the normalizer's
control flow so aliases can be added and tested on their own. Bump
ALIAS_TABLE_VERSION whenever a table changes.

Closed-enum keys are in their transformed form: upper-case with
whitespace/hyphen/underscore runs collapsed to a single underscore.
Directional keys are lower-case and trimmed.
"""

from models.switch import SwitchTechnology, SwitchType

ALIAS_TABLE_VERSION = 3


# =============================================================================
# CLOSED ENUMS
# =============================================================================

SWITCH_TYPES = frozenset(t.value for t in SwitchType)

SWITCH_TYPE_ALIASES: dict[str, str] = {
    "SILENTLINEAR": "SILENT_LINEAR",
    "SILENTTACTILE": "SILENT_TACTILE",
    "LINEAR_SILENT": "SILENT_LINEAR",
    "TACTILE_SILENT": "SILENT_TACTILE",
    "SILENCED_LINEAR": "SILENT_LINEAR",
    "SILENCED_TACTILE": "SILENT_TACTILE",
    "CLICK": "CLICKY",
    "CLICKJACKET": "CLICKY",
    "CLICK_JACKET": "CLICKY",
    "CLICK_BAR": "CLICKY",
}

SWITCH_TECHNOLOGIES = frozenset(t.value for t in SwitchTechnology)

SWITCH_TECHNOLOGY_ALIASES: dict[str, str] = {
    "HALLEFFECT": "MAGNETIC",
    "HALL_EFFECT": "MAGNETIC",
    "HALL": "MAGNETIC",
    "HE": "MAGNETIC",
    "MAGNET": "MAGNETIC",
    "ELECTROCAPACITIVE": "ELECTRO_CAPACITIVE",
    "ELECTRO_CAPACITANCE": "ELECTRO_CAPACITIVE",
    "EC": "ELECTRO_CAPACITIVE",
    "CAPACITIVE": "ELECTRO_CAPACITIVE",
    "OPTO": "OPTICAL",
    "OPTICAL_MECHANICAL": "OPTICAL",
    "MECH": "MECHANICAL",
    "INDUCTION": "INDUCTIVE",
}

CLOSED_ENUM_TABLES: dict[str, tuple[frozenset, dict[str, str]]] = {
    "type": (SWITCH_TYPES, SWITCH_TYPE_ALIASES),
    "technology": (SWITCH_TECHNOLOGIES, SWITCH_TECHNOLOGY_ALIASES),
}


# =============================================================================
# DIRECTIONAL / POSITIONAL ENUMS
# =============================================================================

MAGNET_ORIENTATION_ALIASES: dict[str, str] = {
    "h": "Horizontal",
    "horizontal": "Horizontal",
    "horiz": "Horizontal",
    "v": "Vertical",
    "vertical": "Vertical",
    "vert": "Vertical",
}

MAGNET_POSITION_ALIASES: dict[str, str] = {
    "c": "Center",
    "center": "Center",
    "centre": "Center",
    "centered": "Center",
    "oc": "Off-Center",
    "off-center": "Off-Center",
    "off center": "Off-Center",
    "offcenter": "Off-Center",
    "off-centre": "Off-Center",
    "off centre": "Off-Center",
}

MAGNET_POLARITY_ALIASES: dict[str, str] = {
    "n": "North",
    "north": "North",
    "s": "South",
    "south": "South",
}

DIRECTIONAL_TABLES: dict[str, dict[str, str]] = {
    "magnet_orientation": MAGNET_ORIENTATION_ALIASES,
    "magnet_position": MAGNET_POSITION_ALIASES,
    "magnet_polarity": MAGNET_POLARITY_ALIASES,
}
