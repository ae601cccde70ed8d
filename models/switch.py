"""
Switch schemas for the collection records touched by imports.
"""

from pydantic import Field
from enum import Enum

from models.base import BaseSchema


class SwitchType(str, Enum):
    """Switch feel classification."""
    LINEAR = "LINEAR"
    TACTILE = "TACTILE"
    CLICKY = "CLICKY"
    SILENT_LINEAR = "SILENT_LINEAR"
    SILENT_TACTILE = "SILENT_TACTILE"


class SwitchTechnology(str, Enum):
    """Actuation technology."""
    MECHANICAL = "MECHANICAL"
    OPTICAL = "OPTICAL"
    MAGNETIC = "MAGNETIC"
    INDUCTIVE = "INDUCTIVE"
    ELECTRO_CAPACITIVE = "ELECTRO_CAPACITIVE"


class ExistingSwitch(BaseSchema):
    """
    Minimal view of a switch already in the user's collection.

    Used for duplicate matching only.
    """

    id: str = Field(..., description="Switch UUID")
    name: str = Field(..., description="Switch name as stored")

