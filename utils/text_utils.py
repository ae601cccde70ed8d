"""
Text utilities for CSV cell and header handling.

Used by the column mapper, field normalizer and duplicate resolver.
"""

import re
from typing import Optional

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_SURROUNDING_QUOTES = re.compile(r'^[\s"]+|[\s"]+$')


def lookup_key(text: Optional[str]) -> str:
    """
    Reduce a header, label or field key to a comparison key.

    Lower-cases and drops every character outside [a-z0-9]:
    - "Actuation Force (g)" → "actuationforceg"
    - "spring_weight" → "springweight"
    - "Pre-travel (mm)" → "pretravelmm"

    Args:
        text: Header cell, label or key

    Returns:
        Comparison key (may be empty)
    """
    if not text:
        return ""
    return _NON_ALNUM.sub("", text.lower())


def strip_quotes(value: Optional[str]) -> Optional[str]:
    """
    Remove surrounding double quotes and whitespace from a cell.

    Runs of quotes are removed entirely, so stripping twice gives the
    same result as stripping once:
    - '"62g"' → '62g'
    - '  ""Nylon""  ' → 'Nylon'

    Args:
        value: Raw cell text

    Returns:
        Stripped text, or None if nothing is left
    """
    if value is None:
        return None

    stripped = _SURROUNDING_QUOTES.sub("", value)

    if not stripped:
        return None

    return stripped


def fold_name(name: Optional[str]) -> str:
    """
    Case-fold a switch name for duplicate matching.

    Plain lower-casing, no locale rules and no whitespace changes:
    "Cherry MX Red" and "CHERRY MX RED" both give "cherry mx red".
    """
    if not name:
        return ""
    return name.lower()
