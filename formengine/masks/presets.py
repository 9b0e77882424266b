"""
formengine Mask Presets

Fixed literal + placeholder templates.

Pattern legend:
    0  digit placeholder
    A  letter placeholder
    *  alphanumeric placeholder
    \\  escapes the next character as a literal
    anything else is a literal
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class MaskDefinition:
    """Resolved mask: pattern plus optional literal prefix/suffix."""
    pattern: str
    prefix: str = ""
    suffix: str = ""
    placeholder: Optional[str] = None


CURRENCY_MASK = "currency"
CURRENCY_PATTERN = "$0,000.00"

MASK_PRESETS: Dict[str, MaskDefinition] = {
    "phone": MaskDefinition(pattern="(000) 000-0000"),
    "phone-intl": MaskDefinition(pattern="(000) 000-0000", prefix="+1 "),
    "credit-card": MaskDefinition(pattern="0000 0000 0000 0000"),
    "ssn": MaskDefinition(pattern="000-00-0000"),
    "zip": MaskDefinition(pattern="00000"),
    "zip-plus4": MaskDefinition(pattern="00000-0000"),
    "date-us": MaskDefinition(pattern="00/00/0000"),
    "time": MaskDefinition(pattern="00:00"),
}

KNOWN_MASKS = frozenset(MASK_PRESETS) | {CURRENCY_MASK}
