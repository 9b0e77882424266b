"""
formengine Mask Engine

Provides:
- MaskEngine: incremental formatter / completeness checker
- MASK_PRESETS: phone, SSN, credit card, ZIP, date and time templates
- Module-level helpers bound to a shared engine
"""

from .presets import (
    MaskDefinition,
    MASK_PRESETS,
    KNOWN_MASKS,
    CURRENCY_MASK,
)
from .engine import (
    MaskEngine,
    Slot,
    SlotKind,
    compile_pattern,
    get_default_engine,
    apply_mask,
    is_complete,
    max_length,
    pattern_of,
)

__all__ = [
    "MaskDefinition",
    "MASK_PRESETS",
    "KNOWN_MASKS",
    "CURRENCY_MASK",
    "MaskEngine",
    "Slot",
    "SlotKind",
    "compile_pattern",
    "get_default_engine",
    "apply_mask",
    "is_complete",
    "max_length",
    "pattern_of",
]
