"""
formengine Mask Engine

Incrementally reformats raw keystrokes into a mask's display format.

The pattern is compiled into a list of slots. Raw input is first reduced
to the character classes the pattern can accept, then walked slot by
slot: placeholders consume one character of the expected class, literals
are emitted verbatim. A class mismatch stops formatting. Once the input
runs out, the literals directly following the last consumed character
are still emitted so the display shows where the next keystroke lands.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Union
import logging
import re

from pydantic import ValidationError

from formengine.core.models import MaskConfig
from .presets import (
    CURRENCY_MASK,
    CURRENCY_PATTERN,
    MASK_PRESETS,
    MaskDefinition,
)

logger = logging.getLogger(__name__)

MaskLike = Union[None, str, MaskConfig, dict]


class SlotKind(Enum):
    """What a single pattern position accepts."""
    DIGIT = "digit"
    LETTER = "letter"
    ALNUM = "alnum"
    LITERAL = "literal"


_PLACEHOLDERS = {
    "0": SlotKind.DIGIT,
    "A": SlotKind.LETTER,
    "*": SlotKind.ALNUM,
}


@dataclass(frozen=True)
class Slot:
    kind: SlotKind
    char: str = ""


def _is_digit(ch: str) -> bool:
    return ch.isascii() and ch.isdigit()


def _is_letter(ch: str) -> bool:
    return ch.isascii() and ch.isalpha()


def _is_alnum(ch: str) -> bool:
    return ch.isascii() and ch.isalnum()


def _accepts(kind: SlotKind, ch: str) -> bool:
    if kind == SlotKind.DIGIT:
        return _is_digit(ch)
    if kind == SlotKind.LETTER:
        return _is_letter(ch)
    if kind == SlotKind.ALNUM:
        return _is_alnum(ch)
    return False


def compile_pattern(pattern: str) -> List[Slot]:
    """Split a pattern into placeholder and literal slots."""
    slots: List[Slot] = []
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == "\\" and i + 1 < len(pattern):
            slots.append(Slot(SlotKind.LITERAL, pattern[i + 1]))
            i += 2
            continue
        kind = _PLACEHOLDERS.get(ch)
        if kind is not None:
            slots.append(Slot(kind))
        else:
            slots.append(Slot(SlotKind.LITERAL, ch))
        i += 1
    return slots


class MaskEngine:
    """
    Pattern-based formatter and completeness checker.

    A ``None`` or unknown mask is the identity; ``"currency"`` has its own
    formatter since it has no fixed length.
    """

    def resolve(self, mask: MaskLike) -> Optional[MaskDefinition]:
        """Resolve a preset name or custom config to a MaskDefinition."""
        if not mask:
            return None
        if isinstance(mask, str):
            return MASK_PRESETS.get(mask)
        if isinstance(mask, dict):
            try:
                mask = MaskConfig.model_validate(mask)
            except ValidationError as e:
                logger.warning(f"Ignoring malformed mask config {mask!r}: {e.error_count()} error(s)")
                return None
        if isinstance(mask, MaskConfig) and mask.type == "custom" and mask.pattern:
            return MaskDefinition(
                pattern=mask.pattern,
                prefix=mask.prefix or "",
                suffix=mask.suffix or "",
                placeholder=mask.placeholder,
            )
        return None

    def apply_mask(self, raw: Any, mask: MaskLike) -> str:
        """Format ``raw`` according to ``mask``."""
        if raw is None or raw == "":
            return ""
        raw = str(raw)

        if mask == CURRENCY_MASK:
            return self.format_currency(raw)

        definition = self.resolve(mask)
        if definition is None:
            return raw

        slots = compile_pattern(definition.pattern)
        body = self._strip_affixes(raw, definition)
        cleaned = self._clean(body, slots)
        cleaned = self._absorb_prefix(cleaned, definition, slots)

        masked = self._walk(cleaned, slots)
        if not masked:
            return ""
        return f"{definition.prefix}{masked}{definition.suffix}"

    def is_complete(self, formatted: Any, mask: MaskLike) -> bool:
        """True only when every placeholder of the mask is filled."""
        if not mask:
            return True
        if formatted is None or formatted == "":
            return False
        formatted = str(formatted)

        if mask == CURRENCY_MASK:
            return re.fullmatch(r"\$\d{1,3}(,\d{3})*(\.\d{1,2})?", formatted) is not None

        if self.resolve(mask) is None:
            return True

        return (
            len(formatted) == self.max_length(mask)
            and self.apply_mask(formatted, mask) == formatted
        )

    def max_length(self, mask: MaskLike) -> int:
        """Rendered length of the mask, or 0 when unbounded."""
        definition = self.resolve(mask)
        if definition is None:
            return 0
        return (
            len(definition.prefix)
            + len(compile_pattern(definition.pattern))
            + len(definition.suffix)
        )

    def pattern_of(self, mask: MaskLike) -> str:
        """Display pattern including prefix and suffix."""
        if mask == CURRENCY_MASK:
            return CURRENCY_PATTERN
        definition = self.resolve(mask)
        if definition is None:
            return ""
        return f"{definition.prefix}{definition.pattern}{definition.suffix}"

    def placeholder_count(self, mask: MaskLike) -> int:
        definition = self.resolve(mask)
        if definition is None:
            return 0
        return sum(1 for s in compile_pattern(definition.pattern) if s.kind != SlotKind.LITERAL)

    def raw_value(self, formatted: Any, mask: MaskLike) -> str:
        """Strip a formatted value back to its significant characters."""
        if formatted is None or formatted == "":
            return ""
        formatted = str(formatted)

        if mask == CURRENCY_MASK:
            return re.sub(r"[$,]", "", formatted)

        definition = self.resolve(mask)
        if definition is None:
            return formatted

        body = self._strip_affixes(formatted, definition)
        return re.sub(r"[^a-zA-Z0-9]", "", body)

    def format_currency(self, raw: str) -> str:
        """$1,234.56 style formatting, at most two decimals."""
        cleaned = re.sub(r"[^0-9.]", "", raw)
        if not cleaned:
            return ""
        parts = cleaned.split(".")
        integer_part = parts[0]
        decimal_part = "." + parts[1][:2] if len(parts) > 1 and parts[1] else ""

        integer_part = re.sub(r"\B(?=(\d{3})+(?!\d))", ",", integer_part)
        return "$" + integer_part + decimal_part

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _strip_affixes(self, value: str, definition: MaskDefinition) -> str:
        if definition.prefix and value.startswith(definition.prefix):
            value = value[len(definition.prefix):]
        if definition.suffix and value.endswith(definition.suffix):
            value = value[: -len(definition.suffix)]
        return value

    def _clean(self, value: str, slots: List[Slot]) -> str:
        """Drop characters no placeholder of the pattern could accept."""
        kinds = {s.kind for s in slots if s.kind != SlotKind.LITERAL}
        if not kinds:
            return value

        if SlotKind.ALNUM in kinds or kinds == {SlotKind.DIGIT, SlotKind.LETTER}:
            keep = _is_alnum
        elif kinds == {SlotKind.DIGIT}:
            keep = _is_digit
        else:
            keep = _is_letter
        return "".join(ch for ch in value if keep(ch))

    def _absorb_prefix(
        self,
        cleaned: str,
        definition: MaskDefinition,
        slots: List[Slot],
    ) -> str:
        """Drop a typed country code that the literal prefix already shows."""
        prefix_chars = "".join(ch for ch in definition.prefix if _is_alnum(ch))
        if not prefix_chars:
            return cleaned
        capacity = sum(1 for s in slots if s.kind != SlotKind.LITERAL)
        if len(cleaned) > capacity and cleaned.startswith(prefix_chars):
            return cleaned[len(prefix_chars):]
        return cleaned

    def _walk(self, cleaned: str, slots: List[Slot]) -> str:
        out: List[str] = []
        index = 0

        for slot in slots:
            exhausted = index >= len(cleaned)

            if slot.kind == SlotKind.LITERAL:
                if exhausted and index == 0:
                    break
                out.append(slot.char)
                # An already-formatted value carries its alphanumeric literals
                if not exhausted and cleaned[index] == slot.char and _is_alnum(slot.char):
                    index += 1
                continue

            if exhausted:
                break
            ch = cleaned[index]
            if not _accepts(slot.kind, ch):
                break
            out.append(ch)
            index += 1

        return "".join(out)


_default_engine: Optional[MaskEngine] = None


def get_default_engine() -> MaskEngine:
    """Get or create the shared mask engine."""
    global _default_engine
    if _default_engine is None:
        _default_engine = MaskEngine()
    return _default_engine


def apply_mask(raw: Any, mask: MaskLike) -> str:
    return get_default_engine().apply_mask(raw, mask)


def is_complete(formatted: Any, mask: MaskLike) -> bool:
    return get_default_engine().is_complete(formatted, mask)


def max_length(mask: MaskLike) -> int:
    return get_default_engine().max_length(mask)


def pattern_of(mask: MaskLike) -> str:
    return get_default_engine().pattern_of(mask)
