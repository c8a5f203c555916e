"""Letter labels for move-units.

Labels are bijective base-26 numerals: 0 -> "A", 25 -> "Z", 26 -> "AA",
51 -> "AZ", 52 -> "BA". There is no zero digit, so every non-negative
position has exactly one label and siblings can always be relabeled
contiguously from any offset.
"""

from __future__ import annotations

from typing import Iterable

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
_BASE = len(ALPHABET)


def position_to_label(index: int) -> str:
    if index < 0:
        raise ValueError("position must be >= 0")
    chars: list[str] = []
    n = index + 1
    while n > 0:
        n, rem = divmod(n - 1, _BASE)
        chars.append(ALPHABET[rem])
    return "".join(reversed(chars))


def label_to_position(label: str) -> int:
    text = (label or "").strip().upper()
    if not text or any(ch not in ALPHABET for ch in text):
        raise ValueError(f"invalid letter label: {label!r}")
    value = 0
    for ch in text:
        value = value * _BASE + (ALPHABET.index(ch) + 1)
    return value - 1


def label_sort_key(label: str) -> int:
    """Sort key that places "AA" after "Z" (plain string order would not)."""
    return label_to_position(label)


def labels_from(offset: int, count: int) -> list[str]:
    return [position_to_label(offset + i) for i in range(count)]


def next_label(existing: Iterable[str]) -> str:
    """Label for an item appended after ``existing`` siblings."""
    return position_to_label(len(list(existing)))
