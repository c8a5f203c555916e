"""Bulk repetition-lap generation.

Produces an ordered list of lap drafts from a handful of parameters so a
move-unit can be populated in one step. Nothing here touches the database:
the same inputs always produce the same drafts, which makes the output safe
to show as a preview before anything is committed.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional, Union

Number = Union[int, float]

VARIATION_PATTERNS = ("none", "linear", "pyramid", "alternating")
DISCIPLINE_CLASSES = ("distance", "load")
MAX_GENERATED_REPETITIONS = 50

# Sports tracked by distance/duration; every other sport is tracked by
# series and repetition counts.
DISTANCE_BASED_SPORTS = frozenset(
    {
        "SWIM",
        "BIKE",
        "SPINNING",
        "RUN",
        "ROWING",
        "SKATE",
        "SKI",
        "SNOWBOARD",
        "WALKING",
        "HIKING",
    }
)


@dataclass(frozen=True)
class LapDraft:
    """A repetition-lap that has not been persisted yet."""

    repetition_number: int
    distance: Optional[Number]
    reps: Optional[int]
    speed: Optional[str] = None
    pause: Optional[str] = None
    status: str = "pending"

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def discipline_for_sport(sport: str) -> str:
    key = (sport or "").strip().upper().replace(" ", "_")
    return "distance" if key in DISTANCE_BASED_SPORTS else "load"


def variation_offset(index: int, count: int, pattern: str) -> int:
    """Multiplier applied to the variation amount for draft ``index``."""
    if pattern == "none":
        return 0
    if pattern == "linear":
        return index
    if pattern == "pyramid":
        mid = count // 2
        return index if index <= mid else count - 1 - index
    if pattern == "alternating":
        return index % 2
    raise ValueError(f"variation pattern must be one of {VARIATION_PATTERNS}")


def lowest_value(count: int, base_value: Number, pattern: str, amount: Number) -> Number:
    return min(base_value + variation_offset(i, count, pattern) * amount for i in range(count))


def generate_repetitions(
    count: int,
    base_value: Number,
    pattern: str = "none",
    amount: Number = 0,
    discipline: str = "distance",
    existing_max: int = 0,
    speed: Optional[str] = None,
    pause: Optional[str] = None,
) -> list[LapDraft]:
    """Build ``count`` lap drafts numbered from ``existing_max + 1``.

    A ``distance`` discipline varies the distance field, a ``load``
    discipline varies the repetition count; the other field stays None.
    """
    if not 1 <= count <= MAX_GENERATED_REPETITIONS:
        raise ValueError(f"count must be between 1 and {MAX_GENERATED_REPETITIONS}")
    if pattern not in VARIATION_PATTERNS:
        raise ValueError(f"variation pattern must be one of {VARIATION_PATTERNS}")
    if discipline not in DISCIPLINE_CLASSES:
        raise ValueError(f"discipline must be one of {DISCIPLINE_CLASSES}")
    if existing_max < 0:
        raise ValueError("existing_max must be >= 0")
    lowest = lowest_value(count, base_value, pattern, amount)
    if lowest < 0:
        raise ValueError(f"pattern would produce a negative value ({lowest:g})")

    drafts: list[LapDraft] = []
    for i in range(count):
        value = base_value + variation_offset(i, count, pattern) * amount
        if discipline == "load":
            distance, reps = None, int(round(value))
        else:
            distance, reps = value, None
        drafts.append(
            LapDraft(
                repetition_number=existing_max + 1 + i,
                distance=distance,
                reps=reps,
                speed=speed,
                pause=pause,
            )
        )
    return drafts
