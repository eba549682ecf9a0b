"""Read-only helpers over a plant's watering history and additive timers."""

from __future__ import annotations

import math
from datetime import datetime

from .additives import resolve_additives
from .constants import DEFAULT_FORM_EC, DEFAULT_FORM_PH
from .models import PlantState, WateringLogEntry
from .utils import as_utc, difference_in_days

__all__ = [
    "latest_log",
    "latest_reading",
    "default_readings",
    "root_stimulant_days_remaining",
]


def latest_log(plant: PlantState) -> WateringLogEntry | None:
    """Return the most recent watering or ``None`` when nothing is logged."""

    if not plant.logs:
        return None
    return max(plant.logs, key=lambda entry: as_utc(entry.created_at))


def latest_reading(value: float | None, fallback: float | None = None) -> float:
    """Return ``value`` when it is a finite number, else ``fallback`` or ``0``."""

    if isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value):
        return float(value)
    return fallback if fallback is not None else 0.0


def default_readings(plant: PlantState) -> tuple[float, float]:
    """Return the pH and EC to prefill for the next watering of ``plant``."""

    last = latest_log(plant)
    if last is None:
        return DEFAULT_FORM_PH, DEFAULT_FORM_EC
    return latest_reading(last.ph, DEFAULT_FORM_PH), latest_reading(last.ec, DEFAULT_FORM_EC)


def root_stimulant_days_remaining(plant: PlantState, now: datetime | None = None) -> int:
    """Return whole days left in the current root stimulant run.

    Inactive runs report the full duration so callers can show how long a new
    run would last.
    """

    root = resolve_additives(plant.additives).root_stimulant
    if not root.active or root.start_date is None:
        return root.duration_days
    elapsed = difference_in_days(root.start_date, now)
    return max(root.duration_days - elapsed, 0)
