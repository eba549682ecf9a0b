"""Pure plant updates and watering log construction.

Every function returns a new :class:`PlantState` (or log entry) and leaves its
input untouched. Results are not normalized; :class:`terra_mix.store.PlantStore`
runs :func:`terra_mix.normalizer.normalize_plant` after applying them.
"""

from __future__ import annotations

import math
import uuid
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime

from .constants import DEFAULT_FORM_EC, DEFAULT_FORM_PH, get_stage
from .dosing import calculate_additive_doses, calculate_fertilizer_doses
from .models import BloomMode, PlantState, WateringLogEntry
from .utils import as_utc, round_half_up, utcnow

__all__ = [
    "PlantTransform",
    "rename",
    "set_stage",
    "set_strength",
    "set_preferred_water",
    "toggle_root_stimulant",
    "toggle_fulvic_acid",
    "adjust_bloom_booster",
    "set_archived",
    "add_log",
    "replace_log",
    "remove_log",
    "build_watering_log",
    "revise_watering_log",
]

PlantTransform = Callable[[PlantState], PlantState]


def _stamp(now: datetime | None) -> datetime:
    return as_utc(now) if now is not None else utcnow()


def rename(plant: PlantState, name: str) -> PlantState:
    text = name.strip() if isinstance(name, str) else ""
    if not text:
        raise ValueError("plant name must not be blank")
    return plant.copy(name=text)


def set_stage(plant: PlantState, stage_id: str) -> PlantState:
    if get_stage(stage_id) is None:
        raise KeyError(f"Unknown feeding stage '{stage_id}'")
    return plant.copy(stage_id=stage_id)


def set_strength(plant: PlantState, strength: float) -> PlantState:
    """Return ``plant`` with strength rounded to a whole percentage."""
    return plant.copy(strength=float(round_half_up(strength, 0)))


def set_preferred_water(plant: PlantState, liters: float) -> PlantState:
    """Return ``plant`` with a sanitised preferred water volume."""
    sanitized = max(0.0, liters) if math.isfinite(liters) else 0.0
    return plant.copy(preferred_water_liters=sanitized)


def toggle_root_stimulant(plant: PlantState, active: bool, now: datetime | None = None) -> PlantState:
    """Start a fresh root stimulant run or end the current one."""

    updated = plant.copy()
    updated.additives.root_stimulant = replace(
        updated.additives.root_stimulant,
        active=active,
        start_date=_stamp(now) if active else None,
    )
    return updated


def toggle_fulvic_acid(plant: PlantState, active: bool, now: datetime | None = None) -> PlantState:
    updated = plant.copy()
    updated.additives.fulvic_acid = replace(
        updated.additives.fulvic_acid,
        active=active,
        started_at=_stamp(now) if active else None,
    )
    return updated


def adjust_bloom_booster(plant: PlantState, intensity: float, now: datetime | None = None) -> PlantState:
    """Set the bloom booster intensity by hand.

    This switches the booster to :attr:`BloomMode.MANUAL` permanently, after
    which stage changes no longer touch the intensity.
    """

    value = min(max(float(intensity), 0.0), 100.0)
    updated = plant.copy()
    updated.additives.bloom_booster = replace(
        updated.additives.bloom_booster,
        active=value > 0,
        intensity=value,
        mode=BloomMode.MANUAL,
        last_adjusted_at=_stamp(now),
    )
    return updated


def set_archived(plant: PlantState, archived: bool, now: datetime | None = None) -> PlantState:
    """Archive or restore ``plant``. Re-archiving keeps the original timestamp."""

    if not archived:
        return plant.copy(archived_at=None)
    return plant.copy(archived_at=plant.archived_at or _stamp(now))


def add_log(plant: PlantState, entry: WateringLogEntry) -> PlantState:
    return plant.copy(logs=[entry, *plant.logs])


def replace_log(
    plant: PlantState,
    log_id: str,
    updater: Callable[[WateringLogEntry], WateringLogEntry],
) -> PlantState:
    """Apply ``updater`` to the log entry ``log_id``.

    A :class:`KeyError` is raised when the plant has no such entry.
    """

    if not any(entry.id == log_id for entry in plant.logs):
        raise KeyError(f"Unknown watering log '{log_id}' for plant {plant.id}")
    logs = [updater(entry) if entry.id == log_id else entry for entry in plant.logs]
    return plant.copy(logs=logs)


def remove_log(plant: PlantState, log_id: str) -> PlantState:
    return plant.copy(logs=[entry for entry in plant.logs if entry.id != log_id])


def _safe_liters(water_liters: float) -> float:
    if not math.isfinite(water_liters) or water_liters <= 0:
        return 1.0
    return float(water_liters)


def _safe_reading(value: float | None, fallback: float) -> float:
    if value is None or not math.isfinite(value):
        value = fallback
    return round_half_up(value, 2)


def build_watering_log(
    plant: PlantState,
    water_liters: float,
    ph: float | None = None,
    ec: float | None = None,
    now: datetime | None = None,
    log_id: str | None = None,
) -> WateringLogEntry:
    """Snapshot the doses for ``plant`` into a new watering log entry.

    ``plant`` is usually a draft carrying the stage and strength chosen for
    this watering. Water volumes that are not positive count as one liter;
    missing readings fall back to pH 6 and EC 1.2.
    """

    liters = _safe_liters(water_liters)
    return WateringLogEntry(
        id=log_id or f"log-{uuid.uuid4().hex[:12]}",
        created_at=_stamp(now),
        water_liters=liters,
        strength=plant.strength,
        stage_id=plant.stage_id,
        fertilizers=tuple(calculate_fertilizer_doses(plant, liters)),
        additives=calculate_additive_doses(plant, liters),
        ph=_safe_reading(ph, DEFAULT_FORM_PH),
        ec=_safe_reading(ec, DEFAULT_FORM_EC),
    )


def revise_watering_log(
    entry: WateringLogEntry,
    plant: PlantState,
    water_liters: float,
    ph: float | None = None,
    ec: float | None = None,
) -> WateringLogEntry:
    """Return ``entry`` recomputed from ``plant`` keeping its id and timestamp."""

    return build_watering_log(plant, water_liters, ph, ec, now=entry.created_at, log_id=entry.id)
