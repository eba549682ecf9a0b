"""Canonicalise plant state after every mutation."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime

from .additives import locks_fulvic_acid, resolve_additives
from .constants import bloom_booster_recommendation, get_stage
from .log_utils import warn_once
from .models import AdditivesState, PlantState, WateringLogEntry
from .utils import as_utc, difference_in_days, utcnow

_LOGGER = logging.getLogger(__name__)

__all__ = ["normalize_plant", "sort_logs"]


def sort_logs(logs: list[WateringLogEntry] | None) -> list[WateringLogEntry]:
    """Return ``logs`` newest first. Anything but a sequence yields ``[]``.

    Naive ``created_at`` values are taken as UTC.
    """

    if not isinstance(logs, (list, tuple)):
        return []
    entries = [
        replace(entry, created_at=as_utc(entry.created_at)) if entry.created_at.tzinfo is None else entry
        for entry in logs
    ]
    return sorted(entries, key=lambda entry: entry.created_at, reverse=True)


def _normalize_additives(additives: AdditivesState, stage_id: str, now: datetime) -> AdditivesState:
    resolved = resolve_additives(additives)

    root = resolved.root_stimulant
    if root.active and root.start_date is not None:
        elapsed = difference_in_days(root.start_date, now)
        if elapsed >= root.duration_days:
            root = replace(root, active=False, start_date=None)

    booster = resolved.bloom_booster
    if booster.is_manual:
        booster = replace(booster, active=booster.intensity > 0)
    else:
        recommended = bloom_booster_recommendation(stage_id)
        booster = replace(booster, intensity=recommended, active=recommended > 0)

    fulvic = resolved.fulvic_acid
    if locks_fulvic_acid(stage_id):
        fulvic = replace(fulvic, active=False, started_at=None)

    return AdditivesState(root_stimulant=root, fulvic_acid=fulvic, bloom_booster=booster)


def normalize_plant(plant: PlantState, now: datetime | None = None) -> PlantState:
    """Return the canonical form of ``plant``.

    * a root stimulant run ends once its duration in whole days has elapsed
    * the bloom booster follows the stage recommendation until it is adjusted
      by hand
    * fulvic acid is switched off from the flower stage on
    * logs are ordered newest first

    ``updated_at`` is set to ``now`` on every call. Plants referencing an
    unknown stage only get the timestamp refreshed and a warning is logged.
    The input is never modified.
    """

    now = as_utc(now) if now is not None else utcnow()

    if get_stage(plant.stage_id) is None:
        warn_once(
            _LOGGER,
            f"unknown_stage:{plant.id}",
            "plant %s references unknown feeding stage '%s'",
            plant.id,
            plant.stage_id,
        )
        return plant.copy(updated_at=now)

    return plant.copy(
        additives=_normalize_additives(plant.additives, plant.stage_id, now),
        logs=sort_logs(plant.logs),
        updated_at=now,
    )
