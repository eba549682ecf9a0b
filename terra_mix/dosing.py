"""Fertilizer and additive dose calculations for a single watering."""

from __future__ import annotations

from typing import Protocol

from .additives import (
    allows_bloom_booster,
    allows_fulvic_acid,
    allows_root_stimulant,
    fulvic_acid_intensity,
    resolve_additives,
)
from .constants import additive_defaults, fertilizer_label, get_stage
from .models import AdditiveDose, AdditiveDoseSummary, AdditivesState, FertilizerDose
from .utils import round_half_ceiling, round_half_up

__all__ = [
    "calculate_fertilizer_doses",
    "calculate_additive_doses",
    "format_ml",
]


class FeedingConfig(Protocol):
    stage_id: str
    strength: float


class AdditiveConfig(Protocol):
    stage_id: str
    additives: AdditivesState


def calculate_fertilizer_doses(plant: FeedingConfig, water_liters: float) -> list[FertilizerDose]:
    """Return base fertilizer doses for ``water_liters`` of water.

    Each rate of the plant's stage is scaled by ``strength`` percent; negative
    strength counts as zero. Doses are rounded to two decimals and returned in
    feeding chart order. A :class:`KeyError` is raised for unknown stages.
    """

    stage = get_stage(plant.stage_id)
    if stage is None:
        raise KeyError(f"Unknown feeding stage '{plant.stage_id}'")

    multiplier = max(0.0, plant.strength) / 100
    doses: list[FertilizerDose] = []
    for rate in stage.rates:
        ml_per_liter = rate.ml_per_liter * multiplier
        doses.append(
            FertilizerDose(
                fertilizer=rate.fertilizer,
                label=fertilizer_label(rate.fertilizer),
                ml_per_liter=round_half_up(ml_per_liter, 2),
                ml=round_half_up(ml_per_liter * water_liters, 2),
            )
        )
    return doses


def calculate_additive_doses(plant: AdditiveConfig, water_liters: float) -> AdditiveDoseSummary:
    """Return additive doses allowed for the plant's stage.

    Additives that are inactive or not allowed in the current stage are left
    out of the summary rather than reported as zero. The bloom booster is also
    left out when its intensity yields no dose.
    """

    defaults = additive_defaults()
    additives = resolve_additives(plant.additives)
    stage_id = plant.stage_id

    root = None
    if allows_root_stimulant(stage_id) and additives.root_stimulant.active:
        root_ml = additives.root_stimulant.dosage_ml_per_liter
        root = AdditiveDose(
            ml_per_liter=round_half_up(root_ml, 2),
            total_ml=round_half_up(root_ml * water_liters, 2),
        )

    fulvic = None
    if allows_fulvic_acid(stage_id) and additives.fulvic_acid.active:
        intensity = fulvic_acid_intensity(additives.fulvic_acid)
        fulvic_ml = intensity / 100 * defaults.fulvic_acid_max_ml_per_l
        fulvic = AdditiveDose(
            ml_per_liter=round_half_up(fulvic_ml, 2),
            total_ml=round_half_up(fulvic_ml * water_liters, 2),
            intensity=round_half_up(intensity, 2),
        )

    bloom = None
    booster = additives.bloom_booster
    bloom_ml = booster.intensity / 100 * defaults.bloom_booster_max_ml_per_l
    if allows_bloom_booster(stage_id) and booster.active and bloom_ml > 0:
        bloom = AdditiveDose(
            ml_per_liter=round_half_up(bloom_ml, 2),
            total_ml=round_half_up(bloom_ml * water_liters, 2),
            intensity=booster.intensity,
        )

    return AdditiveDoseSummary(root_stimulant=root, fulvic_acid=fulvic, bloom_booster=bloom)


def format_ml(value: float) -> str:
    """Return ``value`` as a short milliliter label.

    Below 1 ml two decimals are shown, below 10 ml one decimal and whole
    milliliters from there on.
    """

    if value < 1:
        return f"{round_half_ceiling(value, 2):.2f} ml"
    if value < 10:
        return f"{round_half_ceiling(value, 1):.1f} ml"
    return f"{round_half_ceiling(value, 0):.0f} ml"
