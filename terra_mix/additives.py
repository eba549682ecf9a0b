"""Default filling and stage eligibility for plant additives."""

from __future__ import annotations

from dataclasses import replace

from .constants import (
    BLOOM_BOOSTER_STAGES,
    FULVIC_ACID_LOCKED_STAGES,
    FULVIC_ACID_STAGES,
    ROOT_STIMULANT_STAGES,
    additive_defaults,
)
from .models import AdditivesState, BloomBoosterState, FulvicAcidState, RootStimulantState

__all__ = [
    "initial_additives",
    "resolve_additives",
    "fulvic_acid_intensity",
    "allows_root_stimulant",
    "allows_fulvic_acid",
    "allows_bloom_booster",
    "locks_fulvic_acid",
]


def initial_additives() -> AdditivesState:
    """Return the additive state of a newly created plant."""

    defaults = additive_defaults()
    return AdditivesState(
        root_stimulant=RootStimulantState(
            active=False,
            duration_days=defaults.root_stimulant_duration_days,
            dosage_ml_per_liter=defaults.root_stimulant_dosage,
        ),
        fulvic_acid=FulvicAcidState(
            active=False,
            dosage_ml_per_liter=defaults.fulvic_acid_dosage,
        ),
        bloom_booster=BloomBoosterState(active=False, intensity=0.0),
    )


def resolve_additives(additives: AdditivesState) -> AdditivesState:
    """Return a copy of ``additives`` with missing durations and dosages defaulted.

    A duration of ``0`` counts as missing; a dosage of ``0`` is kept. The
    fulvic acid intensity stays unset so the configured default applies at
    dose time, see :func:`fulvic_acid_intensity`.
    """

    defaults = additive_defaults()
    root = additives.root_stimulant
    fulvic = additives.fulvic_acid
    return AdditivesState(
        root_stimulant=replace(
            root,
            duration_days=root.duration_days or defaults.root_stimulant_duration_days,
            dosage_ml_per_liter=(
                root.dosage_ml_per_liter
                if root.dosage_ml_per_liter is not None
                else defaults.root_stimulant_dosage
            ),
        ),
        fulvic_acid=replace(
            fulvic,
            dosage_ml_per_liter=(
                fulvic.dosage_ml_per_liter
                if fulvic.dosage_ml_per_liter is not None
                else defaults.fulvic_acid_dosage
            ),
        ),
        bloom_booster=replace(additives.bloom_booster),
    )


def fulvic_acid_intensity(fulvic: FulvicAcidState) -> float:
    """Return the stored fulvic acid intensity or the configured default."""

    if fulvic.intensity is not None:
        return fulvic.intensity
    return additive_defaults().fulvic_acid_intensity


def allows_root_stimulant(stage_id: str) -> bool:
    return stage_id in ROOT_STIMULANT_STAGES


def allows_fulvic_acid(stage_id: str) -> bool:
    return stage_id in FULVIC_ACID_STAGES


def allows_bloom_booster(stage_id: str) -> bool:
    return stage_id in BLOOM_BOOSTER_STAGES


def locks_fulvic_acid(stage_id: str) -> bool:
    """Return ``True`` when ``stage_id`` forces fulvic acid off."""
    return stage_id in FULVIC_ACID_LOCKED_STAGES
