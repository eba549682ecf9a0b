"""Nutrient dosing and watering history engine."""

from __future__ import annotations

from . import constants, utils
from .constants import (
    FeedingStage,
    FertilizerRate,
    bloom_booster_recommendation,
    feeding_stages,
    get_stage,
    refresh_reference_data,
)
from .dosing import calculate_additive_doses, calculate_fertilizer_doses, format_ml
from .models import (
    AdditiveDose,
    AdditiveDoseSummary,
    AdditivesState,
    BloomBoosterState,
    BloomMode,
    FertilizerDose,
    FulvicAcidState,
    PlantState,
    RootStimulantState,
    WateringLogEntry,
)
from .normalizer import normalize_plant
from .store import PlantStore

__all__ = [
    "constants",
    "utils",
    "FeedingStage",
    "FertilizerRate",
    "bloom_booster_recommendation",
    "feeding_stages",
    "get_stage",
    "refresh_reference_data",
    "calculate_fertilizer_doses",
    "calculate_additive_doses",
    "format_ml",
    "normalize_plant",
    "AdditiveDose",
    "AdditiveDoseSummary",
    "AdditivesState",
    "BloomBoosterState",
    "BloomMode",
    "FertilizerDose",
    "FulvicAcidState",
    "PlantState",
    "RootStimulantState",
    "WateringLogEntry",
    "PlantStore",
]
