"""Feeding chart reference data used across the dosing engine."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from functools import lru_cache
from typing import Any, Dict, Mapping

from .utils import clear_dataset_cache, load_dataset

STAGES_FILE = "feeding_stages.json"
LABELS_FILE = "fertilizer_labels.json"
ADDITIVES_FILE = "additive_defaults.yaml"

# Built-in feeding chart used when the dataset is missing or unreadable.
_DEFAULT_STAGES: dict[str, dict[str, Any]] = {
    "seedling": {
        "name": "Seedlings",
        "description": "Young plants just after germination. Gentle nutrition only.",
        "rates": {"grow": 0.6, "micro": 0.4, "bloom": 0.2},
        "bloom_booster_pct": 0,
    },
    "earlyGrow": {
        "name": "Early Grow",
        "description": "After transplant when roots are establishing.",
        "rates": {"grow": 1.2, "micro": 0.8, "bloom": 0.4},
        "bloom_booster_pct": 0,
    },
    "grow": {
        "name": "Grow",
        "description": "Full vegetative growth with balanced nitrogen.",
        "rates": {"grow": 1.8, "micro": 1.2, "bloom": 0.6},
        "bloom_booster_pct": 10,
    },
    "preflower": {
        "name": "Preflower",
        "description": "Transition period preparing for bloom.",
        "rates": {"grow": 1.4, "micro": 1.4, "bloom": 1.0},
        "bloom_booster_pct": 40,
    },
    "flower": {
        "name": "Flower",
        "description": "Primary flowering stack. Focus on bloom and micronutrients.",
        "rates": {"grow": 0.8, "micro": 1.6, "bloom": 2.4},
        "bloom_booster_pct": 70,
    },
    "lateFlower": {
        "name": "Late Flower",
        "description": "Peak bloom bulk with reduced nitrogen.",
        "rates": {"grow": 0.6, "micro": 1.2, "bloom": 2.6},
        "bloom_booster_pct": 85,
    },
    "ripen": {
        "name": "Ripen / Final",
        "description": "Final ripening period before flush.",
        "rates": {"finalPart": 4.0},
        "bloom_booster_pct": 40,
    },
}

_DEFAULT_LABELS: dict[str, str] = {
    "grow": "TriPart Grow",
    "micro": "TriPart Micro",
    "bloom": "TriPart Bloom",
    "finalPart": "Final Part",
}

_DEFAULT_ADDITIVES: dict[str, dict[str, float]] = {
    "root_stimulant": {"duration_days": 14, "dosage_ml_per_l": 0.2},
    "fulvic_acid": {"dosage_ml_per_l": 0.3, "intensity_pct": 50, "max_ml_per_l": 0.6},
    "bloom_booster": {"max_ml_per_l": 2.0},
}

# Stage gating for the three additives.
ROOT_STIMULANT_STAGES = frozenset({"seedling", "earlyGrow", "grow"})
FULVIC_ACID_STAGES = ROOT_STIMULANT_STAGES | {"preflower"}
FULVIC_ACID_LOCKED_STAGES = frozenset({"flower", "lateFlower", "ripen"})
BLOOM_BOOSTER_STAGES = frozenset({"preflower", "flower", "lateFlower", "ripen"})

DEFAULT_STAGE_ID = "seedling"
DEFAULT_STRENGTH = 75
DEFAULT_WATER_LITERS = 3.0
DEFAULT_FORM_PH = 6.0
DEFAULT_FORM_EC = 1.2
INITIAL_PLANT_NAMES = ("Plant A", "Plant B", "Plant C")


@dataclass(frozen=True, slots=True)
class FertilizerRate:
    """Base fertilizer rate at 100% strength."""

    fertilizer: str
    ml_per_liter: float


@dataclass(frozen=True, slots=True)
class FeedingStage:
    """Feeding chart entry for one cultivation phase."""

    id: str
    name: str
    description: str
    rates: tuple[FertilizerRate, ...]
    bloom_booster_pct: float = 0.0


@dataclass(frozen=True, slots=True)
class AdditiveDefaults:
    """Fallback values for missing additive configuration."""

    root_stimulant_duration_days: int
    root_stimulant_dosage: float
    fulvic_acid_dosage: float
    fulvic_acid_intensity: float
    fulvic_acid_max_ml_per_l: float
    bloom_booster_max_ml_per_l: float

    def as_dict(self) -> Dict[str, float]:
        """Return the defaults as a regular dictionary."""
        return asdict(self)


def _as_float(value: Any, fallback: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return fallback


def _build_stage(stage_id: str, info: Mapping[str, Any]) -> FeedingStage:
    fallback = _DEFAULT_STAGES.get(stage_id, {})
    raw_rates = info.get("rates")
    if not isinstance(raw_rates, Mapping) or not raw_rates:
        raw_rates = fallback.get("rates", {})
    rates: list[FertilizerRate] = []
    for fertilizer, ml in raw_rates.items():
        try:
            rates.append(FertilizerRate(str(fertilizer), float(ml)))
        except (TypeError, ValueError):
            continue
    return FeedingStage(
        id=stage_id,
        name=str(info.get("name") or fallback.get("name") or stage_id),
        description=str(info.get("description") or fallback.get("description", "")),
        rates=tuple(rates),
        bloom_booster_pct=_as_float(
            info.get("bloom_booster_pct"), float(fallback.get("bloom_booster_pct", 0))
        ),
    )


@lru_cache(maxsize=None)
def _stage_table() -> Dict[str, FeedingStage]:
    data = load_dataset(STAGES_FILE)
    if not isinstance(data, Mapping) or not data:
        data = _DEFAULT_STAGES
    table: Dict[str, FeedingStage] = {}
    for stage_id, info in data.items():
        if isinstance(info, Mapping):
            table[str(stage_id)] = _build_stage(str(stage_id), info)
    return table


def feeding_stages() -> tuple[FeedingStage, ...]:
    """Return all feeding stages in chart order."""

    return tuple(_stage_table().values())


def list_stage_ids() -> list[str]:
    """Return the identifiers of all feeding stages in chart order."""

    return list(_stage_table())


def get_stage(stage_id: str) -> FeedingStage | None:
    """Return the :class:`FeedingStage` for ``stage_id`` or ``None``."""

    return _stage_table().get(stage_id)


def bloom_booster_recommendation(stage_id: str) -> float:
    """Return the recommended bloom booster intensity for ``stage_id``.

    Unknown stages recommend ``0``.
    """

    stage = get_stage(stage_id)
    return stage.bloom_booster_pct if stage else 0.0


@lru_cache(maxsize=None)
def fertilizer_labels() -> Dict[str, str]:
    """Return the fertilizer id to display label mapping."""

    data = load_dataset(LABELS_FILE)
    labels = dict(_DEFAULT_LABELS)
    if isinstance(data, Mapping):
        labels.update({str(k): str(v) for k, v in data.items()})
    return labels


def fertilizer_label(fertilizer: str) -> str:
    """Return the display label for ``fertilizer`` falling back to its id."""

    return fertilizer_labels().get(fertilizer, fertilizer)


@lru_cache(maxsize=None)
def additive_defaults() -> AdditiveDefaults:
    """Return :class:`AdditiveDefaults` loaded from the dataset.

    Invalid or missing values gracefully fall back to the built-in table.
    """

    data = load_dataset(ADDITIVES_FILE)

    def section(name: str) -> dict[str, Any]:
        extra = data.get(name) if isinstance(data, Mapping) else None
        return {**_DEFAULT_ADDITIVES[name], **(extra if isinstance(extra, Mapping) else {})}

    root = section("root_stimulant")
    fulvic = section("fulvic_acid")
    bloom = section("bloom_booster")
    return AdditiveDefaults(
        root_stimulant_duration_days=int(_as_float(root["duration_days"], 14)),
        root_stimulant_dosage=_as_float(root["dosage_ml_per_l"], 0.2),
        fulvic_acid_dosage=_as_float(fulvic["dosage_ml_per_l"], 0.3),
        fulvic_acid_intensity=_as_float(fulvic["intensity_pct"], 50),
        fulvic_acid_max_ml_per_l=_as_float(fulvic["max_ml_per_l"], 0.6),
        bloom_booster_max_ml_per_l=_as_float(bloom["max_ml_per_l"], 2.0),
    )


def refresh_reference_data() -> None:
    """Clear cached datasets so they are reloaded on next access."""

    _stage_table.cache_clear()
    fertilizer_labels.cache_clear()
    additive_defaults.cache_clear()
    clear_dataset_cache()


__all__ = [
    "FertilizerRate",
    "FeedingStage",
    "AdditiveDefaults",
    "feeding_stages",
    "list_stage_ids",
    "get_stage",
    "bloom_booster_recommendation",
    "fertilizer_labels",
    "fertilizer_label",
    "additive_defaults",
    "refresh_reference_data",
    "ROOT_STIMULANT_STAGES",
    "FULVIC_ACID_STAGES",
    "FULVIC_ACID_LOCKED_STAGES",
    "BLOOM_BOOSTER_STAGES",
    "DEFAULT_STAGE_ID",
    "DEFAULT_STRENGTH",
    "DEFAULT_WATER_LITERS",
    "DEFAULT_FORM_PH",
    "DEFAULT_FORM_EC",
    "INITIAL_PLANT_NAMES",
]
