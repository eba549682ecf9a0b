"""Plant, additive and watering log data structures."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any

from .utils import format_timestamp, parse_timestamp


def _float_or_none(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _float_or(value: Any, default: float) -> float:
    number = _float_or_none(value)
    return default if number is None else number


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


class BloomMode(str, Enum):
    """Whether bloom booster intensity follows the stage recommendation."""

    AUTO = "auto"
    MANUAL = "manual"


@dataclass(slots=True)
class RootStimulantState:
    active: bool = False
    start_date: datetime | None = None
    duration_days: int | None = None
    dosage_ml_per_liter: float | None = None

    def to_json(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"active": self.active}
        if self.start_date is not None:
            payload["startDate"] = format_timestamp(self.start_date)
        if self.duration_days is not None:
            payload["durationDays"] = self.duration_days
        if self.dosage_ml_per_liter is not None:
            payload["dosageMlPerLiter"] = self.dosage_ml_per_liter
        return payload

    @staticmethod
    def from_json(data: Mapping[str, Any]) -> RootStimulantState:
        duration = _float_or_none(data.get("durationDays"))
        return RootStimulantState(
            active=bool(data.get("active")),
            start_date=parse_timestamp(data.get("startDate")),
            duration_days=int(duration) if duration is not None else None,
            dosage_ml_per_liter=_float_or_none(data.get("dosageMlPerLiter")),
        )


@dataclass(slots=True)
class FulvicAcidState:
    active: bool = False
    started_at: datetime | None = None
    intensity: float | None = None
    dosage_ml_per_liter: float | None = None

    def to_json(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"active": self.active}
        if self.started_at is not None:
            payload["startedAt"] = format_timestamp(self.started_at)
        if self.intensity is not None:
            payload["intensity"] = self.intensity
        if self.dosage_ml_per_liter is not None:
            payload["dosageMlPerLiter"] = self.dosage_ml_per_liter
        return payload

    @staticmethod
    def from_json(data: Mapping[str, Any]) -> FulvicAcidState:
        return FulvicAcidState(
            active=bool(data.get("active")),
            started_at=parse_timestamp(data.get("startedAt")),
            intensity=_float_or_none(data.get("intensity")),
            dosage_ml_per_liter=_float_or_none(data.get("dosageMlPerLiter")),
        )


@dataclass(slots=True)
class BloomBoosterState:
    """Bloom booster settings.

    In :attr:`BloomMode.AUTO` the intensity is owned by the normalizer and
    follows the stage recommendation. Once adjusted by hand the mode becomes
    :attr:`BloomMode.MANUAL` for good and the stored intensity is kept.
    """

    active: bool = False
    intensity: float = 0.0
    mode: BloomMode = BloomMode.AUTO
    last_adjusted_at: datetime | None = None

    @property
    def is_manual(self) -> bool:
        return self.mode is BloomMode.MANUAL or self.last_adjusted_at is not None

    def to_json(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "active": self.active,
            "intensity": self.intensity,
            "mode": self.mode.value,
        }
        if self.last_adjusted_at is not None:
            payload["lastAdjustedAt"] = format_timestamp(self.last_adjusted_at)
        return payload

    @staticmethod
    def from_json(data: Mapping[str, Any]) -> BloomBoosterState:
        adjusted = parse_timestamp(data.get("lastAdjustedAt"))
        # Older payloads carry no mode; a manual adjustment left a timestamp.
        try:
            mode = BloomMode(data.get("mode"))
        except ValueError:
            mode = BloomMode.AUTO
        if adjusted is not None:
            mode = BloomMode.MANUAL
        return BloomBoosterState(
            active=bool(data.get("active")),
            intensity=_float_or(data.get("intensity"), 0.0),
            mode=mode,
            last_adjusted_at=adjusted,
        )


@dataclass(slots=True)
class AdditivesState:
    root_stimulant: RootStimulantState = field(default_factory=RootStimulantState)
    fulvic_acid: FulvicAcidState = field(default_factory=FulvicAcidState)
    bloom_booster: BloomBoosterState = field(default_factory=BloomBoosterState)

    def to_json(self) -> dict[str, Any]:
        return {
            "rootStimulant": self.root_stimulant.to_json(),
            "fulvicAcid": self.fulvic_acid.to_json(),
            "bloomBooster": self.bloom_booster.to_json(),
        }

    @staticmethod
    def from_json(data: Mapping[str, Any]) -> AdditivesState:
        return AdditivesState(
            root_stimulant=RootStimulantState.from_json(_as_mapping(data.get("rootStimulant"))),
            fulvic_acid=FulvicAcidState.from_json(_as_mapping(data.get("fulvicAcid"))),
            bloom_booster=BloomBoosterState.from_json(_as_mapping(data.get("bloomBooster"))),
        )

    def copy(self) -> AdditivesState:
        return AdditivesState(
            root_stimulant=replace(self.root_stimulant),
            fulvic_acid=replace(self.fulvic_acid),
            bloom_booster=replace(self.bloom_booster),
        )


@dataclass(frozen=True, slots=True)
class FertilizerDose:
    """Amount of one base fertilizer for a watering."""

    fertilizer: str
    label: str
    ml_per_liter: float
    ml: float

    def to_json(self) -> dict[str, Any]:
        return {
            "fertilizer": self.fertilizer,
            "label": self.label,
            "mlPerLiter": self.ml_per_liter,
            "ml": self.ml,
        }

    @staticmethod
    def from_json(data: Mapping[str, Any]) -> FertilizerDose:
        fertilizer = str(data.get("fertilizer", ""))
        return FertilizerDose(
            fertilizer=fertilizer,
            label=str(data.get("label") or fertilizer),
            ml_per_liter=_float_or(data.get("mlPerLiter"), 0.0),
            ml=_float_or(data.get("ml"), 0.0),
        )


@dataclass(frozen=True, slots=True)
class AdditiveDose:
    """Amount of one additive for a watering.

    ``intensity`` is only set for additives dosed by percentage.
    """

    ml_per_liter: float
    total_ml: float
    intensity: float | None = None

    def to_json(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"mlPerLiter": self.ml_per_liter, "totalMl": self.total_ml}
        if self.intensity is not None:
            payload["intensity"] = self.intensity
        return payload

    @staticmethod
    def from_json(data: Mapping[str, Any]) -> AdditiveDose:
        return AdditiveDose(
            ml_per_liter=_float_or(data.get("mlPerLiter"), 0.0),
            total_ml=_float_or(data.get("totalMl"), 0.0),
            intensity=_float_or_none(data.get("intensity")),
        )


@dataclass(frozen=True, slots=True)
class AdditiveDoseSummary:
    """Additive doses for a watering; ``None`` means the additive is not dosed."""

    root_stimulant: AdditiveDose | None = None
    fulvic_acid: AdditiveDose | None = None
    bloom_booster: AdditiveDose | None = None

    _KEYS = (
        ("root_stimulant", "rootStimulant"),
        ("fulvic_acid", "fulvicAcid"),
        ("bloom_booster", "bloomBooster"),
    )

    def keys(self) -> list[str]:
        """Return the JSON keys of dosed additives."""
        return [key for attr, key in self._KEYS if getattr(self, attr) is not None]

    def to_json(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for attr, key in self._KEYS:
            dose = getattr(self, attr)
            if dose is not None:
                payload[key] = dose.to_json()
        return payload

    @staticmethod
    def from_json(data: Mapping[str, Any]) -> AdditiveDoseSummary:
        doses: dict[str, AdditiveDose] = {}
        for attr, key in AdditiveDoseSummary._KEYS:
            raw = data.get(key)
            if isinstance(raw, Mapping):
                doses[attr] = AdditiveDose.from_json(raw)
        return AdditiveDoseSummary(**doses)


@dataclass(frozen=True, slots=True)
class WateringLogEntry:
    """Historical record of a single watering."""

    id: str
    created_at: datetime
    water_liters: float
    strength: float
    stage_id: str
    fertilizers: tuple[FertilizerDose, ...] = ()
    additives: AdditiveDoseSummary = field(default_factory=AdditiveDoseSummary)
    ph: float | None = None
    ec: float | None = None

    def to_json(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "createdAt": format_timestamp(self.created_at),
            "waterLiters": self.water_liters,
            "strength": self.strength,
            "stageId": self.stage_id,
            "fertilizers": [dose.to_json() for dose in self.fertilizers],
            "additives": self.additives.to_json(),
        }
        if self.ph is not None:
            payload["ph"] = self.ph
        if self.ec is not None:
            payload["ec"] = self.ec
        return payload

    @staticmethod
    def from_json(data: Mapping[str, Any]) -> WateringLogEntry:
        created = parse_timestamp(data.get("createdAt"))
        if created is None:
            raise ValueError(f"watering log {data.get('id')!r} has no valid createdAt")
        raw_doses = data.get("fertilizers")
        fertilizers = tuple(
            FertilizerDose.from_json(item)
            for item in (raw_doses if isinstance(raw_doses, list) else [])
            if isinstance(item, Mapping)
        )
        return WateringLogEntry(
            id=str(data.get("id")),
            created_at=created,
            water_liters=_float_or(data.get("waterLiters"), 0.0),
            strength=_float_or(data.get("strength"), 0.0),
            stage_id=str(data.get("stageId", "")),
            fertilizers=fertilizers,
            additives=AdditiveDoseSummary.from_json(_as_mapping(data.get("additives"))),
            ph=_float_or_none(data.get("ph")),
            ec=_float_or_none(data.get("ec")),
        )


@dataclass(slots=True)
class PlantState:
    """A cultivated plant with its feeding configuration and history."""

    id: str
    name: str
    stage_id: str
    strength: float
    preferred_water_liters: float
    additives: AdditivesState = field(default_factory=AdditivesState)
    logs: list[WateringLogEntry] = field(default_factory=list)
    archived_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def archived(self) -> bool:
        return self.archived_at is not None

    def copy(self, **changes: Any) -> PlantState:
        """Return a copy with nested additive state and log list detached."""

        changes.setdefault("additives", self.additives.copy())
        changes.setdefault("logs", list(self.logs) if isinstance(self.logs, (list, tuple)) else [])
        return replace(self, **changes)

    def to_json(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "stageId": self.stage_id,
            "strength": self.strength,
            "preferredWaterLiters": self.preferred_water_liters,
            "additives": self.additives.to_json(),
            "logs": [entry.to_json() for entry in self.logs],
        }
        if self.archived_at is not None:
            payload["archivedAt"] = format_timestamp(self.archived_at)
        if self.updated_at is not None:
            payload["updatedAt"] = format_timestamp(self.updated_at)
        return payload

    @staticmethod
    def from_json(data: Mapping[str, Any]) -> PlantState:
        raw_logs = data.get("logs")
        logs = [
            WateringLogEntry.from_json(item)
            for item in (raw_logs if isinstance(raw_logs, list) else [])
            if isinstance(item, Mapping)
        ]
        return PlantState(
            id=str(data.get("id")),
            name=str(data.get("name") or data.get("id")),
            stage_id=str(data.get("stageId", "")),
            strength=_float_or(data.get("strength"), 0.0),
            preferred_water_liters=_float_or(data.get("preferredWaterLiters"), 0.0),
            additives=AdditivesState.from_json(_as_mapping(data.get("additives"))),
            logs=logs,
            archived_at=parse_timestamp(data.get("archivedAt")),
            updated_at=parse_timestamp(data.get("updatedAt")),
        )


__all__ = [
    "BloomMode",
    "RootStimulantState",
    "FulvicAcidState",
    "BloomBoosterState",
    "AdditivesState",
    "FertilizerDose",
    "AdditiveDose",
    "AdditiveDoseSummary",
    "WateringLogEntry",
    "PlantState",
]
