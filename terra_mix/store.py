from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

import voluptuous as vol

from . import transforms
from .additives import initial_additives
from .constants import (
    DEFAULT_STAGE_ID,
    DEFAULT_STRENGTH,
    DEFAULT_WATER_LITERS,
    INITIAL_PLANT_NAMES,
)
from .models import PlantState, WateringLogEntry
from .normalizer import normalize_plant
from .transforms import PlantTransform
from .utils import load_json, save_json, utcnow
from .validation import validate_log_payload, validate_plant_payload

_LOGGER = logging.getLogger(__name__)


def new_plant(plant_id: str, name: str, now: datetime) -> PlantState:
    """Return an un-normalized plant with default feeding settings."""

    return PlantState(
        id=plant_id,
        name=name,
        stage_id=DEFAULT_STAGE_ID,
        strength=float(DEFAULT_STRENGTH),
        preferred_water_liters=DEFAULT_WATER_LITERS,
        additives=initial_additives(),
        logs=[],
        updated_at=now,
    )


def default_plants(now: datetime) -> list[PlantState]:
    return [
        new_plant(f"plant-{index}", name, now)
        for index, name in enumerate(INITIAL_PLANT_NAMES, start=1)
    ]


class PlantStore:
    """Owner of the plant collection.

    Every mutation applies a pure transform, passes the result through
    :func:`normalize_plant` and, when ``path`` is set, writes the collection as
    a JSON list. Mutations are serialised with an :class:`asyncio.Lock`.
    """

    def __init__(
        self,
        path: str | Path | None = None,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._path = Path(path) if path is not None else None
        self._clock = clock
        self._lock = asyncio.Lock()
        self._plants: list[PlantState] = []
        # Raw entries that failed validation, written back untouched.
        self._rejected: list[Any] = []

    @property
    def plants(self) -> list[PlantState]:
        return list(self._plants)

    def active_plants(self) -> list[PlantState]:
        return [plant for plant in self._plants if not plant.archived]

    def archived_plants(self) -> list[PlantState]:
        return [plant for plant in self._plants if plant.archived]

    def get(self, plant_id: str) -> PlantState:
        for plant in self._plants:
            if plant.id == plant_id:
                return plant
        raise KeyError(f"Unknown plant '{plant_id}'")

    async def async_load(self) -> list[PlantState]:
        """Load stored plants, seeding the default collection when empty."""

        async with self._lock:
            stored = await self._read()
            now = self._clock()
            if not stored and not self._rejected:
                stored = default_plants(now)
            plants = [normalize_plant(plant, now) for plant in stored]
            self._plants = plants
            await self._write()
            return self.plants

    async def async_add_plant(self, name: str | None = None) -> PlantState:
        async with self._lock:
            now = self._clock()
            label = name.strip() if name and name.strip() else f"Plant {len(self._plants) + 1}"
            plant = normalize_plant(new_plant(f"plant-{uuid.uuid4().hex[:12]}", label, now), now)
            self._plants.append(plant)
            await self._write()
            return plant

    async def async_update_plant(self, plant_id: str, transform: PlantTransform) -> PlantState:
        """Apply ``transform`` to the plant and store the normalized result."""

        async with self._lock:
            return await self._apply(plant_id, transform)

    async def async_delete_plant(self, plant_id: str) -> None:
        async with self._lock:
            self.get(plant_id)
            self._plants = [plant for plant in self._plants if plant.id != plant_id]
            await self._write()

    async def async_log_watering(self, plant_id: str, entry: WateringLogEntry) -> PlantState:
        async with self._lock:
            return await self._apply(plant_id, lambda plant: transforms.add_log(plant, entry))

    async def async_archive_plant(self, plant_id: str, archived: bool) -> PlantState:
        async with self._lock:
            now = self._clock()
            return await self._apply(
                plant_id, lambda plant: transforms.set_archived(plant, archived, now)
            )

    async def async_update_log(
        self,
        plant_id: str,
        log_id: str,
        updater: Callable[[WateringLogEntry], WateringLogEntry],
    ) -> PlantState:
        async with self._lock:
            return await self._apply(
                plant_id, lambda plant: transforms.replace_log(plant, log_id, updater)
            )

    async def async_delete_log(self, plant_id: str, log_id: str) -> PlantState:
        async with self._lock:
            return await self._apply(plant_id, lambda plant: transforms.remove_log(plant, log_id))

    async def _apply(self, plant_id: str, transform: PlantTransform) -> PlantState:
        current = self.get(plant_id)
        updated = normalize_plant(transform(current), self._clock())
        self._plants = [updated if plant.id == plant_id else plant for plant in self._plants]
        await self._write()
        return updated

    async def _read(self) -> list[PlantState]:
        self._rejected = []
        if self._path is None or not self._path.exists():
            return []
        try:
            raw = await asyncio.to_thread(load_json, self._path)
        except ValueError as err:
            _LOGGER.warning("Ignoring unreadable plant store %s: %s", self._path, err)
            await self._set_aside(self._path)
            return []
        if not isinstance(raw, list):
            _LOGGER.warning("Ignoring plant store %s: expected a list", self._path)
            await self._set_aside(self._path)
            return []

        plants: list[PlantState] = []
        for index, item in enumerate(raw):
            try:
                plants.append(self._parse_plant(item))
            except (vol.Invalid, ValueError) as err:
                _LOGGER.warning("Skipping invalid plant #%d in %s: %s", index, self._path, err)
                self._rejected.append(item)
        return plants

    def _parse_plant(self, item: Any) -> PlantState:
        payload = validate_plant_payload(item)
        logs: list[dict[str, Any]] = []
        for index, entry in enumerate(payload.get("logs") or []):
            try:
                logs.append(validate_log_payload(entry))
            except vol.Invalid as err:
                _LOGGER.warning(
                    "Dropping invalid watering log #%d of plant %s: %s", index, payload["id"], err
                )
        payload["logs"] = logs
        return PlantState.from_json(payload)

    async def _set_aside(self, path: Path) -> None:
        """Move an unusable store file out of the way before it is replaced."""

        target = path.with_name(path.name + ".invalid")
        await asyncio.to_thread(path.replace, target)
        _LOGGER.warning("Moved plant store %s to %s", path, target)

    async def _write(self) -> None:
        if self._path is None:
            return
        payload: list[Any] = [plant.to_json() for plant in self._plants]
        payload.extend(self._rejected)
        await asyncio.to_thread(save_json, self._path, payload)
