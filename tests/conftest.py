from collections.abc import Callable
from datetime import datetime, timedelta, timezone

import pytest

from terra_mix.additives import initial_additives
from terra_mix.constants import refresh_reference_data
from terra_mix.log_utils import reset_warnings
from terra_mix.models import PlantState, WateringLogEntry

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _fresh_reference_data(monkeypatch):
    """Reload datasets and forget warnings around every test."""
    monkeypatch.delenv("TERRA_MIX_DATA_DIR", raising=False)
    monkeypatch.delenv("TERRA_MIX_OVERLAY_DIR", raising=False)
    refresh_reference_data()
    reset_warnings()
    yield
    refresh_reference_data()
    reset_warnings()


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_plant() -> Callable[..., PlantState]:
    def _make(**changes) -> PlantState:
        plant = PlantState(
            id=changes.pop("id", "plant-1"),
            name=changes.pop("name", "Plant A"),
            stage_id=changes.pop("stage_id", "seedling"),
            strength=changes.pop("strength", 75.0),
            preferred_water_liters=changes.pop("preferred_water_liters", 3.0),
            additives=changes.pop("additives", initial_additives()),
            logs=changes.pop("logs", []),
        )
        return plant.copy(**changes)

    return _make


@pytest.fixture
def make_log() -> Callable[..., WateringLogEntry]:
    def _make(log_id: str, days_ago: float, **changes) -> WateringLogEntry:
        return WateringLogEntry(
            id=log_id,
            created_at=NOW - timedelta(days=days_ago),
            water_liters=changes.pop("water_liters", 3.0),
            strength=changes.pop("strength", 75.0),
            stage_id=changes.pop("stage_id", "grow"),
            **changes,
        )

    return _make
