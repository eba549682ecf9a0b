"""Schemas for JSON plant payloads read from disk or the command line."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import voluptuous as vol

from .constants import list_stage_ids
from .utils import parse_timestamp

__all__ = [
    "TIMESTAMP",
    "LOG_SCHEMA",
    "PLANT_SCHEMA",
    "validate_plant_payload",
    "validate_log_payload",
    "validate_stage_id",
]


def _timestamp(value: Any) -> str:
    if not isinstance(value, str) or parse_timestamp(value) is None:
        raise vol.Invalid(f"invalid timestamp {value!r}")
    return value


def validate_stage_id(value: Any) -> str:
    """Return ``value`` if it names a known feeding stage."""

    if not isinstance(value, str) or value not in list_stage_ids():
        raise vol.Invalid(f"unknown feeding stage {value!r}")
    return value


TIMESTAMP = _timestamp
NUMBER = vol.All(vol.Coerce(float), vol.Clamp(min=0))
PERCENT = vol.All(vol.Coerce(float), vol.Clamp(min=0, max=100))

_DOSE_SCHEMA = vol.Schema(
    {
        vol.Required("mlPerLiter"): vol.Coerce(float),
        vol.Required("totalMl"): vol.Coerce(float),
        vol.Optional("intensity"): vol.Coerce(float),
    },
    extra=vol.ALLOW_EXTRA,
)

LOG_SCHEMA = vol.Schema(
    {
        vol.Required("id"): vol.All(str, vol.Length(min=1)),
        vol.Required("createdAt"): TIMESTAMP,
        vol.Required("waterLiters"): vol.Coerce(float),
        vol.Required("strength"): vol.Coerce(float),
        vol.Required("stageId"): str,
        vol.Optional("ph"): vol.Any(None, vol.Coerce(float)),
        vol.Optional("ec"): vol.Any(None, vol.Coerce(float)),
        vol.Optional("fertilizers", default=list): [
            vol.Schema(
                {
                    vol.Required("fertilizer"): str,
                    vol.Optional("label"): str,
                    vol.Required("mlPerLiter"): vol.Coerce(float),
                    vol.Required("ml"): vol.Coerce(float),
                },
                extra=vol.ALLOW_EXTRA,
            )
        ],
        vol.Optional("additives", default=dict): vol.Schema(
            {
                vol.Optional("rootStimulant"): _DOSE_SCHEMA,
                vol.Optional("fulvicAcid"): _DOSE_SCHEMA,
                vol.Optional("bloomBooster"): _DOSE_SCHEMA,
            },
            extra=vol.ALLOW_EXTRA,
        ),
    },
    extra=vol.ALLOW_EXTRA,
)

_ADDITIVES_SCHEMA = vol.Schema(
    {
        vol.Optional("rootStimulant", default=dict): vol.Schema(
            {
                vol.Optional("active", default=False): bool,
                vol.Optional("startDate"): vol.Any(None, TIMESTAMP),
                vol.Optional("durationDays"): vol.Any(None, vol.All(vol.Coerce(int), vol.Clamp(min=0))),
                vol.Optional("dosageMlPerLiter"): vol.Any(None, NUMBER),
            },
            extra=vol.ALLOW_EXTRA,
        ),
        vol.Optional("fulvicAcid", default=dict): vol.Schema(
            {
                vol.Optional("active", default=False): bool,
                vol.Optional("startedAt"): vol.Any(None, TIMESTAMP),
                vol.Optional("intensity"): vol.Any(None, PERCENT),
                vol.Optional("dosageMlPerLiter"): vol.Any(None, NUMBER),
            },
            extra=vol.ALLOW_EXTRA,
        ),
        vol.Optional("bloomBooster", default=dict): vol.Schema(
            {
                vol.Optional("active", default=False): bool,
                vol.Optional("intensity", default=0): PERCENT,
                # Unknown modes fall back to auto in BloomBoosterState.from_json.
                vol.Optional("mode"): vol.Any(None, str),
                vol.Optional("lastAdjustedAt"): vol.Any(None, TIMESTAMP),
            },
            extra=vol.ALLOW_EXTRA,
        ),
    },
    extra=vol.ALLOW_EXTRA,
)

# Stage ids are not checked here so corrupt plants still load and reach the
# normalizer's degraded path. Logs are checked one by one with
# validate_log_payload so a bad entry does not reject its plant.
PLANT_SCHEMA = vol.Schema(
    {
        vol.Required("id"): vol.All(str, vol.Length(min=1)),
        vol.Optional("name"): str,
        vol.Required("stageId"): str,
        vol.Required("strength"): vol.Coerce(float),
        vol.Required("preferredWaterLiters"): vol.Coerce(float),
        vol.Optional("additives", default=dict): _ADDITIVES_SCHEMA,
        vol.Optional("logs", default=list): vol.Any(None, list),
        vol.Optional("archivedAt"): vol.Any(None, TIMESTAMP),
        vol.Optional("updatedAt"): vol.Any(None, str),
    },
    extra=vol.ALLOW_EXTRA,
)


def validate_plant_payload(data: Mapping[str, Any]) -> dict[str, Any]:
    """Return a validated copy of ``data``.

    :class:`voluptuous.Invalid` is raised describing the first problem found.
    """

    if not isinstance(data, Mapping):
        raise vol.Invalid("expected a plant object")
    return PLANT_SCHEMA(dict(data))


def validate_log_payload(data: Mapping[str, Any]) -> dict[str, Any]:
    """Return a validated copy of one watering log entry."""

    if not isinstance(data, Mapping):
        raise vol.Invalid("expected a watering log object")
    return LOG_SCHEMA(dict(data))
