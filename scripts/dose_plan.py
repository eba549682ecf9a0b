#!/usr/bin/env python3
"""Print fertilizer and additive doses for a feeding stage as JSON."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

import voluptuous as vol  # noqa: E402

from terra_mix import transforms  # noqa: E402
from terra_mix.dosing import (  # noqa: E402
    calculate_additive_doses,
    calculate_fertilizer_doses,
    format_ml,
)
from terra_mix.normalizer import normalize_plant  # noqa: E402
from terra_mix.store import new_plant  # noqa: E402
from terra_mix.utils import utcnow  # noqa: E402
from terra_mix.validation import validate_stage_id  # noqa: E402


def build_plan(
    stage: str,
    strength: float,
    water_liters: float,
    *,
    root: bool = False,
    fulvic: bool = False,
    bloom_intensity: float | None = None,
) -> dict:
    """Return a JSON-ready dosing plan for a fresh plant in ``stage``."""

    now = utcnow()
    plant = new_plant("cli", "cli", now)
    plant = transforms.set_stage(plant, stage)
    plant = transforms.set_strength(plant, strength)
    plant = transforms.toggle_root_stimulant(plant, root, now)
    plant = transforms.toggle_fulvic_acid(plant, fulvic, now)
    if bloom_intensity is not None:
        plant = transforms.adjust_bloom_booster(plant, bloom_intensity, now)
    plant = normalize_plant(plant, now)

    fertilizers = [
        {**dose.to_json(), "display": format_ml(dose.ml)}
        for dose in calculate_fertilizer_doses(plant, water_liters)
    ]
    additives = {
        key: {**dose, "display": format_ml(dose["totalMl"])}
        for key, dose in calculate_additive_doses(plant, water_liters).to_json().items()
    }
    return {
        "stageId": plant.stage_id,
        "strength": plant.strength,
        "waterLiters": water_liters,
        "fertilizers": fertilizers,
        "additives": additives,
    }


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Calculate doses for one watering")
    parser.add_argument("stage", help="Feeding stage id, e.g. flower")
    parser.add_argument("--strength", type=float, default=75, help="Strength in percent")
    parser.add_argument("--water", type=float, default=3, help="Water volume in liters")
    parser.add_argument("--root", action="store_true", help="Include root stimulant")
    parser.add_argument("--fulvic", action="store_true", help="Include fulvic acid")
    parser.add_argument(
        "--bloom-intensity",
        type=float,
        help="Manual bloom booster intensity (defaults to the stage recommendation)",
    )
    parser.add_argument("--output", type=Path, help="Optional path to write the plan JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        validate_stage_id(args.stage)
    except vol.Invalid as err:
        parser.error(str(err))

    plan = build_plan(
        args.stage,
        args.strength,
        args.water,
        root=args.root,
        fulvic=args.fulvic,
        bloom_intensity=args.bloom_intensity,
    )
    text = json.dumps(plan, indent=2)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text)
    else:
        print(text)


if __name__ == "__main__":  # pragma: no cover
    main()
