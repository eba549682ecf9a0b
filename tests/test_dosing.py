import pytest

from terra_mix import transforms
from terra_mix.constants import refresh_reference_data
from terra_mix.dosing import calculate_additive_doses, calculate_fertilizer_doses, format_ml
from terra_mix.models import BloomMode
from terra_mix.normalizer import normalize_plant


def test_flower_doses_at_half_strength(make_plant):
    plant = make_plant(stage_id="flower", strength=50)
    doses = calculate_fertilizer_doses(plant, 4)

    assert [d.fertilizer for d in doses] == ["grow", "micro", "bloom"]
    assert [d.ml_per_liter for d in doses] == [0.4, 0.8, 1.2]
    assert [d.ml for d in doses] == [1.6, 3.2, 4.8]
    assert doses[0].label == "TriPart Grow"


def test_ripen_uses_final_part_only(make_plant):
    plant = make_plant(stage_id="ripen", strength=100)
    doses = calculate_fertilizer_doses(plant, 10)

    assert len(doses) == 1
    assert doses[0].fertilizer == "finalPart"
    assert doses[0].label == "Final Part"
    assert doses[0].ml_per_liter == 4
    assert doses[0].ml == 40


def test_doses_scale_with_water(make_plant):
    plant = make_plant(stage_id="lateFlower", strength=85)
    per_liter = calculate_fertilizer_doses(plant, 1)
    for liters in (0.5, 3, 7.5, 20):
        for single, scaled in zip(per_liter, calculate_fertilizer_doses(plant, liters)):
            assert scaled.ml == pytest.approx(single.ml_per_liter * liters, abs=0.005 * liters + 0.01)


def test_doses_never_drop_with_more_strength(make_plant):
    previous = None
    for strength in range(0, 121, 5):
        doses = [d.ml for d in calculate_fertilizer_doses(make_plant(stage_id="grow", strength=strength), 3)]
        if previous is not None:
            assert all(cur >= prev for cur, prev in zip(doses, previous))
        previous = doses


def test_negative_strength_counts_as_zero(make_plant):
    doses = calculate_fertilizer_doses(make_plant(stage_id="grow", strength=-20), 5)
    assert all(d.ml == 0 and d.ml_per_liter == 0 for d in doses)


def test_zero_water_gives_zero_dose(make_plant):
    doses = calculate_fertilizer_doses(make_plant(stage_id="grow", strength=100), 0)
    assert [d.ml for d in doses] == [0, 0, 0]
    assert [d.ml_per_liter for d in doses] == [1.8, 1.2, 0.6]


def test_doses_round_half_up(make_plant):
    # 0.6 ml/L * 75% = 0.45 ml/L, * 3 L = 1.35 ml
    doses = calculate_fertilizer_doses(make_plant(stage_id="seedling", strength=75), 3)
    assert doses[0].ml_per_liter == 0.45
    assert doses[0].ml == 1.35


def test_unknown_stage_raises(make_plant):
    with pytest.raises(KeyError):
        calculate_fertilizer_doses(make_plant(stage_id="harvest"), 3)


def test_root_stimulant_dose_in_seedling(make_plant):
    plant = make_plant(stage_id="seedling")
    plant.additives.root_stimulant.active = True
    summary = calculate_additive_doses(plant, 3)

    assert summary.keys() == ["rootStimulant"]
    assert summary.root_stimulant.ml_per_liter == 0.2
    assert summary.root_stimulant.total_ml == 0.6


def test_root_stimulant_uses_default_dosage(make_plant):
    plant = make_plant(stage_id="grow")
    plant.additives.root_stimulant.active = True
    plant.additives.root_stimulant.dosage_ml_per_liter = None
    summary = calculate_additive_doses(plant, 5)
    assert summary.root_stimulant.total_ml == 1.0


def test_fulvic_acid_defaults_intensity(make_plant):
    plant = make_plant(stage_id="preflower")
    plant.additives.fulvic_acid.active = True
    summary = calculate_additive_doses(plant, 4)

    assert summary.fulvic_acid.intensity == 50
    assert summary.fulvic_acid.ml_per_liter == 0.3
    assert summary.fulvic_acid.total_ml == 1.2


def test_fulvic_acid_intensity_default_follows_config(make_plant, now, tmp_path, monkeypatch):
    plant = normalize_plant(transforms.toggle_fulvic_acid(make_plant(stage_id="grow"), True, now), now)
    assert plant.additives.fulvic_acid.intensity is None

    (tmp_path / "additive_defaults.yaml").write_text("fulvic_acid:\n  intensity_pct: 100\n")
    monkeypatch.setenv("TERRA_MIX_OVERLAY_DIR", str(tmp_path))
    refresh_reference_data()

    summary = calculate_additive_doses(normalize_plant(plant, now), 2)
    assert summary.fulvic_acid.intensity == 100
    assert summary.fulvic_acid.ml_per_liter == 0.6
    assert summary.fulvic_acid.total_ml == 1.2


def test_fulvic_acid_follows_intensity(make_plant):
    plant = make_plant(stage_id="grow")
    plant.additives.fulvic_acid.active = True
    plant.additives.fulvic_acid.intensity = 25
    summary = calculate_additive_doses(plant, 2)

    assert summary.fulvic_acid.ml_per_liter == 0.15
    assert summary.fulvic_acid.total_ml == 0.3


def test_bloom_booster_dose(make_plant):
    plant = make_plant(stage_id="flower")
    plant.additives.bloom_booster.active = True
    plant.additives.bloom_booster.intensity = 70
    summary = calculate_additive_doses(plant, 3)

    assert summary.bloom_booster.intensity == 70
    assert summary.bloom_booster.ml_per_liter == 1.4
    assert summary.bloom_booster.total_ml == 4.2


def test_bloom_booster_zero_intensity_is_left_out(make_plant):
    plant = make_plant(stage_id="flower")
    plant.additives.bloom_booster.active = True
    plant.additives.bloom_booster.intensity = 0
    assert calculate_additive_doses(plant, 3).bloom_booster is None


@pytest.mark.parametrize(
    "stage_id, expected",
    [
        ("seedling", {"rootStimulant", "fulvicAcid"}),
        ("earlyGrow", {"rootStimulant", "fulvicAcid"}),
        ("grow", {"rootStimulant", "fulvicAcid"}),
        ("preflower", {"fulvicAcid", "bloomBooster"}),
        ("flower", {"bloomBooster"}),
        ("lateFlower", {"bloomBooster"}),
        ("ripen", {"bloomBooster"}),
    ],
)
def test_stage_eligibility(make_plant, stage_id, expected):
    plant = make_plant(stage_id=stage_id)
    plant.additives.root_stimulant.active = True
    plant.additives.fulvic_acid.active = True
    plant.additives.bloom_booster.active = True
    plant.additives.bloom_booster.intensity = 40
    plant.additives.bloom_booster.mode = BloomMode.MANUAL

    summary = calculate_additive_doses(plant, 2)
    assert set(summary.keys()) == expected
    assert set(summary.to_json()) == expected


def test_inactive_additives_are_absent(make_plant):
    plant = make_plant(stage_id="preflower")
    plant.additives.bloom_booster.intensity = 40
    summary = calculate_additive_doses(plant, 2)
    assert summary.keys() == []
    assert summary.to_json() == {}


def test_additive_doses_do_not_modify_plant(make_plant):
    plant = make_plant(stage_id="grow")
    plant.additives.fulvic_acid.active = True
    calculate_additive_doses(plant, 2)
    assert plant.additives.fulvic_acid.intensity is None


@pytest.mark.parametrize(
    "value, expected",
    [
        (0.5, "0.50 ml"),
        (0.125, "0.13 ml"),
        (0, "0.00 ml"),
        (3.14159, "3.1 ml"),
        (1, "1.0 ml"),
        (9.95, "10.0 ml"),
        (42.9, "43 ml"),
        (10, "10 ml"),
        (12.5, "13 ml"),
        (-0.125, "-0.12 ml"),
        (-0.001, "0.00 ml"),
        (-2.5, "-2.50 ml"),
    ],
)
def test_format_ml(value, expected):
    assert format_ml(value) == expected
