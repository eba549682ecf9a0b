import json

from terra_mix.constants import (
    additive_defaults,
    bloom_booster_recommendation,
    feeding_stages,
    fertilizer_label,
    get_stage,
    list_stage_ids,
    refresh_reference_data,
)
from terra_mix.dosing import calculate_fertilizer_doses


def test_stage_order():
    assert list_stage_ids() == [
        "seedling",
        "earlyGrow",
        "grow",
        "preflower",
        "flower",
        "lateFlower",
        "ripen",
    ]
    assert feeding_stages()[0].name == "Seedlings"


def test_stage_rates():
    flower = get_stage("flower")
    assert [(r.fertilizer, r.ml_per_liter) for r in flower.rates] == [
        ("grow", 0.8),
        ("micro", 1.6),
        ("bloom", 2.4),
    ]
    assert get_stage("unknown") is None


def test_bloom_recommendations():
    assert bloom_booster_recommendation("lateFlower") == 85
    assert bloom_booster_recommendation("seedling") == 0
    assert bloom_booster_recommendation("unknown") == 0


def test_additive_defaults():
    defaults = additive_defaults()
    assert defaults.root_stimulant_duration_days == 14
    assert defaults.root_stimulant_dosage == 0.2
    assert defaults.fulvic_acid_dosage == 0.3
    assert defaults.fulvic_acid_intensity == 50
    assert defaults.bloom_booster_max_ml_per_l == 2
    assert defaults.as_dict()["fulvic_acid_max_ml_per_l"] == 0.6


def test_fertilizer_label_fallback():
    assert fertilizer_label("micro") == "TriPart Micro"
    assert fertilizer_label("calmag") == "calmag"


def test_overlay_dir_overrides_values(tmp_path, monkeypatch, make_plant):
    (tmp_path / "feeding_stages.json").write_text(json.dumps({"ripen": {"rates": {"finalPart": 3}}}))
    (tmp_path / "fertilizer_labels.json").write_text(json.dumps({"finalPart": "Ripener"}))
    (tmp_path / "additive_defaults.yaml").write_text("root_stimulant:\n  duration_days: 10\n")
    monkeypatch.setenv("TERRA_MIX_OVERLAY_DIR", str(tmp_path))
    refresh_reference_data()

    assert additive_defaults().root_stimulant_duration_days == 10
    assert additive_defaults().root_stimulant_dosage == 0.2
    [dose] = calculate_fertilizer_doses(make_plant(stage_id="ripen", strength=100), 10)
    assert dose.ml == 30
    assert dose.label == "Ripener"
    assert get_stage("ripen").name == "Ripen / Final"


def test_missing_data_dir_uses_builtin_tables(tmp_path, monkeypatch):
    monkeypatch.setenv("TERRA_MIX_DATA_DIR", str(tmp_path / "empty"))
    refresh_reference_data()

    assert len(feeding_stages()) == 7
    assert get_stage("grow").rates[0].ml_per_liter == 1.8
    assert additive_defaults().fulvic_acid_intensity == 50
