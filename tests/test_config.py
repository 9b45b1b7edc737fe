import json

import pytest

from loudchecklib.config import (
    ConfigError,
    default_config,
    load_preset,
    merge_configs,
    save_preset,
    validate_config,
    validate_config_fields,
)


def test_defaults():
    config = default_config()
    assert config == {
        "loudness_formula": "offset",
        "normalization_policy": "peak_safe",
        "gain_smoothing_ms": 10.0,
        "position_interval_ms": 30,
        "output_device": None,
    }
    validate_config(config)


def test_merge_none_does_not_override():
    merged = merge_configs(default_config(), {"loudness_formula": None,
                                              "normalization_policy": "loudness_only"})
    assert merged["loudness_formula"] == "offset"
    assert merged["normalization_policy"] == "loudness_only"


@pytest.mark.parametrize("key, value", [
    ("loudness_formula", "bs1770"),
    ("normalization_policy", "clip"),
    ("gain_smoothing_ms", 0.0),
    ("gain_smoothing_ms", 5000),
    ("position_interval_ms", 0),
    ("position_interval_ms", 2.5),
    ("position_interval_ms", True),
    ("loudness_formula", None),
    ("output_device", 1.5),
])
def test_invalid_values(key, value):
    config = default_config()
    config[key] = value
    errors = validate_config_fields(config)
    assert [e.key for e in errors] == [key]
    with pytest.raises(ConfigError):
        validate_config(config)


def test_valid_overrides():
    config = merge_configs(default_config(), {
        "gain_smoothing_ms": 50,
        "output_device": "pulse",
        "loudness_formula": "plain",
    })
    assert validate_config_fields(config) == []


def test_preset_round_trip_skips_defaults(tmp_path):
    path = tmp_path / "presets" / "mine.json"
    config = merge_configs(default_config(), {
        "normalization_policy": "loudness_only",
        "json": "out.json",
    })
    save_preset(config, str(path), description="test")
    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw["_description"] == "test"
    assert "json" not in raw
    assert "loudness_formula" not in raw
    assert load_preset(str(path)) == {"normalization_policy": "loudness_only"}


def test_load_preset_errors(tmp_path):
    with pytest.raises(ConfigError):
        load_preset(str(tmp_path / "missing.json"))
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_preset(str(bad))
    arr = tmp_path / "list.json"
    arr.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_preset(str(arr))
