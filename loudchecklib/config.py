from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any

PRESET_SCHEMA_VERSION = "1.0"

# Keys that are CLI-only and should not be saved in presets
_INTERNAL_KEYS = {"json", "report", "play", "series"}


class ConfigError(Exception):
    """Raised when configuration validation fails."""
    pass


@dataclass
class ConfigFieldError:
    """A single validation error for one configuration field.

    Attributes:
        key:     The config key that failed validation.
        value:   The offending value.
        message: Human-readable explanation of what is wrong.
    """
    key: str
    value: Any
    message: str


@dataclass(frozen=True)
class ParamSpec:
    """Declarative specification for a single configuration parameter.

    Used by the analyzer, the normalizer and the playback section to
    describe their parameters: type, default, valid range, allowed values
    and human-readable labels.
    """
    key: str
    type: type | tuple              # expected Python type(s)
    default: Any
    label: str                       # short UI label
    description: str = ""            # longer tooltip / help text
    min: float | int | None = None   # inclusive lower bound (unless min_exclusive)
    max: float | int | None = None   # inclusive upper bound (unless max_exclusive)
    min_exclusive: bool = False
    max_exclusive: bool = False
    choices: list | None = None      # allowed string values
    nullable: bool = False           # True if None is valid


# ---------------------------------------------------------------------------
# Shared parameter sections
# ---------------------------------------------------------------------------

PLAYBACK_PARAMS: list[ParamSpec] = [
    ParamSpec(
        key="gain_smoothing_ms", type=(int, float), default=10.0,
        min=0.0, max=1000.0, min_exclusive=True,
        label="Gain smoothing (ms)",
        description=(
            "Time constant of the exponential ramp used when the audition "
            "gain changes during playback. Short values react faster, "
            "values near zero can click."
        ),
    ),
    ParamSpec(
        key="position_interval_ms", type=int, default=30, min=1, max=1000,
        label="Position update interval (ms)",
        description="How often position updates are delivered while playing.",
    ),
    ParamSpec(
        key="output_device", type=(int, str), default=None, nullable=True,
        label="Output device",
        description="sounddevice output device index or name. Empty uses the system default.",
    ),
]


def default_config() -> dict[str, Any]:
    """Returns the built-in default configuration."""
    config: dict[str, Any] = {}
    for spec in _all_param_specs():
        config[spec.key] = spec.default
    return config


def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
    """
    Merge multiple config dicts left-to-right.
    Later values override earlier ones.  ``None`` never overrides a
    value that is already set, so unset CLI options can be merged as-is.
    """
    result: dict[str, Any] = {}
    for cfg in configs:
        for k, v in cfg.items():
            if v is None and k in result:
                continue
            result[k] = v
    return result


def load_preset(path: str) -> dict[str, Any]:
    """
    Load a JSON preset file. Returns a partial config dict.
    Raises ConfigError if the file cannot be read or parsed.
    """
    if not os.path.isfile(path):
        raise ConfigError(f"Preset file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in preset file {path}: {e}")
    except OSError as e:
        raise ConfigError(f"Cannot read preset file {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"Preset file must contain a JSON object, got {type(data).__name__}")

    return {k: v for k, v in data.items() if k not in ("schema_version", "_description")}


def save_preset(config: dict[str, Any], path: str, *, description: str | None = None) -> None:
    """
    Save a config dict as a JSON preset file.
    CLI-only keys and values equal to the defaults are left out.
    """
    preset: dict[str, Any] = {"schema_version": PRESET_SCHEMA_VERSION}
    if description:
        preset["_description"] = description

    defaults = default_config()
    for k, v in config.items():
        if k in _INTERNAL_KEYS or k.startswith("_"):
            continue
        if k in defaults and defaults[k] == v:
            continue
        preset[k] = v

    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(preset, f, indent=4, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Validation  (ParamSpec-driven)
# ---------------------------------------------------------------------------

def validate_param_values(
    params: list[ParamSpec],
    values: dict[str, Any],
) -> list[ConfigFieldError]:
    """Validate *values* against a list of :class:`ParamSpec` definitions.

    Returns a (possibly empty) list of :class:`ConfigFieldError` objects.
    Only keys present in *values* are checked.
    """
    errors: list[ConfigFieldError] = []

    for spec in params:
        if spec.key not in values:
            continue

        value = values[spec.key]

        if value is None:
            if not spec.nullable:
                errors.append(ConfigFieldError(
                    spec.key, value, f"{spec.label} must not be empty."))
            continue

        # bool is an int subclass; only accept it where bool is expected
        expected = spec.type
        if expected is not bool and isinstance(value, bool):
            errors.append(ConfigFieldError(
                spec.key, value,
                f"{spec.label} must be {_type_label(expected)}, got boolean."))
            continue
        if not isinstance(value, expected):
            errors.append(ConfigFieldError(
                spec.key, value,
                f"{spec.label} must be {_type_label(expected)}, "
                f"got {type(value).__name__}."))
            continue

        if spec.choices is not None and value not in spec.choices:
            opts = ", ".join(repr(c) for c in spec.choices)
            errors.append(ConfigFieldError(
                spec.key, value, f"{spec.label} must be one of {opts}."))
            continue

        if isinstance(value, (int, float)):
            msg = _range_error(spec, value)
            if msg:
                errors.append(ConfigFieldError(spec.key, value, msg))

    return errors


def _range_error(spec: ParamSpec, value: float) -> str | None:
    if spec.min is not None:
        if spec.min_exclusive and value <= spec.min:
            return f"{spec.label} must be greater than {spec.min}."
        if not spec.min_exclusive and value < spec.min:
            return f"{spec.label} must be at least {spec.min}."
    if spec.max is not None:
        if spec.max_exclusive and value >= spec.max:
            return f"{spec.label} must be less than {spec.max}."
        if not spec.max_exclusive and value > spec.max:
            return f"{spec.label} must be at most {spec.max}."
    return None


def _all_param_specs() -> list[ParamSpec]:
    """Collect every :class:`ParamSpec` from the analyzer, the normalizer
    and the playback section."""
    from .analyzer import WindowedLoudnessAnalyzer
    from .normalizer import PlatformNormalizer

    specs = list(WindowedLoudnessAnalyzer.config_params())
    specs.extend(PlatformNormalizer.config_params())
    specs.extend(PLAYBACK_PARAMS)
    return specs


def validate_config_fields(config: dict[str, Any]) -> list[ConfigFieldError]:
    """Validate a flat config dict against all known :class:`ParamSpec`
    definitions.  Returns structured errors.  Never raises."""
    return validate_param_values(_all_param_specs(), config)


def validate_config(config: dict[str, Any]) -> None:
    """Validate a flat config dict.

    Raises :class:`ConfigError` listing every invalid field.
    """
    errors = validate_config_fields(config)
    if errors:
        lines = [e.message for e in errors]
        raise ConfigError(
            "Configuration has invalid values:\n  • " + "\n  • ".join(lines)
        )


def _type_label(t) -> str:
    """Human-readable label for an expected type or tuple of types."""
    if isinstance(t, tuple):
        return " or ".join(x.__name__ for x in t)
    return t.__name__
