"""Meter ratings for loudness, peak and gain figures.

Thresholds follow the colour coding of the loudness meters: the original
track is rated against common mastering levels, projected figures
against the platform's own targets.  Non-finite values are not rated
(``None``).
"""

from __future__ import annotations

import math

from .models import Severity

GAIN_DEADBAND_DB = 0.1


def assess_original_loudness(value: float) -> Severity | None:
    if not math.isfinite(value):
        return None
    if value > -10.0:
        return Severity.PROBLEM
    if value > -13.0:
        return Severity.ATTENTION
    if value < -18.0:
        return Severity.INFO
    return Severity.CLEAN


def assess_original_peak(value: float) -> Severity | None:
    if not math.isfinite(value):
        return None
    if value > -1.0:
        return Severity.PROBLEM
    if value > -2.0:
        return Severity.ATTENTION
    return Severity.CLEAN


def assess_projected_loudness(value: float, target: float) -> Severity | None:
    if not math.isfinite(value):
        return None
    if abs(value - target) < 0.5:
        return Severity.CLEAN
    if value > target + 1.5:
        return Severity.PROBLEM
    if value > target:
        return Severity.ATTENTION
    return Severity.INFO


def assess_projected_peak(value: float, ceiling: float | None) -> Severity | None:
    if not math.isfinite(value):
        return None
    if ceiling is None:
        return Severity.CLEAN
    if value > ceiling:
        return Severity.PROBLEM
    if value > ceiling - 0.5:
        return Severity.ATTENTION
    return Severity.CLEAN


def gain_direction(gain_db: float) -> str:
    """``"boost"``, ``"cut"`` or ``"unchanged"`` (within ±0.1 dB)."""
    if gain_db > GAIN_DEADBAND_DB:
        return "boost"
    if gain_db < -GAIN_DEADBAND_DB:
        return "cut"
    return "unchanged"


def meter_fraction(value: float, lo: float, hi: float) -> float:
    """Position of *value* on a meter spanning [lo, hi], clamped to [0, 1]."""
    if not math.isfinite(value) or hi <= lo:
        return 0.0
    return min(1.0, max(0.0, (value - lo) / (hi - lo)))
