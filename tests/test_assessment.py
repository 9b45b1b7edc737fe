import pytest

from loudchecklib.assessment import (
    assess_original_loudness,
    assess_original_peak,
    assess_projected_loudness,
    assess_projected_peak,
    gain_direction,
    meter_fraction,
)
from loudchecklib.models import Severity


@pytest.mark.parametrize("value, expected", [
    (-8.0, Severity.PROBLEM),
    (-12.0, Severity.ATTENTION),
    (-14.0, Severity.CLEAN),
    (-18.0, Severity.CLEAN),
    (-25.0, Severity.INFO),
    (float("nan"), None),
])
def test_original_loudness(value, expected):
    assert assess_original_loudness(value) is expected


@pytest.mark.parametrize("value, expected", [
    (-0.1, Severity.PROBLEM),
    (-1.5, Severity.ATTENTION),
    (-6.0, Severity.CLEAN),
    (float("-inf"), None),
])
def test_original_peak(value, expected):
    assert assess_original_peak(value) is expected


@pytest.mark.parametrize("value, expected", [
    (-14.2, Severity.CLEAN),
    (-13.0, Severity.ATTENTION),
    (-12.0, Severity.PROBLEM),
    (-16.0, Severity.INFO),
])
def test_projected_loudness(value, expected):
    assert assess_projected_loudness(value, -14.0) is expected


def test_projected_peak():
    assert assess_projected_peak(-0.5, -1.0) is Severity.PROBLEM
    assert assess_projected_peak(-1.2, -1.0) is Severity.ATTENTION
    assert assess_projected_peak(-3.0, -1.0) is Severity.CLEAN
    assert assess_projected_peak(2.0, None) is Severity.CLEAN


def test_gain_direction():
    assert gain_direction(3.0) == "boost"
    assert gain_direction(-3.0) == "cut"
    assert gain_direction(0.05) == "unchanged"
    assert gain_direction(-0.1) == "unchanged"


def test_meter_fraction():
    assert meter_fraction(-20.0, -40.0, 0.0) == pytest.approx(0.5)
    assert meter_fraction(-80.0, -40.0, 0.0) == 0.0
    assert meter_fraction(3.0, -40.0, 0.0) == 1.0
    assert meter_fraction(float("nan"), -40.0, 0.0) == 0.0
