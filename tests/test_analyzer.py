import math

import numpy as np
import pytest

from loudchecklib.analyzer import WindowedLoudnessAnalyzer, analyze_track, window_size
from loudchecklib.config import ConfigError
from loudchecklib.models import AudioTrack


def test_window_size():
    assert window_size(44100) == 4410
    assert window_size(48000) == 4800
    assert window_size(11025) == 1103
    assert window_size(15) == 2
    assert window_size(5) == 1
    assert window_size(8) == 1
    assert window_size(1) == 1


def test_constant_half_scale_track(constant_track):
    analysis = analyze_track(constant_track)
    summary = analysis.summary
    assert summary.peak == pytest.approx(20 * math.log10(0.5), abs=1e-9)
    assert summary.loudness == pytest.approx(-0.691 + 10 * math.log10(0.25), abs=1e-9)
    assert summary.dynamic_range == pytest.approx(0.71, abs=0.01)
    assert len(analysis.loudness_series) == 10
    assert len(analysis.peak_series) == 10
    assert analysis.window_samples == 4410
    assert [p.time for p in analysis.loudness_series] == pytest.approx(
        [i * 0.1 for i in range(10)])
    assert all(p.value == pytest.approx(0.5) for p in analysis.peak_series)


def test_silence_has_finite_floor(track_factory):
    summary = analyze_track(track_factory(value=0.0)).summary
    assert summary.loudness == pytest.approx(-0.691 + 10 * math.log10(1e-12))
    assert summary.peak == pytest.approx(20 * math.log10(1e-12))
    assert math.isfinite(summary.dynamic_range)


def test_full_scale_square_wave():
    sr = 44100
    data = np.where((np.arange(sr) // 50) % 2 == 0, 1.0, -1.0)
    summary = analyze_track(AudioTrack(samplerate=sr, data=data)).summary
    assert summary.peak == pytest.approx(0.0, abs=1e-9)
    assert summary.loudness == pytest.approx(-0.691, abs=1e-9)


def test_plain_formula_omits_offset(constant_track):
    offset = analyze_track(constant_track)
    plain = analyze_track(constant_track, {"loudness_formula": "plain"})
    assert plain.loudness_formula == "plain"
    assert plain.summary.loudness - offset.summary.loudness == pytest.approx(0.691)
    assert plain.summary.peak == offset.summary.peak


def test_unknown_formula_rejected():
    with pytest.raises(ConfigError):
        WindowedLoudnessAnalyzer({"loudness_formula": "bs1770"})


@pytest.mark.parametrize("frames, samplerate", [
    (44100, 44100),
    (44101, 44100),
    (100, 44100),
    (48000 * 3 + 17, 48000),
    (12345, 22050),
    (11025 * 2 + 1, 11025),
])
def test_series_length(frames, samplerate):
    rng = np.random.default_rng(frames)
    data = rng.uniform(-1, 1, frames)
    analysis = analyze_track(AudioTrack(samplerate=samplerate, data=data))
    assert analysis.window_samples == window_size(samplerate)
    assert len(analysis.loudness_series) == math.ceil(frames / window_size(samplerate))
    assert len(analysis.peak_series) == len(analysis.loudness_series)


def test_partial_last_window_uses_its_own_length():
    sr = 100  # window of 10 samples
    data = np.concatenate([np.zeros(10), np.full(5, 1.0)])
    analysis = analyze_track(AudioTrack(samplerate=sr, data=data))
    assert len(analysis.loudness_series) == 2
    last = analysis.loudness_series[-1]
    assert last.time == pytest.approx(0.1)
    # mean square of the 5-sample window is 1.0, not 0.5
    assert last.value == pytest.approx(-0.691, abs=1e-9)


def test_loudness_uses_first_channel_peak_uses_all():
    data = np.zeros((4410, 2))
    data[:, 0] = 0.1
    data[100, 1] = 0.9
    analysis = analyze_track(AudioTrack(samplerate=44100, data=data))
    assert analysis.summary.loudness == pytest.approx(-0.691 + 10 * math.log10(0.01))
    assert analysis.summary.peak == pytest.approx(20 * math.log10(0.9))
    assert analysis.peak_series[0].value == pytest.approx(0.1)


def test_deterministic():
    rng = np.random.default_rng(7)
    track = AudioTrack(samplerate=44100, data=rng.normal(0, 0.2, (30000, 2)))
    first = analyze_track(track)
    second = analyze_track(track)
    assert first.summary == second.summary
    assert first.loudness_series == second.loudness_series
    assert first.peak_series == second.peak_series


def test_window_values_match_direct_computation():
    rng = np.random.default_rng(3)
    sr = 1000
    data = rng.uniform(-0.8, 0.8, 2550)
    analysis = analyze_track(AudioTrack(samplerate=sr, data=data))
    for i, point in enumerate(analysis.loudness_series):
        block = data[i * 100:(i + 1) * 100]
        expected = -0.691 + 10 * math.log10(np.mean(block ** 2) + 1e-12)
        assert point.value == pytest.approx(expected, abs=1e-9)
        assert analysis.peak_series[i].value == pytest.approx(np.max(np.abs(block)))
