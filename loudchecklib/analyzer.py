"""Windowed loudness / peak analysis.

A single pass over the track produces the integrated summary and two
time series (one point per 100 ms window).  The loudness figure is a
simplified proxy: an offset logarithm of the mean-square sample value.
It is not a BS.1770 measurement (no K-weighting, no gating) and the
arithmetic must stay exactly as implemented here.
"""

from __future__ import annotations

import logging
import math
from typing import Any

import numpy as np

from .audio import LOUDNESS_OFFSETS, loudness_proxy, peak_db
from .config import ConfigError, ParamSpec
from .models import AnalysisSummary, AudioTrack, SeriesPoint, TrackAnalysis

log = logging.getLogger(__name__)

WINDOW_SECONDS = 0.1


def window_size(samplerate: int) -> int:
    """Samples per analysis window for *samplerate*.

    Halves round up (11025 Hz gives 1103), not to even as ``round()`` would.
    """
    return max(1, math.floor(samplerate * WINDOW_SECONDS + 0.5))


class WindowedLoudnessAnalyzer:
    id = "windowed_loudness"
    name = "Windowed Loudness"

    @classmethod
    def config_params(cls) -> list[ParamSpec]:
        return [
            ParamSpec(
                key="loudness_formula", type=str, default="offset",
                choices=list(LOUDNESS_OFFSETS),
                label="Loudness formula",
                description=(
                    "'offset' adds -0.691 dB to the mean-square level to "
                    "approximate integrated loudness calibration. 'plain' "
                    "reports 10·log10 of the mean square without it."
                ),
            ),
        ]

    def __init__(self, config: dict[str, Any] | None = None):
        self.formula = "offset"
        if config:
            self.configure(config)

    def configure(self, config: dict[str, Any]) -> None:
        formula = config.get("loudness_formula", "offset")
        if formula not in LOUDNESS_OFFSETS:
            raise ConfigError(f"Unknown loudness formula: {formula!r}")
        self.formula = formula

    def analyze(self, track: AudioTrack) -> TrackAnalysis:
        """Compute the summary and the loudness/peak series of *track*.

        Loudness and the series are measured on the first channel only;
        the overall peak covers every channel.
        """
        samples = track.channel(0)
        n = samples.size
        win = window_size(track.samplerate)

        squared = samples * samples
        abs_first = np.abs(samples)

        # One window starts at every multiple of win; the last may be partial.
        starts = np.arange(0, n, win)
        counts = np.diff(np.append(starts, n))
        window_ms = np.add.reduceat(squared, starts) / counts
        window_peaks = np.maximum.reduceat(abs_first, starts)
        window_loudness = loudness_proxy(window_ms, self.formula)
        times = starts / track.samplerate

        loudness_series = tuple(
            SeriesPoint(float(t), float(v)) for t, v in zip(times, window_loudness)
        )
        peak_series = tuple(
            SeriesPoint(float(t), float(v)) for t, v in zip(times, window_peaks)
        )

        overall_peak_abs = float(np.max(np.abs(track.data)))
        summary = AnalysisSummary(
            loudness=float(loudness_proxy(float(np.sum(squared)) / n, self.formula)),
            peak=peak_db(overall_peak_abs),
        )
        log.debug("analyzed %s: %d windows of %d samples, loudness %.2f, peak %.2f",
                  track.filename or "<track>", len(loudness_series), win,
                  summary.loudness, summary.peak)
        return TrackAnalysis(
            summary=summary,
            loudness_series=loudness_series,
            peak_series=peak_series,
            window_samples=win,
            loudness_formula=self.formula,
        )


def analyze_track(track: AudioTrack, config: dict[str, Any] | None = None) -> TrackAnalysis:
    """Convenience wrapper: configure an analyzer and run it once."""
    return WindowedLoudnessAnalyzer(config).analyze(track)
