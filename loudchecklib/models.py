from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple

import numpy as np


class Severity(Enum):
    CLEAN = "clean"
    INFO = "info"
    ATTENTION = "attention"
    PROBLEM = "problem"


class TransportState(Enum):
    IDLE = "idle"
    LOADED = "loaded"
    PLAYING = "playing"
    PAUSED = "paused"


@dataclass(frozen=True, eq=False)
class AudioTrack:
    """Decoded PCM audio, read-only once constructed.

    Attributes:
        samplerate: Sample rate in Hz (> 0).
        data:       Float samples shaped ``(frames, channels)``.  A 1-D
                    array is accepted and treated as mono.  Values are
                    nominally in [-1, 1] but never clamped.
        filename:   Display name of the source file, if any.
        filepath:   Full path of the source file, if any.
    """
    samplerate: int
    data: np.ndarray
    filename: str = ""
    filepath: str = ""

    def __post_init__(self) -> None:
        if int(self.samplerate) != self.samplerate or self.samplerate <= 0:
            raise ValueError(f"samplerate must be a positive integer, got {self.samplerate!r}")
        data = np.array(self.data, dtype=np.float64)
        if data.ndim == 1:
            data = data.reshape(-1, 1)
        if data.ndim != 2 or data.shape[1] < 1:
            raise ValueError(f"audio data must be (frames, channels), got shape {data.shape}")
        if data.shape[0] == 0:
            raise ValueError("audio data contains no frames")
        if not np.all(np.isfinite(data)):
            raise ValueError("audio data contains non-finite samples")
        data.flags.writeable = False
        object.__setattr__(self, "samplerate", int(self.samplerate))
        object.__setattr__(self, "data", data)

    @property
    def channels(self) -> int:
        return int(self.data.shape[1])

    @property
    def frames(self) -> int:
        return int(self.data.shape[0])

    @property
    def duration(self) -> float:
        return self.frames / self.samplerate

    def channel(self, index: int) -> np.ndarray:
        """Return one channel as a read-only 1-D view."""
        return self.data[:, index]


class SeriesPoint(NamedTuple):
    time: float
    value: float


@dataclass(frozen=True)
class AnalysisSummary:
    loudness: float
    peak: float

    @property
    def dynamic_range(self) -> float:
        return self.peak - self.loudness


@dataclass(frozen=True)
class TrackAnalysis:
    """Integrated summary plus the per-window series of one track."""
    summary: AnalysisSummary
    loudness_series: tuple[SeriesPoint, ...]
    peak_series: tuple[SeriesPoint, ...]
    window_samples: int
    loudness_formula: str = "offset"


@dataclass(frozen=True)
class PlatformProfile:
    id: str
    name: str
    target_loudness: float
    target_peak: float | None = None
    guidance: str | None = None


@dataclass(frozen=True)
class NormalizationResult:
    profile_id: str
    gain_db: float
    projected_loudness: float
    projected_peak: float
    limited: bool = False
    policy: str = field(default="peak_safe", compare=False)
