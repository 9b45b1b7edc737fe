from __future__ import annotations

import logging
import math
import os

import numpy as np
import soundfile as sf

from .models import AudioTrack

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Conversion helpers
# ---------------------------------------------------------------------------

EPSILON = 1e-12  # log10 floor for silence, not a calibration constant

LOUDNESS_OFFSETS = {
    "offset": -0.691,
    "plain": 0.0,
}


def db_to_linear(db: float) -> float:
    return 10 ** (db / 20.0)


def loudness_offset(formula: str) -> float:
    """Return the dB offset added by the named loudness formula."""
    try:
        return LOUDNESS_OFFSETS[formula]
    except KeyError:
        opts = ", ".join(repr(k) for k in LOUDNESS_OFFSETS)
        raise ValueError(f"unknown loudness formula {formula!r} (expected one of {opts})") from None


def loudness_proxy(mean_square, formula: str = "offset"):
    """Offset log of mean-square energy.

    Accepts a scalar or a numpy array.  Silence maps to a large negative
    finite value because of the ``EPSILON`` floor.
    """
    offset = loudness_offset(formula)
    if isinstance(mean_square, np.ndarray):
        return offset + 10.0 * np.log10(mean_square + EPSILON)
    return offset + 10.0 * math.log10(mean_square + EPSILON)


def peak_db(peak_abs: float) -> float:
    """Sample peak in dB with the same silence floor as the loudness proxy."""
    return 20.0 * math.log10(peak_abs + EPSILON)


def format_duration(seconds: float) -> str:
    if not math.isfinite(seconds) or seconds < 0:
        return "0:00.000"
    m = int(seconds // 60)
    s = int(seconds % 60)
    ms = int(round((seconds % 1) * 1000))
    if ms == 1000:
        s, ms = s + 1, 0
        if s == 60:
            m, s = m + 1, 0
    return f"{m}:{s:02d}.{ms:03d}"


# ---------------------------------------------------------------------------
# File I/O
# ---------------------------------------------------------------------------

AUDIO_EXTENSIONS = (".wav", ".aif", ".aiff", ".flac", ".ogg", ".mp3")


class DecodeFailure(Exception):
    """Raised when an audio file cannot be decoded into an AudioTrack."""

    def __init__(self, filepath: str, reason: str):
        super().__init__(f"Cannot decode {os.path.basename(filepath) or filepath}: {reason}")
        self.filepath = filepath
        self.reason = reason


def load_track(filepath: str) -> AudioTrack:
    """Decode an audio file into an :class:`AudioTrack`.

    Raises :class:`DecodeFailure` for missing, unreadable, empty or
    corrupt files.
    """
    if not os.path.isfile(filepath):
        raise DecodeFailure(filepath, "file not found")
    try:
        data, samplerate = sf.read(filepath, dtype="float64", always_2d=True)
    except (sf.SoundFileError, RuntimeError, OSError) as e:
        raise DecodeFailure(filepath, str(e) or type(e).__name__) from e

    if data.shape[0] == 0:
        raise DecodeFailure(filepath, "file contains no audio frames")
    try:
        track = AudioTrack(
            samplerate=samplerate,
            data=data,
            filename=os.path.basename(filepath),
            filepath=filepath,
        )
    except ValueError as e:
        raise DecodeFailure(filepath, str(e)) from e

    log.debug("decoded %s: %d frames, %d ch @ %d Hz",
              track.filename, track.frames, track.channels, track.samplerate)
    return track
