"""Control surface tying analysis, normalization and audition together."""

from __future__ import annotations

import logging
from typing import Any, Callable

from .analyzer import WindowedLoudnessAnalyzer
from .audio import load_track
from .config import default_config, merge_configs, validate_config
from .events import EventBus
from .models import (
    AudioTrack,
    NormalizationResult,
    PlatformProfile,
    TrackAnalysis,
    TransportState,
)
from .normalizer import PlatformNormalizer
from .platforms import ORIGINAL_ID, PLATFORM_PROFILES
from .transport import PlaybackTransport

log = logging.getLogger(__name__)


class LoudnessSession:
    """One loaded track, its analysis, per-platform results and the player.

    Every successful :meth:`load` replaces the track, the analysis and all
    normalization results wholesale; a failed load leaves them untouched.
    """

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        *,
        transport: PlaybackTransport | None = None,
        event_bus: EventBus | None = None,
        profiles: tuple[PlatformProfile, ...] = PLATFORM_PROFILES,
    ):
        self.config = merge_configs(default_config(), config or {})
        validate_config(self.config)
        self.event_bus = event_bus or (transport.event_bus if transport else EventBus())
        self.transport = transport or PlaybackTransport.from_config(
            self.config, event_bus=self.event_bus)
        self.profiles = tuple(profiles)
        self._analyzer = WindowedLoudnessAnalyzer(self.config)
        self._normalizer = PlatformNormalizer(self.config)
        self._track: AudioTrack | None = None
        self._analysis: TrackAnalysis | None = None
        self._results: dict[str, NormalizationResult] = {}
        self._active_profile: str = ORIGINAL_ID

    # -- snapshots ---------------------------------------------------------

    @property
    def track(self) -> AudioTrack | None:
        return self._track

    @property
    def analysis(self) -> TrackAnalysis | None:
        return self._analysis

    @property
    def results(self) -> dict[str, NormalizationResult]:
        return dict(self._results)

    @property
    def active_profile(self) -> str:
        return self._active_profile

    def profile(self, profile_id: str) -> PlatformProfile:
        for p in self.profiles:
            if p.id == profile_id:
                return p
        raise KeyError(f"Unknown platform profile: {profile_id!r}")

    # -- loading -----------------------------------------------------------

    def load(self, filepath: str) -> AudioTrack:
        """Decode, analyze and load *filepath* into the transport.

        Raises :class:`~loudchecklib.audio.DecodeFailure`; the previously
        loaded track stays usable in that case.
        """
        track = load_track(filepath)
        self.load_track(track)
        return track

    def load_track(self, track: AudioTrack, analysis: TrackAnalysis | None = None) -> None:
        """Install an already decoded *track*.

        *analysis* may be passed when it was computed elsewhere (e.g. on a
        worker thread) with the same loudness formula.
        """
        if analysis is None:
            analysis = self._analyzer.analyze(track)
        results = self._normalizer.normalize_all(analysis.summary, self.profiles)
        self._active_profile = ORIGINAL_ID
        self.transport.load(track)
        self._track = track
        self._analysis = analysis
        self._results = results
        log.info("loaded %s: loudness %.1f, peak %.1f dB",
                 track.filename or "<track>", analysis.summary.loudness,
                 analysis.summary.peak)
        self.event_bus.emit("session.loaded", track=track, analysis=analysis)

    # -- audition ----------------------------------------------------------

    def gain_for(self, profile_id: str) -> float:
        if profile_id == ORIGINAL_ID:
            return 0.0
        self.profile(profile_id)
        return self._results[profile_id].gain_db

    def select_profile(self, profile_id: str) -> float:
        """Make *profile_id* (or ``"original"``) the audible gain.

        Live playback keeps running and only the gain changes.  Returns
        the applied gain in dB.
        """
        if self._track is None:
            raise RuntimeError("No track loaded")
        gain = self.gain_for(profile_id)
        if self.transport.state is TransportState.IDLE:
            self.transport.load(self._track)
        self._active_profile = profile_id
        self.transport.set_gain(gain)
        self.event_bus.emit("session.profile_selected",
                            profile_id=profile_id, gain_db=gain)
        return gain

    def audition(self, profile_id: str) -> None:
        """Select *profile_id* and start playing."""
        self.select_profile(profile_id)
        self.transport.play()

    def play(self) -> None:
        if self._track is not None and self.transport.state is TransportState.IDLE:
            self.select_profile(self._active_profile)
        self.transport.play()

    def pause(self) -> None:
        self.transport.pause()

    def seek(self, seconds: float) -> float:
        return self.transport.seek(seconds)

    def stop(self) -> None:
        self.transport.stop()

    @property
    def state(self) -> TransportState:
        return self.transport.state

    @property
    def position(self) -> float:
        return self.transport.position

    @property
    def duration(self) -> float:
        return self._track.duration if self._track is not None else 0.0

    def subscribe(self, event_type: str, handler: Callable[..., Any]) -> Callable[[], None]:
        return self.event_bus.subscribe(event_type, handler)

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> LoudnessSession:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
