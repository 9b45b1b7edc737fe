"""Audition transport: one sounddevice output stream with a smoothed gain stage.

The transport owns at most one rendering graph (sample buffer, read
cursor, gain stage and output stream).  Loading a track or stopping
tears the current graph down before anything new is built.

Control actions (load/play/pause/seek/set_gain/stop) are serialized
behind one re-entrant lock.  The audio callback only touches the graph's
cursor and gain under the graph's own short lock, so stopping a stream
never has to wait for the control lock.
"""

from __future__ import annotations

import logging
import math
import threading
from typing import Any, Callable

import numpy as np

from .audio import db_to_linear
from .events import EventBus
from .models import AudioTrack, TransportState

log = logging.getLogger(__name__)


class TransportError(Exception):
    """Base class for playback transport failures."""


class RenderingUnavailable(TransportError):
    """The audio output could not be opened or started.  Safe to retry."""


class InvalidTransportState(TransportError):
    """The requested operation is not valid in the current state."""

    def __init__(self, operation: str, state: TransportState):
        super().__init__(f"Cannot {operation} while the transport is {state.value}")
        self.operation = operation
        self.state = state


# ---------------------------------------------------------------------------
# Audio backend
# ---------------------------------------------------------------------------

class SoundDeviceBackend:
    """Opens ``sounddevice`` output streams.

    sounddevice is imported here rather than at module level because the
    import itself needs the PortAudio shared library; without it the
    transport reports :class:`RenderingUnavailable` instead of breaking
    every importer of the library.
    """

    def __init__(self, device: int | str | None = None):
        try:
            import sounddevice as sd
        except (ImportError, OSError) as e:
            raise RenderingUnavailable(f"sounddevice is not available: {e}") from e
        self._sd = sd
        self.device = device
        # sounddevice raises ValueError for unknown device names/indices
        self.render_errors: tuple[type[BaseException], ...] = (sd.PortAudioError, ValueError)
        self.callback_stop: type[BaseException] = sd.CallbackStop

    def open_stream(self, samplerate: int, channels: int, callback: Callable[..., None]):
        return self._sd.OutputStream(
            samplerate=samplerate,
            channels=channels,
            dtype="float32",
            callback=callback,
            device=self.device,
        )


def _playback_frames(track: AudioTrack) -> np.ndarray:
    """Float32 ``(frames, channels)`` buffer for the output device.

    More than two channels are folded to stereo: even channels to the
    left, odd channels to the right.
    """
    audio = track.data
    if audio.shape[1] > 2:
        n = audio.shape[1]
        left = audio[:, 0::2].sum(axis=1) / max(1, (n + 1) // 2)
        right = audio[:, 1::2].sum(axis=1) / max(1, n // 2)
        audio = np.column_stack([left, right])
    return np.ascontiguousarray(audio, dtype=np.float32)


# ---------------------------------------------------------------------------
# Render graph
# ---------------------------------------------------------------------------

class _RenderGraph:
    """Per-track render state shared between control and audio threads."""

    def __init__(self, track: AudioTrack, smoothing_ms: float):
        self.track = track
        self.buffer = _playback_frames(track)
        self.samplerate = track.samplerate
        self.total = self.buffer.shape[0]
        self.cursor = 0
        self.gain = 1.0          # gain applied to the last rendered frame
        self.gain_target = 1.0
        self.coeff = math.exp(-1.0 / (smoothing_ms / 1000.0 * track.samplerate))
        self.ended = False
        self.stream: Any = None
        self.lock = threading.Lock()

    @property
    def channels(self) -> int:
        return int(self.buffer.shape[1])

    @property
    def position(self) -> float:
        with self.lock:
            return self.cursor / self.samplerate

    def render(self, outdata: np.ndarray, frames: int) -> bool:
        """Fill *outdata* from the cursor.  Returns True once the end is reached."""
        with self.lock:
            start = self.cursor
            end = min(start + frames, self.total)
            n = end - start
            if n > 0:
                ramp = self._gain_ramp(n)
                outdata[:n] = self.buffer[start:end] * ramp[:, np.newaxis]
            outdata[n:] = 0
            self.cursor = end
            if end >= self.total:
                self.ended = True
            return self.ended

    def _gain_ramp(self, n: int) -> np.ndarray:
        """Per-frame gain approaching the target exponentially."""
        target = self.gain_target
        if self.gain == target:
            return np.full(n, target, dtype=np.float32)
        ramp = target + (self.gain - target) * self.coeff ** np.arange(1, n + 1)
        last = float(ramp[-1])
        if abs(last - target) <= 1e-6 * max(1.0, abs(target)):
            last = target
        self.gain = last
        return ramp.astype(np.float32)


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------

class PlaybackTransport:
    """Play/pause/seek/stop over one track with a live, smoothed gain.

    Events (via :attr:`event_bus`):
        transport.state(state, previous)
        transport.position(position, duration)
        transport.gain(gain_db)
        transport.finished()

    With a ``poll_interval`` (seconds) a background thread calls
    :meth:`poll` while playing.  Pass ``None`` when a host event loop
    (e.g. a Qt timer) calls :meth:`poll` itself.
    """

    def __init__(
        self,
        backend: Any = None,
        *,
        event_bus: EventBus | None = None,
        smoothing_ms: float = 10.0,
        poll_interval: float | None = 0.03,
        device: int | str | None = None,
    ):
        smoothing_ms = float(smoothing_ms)
        if not math.isfinite(smoothing_ms) or smoothing_ms <= 0:
            raise ValueError(f"smoothing_ms must be a positive number, got {smoothing_ms!r}")
        self.event_bus = event_bus or EventBus()
        self.smoothing_ms = smoothing_ms
        self.poll_interval = poll_interval
        self._backend = backend
        self._device = device
        self._lock = threading.RLock()
        self._state = TransportState.IDLE
        self._graph: _RenderGraph | None = None
        self._gain_db = 0.0
        self._ticker: threading.Thread | None = None
        self._ticker_stop: threading.Event | None = None

    @classmethod
    def from_config(cls, config: dict[str, Any], backend: Any = None, *,
                    event_bus: EventBus | None = None,
                    poll: bool = True) -> PlaybackTransport:
        interval = config.get("position_interval_ms", 30) / 1000.0
        return cls(
            backend,
            event_bus=event_bus,
            smoothing_ms=config.get("gain_smoothing_ms", 10.0),
            poll_interval=interval if poll else None,
            device=config.get("output_device"),
        )

    # -- read accessors ----------------------------------------------------

    @property
    def state(self) -> TransportState:
        return self._state

    @property
    def is_playing(self) -> bool:
        return self._state is TransportState.PLAYING

    @property
    def track(self) -> AudioTrack | None:
        graph = self._graph
        return graph.track if graph is not None else None

    @property
    def duration(self) -> float:
        graph = self._graph
        return graph.track.duration if graph is not None else 0.0

    @property
    def position(self) -> float:
        graph = self._graph
        return graph.position if graph is not None else 0.0

    @property
    def gain_db(self) -> float:
        return self._gain_db

    def subscribe(self, event_type: str, handler: Callable[..., Any]) -> Callable[[], None]:
        return self.event_bus.subscribe(event_type, handler)

    def unsubscribe(self, event_type: str, handler: Callable[..., Any]) -> None:
        self.event_bus.unsubscribe(event_type, handler)

    # -- control -----------------------------------------------------------

    def load(self, track: AudioTrack) -> None:
        """Replace whatever is loaded with *track*, at 0 dB, position 0."""
        with self._lock:
            ticker = self._teardown_locked()
            self._graph = _RenderGraph(track, self.smoothing_ms)
            self._gain_db = 0.0
            self._set_state(TransportState.LOADED)
            self.event_bus.emit("transport.gain", gain_db=0.0)
            self._emit_position()
        self._join(ticker)
        log.debug("loaded %s (%.2fs)", track.filename or "<track>", track.duration)

    def play(self) -> None:
        """Start or resume rendering from the current position.

        Raises :class:`RenderingUnavailable` if the output cannot be opened
        or started; the state is left unchanged in that case.
        """
        with self._lock:
            if self._state is TransportState.PLAYING:
                return
            graph = self._require_graph("play")
            backend = self._get_backend()
            with graph.lock:
                if graph.cursor >= graph.total:
                    graph.cursor = 0
                graph.ended = False
            try:
                if graph.stream is None:
                    graph.stream = backend.open_stream(
                        graph.samplerate, graph.channels,
                        self._make_callback(graph, backend.callback_stop),
                    )
                graph.stream.start()
            except backend.render_errors as e:
                self._release_stream(graph)
                raise RenderingUnavailable(f"Audio output unavailable: {e}") from e
            self._set_state(TransportState.PLAYING)
            self._start_ticker_locked()

    def pause(self) -> None:
        """Halt rendering, keeping the position."""
        with self._lock:
            if self._state is TransportState.IDLE:
                raise InvalidTransportState("pause", self._state)
            if self._state is not TransportState.PLAYING:
                return
            graph = self._graph
            if graph.stream is not None:
                self._quietly(graph.stream.stop, "stopping output stream")
            ticker = self._detach_ticker_locked()
            self._set_state(TransportState.PAUSED)
            self._emit_position()
        self._join(ticker)

    def seek(self, seconds: float) -> float:
        """Move the play position, clamped to [0, duration].

        Returns the clamped position.  Rendering continues from there if
        the transport is playing, restarting a stream that already ran
        off the end but has not been polled yet.
        """
        with self._lock:
            graph = self._require_graph("seek")
            seconds = float(seconds)
            if math.isnan(seconds):
                seconds = 0.0
            seconds = min(max(seconds, 0.0), graph.track.duration)
            frame = min(int(round(seconds * graph.samplerate)), graph.total)
            with graph.lock:
                ran_out = graph.ended
                graph.cursor = frame
                graph.ended = False
            if ran_out and self._state is TransportState.PLAYING:
                self._restart_stream_locked(graph)
            self._emit_position()
            return frame / graph.samplerate

    def set_gain(self, gain_db: float) -> None:
        """Apply *gain_db* to the gain stage without touching play state."""
        with self._lock:
            graph = self._require_graph("set gain")
            gain_db = float(gain_db)
            if not math.isfinite(gain_db):
                log.warning("non-finite gain %r replaced by 0 dB", gain_db)
                gain_db = 0.0
            linear = db_to_linear(gain_db)
            with graph.lock:
                graph.gain_target = linear
                if self._state is not TransportState.PLAYING:
                    graph.gain = linear
            self._gain_db = gain_db
            self.event_bus.emit("transport.gain", gain_db=gain_db)

    def stop(self) -> None:
        """Halt and release the rendering graph.  Safe to call repeatedly."""
        with self._lock:
            ticker = self._teardown_locked()
            self._gain_db = 0.0
            self._set_state(TransportState.IDLE)
        self._join(ticker)

    def close(self) -> None:
        self.stop()

    def __enter__(self) -> PlaybackTransport:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def poll(self) -> None:
        """Deliver a position update and finish playback at end of track.

        Runs on the control timeline: from the ticker thread or from the
        host's event loop.
        """
        ticker = None
        with self._lock:
            graph = self._graph
            if graph is None or self._state is not TransportState.PLAYING:
                return
            if graph.ended:
                if graph.stream is not None:
                    self._quietly(graph.stream.stop, "stopping finished stream")
                with graph.lock:
                    graph.cursor = 0
                    graph.ended = False
                ticker = self._detach_ticker_locked()
                self._set_state(TransportState.LOADED)
                self.event_bus.emit("transport.finished")
            self._emit_position()
        self._join(ticker)

    # -- internals ---------------------------------------------------------

    def _get_backend(self):
        if self._backend is None:
            self._backend = SoundDeviceBackend(self._device)
        return self._backend

    def _require_graph(self, operation: str) -> _RenderGraph:
        if self._graph is None:
            raise InvalidTransportState(operation, self._state)
        return self._graph

    @staticmethod
    def _make_callback(graph: _RenderGraph, callback_stop: type[BaseException]):
        def callback(outdata, frames, time_info, status):
            if graph.render(outdata, frames):
                raise callback_stop()
        return callback

    def _teardown_locked(self) -> threading.Thread | None:
        ticker = self._detach_ticker_locked()
        graph, self._graph = self._graph, None
        if graph is not None:
            self._release_stream(graph)
        return ticker

    def _restart_stream_locked(self, graph: _RenderGraph) -> None:
        # the callback raised CallbackStop; the stream must be stopped
        # before it can be started again
        backend = self._get_backend()
        self._quietly(graph.stream.stop, "stopping finished stream")
        try:
            graph.stream.start()
        except backend.render_errors as e:
            self._release_stream(graph)
            self._detach_ticker_locked()
            self._set_state(TransportState.PAUSED)
            raise RenderingUnavailable(f"Audio output unavailable: {e}") from e

    def _release_stream(self, graph: _RenderGraph) -> None:
        stream, graph.stream = graph.stream, None
        if stream is None:
            return
        self._quietly(stream.stop, "stopping output stream")
        self._quietly(stream.close, "closing output stream")

    def _quietly(self, action: Callable[[], Any], what: str) -> None:
        errors = self._backend.render_errors if self._backend is not None else ()
        try:
            action()
        except errors as e:
            log.warning("error %s: %s", what, e)

    def _start_ticker_locked(self) -> None:
        if self.poll_interval is None or self._ticker is not None:
            return
        stop = threading.Event()
        thread = threading.Thread(
            target=self._tick, args=(stop,),
            name="loudcheck-transport", daemon=True,
        )
        self._ticker, self._ticker_stop = thread, stop
        thread.start()

    def _tick(self, stop: threading.Event) -> None:
        while not stop.wait(self.poll_interval):
            self.poll()

    def _detach_ticker_locked(self) -> threading.Thread | None:
        thread, stop = self._ticker, self._ticker_stop
        self._ticker = self._ticker_stop = None
        if stop is not None:
            stop.set()
        return thread

    @staticmethod
    def _join(thread: threading.Thread | None) -> None:
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=1.0)

    def _set_state(self, state: TransportState) -> None:
        previous = self._state
        if previous is state:
            return
        self._state = state
        log.debug("transport %s -> %s", previous.value, state.value)
        self.event_bus.emit("transport.state", state=state, previous=previous)

    def _emit_position(self) -> None:
        self.event_bus.emit("transport.position",
                            position=self.position, duration=self.duration)
