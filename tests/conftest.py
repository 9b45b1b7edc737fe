from __future__ import annotations

import numpy as np
import pytest
import soundfile as sf

from loudchecklib.models import AudioTrack
from loudchecklib.transport import PlaybackTransport


class FakeRenderError(Exception):
    pass


class FakeCallbackStop(Exception):
    pass


class FakeStream:
    """Stands in for a sounddevice OutputStream; :meth:`pump` runs one callback."""

    def __init__(self, samplerate, channels, callback, fail_start=False, autoplay=False):
        self.samplerate = samplerate
        self.channels = channels
        self.callback = callback
        self.fail_start = fail_start
        self.autoplay = autoplay
        self.active = False
        self.closed = False
        self.start_calls = 0
        self.stop_calls = 0

    def start(self):
        self.start_calls += 1
        if self.fail_start:
            raise FakeRenderError("device busy")
        self.active = True
        while self.autoplay and self.active:
            self.pump(4096)

    def stop(self):
        self.stop_calls += 1
        self.active = False

    def close(self):
        self.closed = True

    def pump(self, frames=1024):
        """Render one block like the audio thread would.  Returns the block."""
        outdata = np.zeros((frames, self.channels), dtype=np.float32)
        try:
            self.callback(outdata, frames, None, None)
        except FakeCallbackStop:
            self.active = False
        return outdata


class FakeBackend:
    render_errors = (FakeRenderError,)
    callback_stop = FakeCallbackStop

    def __init__(self, fail_open=False, fail_start=False, autoplay=False):
        self.fail_open = fail_open
        self.fail_start = fail_start
        self.autoplay = autoplay
        self.streams: list[FakeStream] = []

    @property
    def stream(self) -> FakeStream:
        return self.streams[-1]

    def open_stream(self, samplerate, channels, callback):
        if self.fail_open:
            raise FakeRenderError("no output device")
        stream = FakeStream(samplerate, channels, callback,
                            fail_start=self.fail_start, autoplay=self.autoplay)
        self.streams.append(stream)
        return stream


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def transport(backend):
    t = PlaybackTransport(backend, poll_interval=None)
    yield t
    t.close()


def make_track(value=0.5, seconds=1.0, samplerate=44100, channels=1, filename="test.wav"):
    frames = int(round(seconds * samplerate))
    data = np.full((frames, channels), value, dtype=np.float64)
    return AudioTrack(samplerate=samplerate, data=data, filename=filename)


@pytest.fixture
def track_factory():
    return make_track


@pytest.fixture
def constant_track():
    return make_track()


@pytest.fixture
def wav_file(tmp_path):
    """Write a WAV file and return its path."""
    def _write(data=None, samplerate=44100, name="tone.wav"):
        if data is None:
            t = np.arange(samplerate) / samplerate
            data = 0.5 * np.sin(2 * np.pi * 440.0 * t)
        path = tmp_path / name
        sf.write(str(path), data, samplerate, subtype="FLOAT")
        return str(path)
    return _write


class Recorder:
    """Collects events delivered by an EventBus."""

    def __init__(self):
        self.events: list[tuple[str, dict]] = []

    def listen(self, bus, *event_types):
        for event_type in event_types:
            bus.subscribe(event_type, lambda _t=event_type, **data: self.events.append((_t, data)))
        return self

    def of(self, event_type):
        return [data for t, data in self.events if t == event_type]


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def backend_factory():
    return FakeBackend
