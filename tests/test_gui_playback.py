import pytest

pytest.importorskip("PySide6.QtCore")

from PySide6.QtCore import QCoreApplication  # noqa: E402

from loudcheckgui.playback import PlaybackController  # noqa: E402
from loudchecklib.events import EventBus  # noqa: E402
from loudchecklib.session import LoudnessSession  # noqa: E402
from loudchecklib.transport import PlaybackTransport  # noqa: E402


@pytest.fixture
def controller(backend):
    app = QCoreApplication.instance() or QCoreApplication([])  # noqa: F841
    bus = EventBus()
    transport = PlaybackTransport(backend, event_bus=bus, poll_interval=None)
    session = LoudnessSession(transport=transport, event_bus=bus)
    ctl = PlaybackController(session)
    yield ctl
    ctl.shutdown()


def test_gain_changed_tracks_load_and_selection(controller, constant_track):
    gains = []
    controller.gain_changed.connect(gains.append)
    session = controller._session
    session.load_track(constant_track)
    controller.select_profile("spotify")
    session.load_track(constant_track)
    assert gains == [0.0, pytest.approx(session.gain_for("spotify")), 0.0]


def test_finished_signal_after_seek_past_stream_end(controller, backend, track_factory):
    finished = []
    controller.playback_finished.connect(lambda: finished.append(True))
    session = controller._session
    session.load_track(track_factory(seconds=0.05))
    controller.play()
    while backend.stream.active:
        backend.stream.pump(512)
    controller.seek(0.02)
    while backend.stream.active:
        backend.stream.pump(512)
    controller._on_timer()
    assert finished == [True]
    assert not controller.is_playing
