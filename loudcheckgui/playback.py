"""Qt adapter over the loudchecklib playback transport."""

from __future__ import annotations

from PySide6.QtCore import QObject, QTimer, Signal, Slot

from loudchecklib.models import TransportState
from loudchecklib.session import LoudnessSession
from loudchecklib.transport import TransportError


class PlaybackController(QObject):
    """Drives a session's transport from the Qt event loop.

    The transport is created without its own ticker thread; a QTimer
    calls ``poll()`` instead, so every transport event arrives on the GUI
    thread and can touch widgets directly.

    Signals:
        cursor_updated(float): Position in seconds, ~30 fps while playing.
        state_changed(object): New :class:`TransportState`.
        gain_changed(float): Applied audition gain in dB.
        playback_finished(): Emitted when playback reaches the end.
        error(str): Emitted when the audio output cannot be used.
    """

    cursor_updated = Signal(float)
    state_changed = Signal(object)
    gain_changed = Signal(float)
    playback_finished = Signal()
    error = Signal(str)

    def __init__(self, session: LoudnessSession, parent=None):
        super().__init__(parent)
        self._session = session

        self._timer = QTimer(self)
        self._timer.setInterval(int(session.config.get("position_interval_ms", 30)))
        self._timer.timeout.connect(self._on_timer)

        self._unsubscribers = [
            session.subscribe("transport.position", self._on_position),
            session.subscribe("transport.state", self._on_state),
            session.subscribe("transport.gain", self._on_gain),
            session.subscribe("transport.finished", self._on_finished),
        ]

    @property
    def is_playing(self) -> bool:
        return self._session.state is TransportState.PLAYING

    @property
    def position(self) -> float:
        return self._session.position

    def play(self):
        try:
            self._session.play()
        except TransportError as e:
            self.error.emit(str(e))

    def pause(self):
        try:
            self._session.pause()
        except TransportError as e:
            self.error.emit(str(e))

    def toggle(self):
        if self.is_playing:
            self.pause()
        else:
            self.play()

    def stop(self):
        self._session.stop()

    def seek(self, seconds: float):
        if self._session.track is None:
            return
        try:
            self._session.seek(seconds)
        except TransportError as e:
            self.error.emit(str(e))

    def select_profile(self, profile_id: str):
        """Switch the audible gain; playback keeps running."""
        try:
            self._session.select_profile(profile_id)
        except TransportError as e:
            self.error.emit(str(e))

    def shutdown(self):
        self._timer.stop()
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self._session.close()

    # -- transport events (GUI thread) -------------------------------------

    def _on_position(self, position, duration):
        self.cursor_updated.emit(float(position))

    def _on_state(self, state, previous):
        if state is TransportState.PLAYING:
            self._timer.start()
        else:
            self._timer.stop()
        self.state_changed.emit(state)

    def _on_gain(self, gain_db):
        self.gain_changed.emit(float(gain_db))

    def _on_finished(self):
        self.playback_finished.emit()

    @Slot()
    def _on_timer(self):
        self._session.transport.poll()
