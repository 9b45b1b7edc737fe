"""Background worker thread for decoding and analysis."""

from __future__ import annotations

from PySide6.QtCore import QThread, Signal

from loudchecklib.analyzer import WindowedLoudnessAnalyzer
from loudchecklib.audio import DecodeFailure, load_track


class AnalyzeWorker(QThread):
    """Decodes a file and runs the windowed analysis off the main thread.

    The result is handed back as ``(track, analysis)``; the main window
    installs it into the session on the GUI thread.
    """

    progress = Signal(str)
    finished = Signal(object, object)   # (track, analysis)
    error = Signal(str)

    def __init__(self, filepath: str, config: dict):
        super().__init__()
        self.filepath = filepath
        self.config = config

    def run(self):
        try:
            self.progress.emit("Decoding audio…")
            track = load_track(self.filepath)
            self.progress.emit("Analyzing loudness…")
            analysis = WindowedLoudnessAnalyzer(self.config).analyze(track)
        except DecodeFailure as e:
            self.error.emit(str(e))
            return
        self.finished.emit(track, analysis)
