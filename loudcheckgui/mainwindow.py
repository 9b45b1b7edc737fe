"""Main application window for the LoudCheck GUI."""

from __future__ import annotations

import os
import sys
import time

from PySide6.QtCore import Qt, Slot
from PySide6.QtGui import QAction, QColor, QKeySequence, QShortcut
from PySide6.QtWidgets import (
    QAbstractItemView,
    QApplication,
    QFileDialog,
    QGridLayout,
    QGroupBox,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QMainWindow,
    QMessageBox,
    QProgressBar,
    QPushButton,
    QStatusBar,
    QTableWidget,
    QTableWidgetItem,
    QToolBar,
    QVBoxLayout,
    QWidget,
)

from loudchecklib import __version__
from loudchecklib.assessment import (
    assess_original_loudness,
    assess_original_peak,
    assess_projected_loudness,
    assess_projected_peak,
    gain_direction,
    meter_fraction,
)
from loudchecklib.audio import AUDIO_EXTENSIONS, format_duration
from loudchecklib.config import default_config
from loudchecklib.events import EventBus
from loudchecklib.models import TransportState
from loudchecklib.platforms import ORIGINAL_ID
from loudchecklib.reports import build_report, generate_report, save_json
from loudchecklib.session import LoudnessSession
from loudchecklib.transport import PlaybackTransport

from .chart import SeriesChart
from .log import configure_logging, dbg
from .playback import PlaybackController
from .theme import (
    COLORS, GAIN_COLORS, SEVERITY_COLORS, apply_dark_theme, meter_stylesheet,
)
from .worker import AnalyzeWorker

_COLUMNS = ("Platform", "Target", "Gain", "Loudness", "Peak", "Limited")


def _fmt_db(value: float, unit: str = "dB", signed: bool = False) -> str:
    if value != value or value in (float("inf"), float("-inf")):
        return "N/A"
    return f"{value:+.1f} {unit}" if signed else f"{value:.1f} {unit}"


class LoudCheckWindow(QMainWindow):
    def __init__(self, config: dict | None = None):
        t_init = time.perf_counter()
        super().__init__()
        self.setWindowTitle("LoudCheck")
        self.resize(1100, 760)

        self._config = dict(config or default_config())
        bus = EventBus()
        transport = PlaybackTransport.from_config(
            self._config, event_bus=bus, poll=False)
        self._session = LoudnessSession(
            self._config, transport=transport, event_bus=bus)
        self._worker: AnalyzeWorker | None = None

        self._playback = PlaybackController(self._session, self)
        self._playback.cursor_updated.connect(self._on_cursor_updated)
        self._playback.state_changed.connect(self._on_state_changed)
        self._playback.gain_changed.connect(self._on_gain_changed)
        self._playback.playback_finished.connect(self._on_playback_finished)
        self._playback.error.connect(self._on_playback_error)

        self._init_ui()
        apply_dark_theme(self)

        # Spacebar toggles play/pause
        self._space_shortcut = QShortcut(QKeySequence(Qt.Key_Space), self)
        self._space_shortcut.activated.connect(self._on_toggle_play)

        dbg(f"LoudCheckWindow.__init__ total: "
            f"{(time.perf_counter() - t_init) * 1000:.1f} ms")

    # ── UI setup ──────────────────────────────────────────────────────────

    def _init_ui(self):
        toolbar = QToolBar("Main")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        open_action = QAction("Open…", self)
        open_action.setShortcut(QKeySequence.Open)
        open_action.triggered.connect(self._on_open)
        toolbar.addAction(open_action)

        self._report_action = QAction("Save Report…", self)
        self._report_action.setEnabled(False)
        self._report_action.triggered.connect(self._on_save_report)
        toolbar.addAction(self._report_action)

        about_action = QAction("About", self)
        about_action.triggered.connect(self._on_about)
        toolbar.addAction(about_action)

        central = QWidget()
        layout = QVBoxLayout(central)
        layout.addWidget(self._build_summary())
        layout.addWidget(self._build_platform_table(), 1)

        self._chart = SeriesChart()
        self._chart.position_clicked.connect(self._on_chart_seek)
        layout.addWidget(self._chart, 1)
        layout.addLayout(self._build_transport())

        note = QLabel("Loudness is RMS-based and peak is sample peak; both are "
                      "simplified, not standard-compliant measurements.")
        note.setStyleSheet(f"color: {COLORS['dim']};")
        layout.addWidget(note)

        self.setCentralWidget(central)
        self._status_bar = QStatusBar()
        self.setStatusBar(self._status_bar)
        self._status_bar.showMessage("Open an audio file to begin.")

    def _build_summary(self) -> QGroupBox:
        box = QGroupBox("Original Track")
        grid = QGridLayout(box)
        self._info_label = QLabel("No track loaded")
        grid.addWidget(self._info_label, 0, 0, 1, 3)

        self._loudness_meter = self._make_meter()
        self._loudness_label = QLabel("–")
        grid.addWidget(QLabel("Loudness (RMS-based)"), 1, 0)
        grid.addWidget(self._loudness_meter, 1, 1)
        grid.addWidget(self._loudness_label, 1, 2)

        self._peak_meter = self._make_meter()
        self._peak_label = QLabel("–")
        grid.addWidget(QLabel("Peak (sample peak)"), 2, 0)
        grid.addWidget(self._peak_meter, 2, 1)
        grid.addWidget(self._peak_label, 2, 2)

        self._dr_label = QLabel("–")
        grid.addWidget(QLabel("Dynamic range"), 3, 0)
        grid.addWidget(self._dr_label, 3, 2)
        grid.setColumnStretch(1, 1)
        return box

    @staticmethod
    def _make_meter() -> QProgressBar:
        meter = QProgressBar()
        meter.setRange(0, 1000)
        meter.setTextVisible(False)
        return meter

    def _build_platform_table(self) -> QTableWidget:
        self._table = QTableWidget(0, len(_COLUMNS))
        self._table.setHorizontalHeaderLabels(list(_COLUMNS))
        self._table.verticalHeader().setVisible(False)
        self._table.setSelectionBehavior(QAbstractItemView.SelectRows)
        self._table.setSelectionMode(QAbstractItemView.SingleSelection)
        self._table.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self._table.horizontalHeader().setSectionResizeMode(QHeaderView.Stretch)
        self._table.itemSelectionChanged.connect(self._on_profile_selected)
        return self._table

    def _build_transport(self) -> QHBoxLayout:
        row = QHBoxLayout()
        self._play_btn = QPushButton("▶ Play")
        self._play_btn.setEnabled(False)
        self._play_btn.clicked.connect(self._on_toggle_play)
        row.addWidget(self._play_btn)

        self._stop_btn = QPushButton("■ Stop")
        self._stop_btn.setEnabled(False)
        self._stop_btn.clicked.connect(self._on_stop)
        row.addWidget(self._stop_btn)

        self._gain_label = QLabel("Original (+0.0 dB)")
        row.addWidget(self._gain_label)
        row.addStretch(1)
        self._time_label = QLabel("0:00.000 / 0:00.000")
        row.addWidget(self._time_label)
        return row

    # ── Loading ───────────────────────────────────────────────────────────

    @Slot()
    def _on_open(self):
        patterns = " ".join(f"*{ext}" for ext in AUDIO_EXTENSIONS)
        path, _ = QFileDialog.getOpenFileName(
            self, "Open audio file", "", f"Audio files ({patterns})")
        if path:
            self.open_file(path)

    def open_file(self, path: str):
        if self._worker is not None and self._worker.isRunning():
            return
        self._status_bar.showMessage(f"Loading {os.path.basename(path)}…")
        self._worker = AnalyzeWorker(path, self._config)
        self._worker.progress.connect(self._status_bar.showMessage)
        self._worker.finished.connect(self._on_analysis_finished)
        self._worker.error.connect(self._on_analysis_error)
        self._worker.start()

    @Slot(object, object)
    def _on_analysis_finished(self, track, analysis):
        t0 = time.perf_counter()
        self._session.load_track(track, analysis)
        dbg(f"load_track: {(time.perf_counter() - t0) * 1000:.1f} ms")
        self._render_summary()
        self._render_platforms()
        self._chart.set_analysis(analysis, track.duration)
        self._chart.set_gain(0.0)
        self._play_btn.setEnabled(True)
        self._report_action.setEnabled(True)
        self._update_time_label(0.0)
        self._status_bar.showMessage(f"Loaded {track.filename}")

    @Slot(str)
    def _on_analysis_error(self, message: str):
        self._status_bar.showMessage(message)
        QMessageBox.warning(self, "Cannot open file", message)

    # ── Rendering ─────────────────────────────────────────────────────────

    def _render_summary(self):
        track = self._session.track
        summary = self._session.analysis.summary
        self._info_label.setText(
            f"<b>{track.filename}</b> &nbsp; {format_duration(track.duration)} | "
            f"{track.samplerate} Hz | {track.channels} ch")

        color = SEVERITY_COLORS[assess_original_loudness(summary.loudness)]
        self._loudness_meter.setValue(int(meter_fraction(summary.loudness, -40, 0) * 1000))
        self._loudness_meter.setStyleSheet(meter_stylesheet(color))
        self._loudness_label.setText(_fmt_db(summary.loudness, "LUFS"))

        color = SEVERITY_COLORS[assess_original_peak(summary.peak)]
        self._peak_meter.setValue(int(meter_fraction(summary.peak, -20, 0) * 1000))
        self._peak_meter.setStyleSheet(meter_stylesheet(color))
        self._peak_label.setText(_fmt_db(summary.peak, "dBFS"))
        self._dr_label.setText(_fmt_db(summary.dynamic_range))

    def _render_platforms(self):
        summary = self._session.analysis.summary
        results = self._session.results
        profiles = self._session.profiles

        self._table.blockSignals(True)
        self._table.setRowCount(len(profiles) + 1)

        original = [
            ("Original", None),
            ("–", None),
            (_fmt_db(0.0, signed=True), None),
            (_fmt_db(summary.loudness, "LUFS"),
             SEVERITY_COLORS[assess_original_loudness(summary.loudness)]),
            (_fmt_db(summary.peak, "dBFS"),
             SEVERITY_COLORS[assess_original_peak(summary.peak)]),
            ("–", None),
        ]
        self._set_row(0, ORIGINAL_ID, original, "Unprocessed playback")

        for row, profile in enumerate(profiles, start=1):
            r = results[profile.id]
            target = f"{profile.target_loudness:.1f} LUFS"
            if profile.target_peak is not None:
                target += f", {profile.target_peak:.1f} dB"
            cells = [
                (profile.name, None),
                (target, COLORS["dim"]),
                (_fmt_db(r.gain_db, signed=True), GAIN_COLORS[gain_direction(r.gain_db)]),
                (_fmt_db(r.projected_loudness, "LUFS"),
                 SEVERITY_COLORS[assess_projected_loudness(
                     r.projected_loudness, profile.target_loudness)]),
                (_fmt_db(r.projected_peak, "dBFS"),
                 SEVERITY_COLORS[assess_projected_peak(r.projected_peak, profile.target_peak)]),
                ("⚠ yes" if r.limited else "no",
                 COLORS["attention"] if r.limited else COLORS["dim"]),
            ]
            self._set_row(row, profile.id, cells, profile.guidance or "")

        self._table.selectRow(0)
        self._table.blockSignals(False)

    def _set_row(self, row: int, profile_id: str, cells, tooltip: str):
        for col, (text, color) in enumerate(cells):
            item = QTableWidgetItem(text)
            item.setData(Qt.UserRole, profile_id)
            item.setToolTip(tooltip)
            if col > 0:
                item.setTextAlignment(Qt.AlignRight | Qt.AlignVCenter)
            if color:
                item.setForeground(QColor(color))
            self._table.setItem(row, col, item)

    def _update_time_label(self, seconds: float):
        self._time_label.setText(
            f"{format_duration(seconds)} / {format_duration(self._session.duration)}")

    # ── Audition ──────────────────────────────────────────────────────────

    @Slot()
    def _on_profile_selected(self):
        items = self._table.selectedItems()
        if not items or self._session.track is None:
            return
        profile_id = items[0].data(Qt.UserRole)
        self._playback.select_profile(profile_id)
        gain = self._session.gain_for(profile_id)
        if profile_id == ORIGINAL_ID:
            self._chart.set_gain(0.0)
        else:
            profile = self._session.profile(profile_id)
            self._chart.set_gain(gain, profile.target_loudness, profile.target_peak)
        dbg(f"audition profile {profile_id} at {gain:+.2f} dB")

    @Slot(float)
    def _on_gain_changed(self, gain_db: float):
        profile_id = self._session.active_profile
        name = "Original" if profile_id == ORIGINAL_ID else self._session.profile(profile_id).name
        self._gain_label.setText(f"{name} ({gain_db:+.1f} dB)")

    @Slot()
    def _on_toggle_play(self):
        if self._session.track is None:
            return
        self._playback.toggle()

    @Slot()
    def _on_stop(self):
        self._playback.stop()
        self._chart.set_cursor(0.0)
        self._update_time_label(0.0)

    @Slot(float)
    def _on_chart_seek(self, seconds: float):
        self._playback.seek(seconds)

    @Slot(float)
    def _on_cursor_updated(self, seconds: float):
        self._chart.set_cursor(seconds)
        self._update_time_label(seconds)

    @Slot(object)
    def _on_state_changed(self, state):
        playing = state is TransportState.PLAYING
        self._play_btn.setText("❚❚ Pause" if playing else "▶ Play")
        self._play_btn.setEnabled(self._session.track is not None)
        self._stop_btn.setEnabled(state in (TransportState.PLAYING, TransportState.PAUSED))

    @Slot()
    def _on_playback_finished(self):
        self._status_bar.showMessage("Playback finished")

    @Slot(str)
    def _on_playback_error(self, message: str):
        self._status_bar.showMessage(f"Playback error: {message}")

    # ── Reports / misc ────────────────────────────────────────────────────

    @Slot()
    def _on_save_report(self):
        if self._session.track is None:
            return
        base = os.path.splitext(self._session.track.filename)[0]
        path, _ = QFileDialog.getSaveFileName(
            self, "Save report", f"{base}_loudcheck.json",
            "JSON report (*.json);;Text report (*.txt)")
        if not path:
            return
        report = build_report(
            self._session.track, self._session.analysis, self._session.results,
            self._session.config, profiles=self._session.profiles)
        try:
            if path.lower().endswith(".json"):
                save_json(report, path)
            else:
                generate_report(report, path)
        except OSError as e:
            QMessageBox.warning(self, "Cannot save report", str(e))
            return
        self._status_bar.showMessage(f"Report saved to {path}")

    @Slot()
    def _on_about(self):
        QMessageBox.about(
            self,
            "About LoudCheck",
            f"<h2>LoudCheck</h2>"
            f"<p>Version {__version__}</p>"
            f"<p>Preview how streaming platforms<br/>"
            f"normalize the loudness of a track.</p>",
        )

    def closeEvent(self, event):
        if self._worker is not None:
            self._worker.wait(2000)
        self._playback.shutdown()
        super().closeEvent(event)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main():
    configure_logging()
    t0 = time.perf_counter()
    app = QApplication(sys.argv)
    app.setStyle("Fusion")
    dbg(f"QApplication created: {(time.perf_counter() - t0) * 1000:.1f} ms")

    window = LoudCheckWindow()
    window.show()
    if len(sys.argv) > 1 and os.path.isfile(sys.argv[1]):
        window.open_file(sys.argv[1])
    sys.exit(app.exec())
