"""Loudness/peak time-series chart with playback cursor and click-to-seek."""

from __future__ import annotations

import math

import numpy as np

from PySide6.QtCore import Qt, QPointF, Signal
from PySide6.QtGui import QColor, QPainter, QPainterPath, QPen
from PySide6.QtWidgets import QWidget

from loudchecklib.audio import format_duration, peak_db
from loudchecklib.models import TrackAnalysis

from .theme import COLORS

DB_FLOOR = -60.0
DB_CEIL = 0.0


def time_to_x(t: float, duration: float, x0: float, width: float) -> float:
    if duration <= 0 or width <= 0:
        return x0
    return x0 + min(max(t / duration, 0.0), 1.0) * width


def x_to_time(x: float, duration: float, x0: float, width: float) -> float:
    """Inverse of :func:`time_to_x`, clamped to [0, duration]."""
    if duration <= 0 or width <= 0:
        return 0.0
    return min(max((x - x0) / width, 0.0), 1.0) * duration


def db_to_y(value: float, height: float, lo: float = DB_FLOOR, hi: float = DB_CEIL) -> float:
    """Map a dB value to a y coordinate (top = *hi*), clamped to the chart."""
    if not math.isfinite(value):
        value = lo if value < 0 or math.isnan(value) else hi
    frac = (min(max(value, lo), hi) - lo) / (hi - lo)
    return (1.0 - frac) * height


class SeriesChart(QWidget):
    """Plots the 100 ms loudness and peak series of a track.

    The series are drawn shifted by the audition gain so the curves show
    what the selected platform would play back.  Clicking seeks.
    """

    position_clicked = Signal(float)  # seconds

    _MARGIN_LEFT = 40
    _MARGIN_BOTTOM = 18

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setMinimumHeight(160)
        self._times = np.zeros(0)
        self._loudness = np.zeros(0)
        self._peak = np.zeros(0)
        self._duration = 0.0
        self._cursor = 0.0
        self._gain_db = 0.0
        self._target: float | None = None
        self._ceiling: float | None = None

    def set_analysis(self, analysis: TrackAnalysis | None, duration: float = 0.0):
        if analysis is None:
            self._times = self._loudness = self._peak = np.zeros(0)
            self._duration = 0.0
        else:
            self._times = np.array([p.time for p in analysis.loudness_series])
            self._loudness = np.array([p.value for p in analysis.loudness_series])
            self._peak = np.array([peak_db(p.value) for p in analysis.peak_series])
            self._duration = duration
        self._cursor = 0.0
        self.update()

    def set_gain(self, gain_db: float, target: float | None = None,
                 ceiling: float | None = None):
        self._gain_db = gain_db
        self._target = target
        self._ceiling = ceiling
        self.update()

    def set_cursor(self, seconds: float):
        self._cursor = seconds
        self.update()

    def _draw_area(self) -> tuple[int, int, int]:
        return (self._MARGIN_LEFT,
                max(1, self.width() - self._MARGIN_LEFT - 4),
                max(1, self.height() - self._MARGIN_BOTTOM))

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing, True)
        painter.fillRect(0, 0, self.width(), self.height(), QColor(COLORS["bg"]))

        if self._times.size == 0:
            painter.setPen(QPen(QColor(COLORS["dim"])))
            painter.drawText(self.rect(), Qt.AlignCenter, "No track loaded")
            painter.end()
            return

        x0, w, h = self._draw_area()
        self._draw_grid(painter, x0, w, h)

        if self._target is not None:
            self._hline(painter, x0, w, h, self._target, COLORS["target"], Qt.DashLine)
        if self._ceiling is not None:
            self._hline(painter, x0, w, h, self._ceiling, COLORS["problems"], Qt.DotLine)

        self._draw_series(painter, x0, w, h, self._peak + self._gain_db, COLORS["peak"])
        self._draw_series(painter, x0, w, h, self._loudness + self._gain_db, COLORS["loudness"])

        cx = time_to_x(self._cursor, self._duration, x0, w)
        painter.setPen(QPen(QColor(COLORS["cursor"]), 1))
        painter.drawLine(QPointF(cx, 0), QPointF(cx, h))
        painter.end()

    def _draw_grid(self, painter, x0, w, h):
        painter.setPen(QPen(QColor(COLORS["grid"]), 1))
        dim = QColor(COLORS["dim"])
        for db in range(int(DB_CEIL), int(DB_FLOOR) - 1, -12):
            y = db_to_y(db, h)
            painter.setPen(QPen(QColor(COLORS["grid"]), 1))
            painter.drawLine(QPointF(x0, y), QPointF(x0 + w, y))
            painter.setPen(QPen(dim))
            painter.drawText(2, int(y) + 4, f"{db}")
        painter.setPen(QPen(dim))
        painter.drawText(x0, h + 14, "0:00.000")
        end_label = format_duration(self._duration)
        painter.drawText(x0 + w - 7 * len(end_label), h + 14, end_label)

    def _hline(self, painter, x0, w, h, db, color, style):
        y = db_to_y(db, h)
        painter.setPen(QPen(QColor(color), 1, style))
        painter.drawLine(QPointF(x0, y), QPointF(x0 + w, y))

    def _draw_series(self, painter, x0, w, h, values, color):
        path = QPainterPath()
        for i, (t, v) in enumerate(zip(self._times, values)):
            pt = QPointF(time_to_x(float(t), self._duration, x0, w), db_to_y(float(v), h))
            if i == 0:
                path.moveTo(pt)
            else:
                path.lineTo(pt)
        painter.setPen(QPen(QColor(color), 1.5))
        painter.drawPath(path)

    def mousePressEvent(self, event):
        if self._duration > 0 and event.button() == Qt.LeftButton:
            x0, w, _ = self._draw_area()
            seconds = x_to_time(event.position().x(), self._duration, x0, w)
            self._cursor = seconds
            self.update()
            self.position_clicked.emit(seconds)
        super().mousePressEvent(event)
