"""Color palette, meter colors and dark-theme application."""

from __future__ import annotations

from PySide6.QtGui import QColor, QPalette
from PySide6.QtWidgets import QApplication

from loudchecklib.models import Severity


COLORS = {
    "problems": "#ff4444",
    "attention": "#ffaa00",
    "information": "#4499ff",
    "clean": "#44cc44",
    "dim": "#888888",
    "text": "#dddddd",
    "heading": "#ffffff",
    "bg": "#1e1e1e",
    "bg_alt": "#252525",
    "accent": "#3a3a3a",
    "grid": "#333333",
    "loudness": "#4499ff",
    "peak": "#ff7744",
    "target": "#44cccc",
    "cursor": "#ffffff",
}

SEVERITY_COLORS = {
    Severity.CLEAN: COLORS["clean"],
    Severity.INFO: COLORS["information"],
    Severity.ATTENTION: COLORS["attention"],
    Severity.PROBLEM: COLORS["problems"],
    None: COLORS["dim"],
}

GAIN_COLORS = {
    "boost": COLORS["clean"],
    "cut": COLORS["problems"],
    "unchanged": COLORS["attention"],
}


STYLESHEET = """
    QMainWindow { background-color: #1e1e1e; }
    QMenuBar { background-color: #252525; color: #dddddd; }
    QMenuBar::item:selected { background-color: #3a3a3a; }
    QMenu { background-color: #2d2d2d; color: #dddddd; border: 1px solid #555; }
    QMenu::item:selected { background-color: #2a6db5; }
    QToolBar { background-color: #2d2d2d; border-bottom: 1px solid #555; spacing: 6px; padding: 2px; }
    QToolBar QToolButton { color: #dddddd; padding: 4px 8px; }
    QToolBar QToolButton:hover { background-color: #3a3a3a; }
    QToolBar QToolButton:disabled { color: #666666; }
    QTableWidget { background-color: #252525; border: none; outline: none; gridline-color: #3a3a3a; }
    QTableWidget::item { padding: 2px 6px; }
    QTableWidget::item:selected { background-color: #2a6db5; }
    QHeaderView::section { background-color: #2d2d2d; color: #dddddd; border: none; border-bottom: 1px solid #555; padding: 4px 6px; }
    QPushButton { background-color: #3a3a3a; color: #dddddd; border: 1px solid #555; padding: 4px 12px; border-radius: 2px; }
    QPushButton:hover { background-color: #4a4a4a; }
    QPushButton:pressed, QPushButton:checked { background-color: #2a6db5; }
    QPushButton:disabled { color: #666666; background-color: #2d2d2d; }
    QStatusBar { background-color: #2d2d2d; color: #888888; }
    QGroupBox { color: #dddddd; border: 1px solid #3a3a3a; margin-top: 12px; padding-top: 6px; }
    QGroupBox::title { subcontrol-origin: margin; left: 8px; padding: 0 4px; }
    QProgressBar {
        background-color: #2d2d2d; border: 1px solid #555; border-radius: 4px;
        text-align: center; color: #dddddd; height: 14px;
    }
    QProgressBar::chunk { background-color: #2a6db5; border-radius: 3px; }
"""


def meter_stylesheet(color: str) -> str:
    """Stylesheet for a QProgressBar used as a level meter."""
    return f"QProgressBar::chunk {{ background-color: {color}; border-radius: 3px; }}"


def apply_dark_theme(window) -> None:
    """Apply the dark palette and stylesheet to the application and window."""
    app = QApplication.instance()

    palette = QPalette()
    bg = QColor(COLORS["bg"])
    bg_alt = QColor(COLORS["bg_alt"])
    accent = QColor(COLORS["accent"])
    text = QColor(COLORS["text"])

    palette.setColor(QPalette.Window, bg)
    palette.setColor(QPalette.WindowText, text)
    palette.setColor(QPalette.Base, bg_alt)
    palette.setColor(QPalette.AlternateBase, accent)
    palette.setColor(QPalette.ToolTipBase, bg_alt)
    palette.setColor(QPalette.ToolTipText, text)
    palette.setColor(QPalette.Text, text)
    palette.setColor(QPalette.Button, accent)
    palette.setColor(QPalette.ButtonText, text)
    palette.setColor(QPalette.Highlight, QColor("#2a6db5"))
    palette.setColor(QPalette.HighlightedText, QColor("#ffffff"))
    palette.setColor(QPalette.Disabled, QPalette.Text, QColor("#666666"))
    palette.setColor(QPalette.Disabled, QPalette.ButtonText, QColor("#666666"))

    app.setPalette(palette)
    window.setStyleSheet(STYLESHEET)
