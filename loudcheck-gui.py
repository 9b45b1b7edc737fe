"""
LoudCheck GUI - PySide6 front-end for streaming loudness previews.

Usage:
    python loudcheck-gui.py [FILE]

Requires: PySide6 (install via `pip install loudcheck[gui]`)
"""

from loudcheckgui import main

if __name__ == "__main__":
    main()
