"""PySide6 front-end for LoudCheck."""


def main():
    from .mainwindow import main as _main
    _main()
