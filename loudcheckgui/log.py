"""Lightweight debug logging for the LoudCheck GUI.

Usage::

    from loudcheckgui.log import dbg

    dbg("Analysis finished")

Output is only emitted when the environment variable ``LOUDCHECK_DEBUG``
is set to ``1`` or ``true`` (case-insensitive).  Messages go through the
``loudcheckgui`` logger, prefixed with a timestamp and the calling
class/module.  The same switch raises the ``loudchecklib`` logger to
DEBUG so transport and analysis messages appear in the same stream.
"""

from __future__ import annotations

import inspect
import logging
import os
import sys

_log = logging.getLogger("loudcheckgui")
_ENABLED: bool | None = None


def is_enabled() -> bool:
    global _ENABLED
    if _ENABLED is None:
        val = os.environ.get("LOUDCHECK_DEBUG", "").strip().lower()
        _ENABLED = val in ("1", "true")
    return _ENABLED


def configure_logging() -> None:
    """Send library and GUI log records to stderr.

    Warnings always show; DEBUG when ``LOUDCHECK_DEBUG`` is active.
    """
    level = logging.DEBUG if is_enabled() else logging.WARNING
    logging.basicConfig(
        stream=sys.stderr,
        format="[%(asctime)s.%(msecs)03d %(name)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    logging.getLogger("loudchecklib").setLevel(level)
    _log.setLevel(level)


def _caller_name() -> str:
    """Return the class name (or module name) of the caller's caller."""
    frame = inspect.currentframe()
    try:
        caller = frame.f_back.f_back if frame and frame.f_back else None
        if caller is None:
            return "?"
        self_obj = caller.f_locals.get("self")
        if self_obj is not None:
            return type(self_obj).__name__
        mod = caller.f_globals.get("__name__", "")
        return mod.rsplit(".", 1)[-1] if mod else "?"
    finally:
        del frame


def dbg(msg: str) -> None:
    """Log a debug line tagged with the caller if ``LOUDCHECK_DEBUG`` is active."""
    if not is_enabled():
        return
    _log.debug("%s: %s", _caller_name(), msg)
