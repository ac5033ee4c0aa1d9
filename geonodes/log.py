"""
Diagnostic channel for geonodes.

Everything goes to the standard "geonodes" logger. Pass an exception instead
of a string to get its type, message and traceback in the record; the
optional context is prefixed to it:

    from geonodes import log

    try:
        runtime.run_program_side_effects(program, params)
    except ProgramRuntimeError as err:
        log.error(err, "There was an error executing side effect")

set_callback() forwards formatted records to an in-app console.
"""

import logging
import traceback
from enum import IntEnum
from typing import Callable, Optional

_logger = logging.getLogger("geonodes")


class Level(IntEnum):
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARN = logging.WARNING
    ERROR = logging.ERROR


def _format(msg_or_exc, context: str) -> str:
    if not isinstance(msg_or_exc, BaseException):
        text = str(msg_or_exc)
        return f"{context}: {text}" if context else text

    exc = msg_or_exc
    header = f"{type(exc).__name__}: {exc}"
    if context:
        header = f"{context}: {header}"
    tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return f"{header}\n{tb}"


def _emit(level: Level, msg_or_exc, context: str) -> None:
    if _logger.isEnabledFor(level):
        _logger.log(level, _format(msg_or_exc, context))


def debug(msg_or_exc, context: str = ""):
    """Log a message, or an exception with its traceback, at DEBUG."""
    _emit(Level.DEBUG, msg_or_exc, context)


def info(msg_or_exc, context: str = ""):
    _emit(Level.INFO, msg_or_exc, context)


def warn(msg_or_exc, context: str = ""):
    _emit(Level.WARN, msg_or_exc, context)


warning = warn


def error(msg_or_exc, context: str = ""):
    _emit(Level.ERROR, msg_or_exc, context)


def exception(msg: str = ""):
    """Log msg at ERROR with the exception currently being handled."""
    _logger.exception(msg)


def set_level(level) -> None:
    """Set minimum level for the geonodes logger."""
    _logger.setLevel(int(level))


class _CallbackHandler(logging.Handler):
    def __init__(self, callback: Callable[[Level, str], None]):
        super().__init__()
        self.callback = callback

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = Level(record.levelno)
        except ValueError:
            level = Level.ERROR if record.levelno > logging.ERROR else Level.INFO
        self.callback(level, self.format(record))


_callback_handler: Optional[_CallbackHandler] = None


def set_callback(callback: Optional[Callable[[Level, str], None]]) -> None:
    """
    Forward every log record to callback(level, message).

    Passing None removes the previously installed callback.
    """
    global _callback_handler
    if _callback_handler is not None:
        _logger.removeHandler(_callback_handler)
        _callback_handler = None
    if callback is not None:
        _callback_handler = _CallbackHandler(callback)
        _logger.addHandler(_callback_handler)
