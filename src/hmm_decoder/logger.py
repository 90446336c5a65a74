"""
Logging infrastructure for hmm_decoder.

All library loggers live under the ``hmm_decoder`` package logger, which owns
a stderr console handler and, when enabled, a file handler. Settings come
from the ``logging`` config section and can be re-applied at runtime with
:func:`configure_logging`.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

from .config import get_config

ROOT_LOGGER_NAME = 'hmm_decoder'
DEFAULT_LOG_FILE = 'hmm_decoder.log'


def _resolve_level(level: Union[str, int]) -> int:
    """Translate a level name or number into a logging level."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown logging level: {level!r}")
    return resolved


def _file_handlers(logger: logging.Logger):
    return [h for h in logger.handlers if isinstance(h, logging.FileHandler)]


class HMMDecoderLogger:
    """Owns the handlers of the package logger and hands out child loggers."""

    def __init__(self):
        self._loggers = {}
        self.configure()

    @property
    def root(self) -> logging.Logger:
        return logging.getLogger(ROOT_LOGGER_NAME)

    def configure(self):
        """(Re)build handlers from the current ``logging`` config section."""
        configured_level = get_config('logging', 'level') or 'WARNING'
        try:
            level = _resolve_level(configured_level)
        except ValueError:
            level = None
        formatter = logging.Formatter(get_config('logging', 'format'))

        root = self.root
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

        if get_config('logging', 'file_logging'):
            self._add_file_handler(get_config('logging', 'log_file') or DEFAULT_LOG_FILE, formatter)

        self.set_level(logging.WARNING if level is None else level)
        # Library records stay out of the application's root logger
        root.propagate = False

        if level is None:
            root.warning(f"Unknown logging level {configured_level!r}, using WARNING")

    def _add_file_handler(self, log_file: str, formatter: Optional[logging.Formatter]):
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(self.root.level)
        if formatter is not None:
            file_handler.setFormatter(formatter)
        self.root.addHandler(file_handler)

    def get_logger(self, name: str) -> logging.Logger:
        """Get or create a logger nested under the package logger."""
        if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + '.'):
            full_name = name
        else:
            full_name = f'{ROOT_LOGGER_NAME}.{name}'

        if full_name not in self._loggers:
            self._loggers[full_name] = logging.getLogger(full_name)
        return self._loggers[full_name]

    def set_level(self, level: Union[str, int]):
        """Apply a level to the package logger and every handler it owns."""
        log_level = _resolve_level(level)
        self.root.setLevel(log_level)
        for handler in self.root.handlers:
            handler.setLevel(log_level)

    def enable_file_logging(self, log_file: Optional[str] = None):
        """Add a file handler unless one is already attached."""
        if _file_handlers(self.root):
            return

        formatter = self.root.handlers[0].formatter if self.root.handlers else None
        self._add_file_handler(log_file or get_config('logging', 'log_file') or DEFAULT_LOG_FILE,
                               formatter)

    def disable_file_logging(self):
        """Detach and close every file handler."""
        for handler in _file_handlers(self.root):
            self.root.removeHandler(handler)
            handler.close()


_logger_manager = HMMDecoderLogger()


def configure_logging():
    """Re-read the ``logging`` config section and rebuild handlers."""
    _logger_manager.configure()


def get_logger(name: str = 'main') -> logging.Logger:
    """Get a logger instance for the specified module/component."""
    return _logger_manager.get_logger(name)


def set_log_level(level: Union[str, int]):
    """Set global logging level."""
    _logger_manager.set_level(level)


def enable_file_logging(log_file: Optional[str] = None):
    """Enable file logging globally."""
    _logger_manager.enable_file_logging(log_file)


def disable_file_logging():
    """Disable file logging globally."""
    _logger_manager.disable_file_logging()


def get_model_logger() -> logging.Logger:
    """Logger for model construction and validation."""
    return get_logger('model')


def get_decoder_logger() -> logging.Logger:
    """Logger for the Viterbi decoder."""
    return get_logger('decoder')
