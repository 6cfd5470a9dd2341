"""Logging setup for git-worktree-keeper.

Console output goes to stderr so command output on stdout (branch and
worktree listings) stays pipeable. ``--debug`` also writes a full log to
``~/.git-worktree-keeper/git-worktree-keeper.log``, overwritten each run.
"""
import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

LOG_DIR_NAME = '.git-worktree-keeper'
LOG_FILE_NAME = 'git-worktree-keeper.log'

DETAILED_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
SHORT_FORMAT = '[%(name)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Module path prefixes dropped from logger names, applied in order
_NAME_PREFIXES = ('git_worktree_keeper.', 'services.')


class ColoredFormatter(logging.Formatter):
    """Colors the level name when the target stream is a terminal."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, fmt: Optional[str] = None, datefmt: Optional[str] = None,
                 stream: Optional[TextIO] = None):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.stream = stream if stream is not None else sys.stderr

    def format(self, record):
        color = self.COLORS.get(record.levelname)
        if color is None or not self.stream.isatty():
            return super().format(record)
        # Color a copy; other handlers format the same record
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(colored)


def log_file_path() -> Path:
    """Where ``--debug`` runs write their log."""
    return Path.home() / LOG_DIR_NAME / LOG_FILE_NAME


def _console_level(verbose: bool, debug: bool, quiet: bool) -> int:
    if debug:
        return logging.DEBUG
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.INFO
    return logging.WARNING


def _file_handler() -> logging.Handler:
    path = log_file_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, mode='w')
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(fmt=DETAILED_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _console_handler(level: int, detailed: bool) -> logging.Handler:
    stream = sys.stderr
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    if detailed:
        handler.setFormatter(ColoredFormatter(fmt=DETAILED_FORMAT, datefmt=DATE_FORMAT, stream=stream))
    else:
        handler.setFormatter(ColoredFormatter(fmt=SHORT_FORMAT, stream=stream))
    return handler


def setup_logging(verbose: bool = False, debug: bool = False, quiet: bool = False) -> Optional[Path]:
    """
    Configure the root logger for a CLI run.

    Replaces any handlers from an earlier call, so tests and repeated
    invocations in one process don't stack output.

    Args:
        verbose: Show INFO messages (progress of each conversion step)
        debug: Show DEBUG messages with timestamps and write the log file
        quiet: Only show errors; ignored when debug is set

    Returns:
        Path of the log file when one was opened, otherwise None
    """
    level = _console_level(verbose, debug, quiet)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    log_file = None
    if debug:
        root_logger.addHandler(_file_handler())
        log_file = log_file_path()

    root_logger.addHandler(_console_handler(level, detailed=debug))
    return log_file


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module, named without the package prefix.

    ``git_worktree_keeper.services.git.orchestrator`` logs as
    ``git.orchestrator``.
    """
    for prefix in _NAME_PREFIXES:
        if name.startswith(prefix):
            name = name[len(prefix):]
    return logging.getLogger(name)
