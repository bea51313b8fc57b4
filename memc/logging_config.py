"""
Logging configuration for memc.

Quiet by default: only warnings from memc reach the terminal. --verbose
(or MEMC_VERBOSE=1) switches to debug output on stderr.
"""

import logging
import sys
import warnings
from logging.handlers import RotatingFileHandler
from pathlib import Path

OPS_LOG_FILENAME = "memc-ops.log"


def configure_quiet_mode(quiet: bool = True):
    """
    Configure logging to suppress verbose output.

    Args:
        quiet: If True, only warnings and errors from memc are shown.
            If False, library warnings are left alone.
    """
    if quiet:
        warnings.filterwarnings("ignore")
        logging.getLogger("memc").setLevel(logging.WARNING)


def enable_debug_mode():
    """Enable debug-level logging to stderr."""
    warnings.filterwarnings("default")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Add stderr handler if not already present
    if not any(isinstance(h, logging.StreamHandler) and h.stream == sys.stderr
               for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%H:%M:%S"
        ))
        root_logger.addHandler(handler)

    logging.getLogger("memc").setLevel(logging.DEBUG)


def configure_ops_log(repo_dir):
    """Configure a persistent operations log for a repository.

    Writes to {repo_dir}/memc-ops.log using a rotating file handler
    (1MB max, 3 backups). Always active regardless of --verbose.
    Returns the handler so it can be removed on close().
    """
    log_path = Path(repo_dir) / OPS_LOG_FILENAME
    handler = RotatingFileHandler(
        str(log_path),
        maxBytes=1_000_000,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))

    memc_logger = logging.getLogger("memc")
    memc_logger.addHandler(handler)
    # Let INFO through to the file even in quiet mode; the terminal
    # handler (if any) filters on its own level.
    if memc_logger.level == logging.NOTSET or memc_logger.level > logging.INFO:
        memc_logger.setLevel(logging.INFO)

    return handler
