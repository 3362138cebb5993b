"""Logging configuration for TamperSeek.

Provides the diagnostic channel:
- Default WARNING level (silent under normal operation)
- DEBUG via --verbose or the TAMPERSEEK_DEBUG environment variable
- Stderr output only (no file handlers)
- Each record carries timestamp, call site, and message
"""

import logging
import os
import sys

# Package namespaces whose loggers report diagnostics
LOGGER_NAMESPACES = ("shared", "commands", "workflow", "tamperseek")

DIAGNOSTIC_FORMAT = (
    "%(asctime)s %(levelname)s [%(name)s] %(module)s.%(funcName)s:%(lineno)d %(message)s"
)


def setup_logging(level: str = "WARNING", verbose: bool = False) -> logging.Handler:
    """Configure diagnostic logging. Call once at startup.

    Safe to call multiple times (idempotent).
    Returns the stderr handler shared by all TamperSeek loggers.
    """
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        resolved = logging.WARNING

    if verbose or os.getenv("TAMPERSEEK_DEBUG"):
        resolved = logging.DEBUG

    handler = None
    for name in LOGGER_NAMESPACES:
        logger = logging.getLogger(name)
        logger.setLevel(resolved)
        # Avoid duplicate handlers on re-entry/tests
        existing = [h for h in logger.handlers if getattr(h, "_tamperseek", False)]
        if existing:
            handler = existing[0]
            handler.setLevel(resolved)
            continue
        if handler is None:
            handler = logging.StreamHandler(sys.stderr)
            handler._tamperseek = True
            handler.setLevel(resolved)
            handler.setFormatter(logging.Formatter(DIAGNOSTIC_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)
        logger.propagate = False

    # Quiet noisy third-party loggers
    logging.getLogger("impacket").setLevel(logging.WARNING)
    logging.getLogger("smbprotocol").setLevel(logging.WARNING)
    logging.getLogger("spnego").setLevel(logging.WARNING)

    return handler


def log_unclassified(logger: logging.Logger, operation: str, host: str, error_text: str) -> None:
    """Report a failure that has no status in the taxonomy.

    ``stacklevel=2`` attributes the record to the probe or qualifier that
    issued the failing call.
    """
    logger.error(f"{operation} failed on {host}: {error_text}", stacklevel=2)
