# whichkey/utils/logging_config.py
"""whichkey.utils.logging_config
===============================

Logging setup for whichkey. Both plugin instances and the command-line tools log
through the standard `logging` package; this module attaches the handlers.

Features:
    - Rotating file log (whichkey.log) for everything at or above `file_level`.
    - Optional console logging to stderr, which is where the multiplexer collects
      plugin diagnostics.
    - Optional separate error log (error.log) for ERROR and CRITICAL events.
    - Optional key trace (keytrace.log) on the `whichkey.keyevents` logger, enabled
      with the WHICHKEY_KEYTRACE environment variable.
    - Safe to call repeatedly: existing root handlers are replaced, not stacked.
    - Never raises; setup problems are reported on stderr.

Globals:
    logger: Main application logger ("whichkey").
    KEY_LOGGER: Logger for key-press trace events ("whichkey.keyevents").
"""

import logging
import logging.handlers
import os
import sys
import tempfile
from typing import Any, Optional


logger = logging.getLogger("whichkey")
KEY_LOGGER = logging.getLogger("whichkey.keyevents")

LOG_FILENAME = "whichkey.log"
ERROR_LOG_FILENAME = "error.log"
KEY_TRACE_FILENAME = "keytrace.log"
KEY_TRACE_ENV = "WHICHKEY_KEYTRACE"


def _rotating_handler(
    filename: str, max_bytes: int, backup_count: int
) -> Optional[logging.handlers.RotatingFileHandler]:
    """Opens a rotating file handler, creating its directory; None on failure."""
    try:
        log_dir = os.path.dirname(filename)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)
        return logging.handlers.RotatingFileHandler(
            filename, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    except OSError as e:
        print(f"Error setting up log file '{filename}': {e}.", file=sys.stderr)
        return None


def setup_logging(config: Optional[dict[str, Any]] = None) -> None:
    """Configures application-wide logging handlers and log levels.

    Up to four handlers are installed:

    1. File handler: rotating whichkey.log from `file_level` (default DEBUG) up.
       Falls back to the system temp directory if the file cannot be opened.
    2. Console handler: optional stderr output at `console_level`
       (default WARNING).
    3. Error-file handler: optional rotating error.log, ERROR and above.
    4. Key-event handler: rotating keytrace.log on ``whichkey.keyevents`` when
       ``WHICHKEY_KEYTRACE`` is ``1/true/yes``. That logger never propagates.

    Args:
        config (dict | None): Application configuration. Only the ``["logging"]``
            section is read; recognised keys are ``file_level``,
            ``console_level``, ``log_to_console`` and ``separate_error_log``.
    """
    if config is None:
        config = {}
    logging_config = config.get("logging", {})

    log_file_level_str = str(logging_config.get("file_level", "DEBUG")).upper()
    log_file_level = getattr(logging, log_file_level_str, logging.DEBUG)

    file_formatter = logging.Formatter(
        "%(asctime)s - %(levelname)-8s - %(name)-15s - %(message)s (%(filename)s:%(lineno)d)"
    )

    log_filename = LOG_FILENAME
    file_handler = _rotating_handler(log_filename, 2 * 1024 * 1024, 5)
    if file_handler is None:
        log_filename = os.path.join(tempfile.gettempdir(), LOG_FILENAME)
        print(f"Logging to temporary file: '{log_filename}'", file=sys.stderr)
        file_handler = _rotating_handler(log_filename, 2 * 1024 * 1024, 5)
    if file_handler:
        file_handler.setFormatter(file_formatter)
        file_handler.setLevel(log_file_level)

    console_handler = None
    if logging_config.get("log_to_console", True):
        console_level_str = str(logging_config.get("console_level", "WARNING")).upper()
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(
            logging.Formatter("whichkey: %(levelname)-8s - %(name)-12s - %(message)s")
        )
        console_handler.setLevel(getattr(logging, console_level_str, logging.WARNING))

    error_file_handler = None
    if logging_config.get("separate_error_log", False):
        error_file_handler = _rotating_handler(ERROR_LOG_FILENAME, 1 * 1024 * 1024, 3)
        if error_file_handler:
            error_file_handler.setFormatter(file_formatter)
            error_file_handler.setLevel(logging.ERROR)

    root_logger = logging.getLogger()
    root_logger.handlers = []  # replace, never stack
    for handler in (file_handler, console_handler, error_file_handler):
        if handler:
            root_logger.addHandler(handler)
    root_logger.setLevel(log_file_level)

    KEY_LOGGER.propagate = False
    KEY_LOGGER.setLevel(logging.DEBUG)
    KEY_LOGGER.handlers = []
    KEY_LOGGER.disabled = False

    if os.environ.get(KEY_TRACE_ENV, "").lower() in {"1", "true", "yes"}:
        key_trace_handler = _rotating_handler(KEY_TRACE_FILENAME, 1 * 1024 * 1024, 3)
        if key_trace_handler:
            key_trace_handler.setFormatter(logging.Formatter("%(asctime)s - %(message)s"))
            KEY_LOGGER.addHandler(key_trace_handler)
            logging.info("Key event tracing enabled, logging to '%s'.", KEY_TRACE_FILENAME)
        else:
            KEY_LOGGER.disabled = True
    else:
        KEY_LOGGER.addHandler(logging.NullHandler())
        KEY_LOGGER.disabled = True
        logging.debug("Key event tracing is disabled.")

    logging.info(
        "Logging setup complete. Root logger level: %s.",
        logging.getLevelName(root_logger.level),
    )
    if file_handler:
        logging.info(
            "File logging to '%s' at level: %s.",
            log_filename, logging.getLevelName(file_handler.level),
        )
