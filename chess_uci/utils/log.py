"""
Logging setup for the UCI client.

Every module logs through logging.getLogger(__name__), under the
"chess_uci" logger. Lines exchanged with the engine are logged at DEBUG:

    >>> go depth 12          (sent)
    <<< info depth 1 ...     (received)
"""

import logging
from pathlib import Path
from typing import Optional

DEFAULT_LOG_FILE = Path.home() / ".chess_uci" / "client.log"


def setup_logger(debug: bool = True, log_file: Optional[Path] = None) -> logging.Logger:
    """
    Setup file-based logger for protocol debugging.

    Args:
        debug: If True, log at DEBUG level; otherwise INFO level
        log_file: Log destination (default: ~/.chess_uci/client.log)

    Returns:
        Configured "chess_uci" logger
    """
    log_file = Path(log_file) if log_file is not None else DEFAULT_LOG_FILE
    log_file.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger("chess_uci")
    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handler = logging.FileHandler(log_file, mode='w')
    formatter = logging.Formatter(
        '%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%H:%M:%S'
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    logger.info(f"Log file: {log_file}")
    return logger
