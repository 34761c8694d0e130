"""Logging configuration for the command line tool."""

import datetime
import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def setup_logging(debug: bool = False, log_dir: Optional[str] = "logs") -> Optional[Path]:
    """Setup logging configuration.

    Everything at INFO (DEBUG with ``debug``) goes to a timestamped file in
    ``log_dir``; the console only shows warnings unless ``debug`` is set, so
    the progress bar stays readable. Returns the log file path, if any.
    """
    level = logging.DEBUG if debug else logging.INFO
    handlers = []

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.DEBUG if debug else logging.WARNING)
    handlers.append(console)

    log_file = None
    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = path / f"deletion_{timestamp}.log"
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        handlers.append(file_handler)

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
    # Keep urllib3 connection chatter out of debug output.
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    if log_file:
        logging.getLogger(__name__).info(f"Logging initialized. Log file: {log_file}")
    return log_file
