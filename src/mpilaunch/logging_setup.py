"""Centralized logging setup for the command line tool.

Messages go to stderr. With verbose or debug mode enabled they are also
appended to a log file under the base directory.
"""
import logging
from pathlib import Path
from typing import Optional


def setup_logging(verbose: bool = False, debug: bool = False, log_file: Optional[Path] = None) -> Optional[Path]:
    """Configure the root logger.

    Args:
        verbose: Log INFO messages
        debug: Log DEBUG messages (implies verbose)
        log_file: Optional file that also receives the messages when
            verbose or debug mode is on

    Returns:
        Path of the log file in use, or None
    """
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s")

    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    if not any(type(h) is logging.StreamHandler for h in root_logger.handlers):
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        root_logger.addHandler(console)
    for handler in root_logger.handlers:
        handler.setLevel(level)

    if log_file is None or not (verbose or debug):
        return None

    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    if not any(isinstance(h, logging.FileHandler) and Path(h.baseFilename) == log_file.resolve()
               for h in root_logger.handlers):
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        root_logger.addHandler(file_handler)

    return log_file
