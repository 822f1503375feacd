# vocfeat/utils/logging_config.py

"""
Configures the logging system for vocfeat based on loaded settings.
Uses Rich for console logging. The console handler always writes to stderr
because stdout may be carrying the binary feature stream.
"""

import logging
from datetime import datetime
from typing import Optional
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from vocfeat.config import VocfeatConfig
from vocfeat.version import __version__

# Map verbosity levels (from CLI flags) to logging levels
VERBOSITY_MAP = {
    0: logging.WARNING,  # Default (normal)
    1: logging.INFO,     # -v (verbose)
    2: logging.DEBUG,    # -vv (debug)
    -1: logging.CRITICAL + 10  # -q (quiet/silent)
}


def setup_logging(config: VocfeatConfig, verbosity: int = 0) -> Optional[Path]:
    """
    Configures the package logger based on the provided configuration and verbosity level.

    Args:
        config: The loaded VocfeatConfig object.
        verbosity: Console verbosity (0 normal, 1 verbose, 2 debug, -1 quiet).

    Returns:
        Path of the log file, or None when file logging is disabled.
    """
    log_cfg = config.logging
    console_level = VERBOSITY_MAP.get(verbosity, logging.DEBUG if verbosity > 2 else logging.INFO)

    root_logger = logging.getLogger("vocfeat")
    root_logger.setLevel(logging.DEBUG)  # Handlers filter on their own levels
    root_logger.handlers.clear()

    if console_level <= logging.CRITICAL:
        console_handler = RichHandler(
            level=console_level,
            console=Console(stderr=True),
            show_time=False,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            markup=False,
        )
        console_handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(console_handler)

    log_filepath: Optional[Path] = None
    if log_cfg.log_file_enabled:
        log_dir = log_cfg.log_directory
        log_dir.mkdir(parents=True, exist_ok=True)
        log_filepath = log_dir / log_cfg.log_filename_template.format(timestamp=datetime.now())

        file_handler = logging.FileHandler(log_filepath, encoding='utf-8')
        file_handler.setLevel(log_cfg.log_level_file)
        file_handler.setFormatter(logging.Formatter(log_cfg.log_format))
        root_logger.addHandler(file_handler)

    init_logger = logging.getLogger("vocfeat.init")
    init_logger.info(f"vocfeat v{__version__} initialized.")
    init_logger.debug(f"Console logging level set to: {logging.getLevelName(console_level)}")
    if log_filepath is not None:
        init_logger.info(f"Logging to file: {log_filepath}")
        init_logger.debug(f"Full configuration loaded: {config.model_dump()}")
    return log_filepath
