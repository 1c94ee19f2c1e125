import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
DEBUG_LOG_FORMAT = '%(asctime)s - %(levelname)s - [%(threadName)s] %(message)s'

# Pillow plugins log every PNG chunk at DEBUG
NOISY_LOGGERS = ("PIL",)

def setup_logging(output_dir: Path, debug: bool = False, log_path: Optional[Path] = None) -> logging.Logger:
    """
    Setup logging configuration for WBC.

    Creates the output directory and its conversion.log file.
    Returns configured logger instance.

    Args:
        output_dir: Directory where WebP files are written
        debug: If True, enable DEBUG level logging with per-job timings and
            worker thread names
        log_path: Optional path to log file (overrides output_dir)
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    log_file = Path(log_path) if log_path else (output_dir / "conversion.log")
    log_file.parent.mkdir(parents=True, exist_ok=True)

    level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(
        level=level,
        format=DEBUG_LOG_FORMAT if debug else LOG_FORMAT,
        handlers=[logging.FileHandler(log_file)],
        force=True  # Override any existing configuration
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.INFO)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized: {log_file} (debug={'ON' if debug else 'OFF'})")

    return logger
