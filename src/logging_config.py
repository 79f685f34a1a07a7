"""
Logging Configuration for the Free Agency Simulator

Sets up rotating file and console handlers for the economy packages and
stamps every record with the simulated league year and calendar day, so
a log line can be traced back to the day of free agency that produced it.

Usage Example:
    from logging_config import setup_logging, set_simulation_context

    setup_logging(level="INFO", log_dir="logs")
    set_simulation_context(2024, 70)
    logging.getLogger("free_agency").info("Market opens")
    # INFO - [2024 d70] - free_agency - Market opens

Log Files Created:
- logs/fa_sim.log: Main application log (INFO+)
- logs/fa_sim_error.log: Error log (ERROR+)

Each file rotates at 10MB with 5 backup files.
"""

import logging
import logging.handlers
import os
from pathlib import Path
from typing import Dict, Optional


FILE_FORMAT = (
    "%(asctime)s - [%(season_year)s d%(sim_day)s] - %(name)s - %(levelname)s - "
    "[%(filename)s:%(lineno)d] - %(message)s"
)

CONSOLE_FORMAT = "%(levelname)s - [%(season_year)s d%(sim_day)s] - %(name)s - %(message)s"

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Logger names for each package and their default levels
PACKAGE_LEVELS: Dict[str, str] = {
    "free_agency": "INFO",
    "salary_cap": "WARNING",
    "config": "WARNING",
}


class SimulationContextFilter(logging.Filter):
    """
    Adds season_year and sim_day attributes to every record.

    Records logged before a context is set show "-" for both.
    """

    def __init__(self):
        super().__init__()
        self.season_year: Optional[int] = None
        self.sim_day: Optional[int] = None

    def filter(self, record):
        record.season_year = self.season_year if self.season_year is not None else "-"
        record.sim_day = self.sim_day if self.sim_day is not None else "-"
        return True


_context_filter = SimulationContextFilter()


class ColoredFormatter(logging.Formatter):
    """Console formatter with ANSI colored level names."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
        'RESET': '\033[0m'
    }

    def format(self, record):
        original = record.levelname
        if original in self.COLORS:
            record.levelname = f"{self.COLORS[original]}{original}{self.COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def set_simulation_context(season_year: Optional[int], sim_day: Optional[int]) -> None:
    """Set the league year and day stamped on subsequent records."""
    _context_filter.season_year = season_year
    _context_filter.sim_day = sim_day


def get_context_filter() -> SimulationContextFilter:
    return _context_filter


def _rotating_handler(path: str, level: int, max_bytes: int, backup_count: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    handler.addFilter(_context_filter)
    return handler


def setup_logging(
    level: str = "INFO",
    log_dir: str = "logs",
    enable_console: bool = True,
    enable_file: bool = True,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    colored: bool = True
) -> None:
    """
    Configure the root logger for a simulation run.

    Call once at startup. Existing root handlers are replaced, and every
    package logger in PACKAGE_LEVELS is reset to inherit the root level.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for log files
        enable_console: Whether to log to the console
        enable_file: Whether to write rotating log files
        max_bytes: Maximum size per log file before rotation
        backup_count: Rotated files kept per log
        colored: ANSI colors on the console
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    if enable_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(getattr(logging, level.upper()))
        formatter_class = ColoredFormatter if colored else logging.Formatter
        console_handler.setFormatter(formatter_class(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
        console_handler.addFilter(_context_filter)
        root_logger.addHandler(console_handler)

    if enable_file:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        root_logger.addHandler(_rotating_handler(
            os.path.join(log_dir, "fa_sim.log"), logging.INFO, max_bytes, backup_count
        ))
        root_logger.addHandler(_rotating_handler(
            os.path.join(log_dir, "fa_sim_error.log"), logging.ERROR, max_bytes, backup_count
        ))

    for package in PACKAGE_LEVELS:
        logging.getLogger(package).setLevel(logging.NOTSET)

    root_logger.info(
        "Logging initialized - Level: %s, Console: %s, File: %s", level, enable_console, enable_file
    )


def configure_module_logger(
    module_name: str,
    level: Optional[str] = None,
    propagate: bool = True
) -> logging.Logger:
    """
    Set the level of one package or module logger.

    Example:
        >>> configure_module_logger("free_agency.bidding_war", level="DEBUG")
    """
    logger = logging.getLogger(module_name)
    if level:
        logger.setLevel(getattr(logging, level.upper()))
    logger.propagate = propagate
    return logger


def setup_free_agency_logging(level: str = PACKAGE_LEVELS["free_agency"]) -> None:
    """Level for the market engines and the offseason driver."""
    configure_module_logger("free_agency", level=level)


def setup_contract_logging(level: str = PACKAGE_LEVELS["salary_cap"]) -> None:
    """
    Level for contract and cap accounting.

    Ledger operations run for every signing, so the default is WARNING.
    """
    configure_module_logger("salary_cap", level=level)


def log_exception(
    logger: logging.Logger,
    exception: Exception,
    context: Optional[dict] = None,
    level: str = "ERROR"
) -> None:
    """Log an exception with traceback plus key=value context (team_id, offer_id, ...)."""
    context_str = ""
    if context:
        context_str = " [" + ", ".join(f"{k}={v}" for k, v in context.items()) + "]"
    logger.log(
        getattr(logging, level.upper()),
        "Exception occurred%s: %s: %s",
        context_str,
        type(exception).__name__,
        exception,
        exc_info=True
    )


class LogContext:
    """
    Temporarily change a logger's level.

    Example:
        >>> with LogContext(logging.getLogger("free_agency.bidding_war"), "DEBUG"):
        ...     driver.advance_day()
    """

    def __init__(self, logger: logging.Logger, level: str):
        self.logger = logger
        self.new_level = getattr(logging, level.upper())
        self.original_level = logger.level

    def __enter__(self):
        self.logger.setLevel(self.new_level)
        return self.logger

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.logger.setLevel(self.original_level)


def setup_testing_logging() -> None:
    """Console only, WARNING and above."""
    setup_logging(level="WARNING", enable_console=True, enable_file=False, colored=False)


def setup_development_logging() -> None:
    """DEBUG on the console and in files, market engines included."""
    setup_logging(level="DEBUG", log_dir="logs", enable_console=True, enable_file=True)
    setup_free_agency_logging("DEBUG")


def setup_production_logging(log_dir: str = "logs") -> None:
    """Files only, INFO and above, with the package presets applied."""
    setup_logging(level="INFO", log_dir=log_dir, enable_console=False, enable_file=True)
    setup_free_agency_logging()
    setup_contract_logging()


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
