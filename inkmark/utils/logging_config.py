"""
Centralized logging configuration.
"""
import logging
import sys
from pathlib import Path
from typing import Optional

from inkmark.utils.resource_loader import get_log_dir


class LoggingConfig:
    """Central logging configuration"""

    _initialized = False
    _log_file_path: Optional[Path] = None
    _handlers = []

    @classmethod
    def setup_logging(cls, log_dir: Optional[Path] = None, console_level: int = logging.INFO) -> None:
        """
        Setup file and console logging on the package logger.

        Args:
            log_dir: Directory for inkmark.log, the per-user log dir by default
            console_level: Minimum level printed to stdout
        """
        if cls._initialized:
            return

        if log_dir is None:
            log_dir = get_log_dir()
        log_dir.mkdir(parents=True, exist_ok=True)
        cls._log_file_path = log_dir / "inkmark.log"

        logger = logging.getLogger("inkmark")
        logger.setLevel(logging.DEBUG)

        # File handler
        file_handler = logging.FileHandler(cls._log_file_path, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        logger.addHandler(file_handler)

        # Console handler (for terminal output)
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(console_level)
        console_handler.setFormatter(logging.Formatter('[%(levelname)s] %(message)s'))
        logger.addHandler(console_handler)

        cls._handlers = [file_handler, console_handler]
        cls._initialized = True
        logger.info("Logging system initialized")

    @classmethod
    def shutdown(cls) -> None:
        """Remove the handlers installed by setup_logging."""
        logger = logging.getLogger("inkmark")
        for handler in cls._handlers:
            logger.removeHandler(handler)
            handler.close()
        cls._handlers = []
        cls._initialized = False

    @classmethod
    def get_log_file_path(cls) -> Optional[Path]:
        """Get the log file path"""
        return cls._log_file_path


__all__ = ['LoggingConfig']
