"""
Logging manager for the ticket agent orchestrator.
Handles all logging configuration and setup.
"""

import logging
from pathlib import Path
from typing import Dict, Any

from .config import Config


class LoggingManager:
    """Manages logging configuration and setup for the system."""

    def __init__(self, config: Config):
        """Initialize the logging manager."""
        self.config = config
        self._loggers: Dict[str, logging.Logger] = {}

    def get_logger(self, name: str) -> logging.Logger:
        """Get or create a logger with the given name."""
        if name not in self._loggers:
            self._loggers[name] = self._create_logger(name)
        return self._loggers[name]

    def _create_logger(self, name: str) -> logging.Logger:
        """Create a new logger with proper configuration."""
        logger = logging.getLogger(name)
        logger.setLevel(getattr(logging, self.config.logging.level.upper()))

        # Avoid duplicate handlers
        if logger.handlers:
            return logger

        log_file = Path(self.config.logging.file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(getattr(logging, self.config.logging.level.upper()))
        file_handler.setFormatter(logging.Formatter(self.config.logging.format))
        logger.addHandler(file_handler)

        # Console output stays at WARNING so it doesn't drown the CLI tables
        if self.config.logging.console:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(logging.WARNING)
            console_handler.setFormatter(logging.Formatter('%(name)s - %(levelname)s - %(message)s'))
            logger.addHandler(console_handler)

        return logger

    def update_log_level(self, level: str) -> None:
        """Update log level for all existing loggers."""
        log_level = getattr(logging, level.upper())
        for logger in self._loggers.values():
            logger.setLevel(log_level)
            for handler in logger.handlers:
                if isinstance(handler, logging.FileHandler):
                    handler.setLevel(log_level)

    def get_system_info(self) -> Dict[str, Any]:
        """Get logging system information."""
        return {
            "log_level": self.config.logging.level,
            "log_file": self.config.logging.file,
            "active_loggers": list(self._loggers.keys())
        }
