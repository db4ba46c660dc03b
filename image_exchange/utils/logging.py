"""Structured logging for the image exchange service"""

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict


class StructuredLogger:
    """Structured logger for the image exchange service"""

    def __init__(self, name: str = "image_exchange"):
        self.name = name
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)

        if not self.logger.handlers:
            self._configure_handlers()

    def _configure_handlers(self) -> None:
        """Configure logger handlers for console and, optionally, file outputs."""
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        self.logger.addHandler(console_handler)

        log_dir = os.getenv("LOG_DIR")
        if log_dir:
            log_path = Path(log_dir)
            log_path.mkdir(parents=True, exist_ok=True)

            info_handler = logging.FileHandler(log_path / "image_exchange.log", encoding="utf-8")
            info_handler.setLevel(logging.INFO)
            info_handler.setFormatter(formatter)

            error_handler = logging.FileHandler(log_path / "image_exchange_error.log", encoding="utf-8")
            error_handler.setLevel(logging.ERROR)
            error_handler.setFormatter(formatter)

            self.logger.addHandler(info_handler)
            self.logger.addHandler(error_handler)

        self.logger.propagate = False

    def _payload(self, key: str, value: str, data: Dict[str, Any] = None) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            key: value,
            "service": self.name,
        }
        if data:
            log_data.update(data)
        return json.dumps(log_data, default=str)

    def log_step(self, step: str, data: Dict[str, Any] = None):
        """Log a processing step"""
        self.logger.info(f"STEP: {self._payload('step', step, data)}")

    def log_warning(self, warning: str, data: Dict[str, Any] = None):
        self.logger.warning(f"WARNING: {self._payload('warning', warning, data)}")

    def log_error(self, error_type: str, data: Dict[str, Any] = None):
        """Log an error"""
        self.logger.error(f"ERROR: {self._payload('error', error_type, data)}")


# Global logger instance
logger = StructuredLogger()
