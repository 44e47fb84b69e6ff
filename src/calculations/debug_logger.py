"""
Debug logging for the markup engine
Centralizes tool transitions, history commits and rejected commands
"""

import os
import json
import logging
from enum import Enum
from typing import Any, Dict, Optional


class MarkupDebugLogger:
    """Process-wide debug logger for the markup engine"""

    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self._setup_logger()
            MarkupDebugLogger._initialized = True

    def _setup_logger(self):
        """Configure handlers from MARKUP_DEBUG* environment variables"""
        env_val = str(os.environ.get("MARKUP_DEBUG", "")).strip().lower()
        self.debug_enabled = env_val in {"1", "true", "yes", "on"}

        debug_level = os.environ.get("MARKUP_DEBUG_LEVEL", "INFO").upper()

        self.logger = logging.getLogger('markup_debug')
        self.logger.setLevel(getattr(logging, debug_level, logging.INFO))
        self.logger.handlers.clear()

        if self.debug_enabled:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(logging.DEBUG)

            formatter = logging.Formatter(
                '%(asctime)s [MARKUP-%(levelname)s] %(component)s: %(message)s',
                datefmt='%H:%M:%S'
            )
            console_handler.setFormatter(formatter)
            self.logger.addHandler(console_handler)

            if os.environ.get("MARKUP_DEBUG_FILE"):
                file_handler = logging.FileHandler('markup_debug.log')
                file_handler.setLevel(logging.DEBUG)
                file_handler.setFormatter(formatter)
                self.logger.addHandler(file_handler)

    def _emit(self, level: int, component: str, message: str, data: Optional[Dict[str, Any]] = None):
        if not self.debug_enabled:
            return
        if data:
            message = f"{message} {self._format_debug_data(data)}"
        self.logger.log(level, message, extra={'component': component})

    def debug(self, component: str, message: str, data: Optional[Dict[str, Any]] = None):
        """Log debug message with component context"""
        self._emit(logging.DEBUG, component, message, data)

    def info(self, component: str, message: str, data: Optional[Dict[str, Any]] = None):
        self._emit(logging.INFO, component, message, data)

    def warning(self, component: str, message: str, data: Optional[Dict[str, Any]] = None):
        self._emit(logging.WARNING, component, message, data)

    def error(self, component: str, message: str, error: Optional[Exception] = None, data: Optional[Dict[str, Any]] = None):
        """Log error message with component context"""
        if error:
            message += f" Error: {error}"
        self._emit(logging.ERROR, component, message, data)

    def _format_debug_data(self, data: Dict[str, Any]) -> str:
        """Render structured data as compact JSON"""
        try:
            formatted = {}
            for key, value in data.items():
                if isinstance(value, Enum):
                    formatted[key] = value.value
                elif key in ('points', 'vertices') and isinstance(value, (list, tuple)):
                    # Point lists get long quickly
                    formatted[key] = f"{len(value)} pts"
                elif key.endswith('_m') or key.endswith('_m2') or key == 'ratio':
                    formatted[key] = f"{float(value):.4f}" if isinstance(value, (int, float)) else value
                elif isinstance(value, float):
                    formatted[key] = round(value, 3)
                else:
                    formatted[key] = value
            return json.dumps(formatted, separators=(',', ':'), default=str)
        except (TypeError, ValueError):
            return str(data)

    def log_transition(self, component: str, from_phase: Any, to_phase: Any):
        """Log a tool or calibrator phase change"""
        self.debug(component, "Phase transition", {'from': from_phase, 'to': to_phase})

    def log_commit(self, component: str, action: str, history_length: int, index: int):
        """Log a history entry being recorded"""
        self.info(component, "Committed", {
            'action': action,
            'history_length': history_length,
            'index': index
        })

    def log_notice(self, component: str, message: str):
        """Log a user-facing notice"""
        self.info(component, f"Notice: {message}")

    def log_rejection(self, component: str, reason: str, data: Optional[Dict[str, Any]] = None):
        """Log a command rejected without touching the design state"""
        self.warning(component, f"Rejected: {reason}", data)


# Global logger instance
debug_logger = MarkupDebugLogger()
