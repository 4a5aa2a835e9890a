"""
Logging setup for the SSL bootstrap.

Log records go to a rotating JSON file, a second JSON file that only
receives errors, and a plain text console stream.
"""
import json
import logging
import logging.handlers
import os
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Dict


LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5
ERROR_LOG_MAX_BYTES = 5 * 1024 * 1024
ERROR_LOG_BACKUPS = 3

CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class JSONFormatter(logging.Formatter):
    """Formats each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger_name': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line_number': record.lineno,
            'process_id': record.process,
            # step timings and similar structured values
            'extra_data': getattr(record, 'extra_data', None),
            'exception_info': None
        }

        if record.exc_info and record.exc_info[0]:
            exc_type, exc_value, exc_tb = record.exc_info
            entry['exception_info'] = {
                'type': exc_type.__name__,
                'message': str(exc_value),
                'traceback': traceback.format_exception(exc_type, exc_value, exc_tb)
            }

        return json.dumps(entry, default=str)


class LoggingService:
    """Installs the application's handlers on the root logger."""

    def __init__(self, config):
        """
        Initialize logging from configuration.

        Args:
            config: Config providing log_file_path and log_level
        """
        self.config = config
        self.log_file_path = Path(config.log_file_path)
        self.error_log_path = self.log_file_path.with_suffix('.errors.log')
        self.level = getattr(logging, config.log_level.upper(), logging.INFO)

        self._setup_logging()
        self.logger = logging.getLogger(__name__)
        self.logger.info(f"Logging to {self.log_file_path} at level {config.log_level}")

    def _setup_logging(self):
        self.log_file_path.parent.mkdir(parents=True, exist_ok=True)

        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
        root_logger.setLevel(self.level)

        json_formatter = JSONFormatter()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        console_handler.setLevel(self.level)

        root_logger.addHandler(self._rotating_handler(
            self.log_file_path, LOG_FILE_MAX_BYTES, LOG_FILE_BACKUPS, self.level, json_formatter
        ))
        root_logger.addHandler(console_handler)
        root_logger.addHandler(self._rotating_handler(
            self.error_log_path, ERROR_LOG_MAX_BYTES, ERROR_LOG_BACKUPS, logging.ERROR, json_formatter
        ))

    @staticmethod
    def _rotating_handler(path: Path, max_bytes: int, backups: int, level: int,
                          formatter: logging.Formatter) -> logging.Handler:
        handler = logging.handlers.RotatingFileHandler(
            filename=str(path),
            maxBytes=max_bytes,
            backupCount=backups,
            encoding='utf-8'
        )
        handler.setFormatter(formatter)
        handler.setLevel(level)
        return handler

    def get_health_status(self) -> Dict[str, Any]:
        """Report whether the log files can still be written."""
        log_dir = self.log_file_path.parent
        writable = log_dir.is_dir() and os.access(log_dir, os.W_OK)
        status: Dict[str, Any] = {
            'status': 'healthy' if writable else 'unhealthy',
            'log_file': str(self.log_file_path),
            'log_file_writable': writable,
            'timestamp': datetime.now().isoformat()
        }
        if not writable:
            status['error'] = f"log directory {log_dir} is not writable"
        return status
