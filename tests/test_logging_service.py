"""
Tests for the logging service and step timing.
"""
import json
import logging
import os
import shutil
import sys
import tempfile
import unittest

from autossl.models.config import Config
from autossl.services.logging_service import JSONFormatter, LoggingService


class TestJSONFormatter(unittest.TestCase):
    """Test JSON formatter for structured logging."""

    def setUp(self):
        self.formatter = JSONFormatter()

    def test_format_basic_log_record(self):
        logger = logging.getLogger('test')
        record = logger.makeRecord(
            name='test.module',
            level=logging.INFO,
            fn='test_file.py',
            lno=42,
            msg='Stored certificate at %s',
            args=('/data/server.crt',),
            exc_info=None
        )

        log_data = json.loads(self.formatter.format(record))

        self.assertEqual(log_data['level'], 'INFO')
        self.assertEqual(log_data['logger_name'], 'test.module')
        self.assertEqual(log_data['message'], 'Stored certificate at /data/server.crt')
        self.assertEqual(log_data['line_number'], 42)
        self.assertIsNone(log_data['exception_info'])

    def test_format_with_exception(self):
        try:
            raise ValueError("unable to store private key")
        except ValueError:
            exc_info = sys.exc_info()

        record = logging.getLogger('test').makeRecord(
            name='test', level=logging.ERROR, fn='test.py', lno=1,
            msg='failed', args=(), exc_info=exc_info
        )

        log_data = json.loads(self.formatter.format(record))

        self.assertEqual(log_data['exception_info']['type'], 'ValueError')
        self.assertEqual(log_data['exception_info']['message'], 'unable to store private key')

    def test_format_includes_extra_data(self):
        record = logging.getLogger('test').makeRecord(
            name='test', level=logging.DEBUG, fn='test.py', lno=1,
            msg='generate_private_key took 12.0ms', args=(), exc_info=None,
            extra={'extra_data': {'step': 'generate_private_key', 'duration_ms': 12.0}}
        )

        log_data = json.loads(self.formatter.format(record))

        self.assertEqual(log_data['extra_data'], {'step': 'generate_private_key', 'duration_ms': 12.0})


class TestLoggingService(unittest.TestCase):
    """Test the root logger setup."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.root_logger = logging.getLogger()
        self.saved_handlers = self.root_logger.handlers[:]
        self.saved_level = self.root_logger.level
        self.config = Config(log_file_path=os.path.join(self.temp_dir, "logs", "autossl.log"))

    def tearDown(self):
        for handler in self.root_logger.handlers[:]:
            handler.close()
            self.root_logger.removeHandler(handler)
        for handler in self.saved_handlers:
            self.root_logger.addHandler(handler)
        self.root_logger.setLevel(self.saved_level)
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_setup_writes_json_log_file(self):
        service = LoggingService(self.config)
        logging.getLogger('autossl.test').info("hello")
        for handler in self.root_logger.handlers:
            handler.flush()

        with open(self.config.log_file_path) as f:
            lines = [json.loads(line) for line in f if line.strip()]

        self.assertTrue(any(entry['message'] == "hello" for entry in lines))
        self.assertTrue(os.path.exists(os.path.join(self.temp_dir, "logs", "autossl.errors.log")))
        self.assertEqual(service.get_health_status()['status'], 'healthy')

    def test_setup_creates_log_directory(self):
        LoggingService(self.config)
        self.assertTrue(os.path.isdir(os.path.join(self.temp_dir, "logs")))

    def test_errors_go_to_error_log(self):
        service = LoggingService(self.config)
        logging.getLogger('autossl.test').info("routine")
        logging.getLogger('autossl.test').error("broken")
        for handler in self.root_logger.handlers:
            handler.flush()

        with open(service.error_log_path) as f:
            messages = [json.loads(line)['message'] for line in f if line.strip()]

        self.assertEqual(messages, ["broken"])


if __name__ == '__main__':
    unittest.main()
