"""
Unit tests for ConfigService and Config models.
"""
import unittest
import tempfile
import os
import shutil

from autossl.models.config import Config, ConfigValidationError, ConfigValidationResult
from autossl.services.config_service import ConfigService


class TestConfig(unittest.TestCase):
    """Test cases for Config data model."""

    def test_config_default_values(self):
        config = Config()

        self.assertEqual(config.data_directory, "/var/lib/postgresql/data")
        self.assertEqual(config.server_version_num, 160000)
        self.assertTrue(config.ssl_available)
        self.assertEqual(config.certificate_validity_days, 0)
        self.assertEqual(config.admin_host, "127.0.0.1")
        self.assertEqual(config.admin_port, 5433)
        self.assertEqual(config.log_level, "INFO")
        self.assertEqual(config.log_file_path, "logs/autossl.log")

    def test_config_type_validation(self):
        with self.assertRaises(ValueError) as cm:
            Config(server_version_num=0)
        self.assertIn("server_version_num must be a positive integer", str(cm.exception))

        with self.assertRaises(ValueError) as cm:
            Config(certificate_validity_days=-1)
        self.assertIn("certificate_validity_days must be a non-negative integer", str(cm.exception))

        with self.assertRaises(ValueError) as cm:
            Config(admin_port=70000)
        self.assertIn("admin_port must be an integer between 1 and 65535", str(cm.exception))

        with self.assertRaises(ValueError) as cm:
            Config(log_level="VERBOSE")
        self.assertIn("log_level must be one of", str(cm.exception))


class TestConfigValidationResult(unittest.TestCase):
    """Test cases for ConfigValidationResult."""

    def test_errors_and_warnings_are_separated(self):
        result = ConfigValidationResult(
            is_valid=False,
            errors=[
                ConfigValidationError("data_directory", "missing"),
                ConfigValidationError("log_file_path", "no dir", "warning"),
            ],
            warnings=[]
        )

        self.assertTrue(result.has_errors())
        self.assertTrue(result.has_warnings())
        summary = result.get_error_summary()
        self.assertIn("ERROR: data_directory - missing", summary)
        self.assertIn("WARNING: log_file_path - no dir", summary)

    def test_empty_result_summary(self):
        result = ConfigValidationResult(is_valid=True, errors=[], warnings=[])
        self.assertEqual(result.get_error_summary(), "Configuration is valid")


class TestConfigService(unittest.TestCase):
    """Test cases for ConfigService."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.data_dir = os.path.join(self.temp_dir, "data")
        os.makedirs(self.data_dir)
        self.config_path = os.path.join(self.temp_dir, "autossl.properties")
        self.service = ConfigService()

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_config(self, content):
        with open(self.config_path, 'w') as f:
            f.write(content)

    def test_load_config(self):
        self._write_config(f"""
[postgres]
data_directory = {self.data_dir}
server_version_num = 90600
ssl_available = false

[ssl]
certificate_validity_days = 3650

[admin]
port = 6000

[app]
log_level = DEBUG
log_file_path = {self.temp_dir}/autossl.log
""")

        config = self.service.load_config(self.config_path)

        self.assertEqual(config.data_directory, self.data_dir)
        self.assertEqual(config.server_version_num, 90600)
        self.assertFalse(config.ssl_available)
        self.assertEqual(config.certificate_validity_days, 3650)
        self.assertEqual(config.admin_port, 6000)
        self.assertEqual(config.log_level, "DEBUG")
        self.assertIs(self.service.get_config(), config)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            self.service.load_config(os.path.join(self.temp_dir, "missing.properties"))

    def test_get_config_before_load(self):
        with self.assertRaises(ValueError):
            self.service.get_config()

    def test_invalid_integer(self):
        self._write_config(f"""
[postgres]
data_directory = {self.data_dir}
server_version_num = sixteen
""")
        with self.assertRaises(ValueError) as cm:
            self.service.load_config(self.config_path)
        self.assertIn("Invalid value for postgres.server_version_num", str(cm.exception))

    def test_missing_data_directory_is_an_error(self):
        self._write_config(f"""
[postgres]
data_directory = {self.temp_dir}/nope
""")
        with self.assertRaises(ValueError) as cm:
            self.service.load_config(self.config_path)
        self.assertIn("Postgres data directory does not exist", str(cm.exception))

    def test_zero_validity_is_a_warning(self):
        config = Config(data_directory=self.data_dir, log_file_path="")
        result = self.service.validate_config(config)

        self.assertTrue(result.is_valid)
        self.assertEqual([w.field for w in result.warnings], ["certificate_validity_days"])

    def test_missing_log_directory_is_not_reported(self):
        config = Config(
            data_directory=self.data_dir,
            certificate_validity_days=365,
            log_file_path=os.path.join(self.temp_dir, "not-yet", "autossl.log")
        )

        result = self.service.validate_config(config)

        self.assertTrue(result.is_valid)
        self.assertFalse(result.has_warnings())

    def test_create_default_config_file(self):
        path = os.path.join(self.temp_dir, "config", "autossl.properties")
        self.service.create_default_config_file(path)

        with open(path) as f:
            content = f.read()
        self.assertIn("[postgres]", content)
        self.assertIn("certificate_validity_days = 0", content)


if __name__ == '__main__':
    unittest.main()
