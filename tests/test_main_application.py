"""
Tests for the command line entry point.
"""

import logging
import os
import shutil
import sys
import tempfile
import pytest
from unittest.mock import patch

from autossl.main import AutoSSLApplication, main
from autossl.security.models import BootstrapState


class _ApplicationFixture:
    """Temporary data directory and configuration file."""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.data_dir = os.path.join(self.temp_dir, "data")
        os.makedirs(self.data_dir)
        with open(os.path.join(self.data_dir, "postgresql.conf"), 'w') as f:
            f.write("ssl = off\n")

        self.config_path = os.path.join(self.temp_dir, "autossl.properties")
        with open(self.config_path, 'w') as f:
            f.write(f"""
[postgres]
data_directory = {self.data_dir}
server_version_num = 160000

[app]
log_level = INFO
log_file_path = {self.temp_dir}/logs/autossl.log
""")

        self.root_logger = logging.getLogger()
        self.saved_handlers = self.root_logger.handlers[:]
        self.saved_level = self.root_logger.level

    def teardown_method(self):
        for handler in self.root_logger.handlers[:]:
            handler.close()
            self.root_logger.removeHandler(handler)
        for handler in self.saved_handlers:
            self.root_logger.addHandler(handler)
        self.root_logger.setLevel(self.saved_level)
        shutil.rmtree(self.temp_dir, ignore_errors=True)


class TestAutoSSLApplication(_ApplicationFixture):
    """Test cases for AutoSSLApplication."""

    def test_initialize(self):
        app = AutoSSLApplication(config_path=self.config_path)

        assert app.initialize()
        assert app.config.data_directory == self.data_dir
        assert app.orchestrator is not None
        assert app.logging_service is not None

    def test_initialize_creates_default_config_when_missing(self):
        config_path = os.path.join(self.temp_dir, "config", "autossl.properties")
        app = AutoSSLApplication(config_path=config_path)

        assert not app.initialize()
        assert os.path.exists(config_path)

    def test_initialize_fails_on_invalid_config(self):
        with open(self.config_path, 'w') as f:
            f.write("[postgres]\ndata_directory = /nonexistent/autossl/data\n")

        app = AutoSSLApplication(config_path=self.config_path)

        assert not app.initialize()

    def test_setup_ssl_creates_credentials(self, capsys):
        app = AutoSSLApplication(config_path=self.config_path)
        assert app.initialize()

        assert app.setup_ssl() == 0

        output = capsys.readouterr().out
        assert "SSL setup finished: ssl enabled" in output
        assert os.path.exists(os.path.join(self.data_dir, "server.key"))
        assert os.path.exists(os.path.join(self.data_dir, "server.crt"))
        with open(os.path.join(self.data_dir, "postgresql.auto.conf")) as f:
            assert "ssl = 'on'" in f.read()

    def test_setup_ssl_reports_storage_failure(self, capsys):
        with open(os.path.join(self.data_dir, "postgresql.conf"), 'a') as f:
            f.write("ssl_cert_file = 'missing/server.crt'\n")
        app = AutoSSLApplication(config_path=self.config_path)
        assert app.initialize()

        assert app.setup_ssl() == 1

        assert "SSL setup failed" in capsys.readouterr().out
        assert os.path.exists(os.path.join(self.data_dir, "server.key"))

    def test_setup_ssl_reports_malformed_conninfo(self, capsys):
        with open(os.path.join(self.data_dir, "postgresql.conf"), 'a') as f:
            f.write("citus.node_conninfo = 'sslmode require'\n")
        app = AutoSSLApplication(config_path=self.config_path)
        assert app.initialize()

        assert app.setup_ssl() == 1

        assert "SSL setup failed" in capsys.readouterr().out
        assert app.orchestrator.state == BootstrapState.FAILED
        assert not os.path.exists(os.path.join(self.data_dir, "postgresql.auto.conf"))

    def test_setup_ssl_reports_unwritable_configuration(self, capsys):
        app = AutoSSLApplication(config_path=self.config_path)
        assert app.initialize()

        with patch.object(app.orchestrator.host, 'enable_encryption',
                          side_effect=PermissionError("permission denied")):
            assert app.setup_ssl() == 1

        assert "SSL setup failed" in capsys.readouterr().out
        assert app.orchestrator.state == BootstrapState.FAILED

    def test_reset_node_conninfo_reports_failure(self, capsys):
        app = AutoSSLApplication(config_path=self.config_path)
        assert app.initialize()

        with patch.object(app.orchestrator.host, 'apply_config_override',
                          side_effect=OSError("read-only file system")):
            assert app.reset_node_conninfo() == 1

        assert "Reset of citus.node_conninfo failed" in capsys.readouterr().out

    def test_print_status_reports_malformed_conninfo(self, capsys):
        with open(os.path.join(self.data_dir, "postgresql.conf"), 'a') as f:
            f.write("citus.node_conninfo = '=require'\n")
        app = AutoSSLApplication(config_path=self.config_path)
        assert app.initialize()

        assert app.print_status() == 1

        assert "Unable to read ssl status" in capsys.readouterr().out

    def test_reset_node_conninfo(self, capsys):
        app = AutoSSLApplication(config_path=self.config_path)
        assert app.initialize()

        assert app.reset_node_conninfo() == 0

        with open(os.path.join(self.data_dir, "postgresql.auto.conf")) as f:
            assert "citus.node_conninfo = 'sslmode=prefer'" in f.read()

    def test_print_status(self, capsys):
        app = AutoSSLApplication(config_path=self.config_path)
        assert app.initialize()

        assert app.print_status() == 0

        output = capsys.readouterr().out
        assert "ssl_enabled: False" in output
        assert "sslmode: require" in output


class TestMain(_ApplicationFixture):
    """Test cases for the main() argument handling."""

    def test_check_config(self, capsys):
        with patch.object(sys, 'argv', ['autossl', '--config', self.config_path, '--check-config']):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 0
        assert "Configuration check passed" in capsys.readouterr().out

    def test_setup_ssl_command(self):
        with patch.object(sys, 'argv', ['autossl', '-c', self.config_path, 'setup-ssl']):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 0
        assert os.path.exists(os.path.join(self.data_dir, "server.crt"))

    def test_missing_command(self):
        with patch.object(sys, 'argv', ['autossl', '-c', self.config_path]):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 1

    def test_initialize_failure_exits(self):
        missing = os.path.join(self.temp_dir, "new", "autossl.properties")
        with patch.object(sys, 'argv', ['autossl', '-c', missing, 'status']):
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 1
