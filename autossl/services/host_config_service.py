"""
Host configuration collaborator used by the SSL bootstrap.

The bootstrap never touches global host state directly; it talks to a
HostConfiguration. PostgresHostConfiguration implements it on top of a
Postgres data directory the way ALTER SYSTEM and pg_reload_conf() do.
"""
import logging
import os
import signal
import tempfile
from abc import ABC, abstractmethod
from typing import Dict, Optional

from ..security.models import ConnectionPolicy, CredentialFiles
from .policy_evaluator import parse_conninfo


POSTGRESQL_CONF = "postgresql.conf"
POSTGRESQL_AUTO_CONF = "postgresql.auto.conf"
POSTMASTER_PID = "postmaster.pid"

AUTO_CONF_HEADER = (
    "# Do not edit this file manually!\n"
    "# It will be overwritten by the ALTER SYSTEM command.\n"
)

NODE_CONNINFO_SETTING = "citus.node_conninfo"
DEFAULT_NODE_CONNINFO = "sslmode=require"
DEFAULT_SSL_CERT_FILE = "server.crt"
DEFAULT_SSL_KEY_FILE = "server.key"

# postgres 10 introduced reloading ssl settings without a restart
LIVE_SSL_RELOAD_VERSION_NUM = 100000

_BOOL_WORDS = (("true", True), ("yes", True), ("false", False), ("no", False))


class HostConfiguration(ABC):
    """Interface to the host configuration subsystem."""

    @abstractmethod
    def is_encryption_enabled(self) -> bool:
        """Check whether transport encryption is active in the running host."""
        pass

    @abstractmethod
    def enable_encryption(self) -> None:
        """Persist the configuration change that turns transport encryption on."""
        pass

    @abstractmethod
    def apply_config_override(self, setting_name: str, literal_value: str) -> None:
        """Persist setting_name = literal_value in the host configuration."""
        pass

    @abstractmethod
    def reload_live_configuration(self) -> None:
        """Apply persisted configuration changes to the running host."""
        pass

    @abstractmethod
    def get_outbound_connection_policy(self) -> ConnectionPolicy:
        """Get the policy used for connections to other nodes."""
        pass

    @abstractmethod
    def get_credential_paths(self) -> CredentialFiles:
        """Get the configured private key and certificate paths."""
        pass

    def supports_live_reload(self) -> bool:
        """Check whether reload_live_configuration takes effect without a restart."""
        return True

    def supports_encryption(self) -> bool:
        """Check whether the host was built with transport encryption support."""
        return True


def parse_config_file(path: str) -> Dict[str, str]:
    """
    Parse a postgresql.conf style file into a dictionary.

    Setting names are lower-cased. Later occurrences of a setting win.
    Missing files yield an empty dictionary.
    """
    settings: Dict[str, str] = {}
    if not os.path.exists(path):
        return settings

    with open(path, 'r', encoding='utf-8') as f:
        for line_number, raw_line in enumerate(f, start=1):
            parsed = _parse_config_line(raw_line)
            if parsed is None:
                continue
            name, value = parsed
            if name in ("include", "include_dir", "include_if_exists"):
                logging.getLogger(__name__).debug(
                    f"Ignoring {name} directive in {path}:{line_number}"
                )
                continue
            settings[name] = value

    return settings


def _parse_config_line(line: str) -> Optional[tuple]:
    line = line.strip()
    if not line or line.startswith('#'):
        return None

    pos = 0
    while pos < len(line) and not line[pos].isspace() and line[pos] != '=':
        pos += 1
    name = line[:pos].lower()
    rest = line[pos:].lstrip()
    if rest.startswith('='):
        rest = rest[1:].lstrip()

    if rest.startswith("'"):
        value_chars = []
        pos = 1
        while pos < len(rest):
            char = rest[pos]
            if char == '\\' and pos + 1 < len(rest):
                value_chars.append(rest[pos + 1])
                pos += 2
            elif char == "'" and rest[pos + 1:pos + 2] == "'":
                value_chars.append("'")
                pos += 2
            elif char == "'":
                break
            else:
                value_chars.append(char)
                pos += 1
        else:
            raise ValueError(f"unterminated quoted string in configuration line: {line}")
        return name, ''.join(value_chars)

    value = rest.split('#', 1)[0].strip()
    return name, value


def _quote_config_value(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "''")
    return "'" + escaped + "'"


def parse_bool_setting(value: Optional[str]) -> Optional[bool]:
    """
    Parse a boolean setting the way the Postgres GUC parser does.

    Unique prefixes of true, false, yes and no are accepted, as are on,
    off, 1 and 0. Returns None for anything else.
    """
    value = (value or "").strip().lower()
    if not value:
        return None
    for word, result in _BOOL_WORDS:
        if word.startswith(value):
            return result
    if len(value) >= 2 and "on".startswith(value):
        return True
    if len(value) >= 2 and "off".startswith(value):
        return False
    if value in ("1", "0"):
        return value == "1"
    return None


class PostgresHostConfiguration(HostConfiguration):
    """Host configuration backed by the files in a Postgres data directory."""

    def __init__(self, data_directory: str, server_version_num: int = 160000,
                 ssl_available: bool = True):
        """
        Initialize the host configuration.

        Args:
            data_directory: Postgres data directory
            server_version_num: Numeric server version, e.g. 160000
            ssl_available: Whether the server was built with SSL support
        """
        self.data_directory = data_directory
        self.server_version_num = server_version_num
        self.ssl_available = ssl_available
        self.logger = logging.getLogger(__name__)
        self._settings = self._read_settings()

    @property
    def auto_conf_path(self) -> str:
        return os.path.join(self.data_directory, POSTGRESQL_AUTO_CONF)

    def _read_settings(self) -> Dict[str, str]:
        settings = parse_config_file(os.path.join(self.data_directory, POSTGRESQL_CONF))
        settings.update(parse_config_file(self.auto_conf_path))
        return settings

    def get_setting(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get the value of a setting as seen by the running server."""
        return self._settings.get(name.lower(), default)

    def is_encryption_enabled(self) -> bool:
        return parse_bool_setting(self.get_setting("ssl", "off")) is True

    def enable_encryption(self) -> None:
        self.apply_config_override("ssl", "on")

    def apply_config_override(self, setting_name: str, literal_value: str) -> None:
        """
        Write setting_name = literal_value to postgresql.auto.conf.

        The running server only sees the change after a reload.
        """
        auto_settings = parse_config_file(self.auto_conf_path)
        auto_settings[setting_name.lower()] = literal_value

        lines = [AUTO_CONF_HEADER]
        for name, value in auto_settings.items():
            lines.append(f"{name} = {_quote_config_value(value)}\n")

        fd, temp_path = tempfile.mkstemp(
            prefix=POSTGRESQL_AUTO_CONF + ".", suffix=".tmp", dir=self.data_directory
        )
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.writelines(lines)
            os.replace(temp_path, self.auto_conf_path)
        except OSError:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise

        self.logger.info(f"ALTER SYSTEM SET {setting_name} TO {_quote_config_value(literal_value)}")

    def reload_live_configuration(self) -> None:
        """Re-read the configuration files and signal the postmaster."""
        self._settings = self._read_settings()

        pid = self._read_postmaster_pid()
        if pid is None:
            self.logger.info("No running postmaster found, configuration will be read on start")
            return

        try:
            os.kill(pid, signal.SIGHUP)
            self.logger.info(f"Sent SIGHUP to postmaster (pid {pid})")
        except ProcessLookupError:
            self.logger.warning(f"Stale {POSTMASTER_PID}: no process with pid {pid}")

    def _read_postmaster_pid(self) -> Optional[int]:
        pid_path = os.path.join(self.data_directory, POSTMASTER_PID)
        try:
            with open(pid_path, 'r') as f:
                first_line = f.readline().strip()
        except FileNotFoundError:
            return None

        try:
            return int(first_line)
        except ValueError:
            self.logger.warning(f"Unable to parse pid from {pid_path}: {first_line!r}")
            return None

    def supports_live_reload(self) -> bool:
        return self.server_version_num >= LIVE_SSL_RELOAD_VERSION_NUM

    def supports_encryption(self) -> bool:
        return self.ssl_available

    def get_outbound_connection_policy(self) -> ConnectionPolicy:
        conninfo = self.get_setting(NODE_CONNINFO_SETTING, DEFAULT_NODE_CONNINFO)
        return parse_conninfo(conninfo)

    def get_credential_paths(self) -> CredentialFiles:
        key_file = self.get_setting("ssl_key_file") or DEFAULT_SSL_KEY_FILE
        cert_file = self.get_setting("ssl_cert_file") or DEFAULT_SSL_CERT_FILE
        return CredentialFiles(
            key_path=os.path.join(self.data_directory, key_file),
            cert_path=os.path.join(self.data_directory, cert_file)
        )
