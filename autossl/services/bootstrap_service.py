"""
Bootstrap orchestration for turning on SSL and creating node credentials.
"""
import logging
import threading
import time
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from ..security.certificate_builder import CertificateBuilder
from ..security.credential_store import CredentialStore
from ..security.errors import AutoSSLError, HostConfigurationError
from ..security.key_generator import KeyPairGenerator
from ..security.models import BootstrapResult, BootstrapState, CredentialFiles
from .host_config_service import HostConfiguration, NODE_CONNINFO_SETTING
from .policy_evaluator import PolicyEvaluator


RESET_NODE_CONNINFO_VALUE = "sslmode=prefer"

RESTART_REQUIRED_DETAIL = (
    "citus enables ssl in postgres. Postgres versions before 10.0 require a "
    "restart for changes to ssl to take effect."
)
RESTART_REQUIRED_HINT = (
    "when restarting is not possible disable ssl and change citus.node_conninfo "
    "to have sslmode lower than require."
)

# Callers must not run two bootstraps against the same node concurrently;
# this only serialises runs inside one process.
_bootstrap_lock = threading.Lock()


class BootstrapOrchestrator:
    """Turns on SSL for a node and makes sure a key and certificate exist."""

    def __init__(self, host: HostConfiguration,
                 policy_evaluator: Optional[PolicyEvaluator] = None,
                 key_generator: Optional[KeyPairGenerator] = None,
                 certificate_builder: Optional[CertificateBuilder] = None,
                 credential_store: Optional[CredentialStore] = None):
        self.host = host
        self.policy_evaluator = policy_evaluator or PolicyEvaluator()
        self.key_generator = key_generator or KeyPairGenerator()
        self.certificate_builder = certificate_builder or CertificateBuilder()
        self.credential_store = credential_store or CredentialStore()
        self.logger = logging.getLogger(__name__)

        self.state = BootstrapState.IDLE
        self.states_visited: List[BootstrapState] = []
        self.step_timings: Dict[str, float] = {}
        self.last_error: Optional[AutoSSLError] = None

    def run(self) -> BootstrapResult:
        """
        Run the bootstrap state machine once.

        Any failure moves the orchestrator to FAILED and is re-raised.

        Returns:
            BootstrapResult describing what was changed

        Raises:
            CryptoError: If the key or certificate could not be generated
            StorageError: If the key or certificate could not be written
            HostConfigurationError: If the host configuration could not be
                read, written or reloaded
        """
        with _bootstrap_lock:
            self.states_visited = []
            self.step_timings = {}
            self.last_error = None
            self._transition(BootstrapState.IDLE)

            try:
                return self._run_steps()
            except AutoSSLError as e:
                self._fail(e)
                raise
            except (OSError, ValueError) as e:
                error = HostConfigurationError(f"host configuration failed: {e}")
                self._fail(error)
                raise error from e

    def _run_steps(self) -> BootstrapResult:
        if not self.host.supports_encryption():
            self.logger.warning("can not setup ssl on postgres that is not compiled with ssl support")
            return self._finish("host has no ssl support")

        if self.host.is_encryption_enabled():
            self.logger.debug("ssl already enabled, nothing to do")
            return self._finish("ssl already enabled")

        self._transition(BootstrapState.POLICY_CHECK)
        policy = self.host.get_outbound_connection_policy()
        if not self.policy_evaluator.should_auto_enable(policy):
            self.logger.info(f"sslmode is {policy.sslmode!r}, not enabling ssl automatically")
            return self._finish("outbound connections do not require ssl")

        self._transition(BootstrapState.HOST_ENABLE)
        self.logger.info("citus extension created on postgres without ssl enabled, turning it on")
        self.host.enable_encryption()

        self._transition(BootstrapState.EXISTENCE_CHECK)
        files = self.host.get_credential_paths()
        credentials_created = False
        if self.credential_store.exists(files.cert_path):
            self.logger.info(f"Certificate found at {files.cert_path}, keeping existing credentials")
        else:
            self.logger.info("no certificate present, generating self signed certificate")
            self._create_credentials(files)
            credentials_created = True

        # ssl = on was persisted above, so reload even when the credentials existed
        self._transition(BootstrapState.RELOAD)
        restart_required = self._reload()

        return self._finish(
            "ssl enabled" + (", restart required" if restart_required else ""),
            encryption_enabled=True,
            credentials_created=credentials_created,
            restart_required=restart_required,
            credential_files=files
        )

    def _create_credentials(self, files: CredentialFiles):
        """Generate a key and certificate and write both to disk."""
        self._transition(BootstrapState.GENERATE)
        with self._timed("generate_private_key"):
            private_key = self.key_generator.generate()
        with self._timed("create_certificate"):
            certificate = self.certificate_builder.build(private_key)

        self._transition(BootstrapState.PERSIST)
        with self._timed("store_certificate"):
            self.credential_store.persist(private_key, certificate, files)

    def reset_default_for_node_conninfo(self) -> bool:
        """
        Pin citus.node_conninfo back to the pre-ssl default.

        Used on upgrade when the new default would require ssl on a cluster
        that runs without it.

        Returns:
            True if a restart is required for the change to take effect

        Raises:
            HostConfigurationError: If the setting could not be written or reloaded
        """
        with _bootstrap_lock:
            self.logger.info(
                f"reset {NODE_CONNINFO_SETTING} to old default value as the new value is "
                "incompatible with the current ssl setting"
            )
            try:
                self.host.apply_config_override(NODE_CONNINFO_SETTING, RESET_NODE_CONNINFO_VALUE)
                return self._reload()
            except (OSError, ValueError) as e:
                self.last_error = HostConfigurationError(
                    f"unable to reset {NODE_CONNINFO_SETTING}: {e}", NODE_CONNINFO_SETTING
                )
                self.logger.error(str(self.last_error))
                raise self.last_error from e

    def get_status(self) -> Dict[str, Any]:
        """Get the current ssl state of the node without changing anything."""
        policy = self.host.get_outbound_connection_policy()
        files = self.host.get_credential_paths()
        return {
            'ssl_supported': self.host.supports_encryption(),
            'ssl_enabled': self.host.is_encryption_enabled(),
            'sslmode': policy.sslmode,
            'auto_ssl': self.policy_evaluator.should_auto_enable(policy),
            'key_path': files.key_path,
            'cert_path': files.cert_path,
            'certificate_present': self.credential_store.exists(files.cert_path),
            'live_reload_supported': self.host.supports_live_reload(),
            'last_state': self.state.value,
            'last_error': self.last_error.to_dict() if self.last_error else None,
            'last_step_timings_ms': dict(self.step_timings)
        }

    def _reload(self) -> bool:
        """Reload the host configuration. Returns True when a restart is required instead."""
        if self.host.supports_live_reload():
            self.host.reload_live_configuration()
            return False

        self.logger.warning(
            f"restart of postgres required. {RESTART_REQUIRED_DETAIL} Hint: {RESTART_REQUIRED_HINT}"
        )
        return True

    @contextmanager
    def _timed(self, step: str):
        start_time = time.perf_counter()
        try:
            yield
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self.step_timings[step] = duration_ms
            self.logger.debug(
                f"{step} took {duration_ms:.1f}ms",
                extra={'extra_data': {'step': step, 'duration_ms': duration_ms}}
            )

    def _transition(self, state: BootstrapState):
        self.state = state
        self.states_visited.append(state)

    def _fail(self, error: AutoSSLError):
        failed_in = self.state
        self.last_error = error
        self._transition(BootstrapState.FAILED)
        self.logger.error(f"SSL bootstrap failed in {failed_in.value}: {error}")

    def _finish(self, message: str, **kwargs) -> BootstrapResult:
        self._transition(BootstrapState.DONE)
        return BootstrapResult(
            state=self.state,
            states_visited=list(self.states_visited),
            message=message,
            step_timings=dict(self.step_timings),
            **kwargs
        )
