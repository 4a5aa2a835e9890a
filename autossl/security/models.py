"""
Data models for the SSL bootstrap.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


@dataclass
class ConnectionPolicy:
    """Outbound connection settings of the node (parsed citus.node_conninfo)."""
    sslmode: Optional[str] = None
    parameters: Dict[str, str] = field(default_factory=dict)


@dataclass
class CredentialFiles:
    """Locations of the private key and certificate configured on the host."""
    key_path: str
    cert_path: str


class BootstrapState(Enum):
    """States of the bootstrap state machine."""
    IDLE = "idle"
    POLICY_CHECK = "policy_check"
    HOST_ENABLE = "host_enable"
    EXISTENCE_CHECK = "existence_check"
    GENERATE = "generate"
    PERSIST = "persist"
    RELOAD = "reload"
    DONE = "done"
    FAILED = "failed"


@dataclass
class BootstrapResult:
    """Result of a bootstrap run that reached the DONE state."""
    state: BootstrapState
    states_visited: List[BootstrapState]
    encryption_enabled: bool = False
    credentials_created: bool = False
    restart_required: bool = False
    message: str = ""
    credential_files: Optional[CredentialFiles] = None
    step_timings: Dict[str, float] = field(default_factory=dict)

    @property
    def is_noop(self) -> bool:
        """True when the run changed nothing on the host."""
        return not self.encryption_enabled and not self.credentials_created

    def to_dict(self) -> dict:
        return {
            'state': self.state.value,
            'states_visited': [s.value for s in self.states_visited],
            'encryption_enabled': self.encryption_enabled,
            'credentials_created': self.credentials_created,
            'restart_required': self.restart_required,
            'message': self.message,
            'key_path': self.credential_files.key_path if self.credential_files else None,
            'cert_path': self.credential_files.cert_path if self.credential_files else None,
            'step_timings_ms': dict(self.step_timings)
        }
