"""
Error taxonomy for the SSL bootstrap.

Every error here is fatal to a bootstrap attempt. Nothing is retried and no
files written by an earlier step are cleaned up.
"""
from enum import Enum
from typing import Optional


class CryptoErrorKind(Enum):
    """Cryptographic steps that can fail while producing key material."""
    ALLOCATION_FAILURE = "allocation_failure"
    EXPONENT_SETUP_FAILURE = "exponent_setup_failure"
    KEY_GEN_FAILURE = "key_gen_failure"
    KEY_ASSIGN_FAILURE = "key_assign_failure"
    SIGNING_FAILURE = "signing_failure"


class StorageErrorKind(Enum):
    """File operations that can fail while persisting key material."""
    OPEN_FAILURE = "open_failure"
    WRITE_FAILURE = "write_failure"


class AutoSSLError(Exception):
    """Base class for bootstrap failures."""

    def to_dict(self) -> dict:
        return {
            'error_type': type(self).__name__,
            'message': str(self)
        }


class CryptoError(AutoSSLError):
    """Raised when key generation or certificate signing fails."""

    def __init__(self, kind: CryptoErrorKind, message: str):
        super().__init__(message)
        self.kind = kind

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['kind'] = self.kind.value
        return data


class StorageError(AutoSSLError):
    """Raised when the private key or certificate cannot be written."""

    def __init__(self, kind: StorageErrorKind, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.path = path

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['kind'] = self.kind.value
        data['path'] = self.path
        return data


class HostConfigurationError(AutoSSLError):
    """Raised when the host configuration cannot be read or written."""

    def __init__(self, message: str, setting: Optional[str] = None):
        super().__init__(message)
        self.setting = setting

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['setting'] = self.setting
        return data
