"""
Security package for generating and storing the node's SSL credentials.
"""
from .errors import (
    AutoSSLError, CryptoError, CryptoErrorKind, HostConfigurationError,
    StorageError, StorageErrorKind
)
from .models import ConnectionPolicy, CredentialFiles, BootstrapState, BootstrapResult
from .key_generator import KeyPairGenerator
from .certificate_builder import CertificateBuilder, AUTO_SSL_COMMON_NAME
from .credential_store import CredentialStore

__all__ = [
    'AutoSSLError',
    'CryptoError',
    'CryptoErrorKind',
    'HostConfigurationError',
    'StorageError',
    'StorageErrorKind',
    'ConnectionPolicy',
    'CredentialFiles',
    'BootstrapState',
    'BootstrapResult',
    'KeyPairGenerator',
    'CertificateBuilder',
    'AUTO_SSL_COMMON_NAME',
    'CredentialStore'
]
