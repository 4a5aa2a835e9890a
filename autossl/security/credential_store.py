"""
Credential store for checking and persisting the node's key and certificate.
"""
import logging
import os
from typing import Callable

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from .errors import StorageError, StorageErrorKind
from .models import CredentialFiles


PRIVATE_KEY_FILE_MODE = 0o600
CERTIFICATE_FILE_MODE = 0o644


class CredentialStore:
    """Service for checking and persisting PEM encoded key material."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def exists(self, cert_path: str) -> bool:
        """
        Check whether a loadable certificate chain is present at cert_path.

        Trust and expiry are not considered; a file that parses as at least
        one PEM certificate counts as present.
        """
        try:
            with open(cert_path, 'rb') as f:
                content = f.read()
        except OSError as e:
            self.logger.debug(f"Certificate not readable at {cert_path}: {e}")
            return False

        try:
            certificates = x509.load_pem_x509_certificates(content)
        except ValueError as e:
            self.logger.debug(f"Certificate at {cert_path} could not be parsed: {e}")
            return False

        return len(certificates) > 0

    def persist(self, private_key: rsa.RSAPrivateKey, certificate: x509.Certificate,
                files: CredentialFiles) -> None:
        """
        Write the private key and then the certificate to their configured paths.

        The two writes are not atomic. When the certificate write fails the
        private key stays on disk.

        Raises:
            StorageError: If either file cannot be opened or written
        """
        self._write_file(
            files.key_path,
            lambda: private_key.private_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PrivateFormat.PKCS8,
                encryption_algorithm=serialization.NoEncryption()
            ),
            PRIVATE_KEY_FILE_MODE,
            "private key"
        )
        self.logger.info(f"Stored private key at {files.key_path}")

        self._write_file(
            files.cert_path,
            lambda: certificate.public_bytes(serialization.Encoding.PEM),
            CERTIFICATE_FILE_MODE,
            "certificate"
        )
        self.logger.info(f"Stored certificate at {files.cert_path}")

    def _write_file(self, path: str, render: Callable[[], bytes], mode: int, description: str):
        """Open path for binary writing and store the rendered PEM bytes."""
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
        except OSError as e:
            raise StorageError(
                StorageErrorKind.OPEN_FAILURE,
                f"unable to open {description} file '{path}' for writing: {e}",
                path
            ) from e

        try:
            with os.fdopen(fd, 'wb') as f:
                # the mode passed to open() does not apply to a file that already existed
                if hasattr(os, 'fchmod'):
                    os.fchmod(f.fileno(), mode)
                f.write(render())
        except (OSError, ValueError) as e:
            raise StorageError(
                StorageErrorKind.WRITE_FAILURE,
                f"unable to store {description}: {e}",
                path
            ) from e
