"""
Construction of the self-signed X.509 certificate for a node.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from cryptography import x509
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from .errors import CryptoError, CryptoErrorKind


AUTO_SSL_COMMON_NAME = "citus-auto-ssl"
CERTIFICATE_SERIAL_NUMBER = 1


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CertificateBuilder:
    """Builds a self-signed certificate bound to a private key."""

    def __init__(self, validity_days: int = 0, clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize the certificate builder.

        Args:
            validity_days: Distance between notBefore and notAfter. Zero keeps
                the historic zero-length validity window.
            clock: Callable returning the current time (UTC)
        """
        self.validity_days = validity_days
        self.clock = clock or _utc_now
        self.logger = logging.getLogger(__name__)

    def build(self, private_key: rsa.RSAPrivateKey) -> x509.Certificate:
        """
        Create a certificate for the public part of private_key, signed by it.

        Raises:
            CryptoError: If the certificate cannot be assembled or signed
        """
        # Validity is encoded with second precision
        now = self.clock().replace(microsecond=0)
        not_after = now + timedelta(days=self.validity_days)

        try:
            subject = x509.Name([
                x509.NameAttribute(NameOID.COMMON_NAME, AUTO_SSL_COMMON_NAME),
            ])

            builder = x509.CertificateBuilder().serial_number(
                CERTIFICATE_SERIAL_NUMBER
            ).not_valid_before(
                now
            ).not_valid_after(
                not_after
            ).public_key(
                private_key.public_key()
            ).subject_name(
                subject
            ).issuer_name(
                subject
            )
        except (ValueError, TypeError, MemoryError) as e:
            raise CryptoError(
                CryptoErrorKind.ALLOCATION_FAILURE,
                f"unable to allocate space for the x509 certificate: {e}"
            ) from e

        try:
            certificate = builder.sign(private_key, hashes.SHA256(), default_backend())
        except (ValueError, TypeError) as e:
            raise CryptoError(
                CryptoErrorKind.SIGNING_FAILURE,
                f"unable to create signature for the x509 certificate: {e}"
            ) from e

        self.logger.debug(f"Built self-signed certificate for CN={AUTO_SSL_COMMON_NAME}")
        return certificate
