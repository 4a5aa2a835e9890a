"""
RSA private key generation for the self-signed node certificate.
"""
import logging

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives.asymmetric import rsa

from .errors import CryptoError, CryptoErrorKind


RSA_KEY_SIZE = 2048
RSA_PUBLIC_EXPONENT = 65537


class KeyPairGenerator:
    """Generates the RSA key pair used for the node certificate."""

    def __init__(self, key_size: int = RSA_KEY_SIZE, public_exponent: int = RSA_PUBLIC_EXPONENT):
        self.key_size = key_size
        self.public_exponent = public_exponent
        self.logger = logging.getLogger(__name__)

    def generate(self) -> rsa.RSAPrivateKey:
        """
        Generate a new RSA private key.

        Returns:
            The generated private key, holding its public component.

        Raises:
            CryptoError: If any step of the key generation fails
        """
        self._check_exponent()

        try:
            private_key = rsa.generate_private_key(
                public_exponent=self.public_exponent,
                key_size=self.key_size,
                backend=default_backend()
            )
        except MemoryError as e:
            raise CryptoError(
                CryptoErrorKind.ALLOCATION_FAILURE,
                "unable to allocate space for private key"
            ) from e
        except (ValueError, UnsupportedAlgorithm) as e:
            raise CryptoError(
                CryptoErrorKind.KEY_GEN_FAILURE,
                f"unable to generate RSA key: {e}"
            ) from e

        self._check_key(private_key)

        self.logger.debug(f"Generated {self.key_size} bit RSA key")
        return private_key

    def _check_exponent(self):
        # OpenSSL only accepts odd exponents of at least 3
        if self.public_exponent < 3 or self.public_exponent % 2 == 0:
            raise CryptoError(
                CryptoErrorKind.EXPONENT_SETUP_FAILURE,
                f"unable to prepare exponent {self.public_exponent} for RSA algorithm"
            )

    def _check_key(self, private_key: rsa.RSAPrivateKey):
        """Verify the generated key carries the requested parameters."""
        public_numbers = private_key.public_key().public_numbers()
        if private_key.key_size != self.key_size or public_numbers.e != self.public_exponent:
            raise CryptoError(
                CryptoErrorKind.KEY_ASSIGN_FAILURE,
                "unable to assign RSA key to use as private key"
            )
