"""
Vault Keys — RSA key pair generation, serialization and key handles.

Key encodings:
    private key = base64(DER RSAPrivateKey)   (PKCS#8 DER is also accepted)
    public key  = PEM SubjectPublicKeyInfo

Key handles only expose what the envelope needs: the public handle wraps a
symmetric key, the private handle unwraps it. Both use RSA-OAEP with SHA-256
as the hash and the MGF1 hash.

Security Note:
    Never log key material. Only log key sizes.
"""
import base64
import binascii
import logging
from abc import ABC, abstractmethod
from typing import NamedTuple, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from ..exceptions import InvalidKeyFormat, KeyGenerationError

logger = logging.getLogger("sealed_env.vault")

PUBLIC_EXPONENT = 65537
DEFAULT_KEY_SIZE = 2048
MIN_KEY_SIZE = 2048


def _oaep() -> padding.OAEP:
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=None,
    )


class KeyPair(NamedTuple):
    """Serialized key pair; ``private_key`` must be kept secret."""

    private_key: str
    public_key: str


# ---------------------------------------------------------------------------
# Key handles
# ---------------------------------------------------------------------------

class KeyHandle(ABC):
    """Opaque RSA key usable by the envelope protocol.

    Key material never leaves a handle except through an explicit encoding
    call. A :class:`PublicKeyHandle` wraps (encrypts) a symmetric key with
    RSA-OAEP/SHA-256; only the matching :class:`PrivateKeyHandle` can unwrap
    it.
    """


    @property
    @abstractmethod
    def key_size(self) -> int:
        """Modulus size in bits."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} rsa-{self.key_size}>"


class PublicKeyHandle(KeyHandle):
    """Wraps symmetric keys under an RSA public key."""

    def __init__(self, key: rsa.RSAPublicKey):
        self._key = key

    @property
    def key_size(self) -> int:
        return self._key.key_size

    def wrap(self, secret: bytes) -> bytes:
        """Encrypt ``secret`` with RSA-OAEP/SHA-256."""
        return self._key.encrypt(secret, _oaep())

    def to_pem(self) -> str:
        return self._key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        ).decode("ascii")


class PrivateKeyHandle(KeyHandle):
    """Unwraps symmetric keys with an RSA private key."""

    def __init__(self, key: rsa.RSAPrivateKey):
        self._key = key

    @property
    def key_size(self) -> int:
        return self._key.key_size

    def unwrap(self, wrapped: bytes) -> bytes:
        """Decrypt ``wrapped`` with RSA-OAEP/SHA-256.

        Raises:
            ValueError: If the padding check fails (wrong key or corrupted
                input). Callers are expected to collapse this into an
                opaque failure.
        """
        return self._key.decrypt(wrapped, _oaep())

    def public_key(self) -> PublicKeyHandle:
        return PublicKeyHandle(self._key.public_key())

    def to_base64(self) -> str:
        der = self._key.private_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption(),
        )
        return base64.b64encode(der).decode("ascii")


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------

def generate_key_pair(key_size: int = DEFAULT_KEY_SIZE) -> KeyPair:
    """Generate an RSA key pair (public exponent 65537).

    Args:
        key_size: Modulus size in bits, at least 2048.

    Returns:
        KeyPair with the base64 DER private key and the PEM public key.

    Raises:
        KeyGenerationError: If the key size is too small or the underlying
            library cannot produce a key. Not retried.
    """
    if key_size < MIN_KEY_SIZE:
        raise KeyGenerationError(
            f"RSA key size must be at least {MIN_KEY_SIZE} bits, got {key_size}"
        )
    try:
        private_key = rsa.generate_private_key(
            public_exponent=PUBLIC_EXPONENT,
            key_size=key_size,
        )
    except (ValueError, UnsupportedAlgorithm) as err:
        raise KeyGenerationError(f"RSA key generation failed: {err}") from err
    handle = PrivateKeyHandle(private_key)
    logger.debug("Generated RSA key pair (%d bits)", key_size)
    return KeyPair(
        private_key=handle.to_base64(),
        public_key=handle.public_key().to_pem(),
    )


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def parse_public_key(pem: Union[str, bytes]) -> PublicKeyHandle:
    """Load an RSA public key from PEM.

    Raises:
        InvalidKeyFormat: If the PEM is unparseable or not an RSA key.
    """
    if isinstance(pem, str):
        pem = pem.encode("ascii", errors="replace")
    try:
        key = serialization.load_pem_public_key(pem)
    except (ValueError, TypeError, UnsupportedAlgorithm) as err:
        raise InvalidKeyFormat(f"Cannot parse public key PEM: {err}") from err
    if not isinstance(key, rsa.RSAPublicKey):
        raise InvalidKeyFormat("PEM does not contain an RSA public key")
    return PublicKeyHandle(key)


def parse_private_key(encoded: Union[str, bytes]) -> PrivateKeyHandle:
    """Load an RSA private key from its base64 DER encoding.

    Both PKCS#1 and PKCS#8 DER structures are accepted. Surrounding
    whitespace (e.g. a trailing newline from a key file) is ignored.

    Raises:
        InvalidKeyFormat: On malformed base64, malformed DER, or non-RSA
            key material.
    """
    if isinstance(encoded, bytes):
        encoded = encoded.decode("ascii", errors="replace")
    try:
        der = base64.b64decode("".join(encoded.split()), validate=True)
    except (binascii.Error, ValueError) as err:
        raise InvalidKeyFormat("Private key is not valid base64") from err
    if not der:
        raise InvalidKeyFormat("Private key is empty")
    try:
        key = serialization.load_der_private_key(der, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as err:
        raise InvalidKeyFormat("Cannot parse private key DER") from err
    if not isinstance(key, rsa.RSAPrivateKey):
        raise InvalidKeyFormat("DER does not contain an RSA private key")
    return PrivateKeyHandle(key)
