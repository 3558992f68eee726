"""
sealed-env exceptions.

Every error raised by the package derives from ``SealedEnvError``.
Unwrap and tag failures share the ``DecryptionFailed`` base so callers can
treat them as a single "cannot recover configuration" outcome.
"""


class SealedEnvError(Exception):
    """Base class for all sealed-env errors."""


class KeyGenerationError(SealedEnvError):
    """The RSA key pair could not be generated."""


class InvalidKeyFormat(SealedEnvError, ValueError):
    """Key material could not be parsed as an RSA key."""


class MalformedEnvelope(SealedEnvError, ValueError):
    """The envelope is structurally invalid (JSON, fields, base64, lengths)."""


class DecryptionFailed(SealedEnvError):
    """The envelope could not be decrypted.

    The message is deliberately identical for every subclass.
    """

    default_message = "decryption failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class KeyUnwrapFailure(DecryptionFailed):
    """The wrapped symmetric key could not be recovered."""


class AuthenticationFailure(DecryptionFailed):
    """The AEAD authentication tag did not verify."""


class InvalidEncoding(SealedEnvError):
    """The decrypted payload is not valid UTF-8."""


class IOFailure(SealedEnvError):
    """Reading or writing bytes through a collaborator failed."""


class ConfigurationError(SealedEnvError):
    """Settings or environment variables are missing or invalid."""
