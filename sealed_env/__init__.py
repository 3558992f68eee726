"""sealed-env.

Encrypt KEY=VALUE configuration files for untrusted storage and load them
back into a read-only runtime configuration store.
"""
from .version import __version__
from .exceptions import (
    SealedEnvError,
    KeyGenerationError,
    InvalidKeyFormat,
    MalformedEnvelope,
    DecryptionFailed,
    KeyUnwrapFailure,
    AuthenticationFailure,
    InvalidEncoding,
    IOFailure,
    ConfigurationError,
)
from .parser import parse_config
from .store import ConfigStore
from .vault import (
    Envelope,
    KeyPair,
    PrivateKeyHandle,
    PublicKeyHandle,
    SealedEnvConfig,
    decrypt,
    encrypt,
    encrypt_config,
    generate_key_pair,
    parse_private_key,
    parse_public_key,
)
from .loader import (
    fetch_envelope,
    load_config,
    load_config_file,
    load_remote_config,
)

__all__ = [
    "__version__",
    "SealedEnvError",
    "KeyGenerationError",
    "InvalidKeyFormat",
    "MalformedEnvelope",
    "DecryptionFailed",
    "KeyUnwrapFailure",
    "AuthenticationFailure",
    "InvalidEncoding",
    "IOFailure",
    "ConfigurationError",
    "parse_config",
    "ConfigStore",
    "Envelope",
    "KeyPair",
    "PrivateKeyHandle",
    "PublicKeyHandle",
    "SealedEnvConfig",
    "decrypt",
    "encrypt",
    "encrypt_config",
    "generate_key_pair",
    "parse_private_key",
    "parse_public_key",
    "fetch_envelope",
    "load_config",
    "load_config_file",
    "load_remote_config",
]
