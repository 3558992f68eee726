"""Vault — Hybrid RSA/AES-GCM envelopes for configuration files.

Security Note (Threat Model):
    The envelope may be stored anywhere, including public hosting. Anyone
    holding the private key can read it; the public key only lets a
    producer create new envelopes. Decrypted values live in process memory
    for the lifetime of the configuration store, an accepted limitation.
"""

from .keys import (
    KeyHandle,
    KeyPair,
    PrivateKeyHandle,
    PublicKeyHandle,
    generate_key_pair,
    parse_private_key,
    parse_public_key,
)
from .crypto import Envelope, decrypt, encrypt, encrypt_config
from .config import SealedEnvConfig, load_private_key_from_env

__all__ = [
    "KeyHandle",
    "KeyPair",
    "PrivateKeyHandle",
    "PublicKeyHandle",
    "generate_key_pair",
    "parse_private_key",
    "parse_public_key",
    "Envelope",
    "encrypt",
    "encrypt_config",
    "decrypt",
    "SealedEnvConfig",
    "load_private_key_from_env",
]
