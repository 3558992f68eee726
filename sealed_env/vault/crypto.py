"""
Vault Crypto Core — Hybrid envelope encryption and the envelope wire format.

Implements the envelope protocol:
- Payload layer: random 256-bit key → AES-256-GCM(nonce 96-bit, tag 128-bit)
- Key layer: RSA-OAEP/SHA-256(public key) → wrapped symmetric key

Wire format (JSON object, all values standard base64):
    {"key": <wrapped key>, "iv": <12B nonce>, "tag": <16B tag>, "data": <ciphertext>}

Security Note:
    Never log plaintext, ciphertext or key values.
    Unwrap and tag failures surface with the same opaque message and
    without a chained cause.
"""
import os
import base64
import binascii
import logging
from typing import Any, Union

import orjson
from pydantic import BaseModel, ValidationError, field_validator
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..exceptions import (
    AuthenticationFailure,
    InvalidEncoding,
    KeyUnwrapFailure,
    MalformedEnvelope,
)
from .keys import (
    PrivateKeyHandle,
    PublicKeyHandle,
    parse_private_key,
    parse_public_key,
)

logger = logging.getLogger("sealed_env.vault")

NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # 128-bit GCM tag
KEY_LENGTH = 32  # AES-256

# Wire field name -> Envelope attribute
WIRE_FIELDS = {
    "key": "wrapped_key",
    "iv": "iv",
    "tag": "tag",
    "data": "ciphertext",
}


class Envelope(BaseModel):
    """One hybrid-encrypted message.

    ``wrapped_key`` is the RSA-wrapped symmetric key, never a raw key.
    """

    wrapped_key: bytes
    iv: bytes
    tag: bytes
    ciphertext: bytes

    model_config = {"frozen": True}

    @field_validator("wrapped_key")
    @classmethod
    def validate_wrapped_key(cls, v: bytes) -> bytes:
        if not v:
            raise ValueError("wrapped key cannot be empty")
        return v

    @field_validator("iv")
    @classmethod
    def validate_iv(cls, v: bytes) -> bytes:
        if len(v) != NONCE_SIZE:
            raise ValueError(
                f"iv must be exactly {NONCE_SIZE} bytes, got {len(v)}"
            )
        return v

    @field_validator("tag")
    @classmethod
    def validate_tag(cls, v: bytes) -> bytes:
        if len(v) != TAG_SIZE:
            raise ValueError(
                f"tag must be exactly {TAG_SIZE} bytes, got {len(v)}"
            )
        return v

    def to_dict(self) -> dict[str, str]:
        """Return the wire mapping with base64-encoded values."""
        return {
            wire: base64.b64encode(getattr(self, attr)).decode("ascii")
            for wire, attr in WIRE_FIELDS.items()
        }

    def to_json(self) -> bytes:
        """Serialize to the canonical JSON form."""
        return orjson.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, payload: Any) -> "Envelope":
        """Build an Envelope from a decoded wire mapping.

        Raises:
            MalformedEnvelope: If a field is missing, not a string, not
                valid base64, or has the wrong decoded length.
        """
        if not isinstance(payload, dict):
            raise MalformedEnvelope("Envelope must be a JSON object")
        values: dict[str, bytes] = {}
        for wire, attr in WIRE_FIELDS.items():
            if wire not in payload:
                raise MalformedEnvelope(f"Envelope field '{wire}' is missing")
            raw = payload[wire]
            if not isinstance(raw, str):
                raise MalformedEnvelope(f"Envelope field '{wire}' must be a string")
            try:
                values[attr] = base64.b64decode(raw, validate=True)
            except (binascii.Error, ValueError) as err:
                raise MalformedEnvelope(
                    f"Envelope field '{wire}' is not valid base64"
                ) from err
        try:
            return cls(**values)
        except ValidationError as err:
            raise MalformedEnvelope(
                f"Invalid envelope: {err.errors()[0]['msg']}"
            ) from err

    @classmethod
    def from_json(cls, data: Union[str, bytes]) -> "Envelope":
        """Parse the canonical JSON form.

        Raises:
            MalformedEnvelope: If the JSON or any field is invalid.
        """
        try:
            payload = orjson.loads(data)
        except orjson.JSONDecodeError as err:
            raise MalformedEnvelope(f"Envelope is not valid JSON: {err}") from err
        return cls.from_dict(payload)


def _as_public_key(public_key: Union[PublicKeyHandle, str, bytes]) -> PublicKeyHandle:
    if isinstance(public_key, PublicKeyHandle):
        return public_key
    return parse_public_key(public_key)


def _as_private_key(private_key: Union[PrivateKeyHandle, str, bytes]) -> PrivateKeyHandle:
    if isinstance(private_key, PrivateKeyHandle):
        return private_key
    return parse_private_key(private_key)


# ---------------------------------------------------------------------------
# Encryption
# ---------------------------------------------------------------------------

def encrypt(
    plaintext: str,
    public_key: Union[PublicKeyHandle, str, bytes],
) -> Envelope:
    """Encrypt text for the holder of the matching private key.

    A fresh symmetric key and nonce are drawn on every call.

    Args:
        plaintext: Text to encrypt (encoded as UTF-8).
        public_key: Public key handle or PEM text.

    Returns:
        The Envelope.

    Raises:
        InvalidKeyFormat: If ``public_key`` is PEM text that cannot be parsed.
        InvalidEncoding: If ``plaintext`` cannot be encoded as UTF-8
            (e.g. it holds a lone surrogate).
    """
    recipient = _as_public_key(public_key)
    try:
        data = plaintext.encode("utf-8")
    except UnicodeEncodeError:
        raise InvalidEncoding("Plaintext is not encodable as UTF-8") from None
    key = os.urandom(KEY_LENGTH)
    nonce = os.urandom(NONCE_SIZE)
    sealed = AESGCM(key).encrypt(nonce, data, None)
    envelope = Envelope(
        wrapped_key=recipient.wrap(key),
        iv=nonce,
        tag=sealed[-TAG_SIZE:],
        ciphertext=sealed[:-TAG_SIZE],
    )
    logger.debug(
        "Encrypted %d byte(s) for rsa-%d recipient", len(data), recipient.key_size,
    )
    return envelope


def encrypt_config(
    plaintext: str,
    public_key: Union[PublicKeyHandle, str, bytes],
) -> bytes:
    """Encrypt text and return the serialized envelope JSON."""
    return encrypt(plaintext, public_key).to_json()


# ---------------------------------------------------------------------------
# Decryption
# ---------------------------------------------------------------------------

def decrypt(
    envelope: Union[Envelope, str, bytes],
    private_key: Union[PrivateKeyHandle, str, bytes],
) -> str:
    """Decrypt an envelope and return the UTF-8 plaintext.

    The ciphertext is verified as a whole before any plaintext is returned.

    Args:
        envelope: Envelope instance or its serialized JSON.
        private_key: Private key handle or its base64 DER encoding.

    Returns:
        Decrypted text.

    Raises:
        MalformedEnvelope: If the serialized envelope is invalid.
        InvalidKeyFormat: If ``private_key`` cannot be parsed.
        KeyUnwrapFailure: If the symmetric key cannot be unwrapped.
        AuthenticationFailure: If the authentication tag does not verify.
        InvalidEncoding: If the plaintext is not valid UTF-8.
    """
    if not isinstance(envelope, Envelope):
        envelope = Envelope.from_json(envelope)
    holder = _as_private_key(private_key)

    try:
        key = holder.unwrap(envelope.wrapped_key)
    except (ValueError, TypeError):
        key = None
    if key is None or len(key) != KEY_LENGTH:
        logger.debug("Envelope key unwrap failed")
        raise KeyUnwrapFailure() from None

    try:
        data = AESGCM(key).decrypt(
            envelope.iv, envelope.ciphertext + envelope.tag, None,
        )
    except InvalidTag:
        logger.debug("Envelope authentication failed")
        raise AuthenticationFailure() from None
    finally:
        del key

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as err:
        raise InvalidEncoding(
            f"Decrypted payload is not valid UTF-8 (byte offset {err.start})"
        ) from None
