"""
Vault Configuration — Settings and private key loading from the environment.

Reads settings from environment variables:
    SEALED_ENV_PRIVATE_KEY_FILE = <path>  (default: private_key)
    SEALED_ENV_PUBLIC_KEY_FILE  = <path>  (default: public_key.pem)
    SEALED_ENV_INPUT_FILE       = <path>  (default: build.env)
    SEALED_ENV_OUTPUT_FILE      = <path>  (default: public/build.env.json)
    SEALED_ENV_KEY_SIZE         = <bits>  (default: 2048)
    SEALED_ENV_FETCH_TIMEOUT    = <secs>  (default: 10)
    SEALED_ENV_LOG_LEVEL        = <name>  (default: INFO)

Build hosts usually inject the private key itself as
    SEALED_ENV_PRIVATE_KEY = <base64 DER private key>

Security Note:
    Never log key material. Only log variable names and key sizes.
"""
import os
import logging

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..exceptions import ConfigurationError
from .keys import MIN_KEY_SIZE, PrivateKeyHandle, parse_private_key

logger = logging.getLogger("sealed_env.vault")

PRIVATE_KEY_ENV = "SEALED_ENV_PRIVATE_KEY"

_ENV_FIELDS = {
    "private_key_file": "SEALED_ENV_PRIVATE_KEY_FILE",
    "public_key_file": "SEALED_ENV_PUBLIC_KEY_FILE",
    "input_file": "SEALED_ENV_INPUT_FILE",
    "output_file": "SEALED_ENV_OUTPUT_FILE",
    "key_size": "SEALED_ENV_KEY_SIZE",
    "fetch_timeout": "SEALED_ENV_FETCH_TIMEOUT",
    "log_level": "SEALED_ENV_LOG_LEVEL",
}


def load_private_key_from_env(name: str = PRIVATE_KEY_ENV) -> PrivateKeyHandle:
    """Load the base64 DER private key from an environment variable.

    Args:
        name: Environment variable holding the key.

    Returns:
        Parsed private key handle.

    Raises:
        ConfigurationError: If the variable is not set or empty.
        InvalidKeyFormat: If the value is not a valid RSA private key.
    """
    value = os.environ.get(name, "").strip()
    if not value:
        raise ConfigurationError(
            f"{name} environment variable is not set. "
            f"Set {name}=<base64-encoded DER private key>"
        )
    handle = parse_private_key(value)
    logger.debug("Loaded rsa-%d private key from %s", handle.key_size, name)
    return handle


class SealedEnvConfig(BaseModel):
    """Validated sealed-env settings."""

    private_key_file: str = Field(default="private_key", min_length=1)
    public_key_file: str = Field(default="public_key.pem", min_length=1)
    input_file: str = Field(default="build.env", min_length=1)
    output_file: str = Field(default="public/build.env.json", min_length=1)
    key_size: int = Field(default=2048, ge=MIN_KEY_SIZE, le=16384)
    fetch_timeout: float = Field(default=10.0, gt=0)
    log_level: str = Field(default="INFO")

    @field_validator("key_size")
    @classmethod
    def validate_key_size(cls, v: int) -> int:
        """RSA modulus sizes must be a multiple of 256 bits."""
        if v % 256:
            raise ValueError(f"key_size must be a multiple of 256, got {v}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a standard logging level name."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unsupported log level: {v}")
        return level

    @classmethod
    def from_env(cls, **overrides) -> "SealedEnvConfig":
        """Create SealedEnvConfig from environment variables.

        Keyword overrides take precedence over the environment; ``None``
        overrides are ignored.

        Raises:
            ConfigurationError: If any value fails validation.
        """
        values = {
            field: os.environ[env]
            for field, env in _ENV_FIELDS.items()
            if os.environ.get(env)
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return cls(**values)
        except ValidationError as err:
            first = err.errors()[0]
            field = first["loc"][0] if first["loc"] else "config"
            raise ConfigurationError(
                f"Invalid setting {_ENV_FIELDS.get(field, field)}: {first['msg']}"
            ) from err
