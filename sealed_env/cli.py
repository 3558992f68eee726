from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import Optional, Sequence

from .exceptions import (
    ConfigurationError,
    DecryptionFailed,
    InvalidEncoding,
    InvalidKeyFormat,
    IOFailure,
    KeyGenerationError,
    MalformedEnvelope,
)
from .files import read_bytes, read_text, write_bytes
from .loader import load_config, load_remote_config
from .vault.config import PRIVATE_KEY_ENV, SealedEnvConfig, load_private_key_from_env
from .vault.crypto import encrypt_config
from .vault.keys import generate_key_pair, parse_private_key, parse_public_key

logger = logging.getLogger("sealed_env.cli")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CRYPTO = 2


def cmd_generate(args: argparse.Namespace, config: SealedEnvConfig) -> int:
    pair = generate_key_pair(config.key_size)
    write_bytes(config.private_key_file, pair.private_key.encode("ascii"), private=True)
    write_bytes(config.public_key_file, pair.public_key.encode("ascii"))
    logger.info(
        "RSA key pair generated: %s (private), %s (public)",
        config.private_key_file, config.public_key_file,
    )
    return EXIT_OK


def cmd_build(args: argparse.Namespace, config: SealedEnvConfig) -> int:
    env_file = args.env_file or config.input_file
    plaintext = read_text(env_file)
    public_key = parse_public_key(read_bytes(config.public_key_file))
    write_bytes(config.output_file, encrypt_config(plaintext, public_key))
    logger.info("Encrypted %s written to %s", env_file, config.output_file)
    return EXIT_OK


def cmd_decrypt(args: argparse.Namespace, config: SealedEnvConfig) -> int:
    if os.environ.get(PRIVATE_KEY_ENV):
        private_key = load_private_key_from_env()
    else:
        private_key = parse_private_key(read_bytes(config.private_key_file))
    envelope_file = args.envelope_file or config.output_file
    if envelope_file.startswith(("http://", "https://")):
        values = asyncio.run(
            load_remote_config(envelope_file, private_key, timeout=config.fetch_timeout)
        )
    else:
        values = load_config(read_bytes(envelope_file), private_key)
    for key, value in values.items():
        print(f"{key}={value}" if args.show_values else key)
    logger.info("Decrypted %d key(s) from %s", len(values), envelope_file)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="sealed-env",
        description="Encrypt KEY=VALUE configuration files with RSA-OAEP + AES-256-GCM.",
    )
    p.add_argument("--log-level", default=None, help="Override SEALED_ENV_LOG_LEVEL")
    sub = p.add_subparsers(dest="cmd")

    sp = sub.add_parser("generate", help="Generate an RSA key pair")
    sp.add_argument("--key-size", type=int, default=None)
    sp.set_defaults(func=cmd_generate)

    sp = sub.add_parser("build", help="Encrypt an env file into a JSON envelope")
    sp.add_argument("env_file", nargs="?", default=None)
    sp.add_argument("--out", dest="output_file", default=None)
    sp.set_defaults(func=cmd_build)

    sp = sub.add_parser("decrypt", help="Decrypt a JSON envelope and list its keys")
    sp.add_argument("envelope_file", nargs="?", default=None, help="Envelope path or http(s) URL")
    sp.add_argument("--show-values", action="store_true")
    sp.set_defaults(func=cmd_decrypt)

    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_usage(sys.stderr)
        return EXIT_ERROR

    try:
        config = SealedEnvConfig.from_env(
            log_level=args.log_level,
            key_size=getattr(args, "key_size", None),
            output_file=getattr(args, "output_file", None),
        )
    except ConfigurationError as err:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
        logger.error("%s", err)
        return EXIT_ERROR
    logging.basicConfig(level=config.log_level, format="%(levelname)s: %(message)s")

    try:
        return args.func(args, config)
    except DecryptionFailed:
        logger.error("Decryption failed: wrong private key or corrupted envelope")
        return EXIT_CRYPTO
    except (MalformedEnvelope, InvalidKeyFormat, InvalidEncoding, KeyGenerationError) as err:
        logger.error("%s", err)
        return EXIT_CRYPTO
    except (IOFailure, ConfigurationError) as err:
        logger.error("%s", err)
        return EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
