"""
Configuration Loader — envelope bytes to a loaded ConfigStore.

Pipeline: obtain envelope bytes (file or HTTP) → decrypt → parse → store.

Any failure leaves the store untouched. There is no fallback to a cached or
default configuration.
"""
import asyncio
import logging
from typing import Optional, Union

import aiohttp

from .exceptions import IOFailure
from .files import PathLike, read_bytes
from .parser import parse_config
from .store import ConfigStore
from .vault.crypto import Envelope, decrypt
from .vault.keys import PrivateKeyHandle

logger = logging.getLogger("sealed_env.loader")

DEFAULT_ARTIFACT = "build.env.json"
DEFAULT_TIMEOUT = 10.0

PrivateKey = Union[PrivateKeyHandle, str, bytes]


def load_config(
    payload: Union[Envelope, str, bytes],
    private_key: PrivateKey,
    store: Optional[ConfigStore] = None,
) -> dict[str, str]:
    """Decrypt and parse an envelope, then load it into ``store``.

    Args:
        payload: Envelope or its serialized JSON.
        private_key: Private key handle or its base64 DER encoding.
        store: Optional store to receive the configuration.

    Returns:
        The parsed configuration mapping.
    """
    config = parse_config(decrypt(payload, private_key))
    if store is not None:
        store.load(config)
    logger.debug("Decrypted configuration with %d key(s)", len(config))
    return config


def load_config_file(
    path: PathLike,
    private_key: PrivateKey,
    store: Optional[ConfigStore] = None,
) -> dict[str, str]:
    """Read an envelope file and load it (see :func:`load_config`)."""
    return load_config(read_bytes(path), private_key, store)


async def fetch_envelope(
    url: str,
    *,
    session: Optional[aiohttp.ClientSession] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> bytes:
    """Download envelope bytes with an HTTP GET.

    Args:
        url: Location of the envelope artifact.
        session: Existing client session; a temporary one is used if None.
        timeout: Total request timeout in seconds.

    Returns:
        Response body.

    Raises:
        IOFailure: On connection errors, timeouts and non-2xx responses.
    """
    client_timeout = aiohttp.ClientTimeout(total=timeout)
    try:
        if session is None:
            async with aiohttp.ClientSession(timeout=client_timeout) as own:
                return await _get(own, url, client_timeout)
        return await _get(session, url, client_timeout)
    except (aiohttp.ClientError, asyncio.TimeoutError) as err:
        raise IOFailure(f"Cannot fetch {url}: {str(err) or type(err).__name__}") from err


async def _get(
    session: aiohttp.ClientSession, url: str, timeout: aiohttp.ClientTimeout,
) -> bytes:
    async with session.get(url, timeout=timeout) as response:
        response.raise_for_status()
        body = await response.read()
    logger.debug("Fetched %d byte(s) from %s", len(body), url)
    return body


async def load_remote_config(
    url: str,
    private_key: PrivateKey,
    store: Optional[ConfigStore] = None,
    *,
    session: Optional[aiohttp.ClientSession] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict[str, str]:
    """Fetch an envelope over HTTP and load it (see :func:`load_config`).

    A ``url`` ending in ``/`` names a directory; the default artifact
    ``build.env.json`` inside it is fetched.
    """
    if url.endswith("/"):
        url += DEFAULT_ARTIFACT
    payload = await fetch_envelope(url, session=session, timeout=timeout)
    config = load_config(payload, private_key, store)
    logger.info("Loaded %d configuration key(s) from %s", len(config), url)
    return config
