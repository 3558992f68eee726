"""File collaborator: read and write bytes by path.

Every ``OSError`` is converted into ``IOFailure``.
"""
import os
import logging
from pathlib import Path
from typing import Union

from .exceptions import IOFailure

logger = logging.getLogger("sealed_env.files")

PathLike = Union[str, os.PathLike]


def read_bytes(path: PathLike) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as err:
        raise IOFailure(f"Cannot read {path}: {err.strerror or err}") from err


def read_text(path: PathLike) -> str:
    """Read a UTF-8 text file.

    Raises:
        IOFailure: If the file cannot be read or is not valid UTF-8.
    """
    data = read_bytes(path)
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as err:
        raise IOFailure(f"{path} is not valid UTF-8") from err


def write_bytes(path: PathLike, data: bytes, *, private: bool = False) -> None:
    """Write ``data`` to ``path``, creating parent directories.

    Args:
        path: Destination file.
        data: Bytes to write.
        private: Restrict the file to its owner (mode 0600).

    Raises:
        IOFailure: On any filesystem error.
    """
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        if private:
            fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.chmod(target, 0o600)
        else:
            target.write_bytes(data)
    except OSError as err:
        raise IOFailure(f"Cannot write {path}: {err.strerror or err}") from err
    logger.debug("Wrote %d byte(s) to %s", len(data), target)
