import logging
import threading
from types import MappingProxyType
from typing import Any, Optional
from collections.abc import Iterator, Mapping

logger = logging.getLogger("sealed_env.store")

_EMPTY: Mapping[str, str] = MappingProxyType({})


class ConfigStore(Mapping[str, str]):
    """Read-only configuration store.

    Holds an immutable snapshot of the active configuration. ``load()``
    builds a new snapshot and swaps the reference; readers always see one
    complete snapshot, either the previous one or the new one.

    The store is a regular object: create one and pass it to whatever needs
    configuration.
    """

    def __init__(self, initial: Optional[Mapping[str, str]] = None) -> None:
        self._lock = threading.Lock()
        self._snapshot: Mapping[str, str] = _EMPTY
        if initial is not None:
            self.load(initial)

    def __repr__(self) -> str:
        return f'<ConfigStore keys={list(self._snapshot.keys())}>'

    def load(self, mapping: Mapping[str, str]) -> None:
        """Replace the active snapshot with an immutable copy of ``mapping``.

        Args:
            mapping: New configuration; keys and values must be strings.

        Raises:
            TypeError: If a key or value is not a string.
        """
        data = dict(mapping)
        for key, value in data.items():
            if not isinstance(key, str) or not isinstance(value, str):
                raise TypeError(
                    f"Configuration keys and values must be str, got "
                    f"{type(key).__name__}={type(value).__name__}"
                )
        snapshot = MappingProxyType(data)
        with self._lock:
            self._snapshot = snapshot
        logger.info("Configuration loaded: %d key(s)", len(data))

    # --- Readers ---

    def get(self, key: str, default: Any = None) -> Any:
        return self._snapshot.get(key, default)

    def has(self, key: str) -> bool:
        return key in self._snapshot

    def snapshot(self) -> Mapping[str, str]:
        """Return the current read-only snapshot.

        The returned view never changes, later loads install a new one.
        """
        return self._snapshot

    @property
    def empty(self) -> bool:
        return not self._snapshot

    # --- Magic Methods ---

    def __getitem__(self, key: str) -> str:
        return self._snapshot[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._snapshot)

    def __len__(self) -> int:
        return len(self._snapshot)

    def __contains__(self, key: object) -> bool:
        return key in self._snapshot
