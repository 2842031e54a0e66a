"""
Key-value store contract.
"""

from abc import ABC, abstractmethod


class KeyValueStore(ABC):
    """
    Durable string key-value storage.
    Implementations raise StorageError when the backend fails.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Value for key, or None if absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove key. Returns True if it existed."""

    def close(self) -> None:
        """Release backend resources."""


class MemoryStore(KeyValueStore):
    """Process-local store. Nothing survives a restart."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def keys(self) -> list[str]:
        return sorted(self._data)
