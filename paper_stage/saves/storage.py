"""
Key/value storage backends for the save system.

The save system only ever stores one JSON string per document id, so a
backend needs nothing more than get/set/remove plus key listing.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional
from urllib.parse import quote, unquote

from loguru import logger


class StorageBackend(ABC):
    """Abstract string key/value store."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...

    @abstractmethod
    def keys(self) -> list[str]:
        ...

    @abstractmethod
    def size(self) -> int:
        """Approximate storage used, in characters or bytes."""
        ...


class MemoryStorage(StorageBackend):
    """Process-local storage, mainly for tests and throwaway sessions."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data.keys())

    def size(self) -> int:
        return sum(len(k) + len(v) for k, v in self._data.items())


def _safe_key(key: str) -> str:
    """Percent-encode a key into a single filename component. Reversible."""
    if not key or not key.strip():
        raise ValueError("storage key must be non-empty")
    return quote(key, safe="")


class FileStorage(StorageBackend):
    """One JSON file per key under ``root_dir``, named ``<prefix><key>.json``."""

    SUFFIX = ".json"

    def __init__(self, root_dir: Path, prefix: str = "paper_game_"):
        self.root_dir = Path(root_dir)
        self.prefix = prefix
        self.root_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.root_dir / f"{self.prefix}{_safe_key(key)}{self.SUFFIX}"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        # Write then rename so a crash never leaves a half-written save
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)
        logger.debug(f"Wrote {path.name} ({len(value)} chars)")

    def remove(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()

    def _files(self) -> list[Path]:
        return sorted(self.root_dir.glob(f"{self.prefix}*{self.SUFFIX}"))

    def keys(self) -> list[str]:
        return [unquote(p.name[len(self.prefix):-len(self.SUFFIX)]) for p in self._files()]

    def size(self) -> int:
        return sum(p.stat().st_size for p in self._files())
