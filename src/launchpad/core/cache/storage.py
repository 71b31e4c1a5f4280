"""
Host storage backends for the local cache.

The cache only needs two primitives from its host: persist a value under a
key and load it back. Embedded hosts provide their own; standalone use gets
a flat JSON key/value map on disk.
"""

import copy
import json
import tempfile
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from launchpad.core.exceptions import CacheError


@runtime_checkable
class HostStorage(Protocol):
    """Durable key/value storage provided by the host environment."""

    def persist(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value. Raises CacheError on failure."""
        ...

    def load(self, key: str) -> Any | None:
        """Return the stored value, or None if the key is absent."""
        ...

    def remove(self, key: str) -> None:
        """Delete a key if present."""
        ...

    def keys(self) -> list[str]:
        """List stored keys."""
        ...


class MemoryStorage:
    """
    In-process storage.

    Values are deep-copied in and out so callers can't mutate stored state.
    """

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def persist(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def load(self, key: str) -> Any | None:
        return copy.deepcopy(self._data.get(key))

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStorage:
    """
    Flat key/value map stored in a single JSON file.

    Uses atomic writes (temp file in the same directory, then rename) so a
    crash mid-write can't corrupt the map.

    Example:
        >>> storage = JsonFileStorage(Path(".launchpad/state.json"))
        >>> storage.persist("templates", [{"id": "t1", "name": "Deck"}])
        >>> storage.load("templates")
        [{'id': 't1', 'name': 'Deck'}]
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise CacheError("*", f"Failed to read {self.path}: {e}", path=str(self.path)) from e
        if not isinstance(data, dict):
            raise CacheError("*", f"{self.path} does not contain a JSON object", path=str(self.path))
        return data

    def _write_all(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        json_str = json.dumps(data, indent=2)

        tmp = tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=self.path.parent,
            delete=False,
            suffix=".tmp",
        )
        tmp_path = Path(tmp.name)
        try:
            with tmp:
                tmp.write(json_str)
                tmp.flush()
            tmp_path.replace(self.path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise

    def persist(self, key: str, value: Any) -> None:
        data = self._read_all()
        data[key] = value
        try:
            self._write_all(data)
        except (OSError, TypeError, ValueError) as e:
            raise CacheError(key, f"Failed to write {self.path}: {e}", path=str(self.path)) from e

    def load(self, key: str) -> Any | None:
        return self._read_all().get(key)

    def remove(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            try:
                self._write_all(data)
            except OSError as e:
                raise CacheError(key, f"Failed to write {self.path}: {e}", path=str(self.path)) from e

    def keys(self) -> list[str]:
        return list(self._read_all())


__all__ = ["HostStorage", "MemoryStorage", "JsonFileStorage"]
