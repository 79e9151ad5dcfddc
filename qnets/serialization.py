"""
Archives — format-agnostic (de)serialization
============================================

Objects persist themselves through a single hook::

    def serialize(self, archive):
        self.size = int(archive.field("size", self.size))

The same code path saves and loads: when saving, ``field`` records the
value and returns it; when loading it ignores the argument and returns the
stored value.  ``archive.is_loading`` lets an object run load-only steps
(e.g. resizing a buffer before its contents are read).
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

import numpy as np

from .exceptions import SerializationError
from .utils.logger import get_logger

logger = get_logger(__name__)


class Archive:
    """Abstract archive with a load/save mode flag and key scoping."""

    def __init__(self, loading: bool = False) -> None:
        self.is_loading = loading
        self._scope: list[str] = []

    @contextmanager
    def scope(self, name: str) -> Iterator["Archive"]:
        """Namespace every key written or read inside the block."""
        self._scope.append(name)
        try:
            yield self
        finally:
            self._scope.pop()

    def key(self, name: str) -> str:
        return ".".join([*self._scope, name])

    def field(self, name: str, value: Any = None) -> Any:
        key = self.key(name)
        if self.is_loading:
            return self._read(key)
        self._write(key, value)
        return value

    def _read(self, key: str) -> Any:
        raise NotImplementedError

    def _write(self, key: str, value: Any) -> None:
        raise NotImplementedError


class DictArchive(Archive):
    """In-memory archive backed by a ``dict`` of numpy values."""

    def __init__(self, data: dict[str, Any] | None = None, loading: bool = False) -> None:
        super().__init__(loading)
        self.data: dict[str, Any] = dict(data) if data is not None else {}

    def _read(self, key: str) -> Any:
        if key not in self.data:
            raise SerializationError(f"Archive has no field '{key}'")
        value = self.data[key]
        if isinstance(value, np.ndarray) and value.ndim == 0:
            return value.item()
        return value

    def _write(self, key: str, value: Any) -> None:
        # Snapshot: later in-place updates must not leak into the archive
        self.data[key] = np.array(value, copy=True)

    def loader(self) -> "DictArchive":
        """Return a loading archive over the same data."""
        return type(self)(self.data, loading=True)

    def __len__(self) -> int:
        return len(self.data)


class NpzArchive(DictArchive):
    """``DictArchive`` that persists to a ``.npz`` file."""

    def save(self, path: Path | str) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        np.savez(path, **self.data)
        # np.savez appends the suffix when it is missing
        if path.suffix != ".npz":
            path = path.with_name(path.name + ".npz")
        logger.info(f"Archive saved → {path}  ({len(self.data)} fields)")
        return path

    @classmethod
    def load(cls, path: Path | str) -> "NpzArchive":
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Archive not found: {path}")
        with np.load(path) as npz:
            data = {key: npz[key] for key in npz.files}
        logger.debug(f"Archive loaded ← {path}  ({len(data)} fields)")
        return cls(data, loading=True)
