"""Binary artifact storage."""

from __future__ import annotations

import hashlib
import io
import threading
from abc import ABC, abstractmethod
from typing import BinaryIO, Union

Payload = Union[bytes, bytearray, memoryview, BinaryIO]


class ArtifactNotFoundError(LookupError):
    """Raised when an artifact key does not exist."""

    def __init__(self, key: str = "") -> None:
        self.key = key
        super().__init__(f"artifact: not found: {key}" if key else "artifact: not found")


class ArtifactStore(ABC):
    """Persists and retrieves binary artifacts."""

    @abstractmethod
    def put(self, key: str, data: Payload) -> tuple[str, int]:
        """Store data under key; return (sha256 hex digest, size in bytes)."""

    @abstractmethod
    def get(self, key: str) -> BinaryIO:
        """Return a readable binary stream for key."""

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Report whether key exists."""

    @abstractmethod
    def presigned_url(self, key: str) -> str:
        """Return a time-limited download URL, or an empty string if unsupported."""


def _read_all(data: Payload) -> bytes:
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    return data.read()


class MemoryArtifactStore(ArtifactStore):
    """Thread-safe in-memory artifact store for tests and local runs."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._blobs: dict[str, bytes] = {}

    def put(self, key: str, data: Payload) -> tuple[str, int]:
        blob = _read_all(data)
        digest = hashlib.sha256(blob).hexdigest()
        with self._lock:
            self._blobs[key] = blob
        return digest, len(blob)

    def get(self, key: str) -> BinaryIO:
        with self._lock:
            blob = self._blobs.get(key)
        if blob is None:
            raise ArtifactNotFoundError(key)
        return io.BytesIO(blob)

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self._blobs

    def presigned_url(self, key: str) -> str:
        """Return an empty string: in-memory blobs have no downloadable location."""
        if not isinstance(key, str):
            raise TypeError(f"artifact key must be a string, not {type(key).__name__}")
        return ""