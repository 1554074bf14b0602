"""
Persistent key-value storage for provisioning state.

The provisioner keeps a single entry here, the generated DH parameters,
so they survive restarts.
"""
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional


logger = logging.getLogger(__name__)


class PersistentKV(ABC):
    """Abstract named-value store. Writes are last-writer-wins."""

    @abstractmethod
    def get(self, name: str) -> Optional[Any]:
        """
        Get a stored value.

        Args:
            name: Entry name

        Returns:
            The stored value, or None if absent
        """
        pass

    @abstractmethod
    def set(self, name: str, value: Any) -> None:
        """
        Store a value, replacing any previous one.

        Args:
            name: Entry name
            value: JSON-serializable value
        """
        pass


class MemoryStore(PersistentKV):
    """Process-local store, for tests and ephemeral deployments."""

    def __init__(self, initial: Optional[dict[str, Any]] = None):
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, name: str) -> Optional[Any]:
        return self._data.get(name)

    def set(self, name: str, value: Any) -> None:
        self._data[name] = value


class JSONFileStore(PersistentKV):
    """Store backed by a single JSON document on disk."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (OSError, ValueError) as e:
            logger.error("[TLS-STORE] Failed to load %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.error("[TLS-STORE] Ignoring malformed store %s", self.path)
            return {}
        return data

    def get(self, name: str) -> Optional[Any]:
        return self._load().get(name)

    def set(self, name: str, value: Any) -> None:
        data = self._load()
        data[name] = value

        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Write to a sibling temp file and swap it in so readers never see a partial document
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".tls_store.")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2)
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
        logger.info("[TLS-STORE] Saved '%s' to %s", name, self.path)
