"""
Key-value storage interface and implementations for upload progress.

A synchronous string-keyed store, modelled on the browser localStorage API,
that keeps progress records alive across process restarts.
"""

import json
import os
from abc import ABC, abstractmethod
from typing import Optional


class KeyValueStorage(ABC):
    """Abstract interface for key-value storage implementations."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """
        Retrieve the value stored under key.

        Args:
            key: Storage key

        Returns:
            Stored value if found, None otherwise
        """
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """
        Store value under key, replacing any previous value.

        Args:
            key: Storage key
            value: Value to store
        """
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """
        Remove the value stored under key. Missing keys are ignored.

        Args:
            key: Storage key
        """
        pass


class MemoryStorage(KeyValueStorage):
    """In-process storage. Progress is lost when the process exits."""

    def __init__(self):
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def __len__(self) -> int:
        return len(self._items)


class FileStorage(KeyValueStorage):
    """
    File-based key-value storage using JSON.

    Stores every key in a single JSON object for persistence across sessions.
    """

    def __init__(self, storage_path: str = ".gcs_resumable.json"):
        """
        Initialize file-based storage.

        Args:
            storage_path: Path to JSON file for storing values
        """
        self.storage_path = storage_path
        self._ensure_file_exists()

    def _ensure_file_exists(self):
        """Create storage file if it doesn't exist."""
        if not os.path.exists(self.storage_path):
            with open(self.storage_path, "w") as f:
                json.dump({}, f)

    def _load_data(self) -> dict:
        """Load data from storage file."""
        try:
            with open(self.storage_path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, FileNotFoundError):
            return {}
        return data if isinstance(data, dict) else {}

    def _save_data(self, data: dict):
        """Save data to storage file."""
        with open(self.storage_path, "w") as f:
            json.dump(data, f, indent=2)

    def get_item(self, key: str) -> Optional[str]:
        """Retrieve value for key."""
        return self._load_data().get(key)

    def set_item(self, key: str, value: str) -> None:
        """Store value for key."""
        data = self._load_data()
        data[key] = value
        self._save_data(data)

    def remove_item(self, key: str) -> None:
        """Remove value for key."""
        data = self._load_data()
        if key in data:
            del data[key]
            self._save_data(data)
