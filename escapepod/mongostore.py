"""License manager bound to a document database collection.

The operations are accepted but store nothing.
"""

from __future__ import annotations

import threading
from typing import Any

from .licenseformat import Payload


class MongoLicensesManager:
    """A license manager that uses a named collection of a database."""

    def __init__(self, collection_name: str = "", db: Any = None) -> None:
        self.collection_name = collection_name
        self.db = db
        self.collection: Any = None
        self._lock = threading.RLock()
        self.is_valid()

    def is_valid(self) -> None:
        """Check the settings and bind the collection; raise ValueError if unusable."""
        if not self.collection_name:
            raise ValueError("empty collection name")
        if self.db is None:
            raise ValueError("empty database")
        self.collection = self.db.get_collection(self.collection_name)

    def add_license(self, payload: Payload) -> None:
        """Accept a license without storing it."""
        with self._lock:
            return None

    def delete_license(self, bot: str) -> None:
        """Accept a deletion without changing anything."""
        with self._lock:
            return None

    def list_bots(self) -> list[str]:
        """Return the licensed robots: none are stored."""
        with self._lock:
            return []

    def list_licenses(self) -> list[Payload]:
        """Return the stored licenses: none are stored."""
        with self._lock:
            return []

    def drop(self) -> None:
        """Accept a drop without changing anything."""
        with self._lock:
            return None

    def purge(self) -> None:
        """Accept a purge without changing anything."""
        with self._lock:
            return None