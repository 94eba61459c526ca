"""License storage in a single JSON file."""

from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any

from .licenseformat import InvalidLicenseKey, Payload


class DocumentExistsError(ValueError):
    """Raised when an identical license is already stored."""

    def __init__(self, message: str = "document exists") -> None:
        super().__init__(message)


class NotFoundError(LookupError):
    """Raised when no license is stored for the requested robot."""

    def __init__(self, message: str = "not found") -> None:
        super().__init__(message)


class LicensesManager:
    """Keeps license payloads as a JSON list in one file."""

    def __init__(
        self,
        file_path: str | os.PathLike[str] | None = None,
        debugger: Any = None,
    ) -> None:
        if file_path is None:
            file_path = Path(tempfile.gettempdir()) / "licenses"
        self.file_path = Path(file_path)
        self.debugger = debugger
        self._lock = threading.RLock()
        try:
            # Reading creates the file when it does not exist yet.
            self._load()
        except (OSError, ValueError):
            pass

    def debug(self, msg: str, *args: Any) -> None:
        """Pass a debug message on to the debugger, if there is one."""
        if self.debugger is not None:
            self.debugger.debug(msg, *args)

    def _load(self) -> list[Payload]:
        self.debug("start open file")
        with open(self.file_path, "a+", encoding="utf-8") as handle:
            handle.seek(0)
            text = handle.read()

        self.debug("start decode")
        text = text.lstrip()
        if not text:
            return []
        try:
            data, _ = json.JSONDecoder().raw_decode(text)
        except ValueError as exc:
            raise ValueError(f"decode: {exc}") from exc
        if data is None:
            return []
        if not isinstance(data, list):
            raise ValueError("decode: expected a list of license payloads")
        try:
            return [Payload.from_dict(item) for item in data]
        except InvalidLicenseKey as exc:
            raise ValueError(f"decode: {exc}") from exc

    def _save(self, cache: list[Payload]) -> None:
        self.debug("create")
        with open(self.file_path, "w", encoding="utf-8") as handle:
            self.debug("start encode")
            handle.write(
                json.dumps([payload.to_dict() for payload in cache], separators=(",", ":"))
            )
            handle.write("\n")
        self.debug("close")

    def add_license(self, payload: Payload) -> None:
        """Store a license; raise DocumentExistsError if it is already stored."""
        with self._lock:
            cache = self._load()
            self.debug("iterate")
            if payload in cache:
                raise DocumentExistsError()
            cache.append(payload)
            self._save(cache)
            self.debug("end of add license")

    def delete_license(self, bot: str) -> None:
        """Remove the first license for ``bot``; raise NotFoundError if none."""
        with self._lock:
            cache = self._load()
            index = next(
                (
                    position
                    for position, payload in enumerate(cache)
                    if payload.license is not None and payload.license.bot == bot
                ),
                None,
            )
            if index is not None:
                del cache[index]
            self._save(cache)
            self.debug("end of delete")
            if index is None:
                raise NotFoundError("delete: not found")

    def list_bots(self) -> list[str]:
        """Return the robot of every stored license that names one."""
        with self._lock:
            return [
                payload.license.bot
                for payload in self._load()
                if payload.license is not None and payload.license.bot
            ]

    def list_licenses(self) -> list[Payload]:
        """Return every stored license payload."""
        with self._lock:
            cache = self._load()
            self.debug("end of list licenses")
            return cache

    def drop(self) -> None:
        """Delete the storage file."""
        with self._lock:
            self.debug("drop")
            os.remove(self.file_path)

    def purge(self) -> None:
        """Empty the storage file."""
        with self._lock:
            self.debug("create")
            with open(self.file_path, "w", encoding="utf-8"):
                pass