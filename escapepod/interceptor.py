"""License management service: adds, deletes and lists licensed robots."""

from __future__ import annotations

import threading
from typing import Any

from .filestore import DocumentExistsError, NotFoundError
from .licenseformat import InvalidLicenseKey, Payload
from .rpcstatus import Code, RpcError


class Interceptor:
    """Keeps the set of licensed robots in step with a license store."""

    def __init__(self, signing_key: str | bytes, license_manager: Any, validator: Any) -> None:
        if isinstance(signing_key, str):
            signing_key = signing_key.encode("utf-8")
        self.signing_key = bytes(signing_key)
        self._manager = license_manager
        self._validator = validator
        self._lock = threading.RLock()
        self._bots: frozenset[str] = frozenset()
        self._load()

    def _load(self) -> None:
        """Reload the licensed robots; keep the old set if any license is bad."""
        with self._lock:
            licenses: list[Payload] = self._manager.list_licenses()
            bots: set[str] = set()
            for payload in licenses:
                try:
                    self._validator.validate_payload(payload)
                except ValueError as exc:
                    raise InvalidLicenseKey(
                        "invalid license key detected, disabling ALL bots"
                    ) from exc
                if payload.license is not None:
                    bots.add(payload.license.bot)
            self._bots = frozenset(bots)

    def _reload(self) -> None:
        try:
            self._load()
        except (OSError, ValueError) as exc:
            raise RpcError(Code.INTERNAL, "") from exc

    def add(self, license: str | None) -> str:
        """Validate and store a license key; return "ok" on success."""
        if not isinstance(license, str):
            raise RpcError(Code.INVALID_ARGUMENT, "invalid license")
        try:
            payload = self._validator.validate_string(license)
        except ValueError as exc:
            raise RpcError(Code.INVALID_ARGUMENT, "invalid license") from exc

        try:
            self._manager.add_license(payload)
        except DocumentExistsError as exc:
            raise RpcError(Code.ALREADY_EXISTS, "already exists") from exc

        self._reload()
        return "ok"

    def delete(self, bot: str | None) -> None:
        """Remove the license of ``bot``."""
        if not bot:
            raise RpcError(Code.INVALID_ARGUMENT, "")
        try:
            self._manager.delete_license(bot)
        except NotFoundError as exc:
            raise RpcError(Code.NOT_FOUND, "") from exc
        self._reload()

    def list(self) -> list[str]:
        """Return the robots named by the stored licenses."""
        with self._lock:
            try:
                return list(self._manager.list_bots())
            except (OSError, ValueError) as exc:
                raise RpcError(Code.INTERNAL, "INTERNAL_ERROR") from exc

    def is_licensed(self, bot: str) -> bool:
        """Tell whether ``bot`` holds a valid license."""
        with self._lock:
            return bot in self._bots