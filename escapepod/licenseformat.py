"""License key format: a signed license wrapped in base64-encoded JSON."""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}

_LICENSE_FIELDS = ("email", "version", "bot")


def _encode(value: Any) -> bytes:
    """Encode as compact JSON with HTML-sensitive characters escaped."""
    text = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    for char, escape in _HTML_ESCAPES.items():
        text = text.replace(char, escape)
    return text.encode("utf-8")


class InvalidLicenseKey(ValueError):
    """Raised when a license key cannot be decoded."""

    def __init__(self, message: str = "invalid license key") -> None:
        super().__init__(message)


@dataclass(frozen=True)
class License:
    """The licensed facts: who holds the license and for which robot."""

    email: str = ""
    version: str = ""
    bot: str = ""

    def to_dict(self) -> dict[str, str]:
        """Return the JSON object form; empty fields are left out."""
        return {
            name: value
            for name in _LICENSE_FIELDS
            if (value := getattr(self, name))
        }

    def canonical_json(self) -> bytes:
        """Return the exact bytes that a signature covers."""
        return _encode(self.to_dict())

    @classmethod
    def from_dict(cls, data: Any) -> License:
        if not isinstance(data, Mapping):
            raise InvalidLicenseKey()
        values = {}
        for name in _LICENSE_FIELDS:
            value = data.get(name)
            if value is None:
                continue
            if not isinstance(value, str):
                raise InvalidLicenseKey()
            values[name] = value
        return cls(**values)


@dataclass(frozen=True)
class Payload:
    """A license together with its signature."""

    license: License | None = None
    signature: bytes = b""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.license is not None:
            out["payload"] = self.license.to_dict()
        if self.signature:
            out["signature"] = base64.b64encode(self.signature).decode("ascii")
        return out

    def to_string(self) -> str:
        """Return the license key string."""
        return base64.b64encode(_encode(self.to_dict())).decode("ascii")

    @classmethod
    def from_dict(cls, data: Any) -> Payload:
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise InvalidLicenseKey()

        raw_license = data.get("payload")
        license = None if raw_license is None else License.from_dict(raw_license)

        raw_signature = data.get("signature")
        if raw_signature is None:
            signature = b""
        elif isinstance(raw_signature, str):
            try:
                signature = base64.b64decode(raw_signature, validate=True)
            except (binascii.Error, ValueError) as exc:
                raise InvalidLicenseKey() from exc
        else:
            raise InvalidLicenseKey()

        return cls(license=license, signature=signature)

    @classmethod
    def from_string(cls, text: str) -> Payload:
        """Decode a license key string."""
        cleaned = text.replace("\r", "").replace("\n", "")
        try:
            raw = base64.b64decode(cleaned, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidLicenseKey() from exc
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise InvalidLicenseKey() from exc
        return cls.from_dict(data)