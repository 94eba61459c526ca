"""Issuing signed license keys."""

from __future__ import annotations

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from .licenseformat import License, Payload
from .validator import _decode_pem


class KeyLoadError(ValueError):
    """Raised when the signing key cannot be loaded."""


class Issuer:
    """Signs licenses with an RSA private key."""

    def __init__(self, private_key_pem: str | bytes) -> None:
        try:
            label, der = _decode_pem(private_key_pem)
        except ValueError as exc:
            raise KeyLoadError(str(exc)) from exc
        if label not in ("PRIVATE KEY", "RSA PRIVATE KEY"):
            raise KeyLoadError(f"unknown block type {label}")
        try:
            key = serialization.load_der_private_key(der, None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise KeyLoadError(f"invalid license private key: {exc}") from exc
        if not isinstance(key, rsa.RSAPrivateKey):
            raise KeyLoadError("invalid license private key: not an RSA key")
        self._key = key

    def generate(self, license: License) -> str:
        """Return a signed license key for ``license``."""
        signature = self._key.sign(
            license.canonical_json(), padding.PKCS1v15(), hashes.SHA256()
        )
        return Payload(license=license, signature=signature).to_string()