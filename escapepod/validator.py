"""Checking license keys against the issuer's public key."""

from __future__ import annotations

import base64
import binascii
import re

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from .licenseformat import InvalidLicenseKey, Payload

_PEM_BLOCK = re.compile(
    r"-----BEGIN ([^\r\n-]+)-----\r?\n(.*?)-----END \1-----", re.DOTALL
)


def _decode_pem(text: str | bytes) -> tuple[str, bytes]:
    """Return the label and DER bytes of the first PEM block in ``text``."""
    if isinstance(text, (bytes, bytearray)):
        text = bytes(text).decode("ascii", errors="replace")
    match = _PEM_BLOCK.search(text)
    if match is None:
        raise ValueError("no PEM encoded key found")
    body = "".join(
        line.strip() for line in match.group(2).splitlines() if ":" not in line
    )
    try:
        der = base64.b64decode(body, validate=True)
    except binascii.Error as exc:
        raise ValueError("no PEM encoded key found") from exc
    return match.group(1), der


class LicenseValidationError(InvalidLicenseKey):
    """Raised when a license signature does not verify."""


class Validator:
    """Verifies license signatures with an RSA public key."""

    def __init__(self, public_key_pem: str | bytes) -> None:
        label, der = _decode_pem(public_key_pem)
        if label != "PUBLIC KEY":
            raise ValueError(f"unknown block type {label}")
        try:
            key = serialization.load_der_public_key(der)
        except (ValueError, UnsupportedAlgorithm) as exc:
            raise ValueError(f"public key error: {exc}") from exc
        if not isinstance(key, rsa.RSAPublicKey):
            raise ValueError("not an RSA public key")
        self._key = key

    def validate_string(self, text: str) -> Payload:
        """Decode a license key and check its signature."""
        payload = Payload.from_string(text)
        self.validate_payload(payload)
        return payload

    def validate_payload(self, payload: Payload) -> None:
        """Raise LicenseValidationError unless the signature matches."""
        message = (
            payload.license.canonical_json() if payload.license is not None else b"null"
        )
        try:
            self._key.verify(
                payload.signature, message, padding.PKCS1v15(), hashes.SHA256()
            )
        except InvalidSignature as exc:
            raise LicenseValidationError("license signature verification failed") from exc