"""Ed25519 client identity generation and key fingerprints."""

from __future__ import annotations

import base64
import hashlib
from dataclasses import dataclass

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

PUBLIC_KEY_LENGTH = 32
FINGERPRINT_BYTES = 16


@dataclass(frozen=True)
class GeneratedIdentity:
    """A freshly generated key pair, base64 encoded, with its fingerprint."""

    private_key: str
    public_key: str
    fingerprint: str


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def fingerprint_of(public_key: bytes | Ed25519PublicKey) -> str:
    """Return the base64 of the first 16 bytes of SHA-256 over the raw public key."""
    if isinstance(public_key, Ed25519PublicKey):
        raw = public_key.public_bytes(
            serialization.Encoding.Raw, serialization.PublicFormat.Raw
        )
    else:
        raw = bytes(public_key)
    if len(raw) != PUBLIC_KEY_LENGTH:
        raise ValueError(
            f"public key must be {PUBLIC_KEY_LENGTH} bytes, got {len(raw)}"
        )
    return _b64(hashlib.sha256(raw).digest()[:FINGERPRINT_BYTES])


def generate_identity() -> GeneratedIdentity:
    """Generate a new Ed25519 signing key and describe it."""
    signing_key = Ed25519PrivateKey.generate()
    private_raw = signing_key.private_bytes(
        serialization.Encoding.Raw,
        serialization.PrivateFormat.Raw,
        serialization.NoEncryption(),
    )
    verifying_key = signing_key.public_key()
    public_raw = verifying_key.public_bytes(
        serialization.Encoding.Raw, serialization.PublicFormat.Raw
    )
    return GeneratedIdentity(
        private_key=_b64(private_raw),
        public_key=_b64(public_raw),
        fingerprint=fingerprint_of(public_raw),
    )