"""Local signing keypairs for account and asset provisioning."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
)


@dataclass(frozen=True)
class Keypair:
    private_key_bytes: bytes
    public_key_bytes: bytes

    @property
    def xprv(self) -> str:
        return self.private_key_bytes.hex()

    @property
    def xpub(self) -> str:
        return self.public_key_bytes.hex()


def generate_keypair() -> Keypair:
    private = Ed25519PrivateKey.generate()
    private_key_bytes = private.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption())
    return Keypair(
        private_key_bytes=private_key_bytes,
        public_key_bytes=derive_public_key(private_key_bytes),
    )


def derive_public_key(private_key_bytes: bytes) -> bytes:
    private = Ed25519PrivateKey.from_private_bytes(private_key_bytes)
    return private.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)


def decode_public_key(value: str) -> bytes:
    """Decode a public key the core returned as hex or base64."""
    try:
        return bytes.fromhex(value)
    except ValueError:
        pass
    try:
        return base64.b64decode(value, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"public key is neither hex nor base64: {value!r}") from exc
