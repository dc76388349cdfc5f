"""Solana keypair files and the signing identities built from them.

A keypair file is the JSON array written by ``solana-keygen``: 64 integers,
the 32-byte ed25519 seed followed by the 32-byte public key.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

import base58
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from feed_provisioner.errors import KeypairFileError, KeypairParseError

SECRET_KEY_LENGTH = 64
SEED_LENGTH = 32


def resolve_path(path: str | Path) -> Path:
    return Path(os.path.expanduser(str(path))).resolve()


@dataclass(frozen=True)
class SigningKeypair:
    secret_key_bytes: bytes = field(repr=False)

    def __post_init__(self) -> None:
        if len(self.secret_key_bytes) != SECRET_KEY_LENGTH:
            raise KeypairParseError(f"secret key must be {SECRET_KEY_LENGTH} bytes")
        derived = _derive_public_key(self.secret_key_bytes[:SEED_LENGTH])
        if derived != self.secret_key_bytes[SEED_LENGTH:]:
            raise KeypairParseError("keypair seed does not match its public key")

    @classmethod
    def from_seed(cls, seed: bytes) -> "SigningKeypair":
        return cls(secret_key_bytes=seed + _derive_public_key(seed))

    @property
    def public_key_bytes(self) -> bytes:
        return self.secret_key_bytes[SEED_LENGTH:]

    @property
    def public_key(self) -> str:
        return base58.b58encode(self.public_key_bytes).decode("ascii")

    def sign(self, message: bytes) -> bytes:
        private = Ed25519PrivateKey.from_private_bytes(self.secret_key_bytes[:SEED_LENGTH])
        return private.sign(message)

    def to_json_array(self) -> list[int]:
        return list(self.secret_key_bytes)


def _derive_public_key(seed: bytes) -> bytes:
    private = Ed25519PrivateKey.from_private_bytes(seed)
    return private.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)


def parse_keypair(raw: str, *, source: str = "<keypair>") -> SigningKeypair:
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise KeypairParseError(f"keypair file is not valid JSON: {source}") from exc

    if not isinstance(payload, list) or len(payload) != SECRET_KEY_LENGTH:
        raise KeypairParseError(
            f"keypair file must contain a JSON array of {SECRET_KEY_LENGTH} integers: {source}"
        )
    if not all(isinstance(item, int) and not isinstance(item, bool) for item in payload):
        raise KeypairParseError(f"keypair values must be integers: {source}")
    if any(item < 0 or item > 255 for item in payload):
        raise KeypairParseError(f"keypair values must be in 0..255: {source}")

    try:
        return SigningKeypair(secret_key_bytes=bytes(payload))
    except KeypairParseError as exc:
        raise KeypairParseError(f"{exc}: {source}") from exc


def load_keypair(path: str | Path) -> SigningKeypair:
    keypair_path = resolve_path(path)
    try:
        raw = keypair_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise KeypairFileError(f"keypair file not found: {keypair_path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise KeypairFileError(f"keypair file is not readable: {keypair_path}: {exc}") from exc
    return parse_keypair(raw, source=str(keypair_path))


def load_signing_keypairs(
    payer_file: str | Path,
    fulfillment_file: str | Path,
) -> tuple[SigningKeypair, SigningKeypair]:
    return load_keypair(payer_file), load_keypair(fulfillment_file)
