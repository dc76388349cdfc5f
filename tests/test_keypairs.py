from __future__ import annotations

import json

import base58
import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey
from cryptography.hazmat.primitives.serialization import Encoding, NoEncryption, PrivateFormat

from feed_provisioner.errors import KeypairFileError, KeypairParseError
from feed_provisioner.keypairs import SigningKeypair, load_keypair, load_signing_keypairs


def _seed() -> bytes:
    private = Ed25519PrivateKey.generate()
    return private.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption())


def _write_keypair(path) -> SigningKeypair:
    keypair = SigningKeypair.from_seed(_seed())
    path.write_text(json.dumps(keypair.to_json_array()), encoding="utf-8")
    return keypair


def test_load_two_keypairs_gives_distinct_identities(tmp_path) -> None:
    payer_expected = _write_keypair(tmp_path / "payer.json")
    fm_expected = _write_keypair(tmp_path / "fm.json")

    payer, fulfillment_manager = load_signing_keypairs(tmp_path / "payer.json", tmp_path / "fm.json")

    assert payer.public_key == payer_expected.public_key
    assert fulfillment_manager.public_key == fm_expected.public_key
    assert payer.public_key != fulfillment_manager.public_key


def test_public_key_is_base58_of_trailing_bytes(tmp_path) -> None:
    keypair = _write_keypair(tmp_path / "id.json")
    loaded = load_keypair(tmp_path / "id.json")

    assert len(loaded.public_key_bytes) == 32
    assert base58.b58decode(loaded.public_key) == keypair.secret_key_bytes[32:]


def test_tilde_paths_expand_to_home(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))
    expected = _write_keypair(tmp_path / "payer.json")

    loaded = load_keypair("~/payer.json")

    assert loaded.public_key == expected.public_key


def test_missing_file_is_filesystem_error(tmp_path) -> None:
    with pytest.raises(KeypairFileError, match="not found"):
        load_keypair(tmp_path / "absent.json")


def test_malformed_json_is_parse_error(tmp_path) -> None:
    path = tmp_path / "bad.json"
    path.write_text("[1, 2, 3", encoding="utf-8")

    with pytest.raises(KeypairParseError, match="not valid JSON"):
        load_keypair(path)


@pytest.mark.parametrize(
    "payload",
    [
        {"secret": [1, 2, 3]},
        [0] * 32,
        [256] * 64,
        [-1] * 64,
        ["a"] * 64,
        [True] * 64,
    ],
)
def test_invalid_key_material_is_parse_error(tmp_path, payload) -> None:
    path = tmp_path / "bad.json"
    path.write_text(json.dumps(payload), encoding="utf-8")

    with pytest.raises(KeypairParseError):
        load_keypair(path)


def test_mismatched_public_key_is_rejected(tmp_path) -> None:
    first = SigningKeypair.from_seed(_seed())
    second = SigningKeypair.from_seed(_seed())
    path = tmp_path / "mixed.json"
    mixed = list(first.secret_key_bytes[:32]) + list(second.public_key_bytes)
    path.write_text(json.dumps(mixed), encoding="utf-8")

    with pytest.raises(KeypairParseError, match="does not match"):
        load_keypair(path)


def test_sign_verifies_against_public_key() -> None:
    keypair = SigningKeypair.from_seed(_seed())
    signature = keypair.sign(b"feed")

    Ed25519PublicKey.from_public_bytes(keypair.public_key_bytes).verify(signature, b"feed")


def test_repr_hides_secret_key() -> None:
    keypair = SigningKeypair.from_seed(_seed())
    assert str(list(keypair.secret_key_bytes)) not in repr(keypair)
    assert keypair.secret_key_bytes.hex() not in repr(keypair)
