from __future__ import annotations

import io
import json

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, NoEncryption, PrivateFormat

from feed_provisioner.cli.main import main
from feed_provisioner.keypairs import SigningKeypair


def _write_keypair(path) -> None:
    private = Ed25519PrivateKey.generate()
    seed = private.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption())
    path.write_text(json.dumps(SigningKeypair.from_seed(seed).to_json_array()), encoding="utf-8")


def _args(tmp_path) -> list[str]:
    _write_keypair(tmp_path / "payer.json")
    _write_keypair(tmp_path / "fm.json")
    return [
        "--config",
        str(tmp_path / "missing.toml"),
        "--payerFile",
        str(tmp_path / "payer.json"),
        "--fulfillmentFile",
        str(tmp_path / "fm.json"),
        "--no-record",
    ]


def test_remote_error_redacts_rpc_api_key(monkeypatch, tmp_path) -> None:
    out = io.StringIO()
    err = io.StringIO()

    class _SDK:
        def create_data_feed(self, payer, program_id):  # noqa: ARG002
            raise ConnectionError("POST https://rpc.example/?api-key=abc123 failed")

    monkeypatch.setattr(
        "feed_provisioner.cli.main.load_feed_sdk",
        lambda backend, *, rpc_url, commitment: _SDK(),
    )

    rc = main(_args(tmp_path), stdout=out, stderr=err)

    assert rc == 4
    assert "api-key=[REDACTED]" in err.getvalue()
    assert "abc123" not in err.getvalue()


def test_remote_error_redacts_named_secret_field(monkeypatch, tmp_path) -> None:
    err = io.StringIO()

    class _SDK:
        def create_data_feed(self, payer, program_id):  # noqa: ARG002
            raise ValueError("signer rejected: secret_key=5Kd3NBUAdUnhyzenEwVLy9pBKxSwXvE9FMPyR4UKZvpe6E3AgLr")

    monkeypatch.setattr(
        "feed_provisioner.cli.main.load_feed_sdk",
        lambda backend, *, rpc_url, commitment: _SDK(),
    )

    rc = main(_args(tmp_path), stdout=io.StringIO(), stderr=err)

    assert rc == 4
    assert "secret_key=[REDACTED]" in err.getvalue()
    assert "5Kd3NBUAdUnhyzenEwVLy9pBKxSwXvE9FMPyR4UKZvpe6E3AgLr" not in err.getvalue()


def test_invalid_config_prints_banner(tmp_path) -> None:
    err = io.StringIO()
    args = _args(tmp_path)
    config_path = tmp_path / "config.toml"
    config_path.write_text('commitment = "max"\n', encoding="utf-8")
    args[args.index("--config") + 1] = str(config_path)

    rc = main(args, stdout=io.StringIO(), stderr=err)

    assert rc == 1
    assert err.getvalue().splitlines()[0] == "Failed to complete action."
    assert "config error: commitment must be one of" in err.getvalue()


def test_invalid_commitment_flag_is_commitment_error(tmp_path) -> None:
    err = io.StringIO()

    rc = main(_args(tmp_path) + ["--commitment", "max"], stdout=io.StringIO(), stderr=err)

    assert rc == 1
    assert err.getvalue().splitlines() == [
        "Failed to complete action.",
        "commitment error: commitment must be one of: processed, confirmed, finalized",
    ]


def test_unreadable_config_path_prints_banner(tmp_path) -> None:
    err = io.StringIO()
    args = _args(tmp_path)
    config_dir = tmp_path / "config.d"
    config_dir.mkdir()
    args[args.index("--config") + 1] = str(config_dir)

    rc = main(args, stdout=io.StringIO(), stderr=err)

    assert rc == 1
    assert err.getvalue().splitlines()[0] == "Failed to complete action."
    assert "config error: config file is not readable" in err.getvalue()
