from __future__ import annotations

import textwrap

import pytest

from feed_provisioner.errors import SDKUnavailableError
from feed_provisioner.sdk import AggregatorConfig, FeedSDKProtocol, load_feed_sdk, normalize_commitment

_BACKEND_SOURCE = textwrap.dedent(
    """
    from feed_provisioner.sdk import AccountHandle


    class Backend:
        def __init__(self, *, rpc_url, commitment):
            self.rpc_url = rpc_url
            self.commitment = commitment

        def create_data_feed(self, payer, program_id):
            return AccountHandle(public_key="feed")

        def add_feed_parse_optimized_account(self, payer, data_feed, size):
            return AccountHandle(public_key="mirror")

        def add_feed_job(self, payer, data_feed, tasks):
            return AccountHandle(public_key="job")

        def set_data_feed_configs(self, payer, data_feed, config):
            return None

        def create_fulfillment_manager_auth(
            self, payer, fulfillment_manager, data_feed_pubkey, permissions
        ):
            return AccountHandle(public_key="auth")


    class Incomplete:
        def __init__(self, *, rpc_url, commitment):
            pass

        def create_data_feed(self, payer, program_id):
            return AccountHandle(public_key="feed")


    def broken(*, rpc_url, commitment):
        raise ConnectionError("cannot reach " + rpc_url)
    """
)


def _install_backend(tmp_path, monkeypatch, module_name: str) -> None:
    (tmp_path / f"{module_name}.py").write_text(_BACKEND_SOURCE, encoding="utf-8")
    monkeypatch.syspath_prepend(str(tmp_path))


def test_load_feed_sdk_builds_backend_with_connection_settings(tmp_path, monkeypatch) -> None:
    _install_backend(tmp_path, monkeypatch, "feedbackend_ok")

    sdk = load_feed_sdk(
        "feedbackend_ok:Backend",
        rpc_url="https://api.devnet.solana.com",
        commitment="confirmed",
    )

    assert isinstance(sdk, FeedSDKProtocol)
    assert sdk.rpc_url == "https://api.devnet.solana.com"
    assert sdk.commitment == "confirmed"


def test_load_feed_sdk_requires_configuration() -> None:
    with pytest.raises(SDKUnavailableError, match="no feed SDK backend configured"):
        load_feed_sdk(None, rpc_url="https://api.devnet.solana.com")


@pytest.mark.parametrize("backend", ["just_a_module", ":factory", "module:"])
def test_load_feed_sdk_rejects_malformed_backend_path(backend: str) -> None:
    with pytest.raises(SDKUnavailableError, match="expected 'package.module:factory'"):
        load_feed_sdk(backend, rpc_url="https://api.devnet.solana.com")


def test_load_feed_sdk_reports_missing_module() -> None:
    with pytest.raises(SDKUnavailableError, match="is not installed"):
        load_feed_sdk("feedbackend_missing_xyz:create", rpc_url="https://api.devnet.solana.com")


def test_load_feed_sdk_reports_missing_attribute(tmp_path, monkeypatch) -> None:
    _install_backend(tmp_path, monkeypatch, "feedbackend_attr")
    with pytest.raises(SDKUnavailableError, match="has no attribute"):
        load_feed_sdk("feedbackend_attr:nope", rpc_url="https://api.devnet.solana.com")


def test_load_feed_sdk_wraps_factory_failure(tmp_path, monkeypatch) -> None:
    _install_backend(tmp_path, monkeypatch, "feedbackend_broken")
    with pytest.raises(SDKUnavailableError, match="failed to start: cannot reach"):
        load_feed_sdk("feedbackend_broken:broken", rpc_url="https://api.devnet.solana.com")


def test_load_feed_sdk_rejects_incomplete_backend(tmp_path, monkeypatch) -> None:
    _install_backend(tmp_path, monkeypatch, "feedbackend_incomplete")
    with pytest.raises(SDKUnavailableError, match="does not implement"):
        load_feed_sdk("feedbackend_incomplete:Incomplete", rpc_url="https://api.devnet.solana.com")


def test_normalize_commitment() -> None:
    assert normalize_commitment(" Confirmed ") == "confirmed"
    with pytest.raises(ValueError):
        normalize_commitment("max")


def test_aggregator_config_rejects_zero_confirmations() -> None:
    with pytest.raises(ValueError):
        AggregatorConfig(
            min_confirmations=0,
            min_update_delay_seconds=10,
            fulfillment_manager_pubkey=b"\x00" * 32,
        )
