"""Contract for the external feed SDK and backend loading."""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from typing import Any, Literal, Protocol, Sequence, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from feed_provisioner.errors import CommitmentError, SDKUnavailableError
from feed_provisioner.jobs import Task
from feed_provisioner.keypairs import SigningKeypair

Commitment = Literal["processed", "confirmed", "finalized"]

ALLOWED_COMMITMENTS: tuple[Commitment, ...] = ("processed", "confirmed", "finalized")
DEFAULT_COMMITMENT: Commitment = "processed"
SDK_BACKEND_ENV_VAR = "FEED_PROVISIONER_SDK_BACKEND"


@dataclass(frozen=True)
class AccountHandle:
    public_key: str
    raw: Any = None

    def __str__(self) -> str:
        return self.public_key


class AggregatorConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    min_confirmations: int = Field(..., ge=1, alias="minConfirmations")
    min_update_delay_seconds: int = Field(..., ge=0, alias="minUpdateDelaySeconds")
    fulfillment_manager_pubkey: bytes = Field(..., alias="fulfillmentManagerPubkey")
    lock: bool = False

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


class FulfillmentManagerPermissions(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    authorize_heartbeat: bool = Field(..., alias="authorizeHeartbeat")
    authorize_usage: bool = Field(..., alias="authorizeUsage")

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


@runtime_checkable
class FeedSDKProtocol(Protocol):
    def create_data_feed(self, payer: SigningKeypair, program_id: str) -> AccountHandle: ...

    def add_feed_parse_optimized_account(
        self,
        payer: SigningKeypair,
        data_feed: AccountHandle,
        size: int,
    ) -> AccountHandle: ...

    def add_feed_job(
        self,
        payer: SigningKeypair,
        data_feed: AccountHandle,
        tasks: Sequence[Task],
    ) -> AccountHandle: ...

    def set_data_feed_configs(
        self,
        payer: SigningKeypair,
        data_feed: AccountHandle,
        config: AggregatorConfig,
    ) -> None: ...

    def create_fulfillment_manager_auth(
        self,
        payer: SigningKeypair,
        fulfillment_manager: SigningKeypair,
        data_feed_pubkey: str,
        permissions: FulfillmentManagerPermissions,
    ) -> AccountHandle: ...


def normalize_commitment(value: str) -> str:
    normalized = value.strip().lower()
    if normalized not in ALLOWED_COMMITMENTS:
        raise CommitmentError("commitment must be one of: processed, confirmed, finalized")
    return normalized


def _resolve_factory(backend: str) -> Any:
    module_name, sep, attr = backend.strip().partition(":")
    if not sep or not module_name or not attr:
        raise SDKUnavailableError(
            f"invalid SDK backend {backend!r}; expected 'package.module:factory'"
        )
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise SDKUnavailableError(
            f"feed SDK backend module {module_name!r} is not installed: {exc}"
        ) from exc
    try:
        return getattr(module, attr)
    except AttributeError as exc:
        raise SDKUnavailableError(
            f"feed SDK backend module {module_name!r} has no attribute {attr!r}"
        ) from exc


def load_feed_sdk(
    backend: str | None,
    *,
    rpc_url: str,
    commitment: str = DEFAULT_COMMITMENT,
) -> FeedSDKProtocol:
    """Import and construct the feed SDK named by `backend` (``module:factory``).

    The factory is called with ``rpc_url`` and ``commitment`` keyword arguments and
    must return an object implementing :class:`FeedSDKProtocol`.
    """
    if not backend or not backend.strip():
        raise SDKUnavailableError(
            "no feed SDK backend configured; pass --sdk-backend, set "
            f"{SDK_BACKEND_ENV_VAR}, or add sdk_backend to the config file"
        )
    factory = _resolve_factory(backend)
    try:
        sdk = factory(rpc_url=rpc_url, commitment=commitment)
    except Exception as exc:
        raise SDKUnavailableError(f"feed SDK backend {backend!r} failed to start: {exc}") from exc
    if not isinstance(sdk, FeedSDKProtocol):
        raise SDKUnavailableError(
            f"feed SDK backend {backend!r} does not implement the feed SDK interface"
        )
    return sdk


__all__ = [
    "ALLOWED_COMMITMENTS",
    "AccountHandle",
    "AggregatorConfig",
    "Commitment",
    "DEFAULT_COMMITMENT",
    "FeedSDKProtocol",
    "FulfillmentManagerPermissions",
    "SDK_BACKEND_ENV_VAR",
    "load_feed_sdk",
    "normalize_commitment",
]
