"""Cluster selection: RPC endpoints and Switchboard program ids."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import base58

from feed_provisioner.errors import ClusterError, ProgramIdError

Cluster = Literal["devnet", "testnet", "mainnet-beta"]

ALLOWED_CLUSTERS: tuple[Cluster, ...] = ("devnet", "testnet", "mainnet-beta")
DEFAULT_CLUSTER: Cluster = "devnet"

SWITCHBOARD_DEVNET_PID = "7azgmy1pFXHikv36q1zZASvFq5vFa39TT9NweVugKKTU"
SWITCHBOARD_MAINNET_PID = "DtmE9D2CSB4L5D6A15mraeEjrGMm6auWVzgaD8hK2tZM"

_PROGRAM_IDS: dict[str, str] = {
    "devnet": SWITCHBOARD_DEVNET_PID,
    "testnet": SWITCHBOARD_DEVNET_PID,
    "mainnet-beta": SWITCHBOARD_MAINNET_PID,
}


@dataclass(frozen=True)
class Network:
    cluster: Cluster
    rpc_url: str
    program_id: str


def to_cluster(value: str) -> Cluster:
    if value in ALLOWED_CLUSTERS:
        return value  # type: ignore[return-value]
    raise ClusterError("Invalid cluster provided.")


def cluster_api_url(cluster: Cluster, tls: bool = True) -> str:
    scheme = "https" if tls else "http"
    return f"{scheme}://api.{to_cluster(cluster)}.solana.com"


def program_id_for(cluster: Cluster) -> str:
    return _PROGRAM_IDS[to_cluster(cluster)]


def validate_program_id(value: str) -> str:
    candidate = value.strip()
    try:
        decoded = base58.b58decode(candidate)
    except ValueError as exc:
        raise ProgramIdError(f"program id is not valid base58: {candidate!r}") from exc
    if len(decoded) != 32:
        raise ProgramIdError(f"program id must decode to 32 bytes: {candidate!r}")
    return candidate


def resolve_network(
    cluster: str,
    *,
    rpc_url: str | None = None,
    program_id: str | None = None,
) -> Network:
    """Resolve a cluster name into the endpoint and program id to provision against.

    Overrides win over the per-cluster defaults. The program id defaults to the
    deployment on the selected cluster; pass the mainnet id explicitly to target
    it from another cluster.
    """
    selected = to_cluster(cluster)
    if program_id is not None:
        program_id = validate_program_id(program_id)
    return Network(
        cluster=selected,
        rpc_url=rpc_url.strip() if rpc_url and rpc_url.strip() else cluster_api_url(selected),
        program_id=program_id if program_id is not None else program_id_for(selected),
    )
