"""Switchboard data-feed provisioner public surface."""

from feed_provisioner.clusters import (
    ALLOWED_CLUSTERS,
    SWITCHBOARD_DEVNET_PID,
    SWITCHBOARD_MAINNET_PID,
    Cluster,
    Network,
    cluster_api_url,
    program_id_for,
    resolve_network,
    to_cluster,
)
from feed_provisioner.errors import (
    ClusterError,
    CommitmentError,
    FeedProvisionerError,
    KeypairError,
    KeypairFileError,
    KeypairParseError,
    PreflightError,
    ProgramIdError,
    ProvisioningError,
    RpcRequestError,
    RpcUnavailableError,
    SDKUnavailableError,
)
from feed_provisioner.jobs import HttpTask, JsonParseTask, Task, build_http_json_job
from feed_provisioner.keypairs import SigningKeypair, load_keypair, load_signing_keypairs
from feed_provisioner.provision import ProvisioningResult, provision_feed
from feed_provisioner.rpc import RpcClient
from feed_provisioner.sdk import (
    AccountHandle,
    AggregatorConfig,
    FeedSDKProtocol,
    FulfillmentManagerPermissions,
    load_feed_sdk,
)

__all__ = [
    "FeedProvisionerError",
    "ClusterError",
    "ProgramIdError",
    "CommitmentError",
    "KeypairError",
    "KeypairFileError",
    "KeypairParseError",
    "SDKUnavailableError",
    "RpcUnavailableError",
    "RpcRequestError",
    "PreflightError",
    "ProvisioningError",
    "Cluster",
    "ALLOWED_CLUSTERS",
    "SWITCHBOARD_DEVNET_PID",
    "SWITCHBOARD_MAINNET_PID",
    "Network",
    "to_cluster",
    "cluster_api_url",
    "program_id_for",
    "resolve_network",
    "SigningKeypair",
    "load_keypair",
    "load_signing_keypairs",
    "HttpTask",
    "JsonParseTask",
    "Task",
    "build_http_json_job",
    "AccountHandle",
    "AggregatorConfig",
    "FulfillmentManagerPermissions",
    "FeedSDKProtocol",
    "load_feed_sdk",
    "ProvisioningResult",
    "provision_feed",
    "RpcClient",
]
