"""Command-line interface for provision-feed."""

from __future__ import annotations

import argparse
import json
import re
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version
from pathlib import Path
from typing import Sequence

from pydantic import ValidationError

from feed_provisioner.cli.config import CLIConfig, ConfigError, load_cli_config
from feed_provisioner.cli.records import RecordError, save_provisioning_record
from feed_provisioner.clusters import Network, resolve_network, to_cluster
from feed_provisioner.errors import (
    ClusterError,
    CommitmentError,
    KeypairError,
    PreflightError,
    ProgramIdError,
    ProvisioningError,
    RpcUnavailableError,
    SDKUnavailableError,
)
from feed_provisioner.keypairs import SigningKeypair, load_signing_keypairs
from feed_provisioner.provision import ProvisioningResult, provision_feed
from feed_provisioner.rpc import LAMPORTS_PER_SOL, RpcClient
from feed_provisioner.sdk import load_feed_sdk, normalize_commitment

EXIT_SUCCESS = 0
EXIT_VALIDATION_ERROR = 1
EXIT_SDK_UNAVAILABLE = 3
EXIT_REMOTE_ERROR = 4

FAILURE_BANNER = "Failed to complete action."

_SENSITIVE_FIELDS = (
    "secret_key",
    "secret_key_bytes",
    "private_key",
    "seed",
    "secret",
    "token",
    "api_key",
    "api-key",
)


@dataclass(frozen=True)
class ProvisionOptions:
    payer_file: str
    fulfillment_file: str
    api_endpoint: str
    api_json_path: str
    cluster: str
    rpc_url: str | None = None
    program_id: str | None = None
    commitment: str = "processed"
    sdk_backend: str | None = None
    preflight: bool = False
    records_dir: str | None = None
    as_json: bool = False


def _package_version() -> str:
    try:
        return pkg_version("feed-provisioner")
    except PackageNotFoundError:
        return "0.0.0+local"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="provision-feed",
        description="Create and configure a Switchboard data feed on a Solana cluster.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"provision-feed {_package_version()}",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to CLI config TOML (default: ~/.feed_provisioner/config.toml)",
    )
    parser.add_argument(
        "--payerFile",
        "--payer-file",
        dest="payer_file",
        required=True,
        help="Keypair file to pay for transactions.",
    )
    parser.add_argument(
        "--fulfillmentFile",
        "--fulfillment-file",
        dest="fulfillment_file",
        required=True,
        help="Keypair file of the fulfillment manager.",
    )
    parser.add_argument(
        "--apiEndpoint",
        "--api-endpoint",
        dest="api_endpoint",
        default=None,
        help="API endpoint to query from (default from config)",
    )
    parser.add_argument(
        "--apiJsonPath",
        "--api-json-path",
        dest="api_json_path",
        default=None,
        help="JSON path used to parse desired value from apiEndpoint (default: $.price)",
    )
    parser.add_argument(
        "--cluster",
        default=None,
        help="devnet, testnet, or mainnet-beta (default: devnet)",
    )
    parser.add_argument("--rpc-url", default=None, help="RPC URL override for the cluster")
    parser.add_argument(
        "--program-id",
        default=None,
        help="Switchboard program id override (default: deployment on the selected cluster)",
    )
    parser.add_argument(
        "--commitment",
        default=None,
        help="Commitment passed to the SDK backend: processed, confirmed, or finalized",
    )
    parser.add_argument(
        "--sdk-backend",
        default=None,
        help="Feed SDK backend as 'package.module:factory' (default from config)",
    )
    parser.add_argument(
        "--preflight",
        action="store_true",
        help="Check cluster health and payer balance before creating accounts",
    )
    records = parser.add_mutually_exclusive_group()
    records.add_argument(
        "--records-dir",
        default=None,
        help="Directory for provisioning records (default: ~/.feed_provisioner/records)",
    )
    records.add_argument(
        "--no-record",
        action="store_true",
        help="Do not write a provisioning record",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print a JSON summary instead of export lines",
    )
    return parser


def _flag_or(value, fallback):
    return value if value is not None else fallback


def resolve_options(args: argparse.Namespace, config: CLIConfig) -> ProvisionOptions:
    """Merge parsed flags over config values into a validated options record.

    A flag given on the command line wins even when it is empty, so `--cluster ""`
    is rejected rather than replaced by the configured cluster.
    """
    cluster = to_cluster(_flag_or(args.cluster, config.cluster))
    commitment = normalize_commitment(_flag_or(args.commitment, config.commitment))

    if args.no_record:
        records_dir = None
    else:
        records_dir = _flag_or(args.records_dir, config.records_dir)

    return ProvisionOptions(
        payer_file=args.payer_file,
        fulfillment_file=args.fulfillment_file,
        api_endpoint=_flag_or(args.api_endpoint, config.api_endpoint),
        api_json_path=_flag_or(args.api_json_path, config.api_json_path),
        cluster=cluster,
        rpc_url=_flag_or(args.rpc_url, config.rpc_url),
        program_id=_flag_or(args.program_id, config.program_id),
        commitment=commitment,
        sdk_backend=_flag_or(args.sdk_backend, config.sdk_backend),
        preflight=args.preflight,
        records_dir=records_dir,
        as_json=args.json,
    )


def _sanitize_error_text(value: str) -> str:
    redacted = value
    for field in _SENSITIVE_FIELDS:
        redacted = re.sub(
            rf"(?i)({re.escape(field)}\s*[=:]\s*)([^,\s]+)",
            r"\1[REDACTED]",
            redacted,
        )
    redacted = re.sub(
        r"(?i)([?&](?:secret|token|api[-_]?key)=)([^&\s]+)",
        r"\1[REDACTED]",
        redacted,
    )
    return redacted


def _print_error(stderr, prefix: str, message: str, *, code: int) -> int:
    print(FAILURE_BANNER, file=stderr)
    print(f"{prefix}: {_sanitize_error_text(message)}", file=stderr)
    return code


def _describe_validation(exc: ValidationError) -> str:
    details = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    return f"invalid {exc.title}: {details}"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _run_preflight(*, network: Network, payer: SigningKeypair, commitment: str, stdout) -> None:
    client = RpcClient(rpc_url=network.rpc_url, commitment=commitment)
    health = client.get_health()
    if health != "ok":
        raise PreflightError(f"cluster {network.cluster} reports unhealthy status: {health}")
    core_version = client.get_version().get("solana-core", "unknown")
    print(f"# Cluster {network.cluster} is healthy (solana-core {core_version})", file=stdout)

    balance = client.get_balance(payer.public_key)
    print(
        f"# Payer {payer.public_key} balance: {balance / LAMPORTS_PER_SOL:.9f} SOL",
        file=stdout,
    )
    if balance <= 0:
        raise PreflightError(f"payer {payer.public_key} has no funds on {network.cluster}")


def _record_payload(
    *,
    options: ProvisionOptions,
    network: Network,
    payer: SigningKeypair,
    fulfillment_manager: SigningKeypair,
    result: ProvisioningResult,
    status: str,
    failed_step: str | None = None,
) -> dict:
    return {
        "updated_at": _utc_now_iso(),
        "status": status,
        "failed_step": failed_step,
        "cluster": network.cluster,
        "rpc_url": network.rpc_url,
        "program_id": network.program_id,
        "api_endpoint": options.api_endpoint,
        "api_json_path": options.api_json_path,
        "payer": payer.public_key,
        "fulfillment_manager": fulfillment_manager.public_key,
        "handles": result.handles(),
        "configured": result.configured,
        "completed_steps": list(result.completed_steps),
    }


def _run_provision(*, options: ProvisionOptions, stdout, stderr) -> int:
    try:
        network = resolve_network(
            options.cluster,
            rpc_url=options.rpc_url,
            program_id=options.program_id,
        )
    except (ClusterError, ProgramIdError) as exc:
        return _print_error(stderr, "cluster error", str(exc), code=EXIT_VALIDATION_ERROR)

    try:
        payer, fulfillment_manager = load_signing_keypairs(
            options.payer_file,
            options.fulfillment_file,
        )
    except KeypairError as exc:
        return _print_error(stderr, "keypair error", str(exc), code=EXIT_VALIDATION_ERROR)

    try:
        sdk = load_feed_sdk(
            options.sdk_backend,
            rpc_url=network.rpc_url,
            commitment=options.commitment,
        )
    except SDKUnavailableError as exc:
        return _print_error(stderr, "sdk error", str(exc), code=EXIT_SDK_UNAVAILABLE)

    if options.preflight:
        try:
            _run_preflight(
                network=network,
                payer=payer,
                commitment=options.commitment,
                stdout=stdout,
            )
        except (RpcUnavailableError, PreflightError) as exc:
            return _print_error(stderr, "preflight error", str(exc), code=EXIT_REMOTE_ERROR)

    record_file: Path | None = None

    def _save_record(result: ProvisioningResult, status: str, failed_step: str | None = None) -> None:
        nonlocal record_file
        if options.records_dir is None or result.data_feed is None:
            return
        payload = _record_payload(
            options=options,
            network=network,
            payer=payer,
            fulfillment_manager=fulfillment_manager,
            result=result,
            status=status,
            failed_step=failed_step,
        )
        try:
            record_file = save_provisioning_record(
                records_dir=options.records_dir,
                feed_pubkey=result.data_feed.public_key,
                payload=payload,
            )
        except RecordError as exc:
            print(f"record warning: {exc}", file=stderr)

    def _emit(line: str) -> None:
        print(line, file=stdout)

    try:
        result = provision_feed(
            sdk,
            payer=payer,
            fulfillment_manager=fulfillment_manager,
            program_id=network.program_id,
            api_endpoint=options.api_endpoint,
            api_json_path=options.api_json_path,
            emit=_emit,
            emit_exports=not options.as_json,
            on_step=lambda _step, partial: _save_record(partial, "in_progress"),
        )
    except ValidationError as exc:
        detail = _describe_validation(exc)
        return _print_error(stderr, "job error", detail, code=EXIT_VALIDATION_ERROR)
    except ProvisioningError as exc:
        _save_record(exc.result, "failed", failed_step=exc.step)
        if options.as_json:
            summary = {
                "cluster": network.cluster,
                "rpc_url": network.rpc_url,
                "program_id": network.program_id,
                "handles": exc.result.handles(),
                "failed_step": exc.step,
                "record_file": str(record_file) if record_file else None,
            }
            print(json.dumps(summary, sort_keys=True), file=stdout)
        detail = f"{exc} ({type(exc.__cause__).__name__})" if exc.__cause__ else str(exc)
        code = _print_error(stderr, "provisioning error", detail, code=EXIT_REMOTE_ERROR)
        if record_file is not None and not options.as_json:
            print(f"partial provisioning record: {record_file}", file=stderr)
        return code

    _save_record(result, "complete")

    if options.as_json:
        summary = {
            "cluster": network.cluster,
            "rpc_url": network.rpc_url,
            "program_id": network.program_id,
            "handles": result.handles(),
            "record_file": str(record_file) if record_file else None,
        }
        print(json.dumps(summary, sort_keys=True), file=stdout)
    elif record_file is not None:
        print(f"# Provisioning record written to {record_file}", file=stdout)
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None, *, stdout=sys.stdout, stderr=sys.stderr) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_cli_config(args.config)
    except ConfigError as exc:
        return _print_error(stderr, "config error", str(exc), code=EXIT_VALIDATION_ERROR)

    try:
        options = resolve_options(args, config)
    except ClusterError as exc:
        return _print_error(stderr, "cluster error", str(exc), code=EXIT_VALIDATION_ERROR)
    except CommitmentError as exc:
        return _print_error(stderr, "commitment error", str(exc), code=EXIT_VALIDATION_ERROR)

    return _run_provision(options=options, stdout=stdout, stderr=stderr)


if __name__ == "__main__":
    raise SystemExit(main())
