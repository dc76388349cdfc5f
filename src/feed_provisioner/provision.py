"""Sequential data-feed provisioning pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

from feed_provisioner.errors import ProvisioningError
from feed_provisioner.jobs import build_http_json_job
from feed_provisioner.keypairs import SigningKeypair
from feed_provisioner.sdk import (
    AccountHandle,
    AggregatorConfig,
    FeedSDKProtocol,
    FulfillmentManagerPermissions,
)

PARSE_OPTIMIZED_SIZE = 1000
MIN_CONFIRMATIONS = 1
MIN_UPDATE_DELAY_SECONDS = 10
UPDATE_AUTH_PERMISSIONS = FulfillmentManagerPermissions(
    authorize_heartbeat=False,
    authorize_usage=True,
)

STEP_CREATE_FEED = "create_data_feed"
STEP_PARSE_OPTIMIZED = "add_feed_parse_optimized_account"
STEP_ADD_JOB = "add_feed_job"
STEP_CONFIGURE = "set_data_feed_configs"
STEP_AUTHORIZE = "create_fulfillment_manager_auth"

STEPS = (
    STEP_CREATE_FEED,
    STEP_PARSE_OPTIMIZED,
    STEP_ADD_JOB,
    STEP_CONFIGURE,
    STEP_AUTHORIZE,
)

EXPORT_NAMES = {
    "data_feed": "FEED_PUBKEY",
    "parse_optimized": "OPTIMIZED_RESULT_PUBKEY",
    "job": "JOB_PUBKEY",
    "update_auth": "UPDATE_AUTH_KEY",
}


@dataclass
class ProvisioningResult:
    data_feed: Optional[AccountHandle] = None
    parse_optimized: Optional[AccountHandle] = None
    job: Optional[AccountHandle] = None
    update_auth: Optional[AccountHandle] = None
    configured: bool = False
    completed_steps: list[str] = field(default_factory=list)

    def handles(self) -> dict[str, str]:
        """Public keys created so far, keyed by export variable name."""
        created: dict[str, str] = {}
        for attr, export_name in EXPORT_NAMES.items():
            handle = getattr(self, attr)
            if handle is not None:
                created[export_name] = handle.public_key
        return created


def format_export(name: str, value: str) -> str:
    return f"export {name}={value}"


def provision_feed(
    sdk: FeedSDKProtocol,
    *,
    payer: SigningKeypair,
    fulfillment_manager: SigningKeypair,
    program_id: str,
    api_endpoint: str,
    api_json_path: str,
    emit: Callable[[str], None] = print,
    emit_exports: bool = True,
    on_step: Callable[[str, ProvisioningResult], None] | None = None,
) -> ProvisioningResult:
    """Create and configure a data feed, one blocking SDK call at a time.

    Each step consumes the aggregator handle produced by the first one. The first
    failing step raises :class:`ProvisioningError` carrying the partial result;
    accounts created before it are left in place.

    Job tasks are validated before the first SDK call, so an empty endpoint or JSON
    path raises pydantic's ``ValidationError`` without creating any account.
    """
    tasks = build_http_json_job(api_endpoint, api_json_path)
    result = ProvisioningResult()

    def _export(attr: str) -> None:
        handle = getattr(result, attr)
        if emit_exports:
            emit(format_export(EXPORT_NAMES[attr], handle.public_key))

    def _run(step: str, action: Callable[[], None]) -> None:
        try:
            action()
        except Exception as exc:
            raise ProvisioningError(
                f"step {step} failed: {exc}",
                step=step,
                result=result,
            ) from exc
        result.completed_steps.append(step)
        if on_step is not None:
            on_step(step, result)

    def _create_feed() -> None:
        result.data_feed = sdk.create_data_feed(payer, program_id)
        _export("data_feed")

    def _parse_optimized() -> None:
        result.parse_optimized = sdk.add_feed_parse_optimized_account(
            payer, result.data_feed, PARSE_OPTIMIZED_SIZE
        )
        _export("parse_optimized")

    def _add_job() -> None:
        result.job = sdk.add_feed_job(payer, result.data_feed, tasks)
        _export("job")

    def _configure() -> None:
        config = AggregatorConfig(
            min_confirmations=MIN_CONFIRMATIONS,
            min_update_delay_seconds=MIN_UPDATE_DELAY_SECONDS,
            fulfillment_manager_pubkey=fulfillment_manager.public_key_bytes,
            lock=False,
        )
        sdk.set_data_feed_configs(payer, result.data_feed, config)
        result.configured = True

    def _authorize() -> None:
        result.update_auth = sdk.create_fulfillment_manager_auth(
            payer,
            fulfillment_manager,
            result.data_feed.public_key,
            UPDATE_AUTH_PERMISSIONS,
        )
        _export("update_auth")

    emit("# Creating aggregator...")
    _run(STEP_CREATE_FEED, _create_feed)
    emit("# Creating a parsed optimized mirror of the aggregator (optional)...")
    _run(STEP_PARSE_OPTIMIZED, _parse_optimized)
    emit(f"# Adding job to aggregator for endpoint {api_endpoint} and JSON path {api_json_path}...")
    _run(STEP_ADD_JOB, _add_job)
    emit("# Configuring aggregator...")
    _run(STEP_CONFIGURE, _configure)
    emit("# Creating authorization account for the data feed. This will be used in part 2b.")
    _run(STEP_AUTHORIZE, _authorize)
    return result


__all__ = [
    "EXPORT_NAMES",
    "ProvisioningResult",
    "STEPS",
    "format_export",
    "provision_feed",
]
