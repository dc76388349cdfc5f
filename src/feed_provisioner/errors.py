"""Feed provisioner error types."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from feed_provisioner.provision import ProvisioningResult


class FeedProvisionerError(RuntimeError):
    """Base provisioner error."""


class ClusterError(FeedProvisionerError, ValueError):
    """Cluster name is not one of the supported networks."""


class ProgramIdError(FeedProvisionerError, ValueError):
    """Program id override is not a valid public key."""


class CommitmentError(FeedProvisionerError, ValueError):
    """Commitment level is not one the SDK backend accepts."""


class KeypairError(FeedProvisionerError, ValueError):
    """Keypair material could not be loaded."""


class KeypairFileError(KeypairError):
    """Keypair file is missing or unreadable."""


class KeypairParseError(KeypairError):
    """Keypair file content is not valid key material."""


class SDKUnavailableError(FeedProvisionerError):
    """Feed SDK backend could not be imported or constructed."""


class RpcUnavailableError(FeedProvisionerError):
    """Cluster RPC endpoint could not be reached."""


class RpcRequestError(RpcUnavailableError):
    """Cluster RPC returned a JSON-RPC error object."""

    def __init__(
        self,
        message: str,
        *,
        code: int | None = None,
        data: object | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.data = data


class PreflightError(FeedProvisionerError):
    """Cluster or payer failed the pre-provisioning checks."""


class ProvisioningError(FeedProvisionerError):
    """A provisioning step failed; earlier steps are not rolled back."""

    def __init__(self, message: str, *, step: str, result: ProvisioningResult) -> None:
        super().__init__(message)
        self.step = step
        self.result = result
