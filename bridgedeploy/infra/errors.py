from __future__ import annotations

from typing import Optional


class DeployError(Exception):
    """Base class for provisioning errors."""


class ConfigError(DeployError):
    """Raised when a required value is absent or a safety cross-check fails."""


class LinkOverflow(DeployError):
    """Raised when a link reference window does not fit inside the object code."""

    def __init__(self, message: str, *, symbol: str = "", start: int = 0, length: int = 0):
        super().__init__(message)
        self.symbol = symbol
        self.start = start
        self.length = length


class DeploymentFailed(DeployError):
    """Raised when a creation call yields no usable address."""

    def __init__(self, message: str, *, resource_id: str = ""):
        super().__init__(message)
        self.resource_id = resource_id


class RecoverableRevert(DeployError):
    """An initialization call was rejected.

    Never raised: the sequencer reports it as an `already_applied` phase outcome.
    """


class ProbeUnavailable(DeployError):
    """A read-only probe failed or is unsupported.

    Never raised: callers fall back (skip the phase, or assume-and-set the admin).
    """


class WiringPartialFailure(DeployError):
    """Raised when a role wiring step fails after the precondition check."""

    def __init__(self, message: str, *, step_id: str = "", completed: Optional[list] = None):
        super().__init__(message)
        self.step_id = step_id
        self.completed = list(completed or [])


class AdminTransferFailed(DeployError):
    """Raised when the admin change call on an upgrade proxy fails."""


class TransportError(DeployError):
    """Raised when the ledger transport cannot complete a request."""
