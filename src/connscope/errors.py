"""
Error taxonomy for the connection telemetry core.

Decode problems are recovered where they are detected (the bad record is
skipped). Action problems are always surfaced to the caller. Transport
problems belong to the transport and only stop batches from arriving.
"""
from typing import Optional


class ConnscopeError(Exception):
    """Base class for all connscope errors."""


class DecodeError(ConnscopeError):
    """A snapshot batch or record could not be decoded."""


class ActionError(ConnscopeError):
    """A terminate, rule-submit or provider-refresh call failed."""

    def __init__(self, message: str,
                 cause: Optional[BaseException] = None,
                 identity: Optional[str] = None):
        super().__init__(message)
        self.cause = cause
        self.identity = identity

    def __str__(self) -> str:
        message = super().__str__()
        if self.cause is not None:
            return f"{message}: {self.cause}"
        return message


class TransportError(ConnscopeError):
    """Snapshot delivery was interrupted."""


class AlreadyUnsubscribed(ConnscopeError):
    """Raised when a subscription is cancelled a second time."""
