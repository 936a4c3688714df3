"""
Exception hierarchy for extraction, translation and transport.

Nothing raised here is fatal to the host process: upstream errors are
isolated per chunk by the dispatcher, channel errors are retried by the
resilient transport and only surface as a failure value once the retry
budget is spent.
"""

from typing import Optional, Dict, Any


class SmartCopyError(Exception):
    """Base exception for all errors of this package.

    Attributes:
        message: Human-readable error message
        context: Additional context about the error
        recoverable: Whether retrying the operation can succeed
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        recoverable: bool = False
    ):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        base = f"{self.__class__.__name__}: {self.message}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base += f" (context: {context_str})"
        return base


class ConfigurationError(SmartCopyError):
    """Raised when a setting or constructor argument is invalid."""
    pass


# ============================================================================
# Extraction
# ============================================================================

class ExtractionMiss(SmartCopyError):
    """No addressable text exists at the requested point.

    Callers treat this as a silent no-op.
    """
    pass


# ============================================================================
# Upstream HTTP services
# ============================================================================

class UpstreamError(SmartCopyError):
    """Base exception for translation/dictionary service failures."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context, recoverable=True)


class UpstreamTimeoutError(UpstreamError):
    """Request exceeded the configured time bound."""
    pass


class UpstreamHTTPError(UpstreamError):
    """Upstream answered with a non-success status code.

    Attributes:
        status_code: HTTP status returned by the service
    """

    def __init__(self, message: str, status_code: int, context: Optional[Dict[str, Any]] = None):
        ctx = dict(context or {})
        ctx['status_code'] = status_code
        super().__init__(message, ctx)
        self.status_code = status_code


class UpstreamMalformedError(UpstreamError):
    """Upstream response did not have the expected shape."""
    pass


class ChunkFailure(SmartCopyError):
    """Translation of a single chunk failed.

    Attributes:
        chunk_index: Index of the failed chunk
    """

    def __init__(self, message: str, chunk_index: int, context: Optional[Dict[str, Any]] = None):
        ctx = dict(context or {})
        ctx['chunk_index'] = chunk_index
        super().__init__(message, ctx, recoverable=True)
        self.chunk_index = chunk_index


# ============================================================================
# Cross-surface channel
# ============================================================================

# Reason fragments reported by a peer that was recycled between send and reply
INVALIDATION_MARKERS = (
    "context invalidated",
    "receiving end does not exist",
    "peer invalidated",
    "could not establish connection",
)


def is_invalidation_reason(reason: Optional[str]) -> bool:
    """Check whether a failure reason says the peer context is gone."""
    text = (reason or "").lower()
    return any(marker in text for marker in INVALIDATION_MARKERS)


class ChannelError(SmartCopyError):
    """Delivery of a message to the peer failed.

    Attributes:
        reason: Failure reason string as reported by the channel
    """

    def __init__(
        self,
        reason: str,
        context: Optional[Dict[str, Any]] = None,
        recoverable: bool = True
    ):
        super().__init__(reason, context, recoverable)
        self.reason = reason

    @property
    def invalidated(self) -> bool:
        return is_invalidation_reason(self.reason)


class ChannelInvalidatedError(ChannelError):
    """The receiving peer was recycled or is restarting."""

    def __init__(self, reason: str = "Peer context invalidated", context: Optional[Dict[str, Any]] = None):
        super().__init__(reason, context, recoverable=True)

    @property
    def invalidated(self) -> bool:
        return True


class InvalidMessageError(SmartCopyError):
    """Inbound message has an unknown type or is missing required fields."""
    pass


class RetryExhaustedError(SmartCopyError):
    """Raised when all retry attempts are exhausted.

    Attributes:
        original_error: The last error that occurred
        attempts: Number of attempts made
    """

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
        attempts: int = 0,
        context: Optional[Dict[str, Any]] = None
    ):
        ctx = dict(context or {})
        ctx['attempts'] = attempts
        if original_error:
            ctx['original_error'] = str(original_error)
        super().__init__(message, ctx, recoverable=False)
        self.original_error = original_error
        self.attempts = attempts


# ============================================================================
# History
# ============================================================================

class CorrelationMiss(SmartCopyError):
    """No pending history entry matches a translation result."""
    pass
