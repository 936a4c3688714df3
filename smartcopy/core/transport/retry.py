"""
Resilient transport: bounded constant-delay retries around a message channel.

A peer that was recycled between message send and reply reports an
"invalidated" reason. Such failures get the primary budget and, once that is
spent, an escalated budget with a longer delay that waits out a restart.
Other recoverable failures get the primary budget only. Exhaustion produces a
failure value carrying the last reason, never an exception.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional
import logging

from smartcopy.config import (
    TRANSPORT_ESCALATION_ATTEMPTS,
    TRANSPORT_ESCALATION_DELAY,
    TRANSPORT_RETRY_ATTEMPTS,
    TRANSPORT_RETRY_DELAY,
)
from smartcopy.core.events import EventBus, EventType
from smartcopy.core.exceptions import ChannelError, RetryExhaustedError
from .channel import Message, MessageChannel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget with a delay held constant across attempts.

    Attributes:
        attempts: Number of sends covered by this budget
        delay: Seconds waited before each resend
    """
    attempts: int = TRANSPORT_RETRY_ATTEMPTS
    delay: float = TRANSPORT_RETRY_DELAY


DEFAULT_PRIMARY_POLICY = RetryPolicy(TRANSPORT_RETRY_ATTEMPTS, TRANSPORT_RETRY_DELAY)
DEFAULT_ESCALATION_POLICY = RetryPolicy(TRANSPORT_ESCALATION_ATTEMPTS, TRANSPORT_ESCALATION_DELAY)


@dataclass
class TransportResult:
    """Outcome of a send: either a response or the last failure reason."""
    ok: bool
    response: Optional[Message] = None
    error: Optional[str] = None
    attempts: int = 0

    def unwrap(self) -> Message:
        """Return the response or raise RetryExhaustedError."""
        if not self.ok:
            raise RetryExhaustedError(self.error or "Delivery failed", attempts=self.attempts)
        return self.response


class ResilientTransport:
    """Delivers messages through a channel, retrying per the failure reason."""

    def __init__(
        self,
        channel: MessageChannel,
        primary: RetryPolicy = DEFAULT_PRIMARY_POLICY,
        escalation: Optional[RetryPolicy] = DEFAULT_ESCALATION_POLICY,
        event_bus: Optional[EventBus] = None,
        log_callback: Optional[Callable[[str, str], None]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        """
        Args:
            channel: Underlying message channel
            primary: Budget applied to every recoverable failure
            escalation: Extra budget for invalidated peers (None disables escalation)
            event_bus: Optional bus receiving TRANSPORT_RETRY events
            log_callback: Callback for logging (log_type, message)
            sleep: Awaitable delay function (tests inject a no-op)
        """
        self.channel = channel
        self.primary = primary
        self.escalation = escalation
        self.event_bus = event_bus
        self.log_callback = log_callback
        self._sleep = sleep

    def _log(self, log_type: str, message: str):
        """Internal logging helper."""
        if self.log_callback:
            self.log_callback(log_type, message)
        else:
            getattr(logger, log_type, logger.info)(message)

    async def send(self, message: Message) -> TransportResult:
        """
        Send a message, retrying transient failures.

        Returns:
            TransportResult with the response, or the last failure reason
        """
        attempt = 0
        last_error: Optional[ChannelError] = None
        escalated = False
        budget = self.primary.attempts
        delay = self.primary.delay

        while attempt < budget:
            attempt += 1
            try:
                response = await self.channel.send(message)
                if attempt > 1:
                    self._log("info", f"Message delivered after {attempt} attempts")
                return TransportResult(ok=True, response=response, attempts=attempt)
            except ChannelError as error:
                last_error = error

            if not last_error.recoverable:
                self._log("error", f"Non-recoverable delivery failure: {last_error.reason}")
                break

            if attempt >= budget:
                if escalated or not self.escalation or not last_error.invalidated:
                    break
                # Peer looks like it is restarting: wait it out with the larger budget
                escalated = True
                budget += self.escalation.attempts
                delay = self.escalation.delay
                self._log("warning", f"Peer invalidated after {attempt} attempts, "
                                     f"escalating to {self.escalation.attempts} more at {delay:.2f}s")

            self._log("warning", f"Attempt {attempt}/{budget} failed: {last_error.reason}. "
                                 f"Retrying in {delay:.2f}s...")
            if self.event_bus:
                self.event_bus.emit(EventType.TRANSPORT_RETRY, source="transport",
                                    attempt=attempt, budget=budget, reason=last_error.reason,
                                    escalated=escalated)
            if delay > 0:
                await self._sleep(delay)

        reason = last_error.reason if last_error else "Delivery failed"
        self._log("error", f"Delivery failed after {attempt} attempts: {reason}")
        return TransportResult(ok=False, error=reason, attempts=attempt)
