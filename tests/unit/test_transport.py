"""
Unit tests for message channels and the resilient transport.
"""

import httpx
import pytest

from smartcopy.config import PEER_TIMEOUT
from smartcopy.core.events import EventType
from smartcopy.core.exceptions import (
    ChannelError,
    ChannelInvalidatedError,
    InvalidMessageError,
    RetryExhaustedError,
)
from smartcopy.core.transport import (
    HttpChannel,
    LocalChannel,
    ResilientTransport,
    RetryPolicy,
)
from tests.fakes import no_sleep


class ScriptedChannel:
    """Channel failing with scripted errors before answering."""

    def __init__(self, errors, response=None):
        self.errors = list(errors)
        self.response = response or {"type": "translation-result", "translated": "ok"}
        self.sent = 0

    async def send(self, message):
        self.sent += 1
        if self.errors:
            error = self.errors.pop(0)
            if error is not None:
                raise error
        return self.response


class AlwaysFailing:
    def __init__(self, error_factory):
        self.error_factory = error_factory
        self.sent = 0

    async def send(self, message):
        self.sent += 1
        raise self.error_factory()


class TestResilientTransport:
    """Retry budgets and escalation."""

    @pytest.mark.asyncio
    async def test_success_first_try(self):
        channel = ScriptedChannel([])
        result = await ResilientTransport(channel, sleep=no_sleep).send({"type": "translate"})
        assert result.ok
        assert result.attempts == 1
        assert result.unwrap()["translated"] == "ok"

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failures(self):
        channel = ScriptedChannel([ChannelError("busy"), ChannelInvalidatedError()])
        result = await ResilientTransport(channel, sleep=no_sleep).send({})
        assert result.ok
        assert channel.sent == 3

    @pytest.mark.asyncio
    async def test_invalidated_peer_escalates_then_stops(self):
        channel = AlwaysFailing(ChannelInvalidatedError)
        result = await ResilientTransport(channel, sleep=no_sleep).send({})
        assert not result.ok
        assert channel.sent == 10
        assert result.attempts == 10
        assert "invalidated" in result.error.lower()

    @pytest.mark.asyncio
    async def test_invalidation_reason_string_also_escalates(self):
        channel = AlwaysFailing(lambda: ChannelError("Extension context invalidated."))
        result = await ResilientTransport(channel, sleep=no_sleep).send({})
        assert channel.sent == 10
        assert result.error == "Extension context invalidated."

    @pytest.mark.asyncio
    async def test_generic_failure_uses_primary_budget_only(self):
        channel = AlwaysFailing(lambda: ChannelError("socket closed"))
        result = await ResilientTransport(channel, sleep=no_sleep).send({})
        assert not result.ok
        assert channel.sent == 4
        assert result.error == "socket closed"

    @pytest.mark.asyncio
    async def test_non_recoverable_failure_is_not_retried(self):
        channel = AlwaysFailing(lambda: ChannelError("bad reply", recoverable=False))
        result = await ResilientTransport(channel, sleep=no_sleep).send({})
        assert channel.sent == 1
        assert result.error == "bad reply"

    @pytest.mark.asyncio
    async def test_delays_are_constant_within_each_budget(self):
        delays = []

        async def record_sleep(delay):
            delays.append(delay)

        transport = ResilientTransport(AlwaysFailing(ChannelInvalidatedError),
                                       primary=RetryPolicy(3, 0.4), escalation=RetryPolicy(2, 0.9),
                                       sleep=record_sleep)
        result = await transport.send({})
        assert result.attempts == 5
        assert delays == [0.4, 0.4, 0.9, 0.9]

    @pytest.mark.asyncio
    async def test_escalation_can_be_disabled(self):
        channel = AlwaysFailing(ChannelInvalidatedError)
        result = await ResilientTransport(channel, escalation=None, sleep=no_sleep).send({})
        assert channel.sent == 4
        assert not result.ok

    @pytest.mark.asyncio
    async def test_retry_events(self, event_bus):
        transport = ResilientTransport(ScriptedChannel([ChannelError("busy")]),
                                       event_bus=event_bus, sleep=no_sleep)
        await transport.send({})
        events = event_bus.get_events_by_type(EventType.TRANSPORT_RETRY)
        assert len(events) == 1
        assert events[0].data["reason"] == "busy"

    def test_unwrap_failure_raises(self):
        from smartcopy.core.transport import TransportResult
        with pytest.raises(RetryExhaustedError):
            TransportResult(ok=False, error="gone", attempts=10).unwrap()


class TestChannels:
    """Local and HTTP channels."""

    @pytest.mark.asyncio
    async def test_local_channel_calls_handler(self):
        async def handler(message):
            return {"echo": message["text"]}

        assert await LocalChannel(handler).send({"text": "hi"}) == {"echo": "hi"}

    @pytest.mark.asyncio
    async def test_local_channel_rejected_message_is_not_retried(self):
        async def handler(message):
            raise InvalidMessageError("Unknown message type: 'ping'")

        transport = ResilientTransport(LocalChannel(handler), sleep=no_sleep)
        result = await transport.send({"type": "ping"})
        assert result.attempts == 1
        assert result.error == "Unknown message type: 'ping'"

    @pytest.mark.asyncio
    async def test_local_channel_without_handler_is_invalidated(self):
        with pytest.raises(ChannelInvalidatedError):
            await LocalChannel(None).send({})

    @pytest.mark.asyncio
    async def test_http_channel_posts_message(self):
        def handler(request):
            assert request.url.path == "/api/message"
            return httpx.Response(200, json={"type": "translation-result", "translated": "x"})

        channel = HttpChannel("http://peer.test", client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        assert (await channel.send({"type": "translate", "text": "a"}))["translated"] == "x"

    @pytest.mark.asyncio
    async def test_http_channel_restart_status_is_invalidation(self):
        channel = HttpChannel("http://peer.test", client=httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(503))))
        with pytest.raises(ChannelInvalidatedError):
            await channel.send({})

    @pytest.mark.asyncio
    async def test_http_channel_connect_error_is_invalidation(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        channel = HttpChannel("http://peer.test", client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        with pytest.raises(ChannelInvalidatedError) as exc_info:
            await channel.send({})
        assert exc_info.value.invalidated

    @pytest.mark.asyncio
    async def test_http_channel_client_error_is_not_recoverable(self):
        channel = HttpChannel("http://peer.test", client=httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(400, json={"error": "Missing text"}))))
        with pytest.raises(ChannelError) as exc_info:
            await channel.send({})
        assert exc_info.value.reason == "Missing text"
        assert not exc_info.value.recoverable

    @pytest.mark.asyncio
    async def test_local_channel_handler_crash_is_a_failure_value(self):
        async def handler(message):
            raise TypeError("'int' object is not iterable")

        transport = ResilientTransport(LocalChannel(handler), sleep=no_sleep)
        result = await transport.send({"type": "define", "word": "run"})
        assert not result.ok
        assert result.attempts == 1
        assert "not iterable" in result.error

    def test_http_channel_default_timeout_covers_round_trip(self):
        assert HttpChannel("http://peer.test").timeout == PEER_TIMEOUT

    @pytest.mark.asyncio
    async def test_http_channel_read_timeout_is_not_resent(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        channel = HttpChannel("http://peer.test", timeout=5,
                              client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        result = await ResilientTransport(channel, sleep=no_sleep).send({"type": "translate", "text": "a"})
        assert not result.ok
        assert result.attempts == 1
        assert result.error == "Peer did not answer within 5s"

    @pytest.mark.asyncio
    async def test_http_channel_connect_timeout_is_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectTimeout("no route", request=request)

        channel = HttpChannel("http://peer.test",
                              client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        result = await ResilientTransport(channel, sleep=no_sleep).send({})
        assert not result.ok
        assert len(calls) == 4
