"""
Cross-surface messaging with bounded retries.
"""
from .channel import Message, MessageChannel, LocalChannel, HttpChannel
from .retry import RetryPolicy, TransportResult, ResilientTransport

__all__ = [
    'Message',
    'MessageChannel',
    'LocalChannel',
    'HttpChannel',
    'RetryPolicy',
    'TransportResult',
    'ResilientTransport',
]
