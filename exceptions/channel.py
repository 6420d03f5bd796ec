"""
Order status channel exceptions.
"""

from .base import OrderPipelineException


class ChannelException(OrderPipelineException):
    """Base exception for realtime channel errors."""
    pass


class ChannelDisconnectedException(ChannelException):
    """
    Raised when a subscription is no longer connected.

    Never user-visible; the subscriber re-opens on its next reconnect.
    """

    def __init__(self, topic: str, reason: str = "subscription closed"):
        super().__init__(
            f"Channel '{topic}' disconnected: {reason}",
            details={'topic': topic, 'reason': reason}
        )
        self.topic = topic
        self.reason = reason
