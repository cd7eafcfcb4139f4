"""
Broadcaster contract.

The polling core pushes messages through ``send`` and assumes nothing about
delivery. Implementations must not raise into the caller when the target
connection is gone; they log and drop instead.
"""

import inspect
import logging
from typing import Awaitable, Callable, Protocol, Union

from leadring.models.messages import OutboundMessage

logger = logging.getLogger(__name__)


class Broadcaster(Protocol):
    async def send(self, connection_id: str, message: OutboundMessage) -> None:
        ...


MessageHandler = Callable[[str, OutboundMessage], Union[None, Awaitable[None]]]


class CallbackBroadcaster:
    """Delivers messages to an in-process handler (sync or async)."""

    def __init__(self, handler: MessageHandler):
        self._handler = handler

    async def send(self, connection_id: str, message: OutboundMessage) -> None:
        try:
            result = self._handler(connection_id, message)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Delivery of {message.event} to {connection_id} failed: {e}")
