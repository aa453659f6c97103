"""
🔔 Notifier - user-visible alerts

Two channels, one delivery handler:
    - critical:  something the streamer must act on (degraded webhooks, ...)
    - chat feed: status notices shown in the chat feed (maintenance results)

Sending is sync for the caller: delivery is scheduled on the running
loop, never awaited. Without a handler (or a loop) notifications are
only logged.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

from core.message_types import NOTIFICATION_CHAT_FEED, NOTIFICATION_CRITICAL, SystemEvent

LOGGER = logging.getLogger(__name__)

NotificationHandler = Callable[[SystemEvent], Awaitable[None]]


class Notifier:
    """Sends notifications to the streamer through one async handler."""

    def __init__(self, handler: Optional[NotificationHandler] = None):
        self.handler = handler
        self._pending: Set[asyncio.Task] = set()

    def send_critical_error_notification(self, message: str):
        LOGGER.warning(f"🚨 Critical notification: {message}")
        self._dispatch(NOTIFICATION_CRITICAL, message)

    def send_chat_feed_error_notification(self, message: str):
        LOGGER.info(f"💬 Chat feed notification: {message}")
        self._dispatch(NOTIFICATION_CHAT_FEED, message)

    def _dispatch(self, kind: str, message: str):
        if self.handler is None:
            return
        event = SystemEvent(kind=kind, payload={"message": message})
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            LOGGER.debug(f"No running loop, notification {kind} only logged")
            return
        task = loop.create_task(self._deliver(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, event: SystemEvent):
        try:
            await self.handler(event)
        except Exception as e:
            LOGGER.error(f"❌ Notification handler failed on {event.kind}: {e}", exc_info=True)

    async def flush(self):
        """Wait until every sent notification reached the handler."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
