"""
Maintenance actions for the Kick integration.

"Reset Webhook Subscriptions":
    1. Disconnect the integration (cancels the pending audit)
    2. Pause 500ms
    3. Delete every webhook subscription at Kick
    4. Reconnect (initialize() re-creates the desired set)

Each step reports to the chat feed; the result dict mirrors what the host
expects from an effect ({"success": bool, "error": ...}).
"""

import asyncio
import logging
from typing import Any, Dict, Protocol

from kickapi.webhook_subscription_manager import WebhookSubscriptionManager

LOGGER = logging.getLogger(__name__)

RESET_PAUSE = 0.5


class IntegrationConnection(Protocol):
    async def connect(self) -> None: ...

    async def disconnect(self) -> None: ...


class ChatFeedNotifier(Protocol):
    def send_chat_feed_error_notification(self, message: str) -> None: ...


async def reset_subscriptions_and_reconnect(
    integration: IntegrationConnection,
    manager: WebhookSubscriptionManager,
    notifier: ChatFeedNotifier,
    pause: float = RESET_PAUSE,
) -> Dict[str, Any]:
    """Run the full reset flow. Never raises; failures are in the result."""
    try:
        LOGGER.info("Reset webhook subscriptions: Disconnecting Kick integration")
        await integration.disconnect()
        LOGGER.info("Reset webhook subscriptions: Integration disconnected")
    except Exception as e:
        LOGGER.error(f"❌ Reset webhook subscriptions: Failed to disconnect integration: {e}")
        notifier.send_chat_feed_error_notification(
            "Resetting webhook subscriptions has failed because the integration could not be "
            "disconnected. Please check the connection status."
        )
        return {"success": False, "error": e}

    await asyncio.sleep(pause)

    try:
        LOGGER.info("Reset webhook subscriptions: Resetting Webhook Subscriptions")
        await manager.reset_webhook_subscriptions()
        LOGGER.info("Reset webhook subscriptions: Webhook subscriptions reset")
    except Exception as e:
        LOGGER.error(f"❌ Reset webhook subscriptions: Failed to reset webhook subscriptions: {e}")
        notifier.send_chat_feed_error_notification(
            "Resetting webhook subscriptions has failed, likely due to problems connecting to "
            "the Kick API. You may want to try again later."
        )

    try:
        LOGGER.info("Reset webhook subscriptions: Reconnecting Kick integration")
        await integration.connect()
        LOGGER.info("Reset webhook subscriptions: Integration connected")
    except Exception as e:
        LOGGER.error(f"❌ Reset webhook subscriptions: Failed to connect integration: {e}")
        try:
            await integration.disconnect()
        except Exception as disconnect_error:
            LOGGER.error(
                f"❌ Reset webhook subscriptions: Failed to disconnect integration: {disconnect_error}"
            )
        notifier.send_chat_feed_error_notification(
            "The integration has been disconnected. Please check the connection status and "
            "reconnect as needed."
        )
        return {"success": False, "error": e}

    LOGGER.info(
        "✅ Reset webhook subscriptions: Successfully reset webhook subscriptions and "
        "reconnected integration."
    )
    notifier.send_chat_feed_error_notification(
        "Webhook subscriptions have been reset and the integration was reconnected successfully."
    )
    return {"success": True}
