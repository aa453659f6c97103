"""
Kick webhook connection - wires HTTP transport, directory and manager.

connect()     reconcile subscriptions (disconnects again on failure)
disconnect()  stop the audit, close the pooled HTTP client (calls still in
              flight fail), then accept new calls again: the reset
              maintenance talks to Kick between disconnect and connect
"""

import logging
from typing import Optional

import httpx

from kickapi.subscriptions import DESIRED_SUBSCRIPTIONS
from kickapi.transports.http_client import DEFAULT_TIMEOUT, KICK_API_SERVER, KickHttpClient
from kickapi.transports.subscription_directory import SubscriptionDirectory
from kickapi.webhook_subscription_manager import (
    AUDIT_DELAY,
    CREATE_AFTER_DELETE_DELAY,
    NotifierProtocol,
    WebhookSubscriptionManager,
)

LOGGER = logging.getLogger(__name__)


class KickWebhookConnection:
    """Connect/disconnect entry point used by the CLI and maintenance flow."""

    def __init__(
        self,
        token: str,
        broadcaster_user_id: int,
        notifier: NotifierProtocol,
        api_server: str = KICK_API_SERVER,
        http_timeout: float = DEFAULT_TIMEOUT,
        create_delay: float = CREATE_AFTER_DELETE_DELAY,
        audit_delay: float = AUDIT_DELAY,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.http = KickHttpClient(
            token=token,
            api_server=api_server,
            timeout=http_timeout,
            http_client=http_client,
        )
        self.directory = SubscriptionDirectory(self.http, broadcaster_user_id)
        self.manager = WebhookSubscriptionManager(
            self.directory,
            notifier,
            desired=DESIRED_SUBSCRIPTIONS,
            create_delay=create_delay,
            audit_delay=audit_delay,
        )

    async def connect(self):
        LOGGER.debug("Kick webhook connection connecting...")
        try:
            await self.manager.initialize()
        except Exception as e:
            LOGGER.error(f"❌ Failed to subscribe to events: {e}")
            await self.disconnect()
            raise
        LOGGER.info("✅ Kick webhook connection connected.")

    async def disconnect(self):
        LOGGER.debug("Kick webhook connection disconnecting...")
        self.manager.shutdown()
        await self.http.close()
        self.http.reopen()
        LOGGER.info("Kick webhook connection disconnected.")
