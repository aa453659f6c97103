"""
Subscription Directory - Kick event subscriptions over HTTP.

    GET    /public/v1/events/subscriptions            -> {"data": [...]}
    POST   /public/v1/events/subscriptions            (batched create)
    DELETE /public/v1/events/subscriptions?id=a&id=b  (batched delete)

No retries, no swallowing: every failure is raised as TransportError and
the caller decides what to do with it.
"""

import logging
from typing import Callable, List, Sequence, Union

from kickapi.errors import TransportError
from kickapi.subscriptions import DesiredSubscription, RemoteSubscription
from kickapi.transports.http_client import KickHttpClient

LOGGER = logging.getLogger(__name__)

SUBSCRIPTIONS_URI = "/public/v1/events/subscriptions"

BroadcasterId = Union[int, Callable[[], int]]


class SubscriptionDirectory:
    """List/create/delete Kick webhook subscriptions for one broadcaster."""

    def __init__(self, http: KickHttpClient, broadcaster_user_id: BroadcasterId = 0):
        self.http = http
        self._broadcaster_user_id = broadcaster_user_id

    @property
    def broadcaster_user_id(self) -> int:
        value = self._broadcaster_user_id
        if callable(value):
            value = value()
        return value or 0

    async def list(self) -> List[RemoteSubscription]:
        """Fetch every subscription currently registered for this app."""
        response = await self.http.request("GET", SUBSCRIPTIONS_URI)
        data = response.get("data") if isinstance(response, dict) else None
        if not isinstance(data, list):
            raise TransportError("Subscription list response has no 'data' list")

        subscriptions = []
        for raw in data:
            if not isinstance(raw, dict):
                LOGGER.warning(f"⚠️ Skipping malformed subscription record: {raw!r}")
                continue
            subscriptions.append(RemoteSubscription.from_dict(raw))
        return subscriptions

    async def create(self, entries: Sequence[DesiredSubscription]) -> List[str]:
        """
        Create all entries in a single call.

        Returns:
            Subscription ids reported by Kick (records with an error are skipped)
        """
        payload = {
            "broadcaster_user_id": self.broadcaster_user_id,
            "events": [entry.to_payload() for entry in entries],
            "method": "webhook",
        }
        response = await self.http.request("POST", SUBSCRIPTIONS_URI, body=payload)

        records = response.get("data") if isinstance(response, dict) else None
        created = []
        for record in records if isinstance(records, list) else []:
            if not isinstance(record, dict):
                continue
            if record.get("error"):
                LOGGER.warning(
                    f"⚠️ Kick refused subscription {record.get('name')} (v{record.get('version')}): "
                    f"{record['error']}"
                )
                continue
            if record.get("subscription_id"):
                created.append(record["subscription_id"])

        LOGGER.debug(f"Successfully created Kick event subscriptions: {created}")
        return created

    async def delete(self, ids: Sequence[str]):
        """Delete several subscriptions in one call."""
        if not ids:
            return
        LOGGER.debug(f"Deleting event subscriptions: {list(ids)}")
        await self.http.request("DELETE", SUBSCRIPTIONS_URI, params=[("id", sub_id) for sub_id in ids])

    async def delete_one(self, sub_id: str):
        """Delete a single subscription."""
        LOGGER.debug(f"Unsubscribing from event subscription with ID: {sub_id}")
        await self.http.request("DELETE", SUBSCRIPTIONS_URI, params={"id": sub_id})
