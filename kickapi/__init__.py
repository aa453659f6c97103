"""
kickapi/
========

Everything that talks to the Kick public API.

Organisation:
- subscriptions.py : desired set, brokenness detection, reconciliation (pure)
- webhook_subscription_manager.py : lifecycle (initialize/shutdown/audit)
- maintenance.py : "Reset Webhook Subscriptions" flow
- connection.py : wiring (HTTP client + directory + manager)
- transports/ : HTTP clients
  - http_client.py : httpx wrapper (auth, timeout, errors)
  - subscription_directory.py : /public/v1/events/subscriptions
"""

from kickapi.errors import KickAPIError, TransportError
from kickapi.subscriptions import (
    DESIRED_SUBSCRIPTIONS,
    DesiredSubscription,
    ReconciliationResult,
    RemoteSubscription,
    is_remote_broken,
    reconcile_subscriptions,
)
from kickapi.webhook_subscription_manager import WebhookSubscriptionManager

__all__ = [
    "DESIRED_SUBSCRIPTIONS",
    "DesiredSubscription",
    "KickAPIError",
    "ReconciliationResult",
    "RemoteSubscription",
    "TransportError",
    "WebhookSubscriptionManager",
    "is_remote_broken",
    "reconcile_subscriptions",
]
