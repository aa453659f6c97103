"""
kickapi/transports/
===================

Transport clients for the Kick API.

Modules:
- http_client : KickHttpClient (httpx, bearer token, timeout)
- subscription_directory : SubscriptionDirectory (webhook subscriptions CRUD)
"""

from kickapi.transports.http_client import KickHttpClient
from kickapi.transports.subscription_directory import SubscriptionDirectory

__all__ = ["KickHttpClient", "SubscriptionDirectory"]
