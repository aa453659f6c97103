"""
Kick webhook subscriptions - desired set, brokenness detection, reconciliation.

Pure functions only: nothing here talks to the network. The lifecycle
(fetch, apply, audit) lives in webhook_subscription_manager.py.

Reconciliation rules:
    - Missing desired pair          -> create it
    - Desired pair present N times  -> keep the first one seen, delete N-1
    - Pair not in the desired set   -> delete it
    - Entry without an id           -> never deleted (cannot be addressed)

When Kick's own bookkeeping looks broken (duplicates or unknown entries),
nothing in the current list is trusted: delete everything, create everything.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

LOGGER = logging.getLogger(__name__)

SubscriptionKey = Tuple[str, int]


# ============================================================================
# Data model
# ============================================================================

@dataclass(frozen=True)
class DesiredSubscription:
    """One (event name, version) pair the integration needs."""
    name: str
    version: int

    @property
    def key(self) -> SubscriptionKey:
        return (self.name, self.version)

    def to_payload(self) -> Dict[str, Any]:
        return {"name": self.name, "version": self.version}

    def __str__(self) -> str:
        return f"{self.name} (v{self.version})"


# Fixed for the lifetime of the process.
DESIRED_SUBSCRIPTIONS: Tuple[DesiredSubscription, ...] = (
    DesiredSubscription("chat.message.sent", 1),
    DesiredSubscription("channel.followed", 1),
    DesiredSubscription("livestream.metadata.updated", 1),
    DesiredSubscription("livestream.status.updated", 1),
    DesiredSubscription("channel.subscription.renewal", 1),
    DesiredSubscription("channel.subscription.gifts", 1),
    DesiredSubscription("channel.subscription.new", 1),
    DesiredSubscription("moderation.banned", 1),
    DesiredSubscription("kicks.gifted", 1),
)


@dataclass
class RemoteSubscription:
    """Subscription as reported by GET /public/v1/events/subscriptions."""
    id: Optional[str]
    event: str
    version: int
    broadcaster_user_id: Optional[int] = None
    app_id: Optional[str] = None
    method: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "RemoteSubscription":
        """Build from an API record. Missing/null/empty id becomes None."""
        sub_id = raw.get("id")
        return cls(
            id=str(sub_id) if sub_id else None,
            event=raw.get("event") or "",
            version=raw.get("version", 0),
            broadcaster_user_id=raw.get("broadcaster_user_id"),
            app_id=raw.get("app_id"),
            method=raw.get("method"),
            created_at=raw.get("created_at"),
            updated_at=raw.get("updated_at"),
        )

    @property
    def key(self) -> SubscriptionKey:
        return (self.event, self.version)

    def describe(self) -> str:
        return f"{self.id or 'unknown-id'}: {self.event} (v{self.version})"


@dataclass
class ReconciliationResult:
    """Actions needed to make the remote state match the desired set."""
    create: List[DesiredSubscription] = field(default_factory=list)
    delete: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.create and not self.delete


# ============================================================================
# Brokenness detection
# ============================================================================

def _desired_domain(desired: Iterable[DesiredSubscription]) -> Set[SubscriptionKey]:
    return {d.key for d in desired}


def is_remote_broken(
    current: Sequence[RemoteSubscription],
    desired: Sequence[DesiredSubscription] = DESIRED_SUBSCRIPTIONS,
) -> bool:
    """
    Tell whether Kick's subscription list can be trusted for an incremental diff.

    Broken means at least one (event, version) pair shows up twice, or at
    least one entry is not part of the desired set.
    """
    domain = _desired_domain(desired)
    counts = Counter(sub.key for sub in current)

    duplicates = [key for key, count in counts.items() if count > 1]
    unknown = [key for key in counts if key not in domain]

    if duplicates:
        LOGGER.debug(f"Duplicate subscriptions detected: {duplicates}")
    if unknown:
        LOGGER.debug(f"Unknown subscriptions detected: {unknown}")

    return bool(duplicates or unknown)


# ============================================================================
# Reconciliation
# ============================================================================

def reconcile_subscriptions(
    current: Sequence[RemoteSubscription],
    desired: Sequence[DesiredSubscription] = DESIRED_SUBSCRIPTIONS,
    broken: bool = False,
) -> ReconciliationResult:
    """
    Compute the create/delete actions for one reconciliation pass.

    Args:
        current: Subscriptions currently registered at Kick
        desired: Desired set (defaults to DESIRED_SUBSCRIPTIONS)
        broken: Full reset mode (see is_remote_broken)

    Returns:
        ReconciliationResult with the subscriptions to create and the ids to delete

    When several entries match the same desired pair, the first one in the
    order Kick returned them survives. Which id that is carries no meaning.
    """
    if broken:
        result = ReconciliationResult(
            create=list(desired),
            delete=[sub.id for sub in current if sub.id],
        )
        _log_plan(current, desired, result)
        return result

    result = ReconciliationResult()
    domain = _desired_domain(desired)

    for wanted in desired:
        matching = [sub for sub in current if sub.key == wanted.key]
        if not matching:
            result.create.append(wanted)
        elif len(matching) > 1:
            result.delete.extend(sub.id for sub in matching[1:] if sub.id)

    for sub in current:
        if sub.key not in domain and sub.id:
            result.delete.append(sub.id)

    _log_plan(current, desired, result)
    return result


def _log_plan(
    current: Sequence[RemoteSubscription],
    desired: Sequence[DesiredSubscription],
    result: ReconciliationResult,
):
    if result.create:
        LOGGER.debug(f"Subscriptions to create: {', '.join(str(d) for d in result.create)}")
    else:
        LOGGER.debug("No subscriptions to create.")

    to_delete = set(result.delete)
    if to_delete:
        described = [sub.describe() for sub in current if sub.id in to_delete]
        LOGGER.debug(f"Subscriptions to delete: {', '.join(described)}")
    else:
        LOGGER.debug("No subscriptions to delete.")

    domain = _desired_domain(desired)
    preserved = [
        sub for sub in current
        if sub.id not in to_delete and sub.key in domain
    ]
    if preserved:
        LOGGER.debug(f"Subscriptions preserved: {', '.join(sub.describe() for sub in preserved)}")
    else:
        LOGGER.debug("No subscriptions preserved.")
