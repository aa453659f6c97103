"""
Webhook Subscription Manager - keeps Kick webhook subscriptions in sync.

Lifecycle:
    initialize()  fetch -> detect brokenness -> reconcile -> delete -> pause
                  -> create -> schedule audit -> ready
    shutdown()    cancel pending audit, not ready

Failure policy:
    - list()   failure: treated as an empty list (logged)
    - delete() failure: logged as a warning, reconciliation goes on
    - create() failure: raised to the caller after shutdown() (not ready,
      no pending audit from an earlier pass)

There is no rollback: if create fails after delete succeeded, the remote
state stays half-applied until the next initialize().

Not reentrant: callers must not run initialize() twice at the same time
on the same instance.
"""

import asyncio
import logging
from typing import List, Optional, Protocol, Sequence

from kickapi.errors import TransportError
from kickapi.subscriptions import (
    DESIRED_SUBSCRIPTIONS,
    DesiredSubscription,
    RemoteSubscription,
    is_remote_broken,
    reconcile_subscriptions,
)

LOGGER = logging.getLogger(__name__)

# Seconds between a batched delete and the following create
CREATE_AFTER_DELETE_DELAY = 0.1

# Seconds between initialize() and the verification audit
AUDIT_DELAY = 5.0

DEGRADED_MESSAGE = (
    "Kick webhook subscriptions could not be verified after connecting. "
    "Events that depend on webhooks (chat messages, follows, subs, gifts, bans, "
    "stream status) may be delayed or unreliable. Try reconnecting the Kick "
    "integration or running the \"Reset Webhook Subscriptions\" maintenance action."
)


class SubscriptionDirectoryProtocol(Protocol):
    async def list(self) -> List[RemoteSubscription]: ...

    async def create(self, entries: Sequence[DesiredSubscription]) -> List[str]: ...

    async def delete(self, ids: Sequence[str]) -> None: ...

    async def delete_one(self, sub_id: str) -> None: ...


class NotifierProtocol(Protocol):
    def send_critical_error_notification(self, message: str) -> None: ...


class WebhookSubscriptionManager:
    """
    Reconciles Kick webhook subscriptions against the desired set.

    Attributes:
        directory: Remote subscription directory (list/create/delete)
        notifier: Alert sink for the post-reconciliation audit
        desired: Desired set (immutable)
        create_delay: Pause between delete and create when both happen
        audit_delay: Delay before the one-shot audit
    """

    def __init__(
        self,
        directory: SubscriptionDirectoryProtocol,
        notifier: NotifierProtocol,
        desired: Sequence[DesiredSubscription] = DESIRED_SUBSCRIPTIONS,
        create_delay: float = CREATE_AFTER_DELETE_DELAY,
        audit_delay: float = AUDIT_DELAY,
    ):
        self.directory = directory
        self.notifier = notifier
        self.desired = tuple(desired)
        self.create_delay = create_delay
        self.audit_delay = audit_delay

        self._broken = False
        self._ready = False
        self._audit_task: Optional[asyncio.Task] = None

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def is_broken(self) -> bool:
        """Brokenness seen by the last initialize() pass."""
        return self._broken

    @property
    def audit_task(self) -> Optional[asyncio.Task]:
        return self._audit_task

    # ========================================================================
    # Lifecycle
    # ========================================================================

    async def initialize(self):
        """
        Reconcile remote subscriptions and schedule the audit.

        Raises:
            TransportError: If creating the missing subscriptions failed
        """
        LOGGER.info("🔍 Reconciling Kick webhook subscriptions...")

        current = await self._get_subscriptions()

        self._broken = is_remote_broken(current, self.desired)
        if self._broken:
            LOGGER.warning(
                "⚠️ Kick reports duplicate or unknown webhook subscriptions, "
                "resetting all subscriptions"
            )

        result = reconcile_subscriptions(current, self.desired, broken=self._broken)

        LOGGER.info(
            f"📊 Reconciliation: current={len(current)}, desired={len(self.desired)}, "
            f"to_create={len(result.create)}, to_delete={len(result.delete)}, broken={self._broken}"
        )

        if result.delete:
            try:
                await self.directory.delete(result.delete)
                LOGGER.info(f"🗑️ Deleted {len(result.delete)} event subscription(s)")
            except TransportError as e:
                LOGGER.warning(f"⚠️ Failed to delete event subscriptions, continuing: {e}")

        if result.delete and result.create:
            await asyncio.sleep(self.create_delay)

        if result.create:
            try:
                await self.directory.create(result.create)
            except TransportError as e:
                LOGGER.error(f"❌ Failed to create event subscriptions: {e}")
                self.shutdown()
                raise
            LOGGER.info(f"📝 Created {len(result.create)} event subscription(s)")

        self._schedule_audit()
        self._ready = True
        LOGGER.info("✅ Event subscription reconciliation complete.")

    def shutdown(self):
        """Cancel the pending audit and mark not ready. Safe to call anytime."""
        if self._audit_task is not None:
            if not self._audit_task.done():
                self._audit_task.cancel()
            self._audit_task = None
        self._ready = False

    # ========================================================================
    # Maintenance
    # ========================================================================

    async def reset_webhook_subscriptions(self):
        """Delete every addressable subscription at Kick. Creates nothing."""
        current = await self._get_subscriptions()
        ids = [sub.id for sub in current if sub.id]

        if not ids:
            LOGGER.info("No webhook subscriptions to reset.")
            return

        try:
            await self.directory.delete(ids)
            LOGGER.info(f"🗑️ Reset {len(ids)} webhook subscription(s)")
        except TransportError as e:
            LOGGER.error(f"❌ Failed to reset webhook subscriptions: {e}")

    async def unsubscribe_from_events(self):
        """Delete subscriptions one by one. Never raises (teardown path)."""
        try:
            subscriptions = await self.directory.list()
        except Exception as e:
            LOGGER.error(f"❌ Failed to delete existing event subscriptions: {e}")
            return

        failed = 0
        for sub in subscriptions:
            if not sub.id:
                continue
            LOGGER.debug(f"Unsubscribing from event subscription {sub.describe()}")
            try:
                await self.directory.delete_one(sub.id)
            except Exception as e:
                failed += 1
                LOGGER.error(f"❌ Failed to delete event subscription {sub.id}: {e}")

        if failed:
            LOGGER.warning(f"⚠️ {failed} event subscription(s) could not be deleted")
        else:
            LOGGER.info("Successfully deleted existing event subscriptions.")

    # ========================================================================
    # Audit
    # ========================================================================

    def _schedule_audit(self):
        if self._audit_task is not None and not self._audit_task.done():
            self._audit_task.cancel()
        self._audit_task = asyncio.create_task(self._audit_after_delay())

    async def _audit_after_delay(self) -> Optional[bool]:
        await asyncio.sleep(self.audit_delay)
        if not self._ready:
            LOGGER.debug("Skipping webhook audit (manager no longer ready)")
            return None
        try:
            return await self.audit_subscriptions()
        except Exception as e:
            LOGGER.error(f"❌ Webhook subscription audit failed: {e}", exc_info=True)
            return False

    async def audit_subscriptions(self) -> bool:
        """
        Check that every desired subscription exists exactly as expected.

        Sends one critical notification on mismatch. Does not try to fix
        anything: that needs a reconnect or a reset.

        Returns:
            True if the remote state matches the desired set
        """
        current = await self._get_subscriptions()
        present = {sub.key for sub in current}
        missing = [d for d in self.desired if d.key not in present]

        if len(current) == len(self.desired) and not missing:
            LOGGER.info(f"✅ Webhook audit passed: {len(current)} subscription(s) verified")
            return True

        for wanted in missing:
            LOGGER.warning(f"⚠️ Webhook subscription missing after reconciliation: {wanted}")
        if len(current) != len(self.desired):
            LOGGER.warning(
                f"⚠️ Webhook subscription count mismatch: expected {len(self.desired)}, "
                f"found {len(current)}"
            )

        self.notifier.send_critical_error_notification(DEGRADED_MESSAGE)
        return False

    # ========================================================================
    # Helpers
    # ========================================================================

    async def _get_subscriptions(self) -> List[RemoteSubscription]:
        try:
            return await self.directory.list()
        except TransportError as e:
            LOGGER.error(f"❌ Failed to retrieve event subscriptions: {e}")
            return []
