"""
Reminder scheduler.

Purpose:
- Wake every TICK_INTERVAL_SECONDS and send reminders whose next_at is due
- Reschedule on success, evict subscriptions the push service reports as gone
  (401/404/410), leave everything else for the next tick
- Run as an asyncio task inside the API process (started from main.create_app)

Notes:
- State lives in the in-memory SubscriptionStore; a restart drops all schedules.
- Exactly one scheduler per process, no cross-process coordination.
"""
import asyncio
import logging
from typing import Dict, Optional

from core.exceptions import PushDeliveryError
from services.notification_service import NotificationService
from services.subscription_store import SubscriptionStore

logger = logging.getLogger(__name__)


class ReminderScheduler:
    """Periodic due-reminder scan over a SubscriptionStore."""

    def __init__(self, store: SubscriptionStore, notifier: NotificationService, interval_seconds: float = 30.0):
        self.store = store
        self.notifier = notifier
        self.interval_seconds = interval_seconds
        self._tick_lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None
        self.delivered = 0
        self.failed = 0
        self.pruned = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self, now: Optional[int] = None) -> Dict[str, int]:
        """
        Run one scan. Returns counters for this tick:
            {"sent": n, "pruned": n, "failed": n, "skipped": 0|1}

        A tick that starts while the previous one is still delivering is skipped.
        """
        if self._tick_lock.locked():
            logger.warning("Previous tick still in flight; skipping this one")
            return {"sent": 0, "pruned": 0, "failed": 0, "skipped": 1}

        async with self._tick_lock:
            if now is None:
                now = self.store.now()
            stats = {"sent": 0, "pruned": 0, "failed": 0, "skipped": 0}

            for endpoint in [r.endpoint for r in self.store.due(now)]:
                # earlier deliveries await; the record may since have been deleted,
                # rotated or rescheduled, so always send the current version
                current = self.store.get(endpoint)
                if current is None or current.next_at > now:
                    continue
                try:
                    await self.notifier.send_reminder(current)
                except PushDeliveryError as e:
                    if e.terminal:
                        self.store.remove(endpoint)
                        stats["pruned"] += 1
                        logger.info("Pruned dead endpoint: %s (status=%s)", endpoint, e.status_code)
                    else:
                        stats["failed"] += 1
                        logger.error("Push error for %s: %s", endpoint, e)
                    continue
                except Exception:
                    stats["failed"] += 1
                    logger.exception("Unexpected error sending reminder to %s", endpoint)
                    continue

                # store writes replace the record object; a changed one keeps its new schedule
                if self.store.get(endpoint) is current:
                    self.store.reschedule(endpoint, now)
                stats["sent"] += 1
                logger.info("Sent scheduled reminder to: %s", endpoint)

            self.delivered += stats["sent"]
            self.failed += stats["failed"]
            self.pruned += stats["pruned"]
            return stats

    async def run(self):
        """Loop forever; call via start() or asyncio.create_task(scheduler.run())."""
        logger.info("Reminder scheduler started (interval=%ss)", self.interval_seconds)
        try:
            while True:
                await asyncio.sleep(self.interval_seconds)
                try:
                    await self.tick()
                except Exception:
                    logger.exception("Reminder tick failed")
        finally:
            logger.info(
                "Reminder scheduler stopped. Delivered: %s, Failed: %s, Pruned: %s",
                self.delivered, self.failed, self.pruned,
            )

    def start(self) -> asyncio.Task:
        if not self.running:
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
