import asyncio

import pytest

from conftest import RecordingPushSender, make_subscription
from services.notification_service import NotificationService
from services.push_sender import NullPushSender
from services.subscription_store import MINUTE_MS
from workers.reminder_scheduler import ReminderScheduler

A = "https://fcm.googleapis.com/fcm/send/a"
B = "https://fcm.googleapis.com/fcm/send/b"


@pytest.fixture()
def scheduler(store, sender):
    return ReminderScheduler(store, NotificationService(store, sender, ttl_seconds=60), interval_seconds=30)


@pytest.mark.asyncio
async def test_tick_before_next_at_sends_nothing(scheduler, store, sender):
    store.upsert(make_subscription(A))
    before = store.get(A)

    stats = await scheduler.tick(before.next_at - 1)

    assert sender.sent == []
    assert stats["sent"] == 0
    assert store.get(A) == before


@pytest.mark.asyncio
async def test_tick_at_next_at_sends_once_and_advances(scheduler, store, sender):
    store.upsert(make_subscription(A))
    store.set_preferences(A, 15, "de")
    due_at = store.get(A).next_at

    stats = await scheduler.tick(due_at)

    assert stats["sent"] == 1
    assert len(sender.sent) == 1
    sent = sender.sent[0]
    assert sent["ttl"] == 60
    assert sent["payload"] == {
        "title": "🚽 PeePal Reminder",
        "body": "Zeit für eine kurze Toilettenpause 💧",
        "url": "/dashboard",
    }
    assert store.get(A).next_at == due_at + 15 * MINUTE_MS


@pytest.mark.parametrize("status_code", [401, 404, 410])
@pytest.mark.asyncio
async def test_terminal_failure_prunes_subscription(scheduler, store, sender, status_code):
    store.upsert(make_subscription(A))
    sender.failures[A] = status_code
    due_at = store.get(A).next_at

    stats = await scheduler.tick(due_at)
    assert stats["pruned"] == 1
    assert store.get(A) is None

    # absent from later scans
    await scheduler.tick(due_at + 120 * MINUTE_MS)
    assert len(sender.sent) == 1


@pytest.mark.asyncio
async def test_transient_failure_keeps_record_for_retry(scheduler, store, sender):
    store.upsert(make_subscription(A))
    sender.failures[A] = 503
    before = store.get(A)

    stats = await scheduler.tick(before.next_at)

    assert stats["failed"] == 1
    assert store.get(A) == before

    del sender.failures[A]
    stats = await scheduler.tick(before.next_at + 30_000)
    assert stats["sent"] == 1


@pytest.mark.asyncio
async def test_one_failing_subscription_does_not_block_others(scheduler, store, sender):
    store.upsert(make_subscription(A))
    store.upsert(make_subscription(B))
    sender.failures[A] = 500
    now = store.get(B).next_at

    stats = await scheduler.tick(now)

    assert stats == {"sent": 1, "pruned": 0, "failed": 1, "skipped": 0}
    assert store.get(B).next_at == now + 60 * MINUTE_MS


@pytest.mark.asyncio
async def test_unexpected_sender_error_is_contained(scheduler, store, sender):
    async def boom(subscription, payload, ttl=60):
        raise RuntimeError("socket closed")

    sender.send = boom
    store.upsert(make_subscription(A))

    stats = await scheduler.tick(store.get(A).next_at)
    assert stats["failed"] == 1
    assert store.get(A) is not None


@pytest.mark.asyncio
async def test_overlapping_tick_is_skipped(store):
    release = asyncio.Event()

    class SlowNotifier:
        calls = 0

        async def send_reminder(self, record):
            SlowNotifier.calls += 1
            await release.wait()

    scheduler = ReminderScheduler(store, SlowNotifier(), interval_seconds=30)
    store.upsert(make_subscription(A))
    now = store.get(A).next_at

    first = asyncio.create_task(scheduler.tick(now))
    await asyncio.sleep(0)
    second = await scheduler.tick(now)
    release.set()
    first_stats = await first

    assert second["skipped"] == 1
    assert first_stats["sent"] == 1
    assert SlowNotifier.calls == 1


@pytest.mark.asyncio
async def test_start_and_stop(scheduler):
    scheduler.start()
    assert scheduler.running
    await scheduler.stop()
    assert not scheduler.running


class GatedSender(RecordingPushSender):
    """Blocks delivery to `gated` endpoints until `release` is set."""

    def __init__(self, gated):
        super().__init__()
        self.gated = set(gated)
        self.release = asyncio.Event()
        self.waiting = asyncio.Event()

    async def send(self, subscription, payload, ttl=60):
        if subscription.endpoint in self.gated:
            self.waiting.set()
            await self.release.wait()
        await super().send(subscription, payload, ttl)


@pytest.mark.asyncio
async def test_preferences_changed_during_tick_are_respected(store, clock):
    sender = GatedSender(gated={A})
    scheduler = ReminderScheduler(store, NotificationService(store, sender), interval_seconds=30)
    store.upsert(make_subscription(A))
    store.upsert(make_subscription(B))
    now = store.get(A).next_at

    tick = asyncio.create_task(scheduler.tick(now))
    await sender.waiting.wait()
    # B is rescheduled into the future while A's delivery is still pending
    clock.now = now + 1000
    updated = store.set_preferences(B, 30, "de")
    sender.release.set()
    stats = await tick

    assert stats["sent"] == 1
    assert [s["endpoint"] for s in sender.sent] == [A]
    assert store.get(B).next_at == updated.next_at == now + 1000 + 30 * MINUTE_MS
    assert store.get(B).language.value == "de"


@pytest.mark.asyncio
async def test_tick_sends_current_language_and_keeps_schedule_set_mid_delivery(store, clock):
    sender = GatedSender(gated={A})
    scheduler = ReminderScheduler(store, NotificationService(store, sender), interval_seconds=30)
    store.upsert(make_subscription(A))
    store.upsert(make_subscription(B))
    now = store.get(A).next_at
    # set at T0 with the same cadence, so B stays due together with A
    store.set_preferences(B, 60, "de")
    assert store.get(B).next_at == now

    tick = asyncio.create_task(scheduler.tick(now))
    await sender.waiting.wait()
    sender.release.set()
    await tick

    sent_to_b = [s for s in sender.sent if s["endpoint"] == B]
    assert sent_to_b[0]["payload"]["body"] == "Zeit für eine kurze Toilettenpause 💧"

    # a preference change that lands while A's own delivery awaits is not overwritten
    sender.sent.clear()
    sender.release.clear()
    sender.waiting.clear()
    next_at = store.get(A).next_at
    second = asyncio.create_task(scheduler.tick(next_at))
    await sender.waiting.wait()
    clock.now = next_at + 5000
    changed = store.set_preferences(A, 10, "zh")
    sender.release.set()
    await second

    assert store.get(A).next_at == changed.next_at == next_at + 5000 + 10 * MINUTE_MS


@pytest.mark.asyncio
async def test_unconfigured_push_leaves_records_for_retry(store):
    scheduler = ReminderScheduler(store, NotificationService(store, NullPushSender()), interval_seconds=30)
    store.upsert(make_subscription(A))
    before = store.get(A)

    stats = await scheduler.tick(before.next_at)

    assert stats == {"sent": 0, "pruned": 0, "failed": 1, "skipped": 0}
    assert store.get(A) == before
