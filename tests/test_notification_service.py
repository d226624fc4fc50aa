import pytest

from conftest import make_subscription
from services.notification_service import NotificationService, build_payload, localized_body

A = "https://fcm.googleapis.com/fcm/send/a"
B = "https://fcm.googleapis.com/fcm/send/b"


@pytest.mark.parametrize("language, expected", [
    ("en", "Time for a quick bathroom break 💧"),
    ("de", "Zeit für eine kurze Toilettenpause 💧"),
    ("zh", "该小憩一下去洗手间啦 💧"),
    ("klingon", "Time for a quick bathroom break 💧"),
    (None, "Time for a quick bathroom break 💧"),
])
def test_localized_body(language, expected):
    assert localized_body(language) == expected


def test_build_payload_shape():
    assert build_payload("hi") == {"title": "🚽 PeePal Reminder", "body": "hi", "url": "/dashboard"}


@pytest.mark.asyncio
async def test_broadcast_reports_per_endpoint_and_prunes_dead(store, sender):
    store.upsert(make_subscription(A))
    store.upsert(make_subscription(B))
    sender.failures[B] = 410
    service = NotificationService(store, sender)

    results = await service.broadcast("Drink some water")

    by_endpoint = {r["endpoint"]: r for r in results}
    assert by_endpoint[A]["success"] is True
    assert by_endpoint[B]["success"] is False
    assert "410" in by_endpoint[B]["error"]
    assert store.get(B) is None
    assert store.get(A) is not None
    assert all(s["payload"]["body"] == "Drink some water" for s in sender.sent)


@pytest.mark.asyncio
async def test_broadcast_transient_failure_keeps_subscription(store, sender):
    store.upsert(make_subscription(A))
    sender.failures[A] = 500
    service = NotificationService(store, sender)

    results = await service.broadcast()

    assert results[0]["success"] is False
    assert store.get(A) is not None
    assert sender.sent[0]["payload"]["body"] == "Time for a quick bathroom break 💧"
