import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient


# Ensure project root is on sys.path so `services.*`, `api.*` imports work
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))


from config.settings import Settings
from core.exceptions import PushDeliveryError
from main import create_app
from models.subscription import PushSubscription
from services.push_sender import PushSender
from services.restroom_service import RestroomService
from services.subscription_store import SubscriptionStore

T0 = 1_700_000_000_000  # fixed epoch ms for deterministic schedules


class FakeClock:
    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance_minutes(self, minutes: float):
        self.now += int(minutes * 60 * 1000)


class RecordingPushSender(PushSender):
    """Records every send; `failures` maps endpoint -> status code to raise."""

    def __init__(self):
        self.sent = []
        self.failures = {}

    async def send(self, subscription, payload, ttl=60):
        self.sent.append({"endpoint": subscription.endpoint, "payload": payload, "ttl": ttl})
        if subscription.endpoint in self.failures:
            code = self.failures[subscription.endpoint]
            raise PushDeliveryError(f"Push delivery failed (status={code})", code)


class StaticSource:
    """Candidate source returning a fixed list and remembering the last call."""

    def __init__(self, candidates=None, error: Exception | None = None):
        self.candidates = candidates or []
        self.error = error
        self.calls = []

    async def fetch_candidates(self, lat, lon, radius_m, language):
        self.calls.append((lat, lon, radius_m, language))
        if self.error is not None:
            raise self.error
        return list(self.candidates)


def make_subscription(endpoint: str = "https://fcm.googleapis.com/fcm/send/device-1", auth: str = "auth-secret") -> PushSubscription:
    return PushSubscription(endpoint=endpoint, keys={"p256dh": "BNcRdreALRFXTkOOUHK1EtK2wtaz5Ry4YfYCA_0QTpQtUbVlUls0VJXg7A8u-Ts1XbjhazAkj7I99e8QcYP7DkM", "auth": auth})


def subscription_json(endpoint: str = "https://fcm.googleapis.com/fcm/send/device-1") -> dict:
    return make_subscription(endpoint).model_dump()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def store(clock):
    return SubscriptionStore(clock=clock)


@pytest.fixture()
def sender():
    return RecordingPushSender()


@pytest.fixture()
def source():
    return StaticSource()


@pytest.fixture()
def test_settings():
    return Settings(SCHEDULER_ENABLED=False, RATE_LIMIT_CALLS=10_000, VAPID_PUBLIC_KEY="test-public-key")


@pytest.fixture()
def app(test_settings, store, sender, source):
    return create_app(
        settings=test_settings,
        store=store,
        sender=sender,
        restroom_service=RestroomService(source, strict=False),
    )


@pytest_asyncio.fixture()
async def client(app):
    """Async test client; the scheduler is not started (SCHEDULER_ENABLED=False)."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac
