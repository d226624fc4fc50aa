# services/notification_service.py
import logging
from typing import Any, Dict, List, Optional

from core.exceptions import PushDeliveryError
from models.subscription import Language, SubscriberRecord
from services.push_sender import PushSender
from services.subscription_store import SubscriptionStore

logger = logging.getLogger(__name__)

REMINDER_TITLE = "🚽 PeePal Reminder"
REMINDER_URL = "/dashboard"

REMINDER_BODIES = {
    Language.EN: "Time for a quick bathroom break 💧",
    Language.DE: "Zeit für eine kurze Toilettenpause 💧",
    Language.ZH: "该小憩一下去洗手间啦 💧",
}


def localized_body(language) -> str:
    return REMINDER_BODIES[Language.normalize(language)]


def build_payload(body: str) -> Dict[str, str]:
    # icon/badge are left to the service worker defaults
    return {"title": REMINDER_TITLE, "body": body, "url": REMINDER_URL}


class NotificationService:
    def __init__(self, store: SubscriptionStore, sender: PushSender, ttl_seconds: int = 60):
        self.store = store
        self.sender = sender
        self.ttl_seconds = ttl_seconds

    async def send_reminder(self, record: SubscriberRecord) -> None:
        """Send the localized reminder; PushDeliveryError propagates to the caller."""
        payload = build_payload(localized_body(record.language))
        await self.sender.send(record.subscription, payload, ttl=self.ttl_seconds)

    async def broadcast(self, message: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Send `message` to every stored subscription (ops/testing utility).
        Terminal failures prune the subscription, like the scheduler does.
        """
        payload = build_payload(message or REMINDER_BODIES[Language.EN])
        results: List[Dict[str, Any]] = []
        for record in self.store.list():
            endpoint = record.endpoint
            try:
                await self.sender.send(record.subscription, payload, ttl=self.ttl_seconds)
                results.append({"endpoint": endpoint, "success": True})
            except PushDeliveryError as e:
                if e.terminal:
                    self.store.remove(endpoint)
                    logger.info("Pruned dead endpoint during broadcast: %s", endpoint)
                else:
                    logger.warning("Broadcast push failed for %s: %s", endpoint, e)
                results.append({"endpoint": endpoint, "success": False, "error": str(e)})
            except Exception as e:
                logger.exception("Unexpected broadcast error for %s", endpoint)
                results.append({"endpoint": endpoint, "success": False, "error": str(e)})
        return results
