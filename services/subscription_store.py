"""
In-memory push subscription store.

One SubscriptionStore is created per process by main.create_app() and shared with
the HTTP routes and the ReminderScheduler. Records are keyed by endpoint and are
lost on restart.
"""
import logging
import math
import time
from typing import Callable, Dict, List, Optional, Tuple

from core.exceptions import SubscriptionNotFound
from models.subscription import (
    DEFAULT_FREQUENCY_MINUTES,
    MAX_FREQUENCY_MINUTES,
    MIN_FREQUENCY_MINUTES,
    Language,
    PushSubscription,
    SubscriberRecord,
)

logger = logging.getLogger(__name__)

MINUTE_MS = 60 * 1000


def now_ms() -> int:
    return int(time.time() * 1000)


def clamp_frequency(minutes) -> int:
    """Clamp to [5, 1440]; missing or non-numeric input falls back to 60 first."""
    if isinstance(minutes, bool):
        value = DEFAULT_FREQUENCY_MINUTES
    elif isinstance(minutes, int):
        # JSON ints are unbounded; compare as int so huge values cannot overflow float()
        value = minutes
    else:
        try:
            value = float(minutes)
        except (TypeError, ValueError, OverflowError):
            value = DEFAULT_FREQUENCY_MINUTES
        if math.isnan(value):
            value = DEFAULT_FREQUENCY_MINUTES
    value = max(MIN_FREQUENCY_MINUTES, min(MAX_FREQUENCY_MINUTES, value))
    return int(value)


class SubscriptionStore:
    def __init__(self, clock: Callable[[], int] = now_ms):
        self._clock = clock
        self._records: Dict[str, SubscriberRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, endpoint: str) -> bool:
        return endpoint in self._records

    def now(self) -> int:
        return self._clock()

    def get(self, endpoint: str) -> Optional[SubscriberRecord]:
        return self._records.get(endpoint)

    def list(self) -> List[SubscriberRecord]:
        return list(self._records.values())

    def upsert(self, subscription: PushSubscription) -> Tuple[SubscriberRecord, bool]:
        """
        Insert with defaults, or refresh the descriptor of a known endpoint.
        Returns (record, created). Cadence, language and next_at survive a refresh.
        """
        existing = self._records.get(subscription.endpoint)
        if existing is not None:
            record = existing.model_copy(update={"subscription": subscription})
            self._records[subscription.endpoint] = record
            logger.info("Subscription refreshed: %s", subscription.endpoint)
            return record, False

        record = SubscriberRecord(
            subscription=subscription,
            frequency_minutes=DEFAULT_FREQUENCY_MINUTES,
            language=Language.EN,
            next_at=self.now() + DEFAULT_FREQUENCY_MINUTES * MINUTE_MS,
        )
        self._records[subscription.endpoint] = record
        logger.info("New subscription: %s", subscription.endpoint)
        return record, True

    def set_preferences(self, endpoint: str, frequency_minutes=None, language=None) -> SubscriberRecord:
        """Update cadence/language and reschedule from now."""
        existing = self._records.get(endpoint)
        if existing is None:
            raise SubscriptionNotFound(endpoint)

        freq = clamp_frequency(frequency_minutes)
        lang = Language.normalize(language)
        record = existing.model_copy(update={
            "frequency_minutes": freq,
            "language": lang,
            "next_at": self.now() + freq * MINUTE_MS,
        })
        self._records[endpoint] = record
        logger.info("Preferences updated: endpoint=%s freq=%s lang=%s", endpoint, freq, lang.value)
        return record

    def rotate(self, old_endpoint: Optional[str], new_subscription: PushSubscription) -> Tuple[SubscriberRecord, bool]:
        """
        Move a record to the browser's new endpoint, keeping its schedule.
        Returns (record, rotated); unknown old endpoints fall back to upsert.
        """
        if old_endpoint and old_endpoint in self._records:
            old = self._records.pop(old_endpoint)
            record = old.model_copy(update={"subscription": new_subscription})
            self._records[new_subscription.endpoint] = record
            logger.info("Rotated subscription from=%s to=%s", old_endpoint, new_subscription.endpoint)
            return record, True

        record, _ = self.upsert(new_subscription)
        return record, False

    def remove(self, endpoint: str) -> bool:
        existed = self._records.pop(endpoint, None) is not None
        if existed:
            logger.info("Deleted subscription: %s", endpoint)
        return existed

    def due(self, now: int) -> List[SubscriberRecord]:
        return [r for r in self._records.values() if r.next_at <= now]

    def reschedule(self, endpoint: str, now: int) -> Optional[SubscriberRecord]:
        """Advance next_at by one period from `now`; no-op if the record is gone."""
        existing = self._records.get(endpoint)
        if existing is None:
            return None
        record = existing.model_copy(update={"next_at": now + existing.frequency_minutes * MINUTE_MS})
        self._records[endpoint] = record
        return record
