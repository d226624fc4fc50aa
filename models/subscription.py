# models/subscription.py
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_FREQUENCY_MINUTES = 60
MIN_FREQUENCY_MINUTES = 5
MAX_FREQUENCY_MINUTES = 24 * 60


class Language(str, Enum):
    EN = "en"
    DE = "de"
    ZH = "zh"

    @classmethod
    def normalize(cls, value) -> "Language":
        """Map any input onto a supported language; unknown values become English."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.EN


class PushKeys(BaseModel):
    p256dh: str = Field(..., min_length=1)
    auth: str = Field(..., min_length=1)


class PushSubscription(BaseModel):
    """Browser-issued PushSubscription.toJSON() shape."""
    model_config = ConfigDict(extra="ignore")

    endpoint: str = Field(..., min_length=1)
    keys: PushKeys
    expirationTime: Optional[float] = None

    def to_subscription_info(self) -> dict:
        """Shape expected by pywebpush."""
        return {"endpoint": self.endpoint, "keys": {"p256dh": self.keys.p256dh, "auth": self.keys.auth}}


class SubscriberRecord(BaseModel):
    subscription: PushSubscription
    frequency_minutes: int = DEFAULT_FREQUENCY_MINUTES
    language: Language = Language.EN
    next_at: int  # epoch milliseconds

    @property
    def endpoint(self) -> str:
        return self.subscription.endpoint
