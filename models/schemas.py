from pydantic import BaseModel
from typing import Any, Optional

from models.subscription import PushSubscription

class SaveSubscriptionRequest(BaseModel):
    subscription: Optional[PushSubscription] = None

class SetPreferencesRequest(BaseModel):
    endpoint: Optional[str] = None
    # clamped/normalized by the store, so accept whatever the client sends
    frequencyMinutes: Any = None
    language: Any = None

class RotateSubscriptionRequest(BaseModel):
    oldEndpoint: Optional[str] = None
    newSubscription: Optional[PushSubscription] = None

class DeleteSubscriptionRequest(BaseModel):
    endpoint: Optional[str] = None

class SendPushRequest(BaseModel):
    message: Optional[str] = None
