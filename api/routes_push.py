# api/routes_push.py
from typing import Annotated
from urllib.parse import urlsplit

from fastapi import APIRouter, Depends, HTTPException, Request

from api.deps import get_notification_service, get_store
from core.response import ok
from models.schemas import (
    DeleteSubscriptionRequest,
    RotateSubscriptionRequest,
    SaveSubscriptionRequest,
    SendPushRequest,
    SetPreferencesRequest,
)
from services.notification_service import NotificationService
from services.subscription_store import SubscriptionStore

router = APIRouter()

Store = Annotated[SubscriptionStore, Depends(get_store)]


def redact_endpoint(endpoint: str) -> str:
    """Keep the push service origin and a short path prefix; the rest identifies a device."""
    parts = urlsplit(endpoint)
    if not parts.scheme or not parts.netloc:
        return endpoint[:12] + "…"
    return f"{parts.scheme}://{parts.netloc}{parts.path[:12]}…"


@router.get("/status")
async def status(store: Store):
    """Health/status for quick checks: subscriber count, server time, redacted list."""
    users = [
        {
            "endpoint": redact_endpoint(r.endpoint),
            "frequencyMinutes": r.frequency_minutes,
            "language": r.language.value,
            "nextAt": r.next_at,
        }
        for r in store.list()
    ]
    return ok(count=len(store), serverTime=store.now(), users=users)


@router.get("/vapid-public-key")
async def vapid_public_key(request: Request):
    key = request.app.state.settings.VAPID_PUBLIC_KEY
    if not key:
        raise HTTPException(status_code=503, detail="Push notifications are not configured")
    return ok(publicKey=key)


@router.post("/save-subscription")
async def save_subscription(req: SaveSubscriptionRequest, store: Store):
    """Save or refresh a subscription (idempotent upsert)."""
    if req.subscription is None:
        raise HTTPException(status_code=400, detail="No subscription provided")
    record, _ = store.upsert(req.subscription)
    return ok(endpoint=record.endpoint)


@router.post("/set-preferences")
async def set_preferences(req: SetPreferencesRequest, store: Store):
    """Update frequency & language and reschedule from now. Unknown endpoint -> 404."""
    if not req.endpoint:
        raise HTTPException(status_code=400, detail="Missing endpoint")
    record = store.set_preferences(req.endpoint, req.frequencyMinutes, req.language)
    return ok(nextAt=record.next_at, frequencyMinutes=record.frequency_minutes, language=record.language.value)


@router.post("/rotate-subscription")
async def rotate_subscription(req: RotateSubscriptionRequest, store: Store):
    """Browser handed out a new subscription (pushsubscriptionchange); keep the schedule."""
    if req.newSubscription is None:
        raise HTTPException(status_code=400, detail="Missing new subscription")
    record, rotated = store.rotate(req.oldEndpoint, req.newSubscription)
    return ok(endpoint=record.endpoint, rotated=rotated)


@router.post("/delete-subscription")
async def delete_subscription(req: DeleteSubscriptionRequest, store: Store):
    """User turned off notifications."""
    if not req.endpoint:
        raise HTTPException(status_code=400, detail="Missing endpoint")
    return ok(deleted=store.remove(req.endpoint))


@router.post("/send-push")
async def send_push(
    notifier: Annotated[NotificationService, Depends(get_notification_service)],
    req: SendPushRequest | None = None,
):
    """Manual broadcast to all subscribers (testing/ops). Always 200 with per-endpoint results."""
    message = req.message if req else None
    results = await notifier.broadcast(message)
    return ok(results=results)
