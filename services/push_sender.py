"""Web Push delivery (VAPID-signed) via pywebpush."""
import asyncio
import json
import logging
from typing import Any, Dict, Optional

from pywebpush import WebPushException, webpush

from core.exceptions import PushDeliveryError
from models.subscription import PushSubscription

logger = logging.getLogger(__name__)


class PushSender:
    """Interface used by NotificationService; tests substitute a recording fake."""

    async def send(self, subscription: PushSubscription, payload: Dict[str, Any], ttl: int = 60) -> None:
        raise NotImplementedError


class WebPushSender(PushSender):
    def __init__(self, private_key: str, subject: str, timeout_seconds: float = 10.0):
        self._private_key = private_key
        self._subject = subject
        self._timeout_seconds = timeout_seconds

    async def send(self, subscription: PushSubscription, payload: Dict[str, Any], ttl: int = 60) -> None:
        # pywebpush is blocking (requests); keep it off the event loop
        await asyncio.to_thread(self._send_blocking, subscription, json.dumps(payload), ttl)

    def _send_blocking(self, subscription: PushSubscription, data: str, ttl: int) -> None:
        try:
            webpush(
                subscription_info=subscription.to_subscription_info(),
                data=data,
                vapid_private_key=self._private_key,
                # pywebpush adds aud/exp to the claims dict, so pass a fresh one each time
                vapid_claims={"sub": self._subject},
                ttl=ttl,
                timeout=self._timeout_seconds,
            )
        except WebPushException as exc:
            status_code = _extract_status_code(exc)
            raise PushDeliveryError(f"Push delivery failed (status={status_code or 'unknown'})", status_code) from exc
        except Exception as exc:
            # connection errors, timeouts, malformed keys
            raise PushDeliveryError(f"Push delivery failed: {exc}") from exc


class NullPushSender(PushSender):
    """Used when VAPID keys are not configured. Every send fails (non-terminal) so callers keep the record."""

    async def send(self, subscription: PushSubscription, payload: Dict[str, Any], ttl: int = 60) -> None:
        logger.warning("Push disabled; cannot deliver to %s", subscription.endpoint)
        raise PushDeliveryError("Push notifications are not configured")


def _extract_status_code(exc: WebPushException) -> Optional[int]:
    response = getattr(exc, "response", None)
    if response is None:
        return None
    status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None
