# api/deps.py
from fastapi import Request

from services.notification_service import NotificationService
from services.restroom_service import RestroomService
from services.subscription_store import SubscriptionStore


def get_store(request: Request) -> SubscriptionStore:
    return request.app.state.store


def get_notification_service(request: Request) -> NotificationService:
    return request.app.state.notification_service


def get_restroom_service(request: Request) -> RestroomService:
    return request.app.state.restroom_service
