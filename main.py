"""
Main FastAPI application (entrypoint).

Responsibilities:
- Build the per-process SubscriptionStore, NotificationService, ReminderScheduler and
  RestroomService and hang them on app.state (routes read them via api.deps)
- Wire API routers under /api
- Register centralized exception handlers
- Provide middleware: CORS, request-id logging, simple rate limiting
- Start/stop the reminder scheduler with the app

Notes:
- Subscriptions are in memory only; a restart forgets every schedule.
- Run a single process: each process would run its own scheduler over its own store.
"""
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from api import routes_push, routes_restrooms
from config.settings import Settings, settings as default_settings
from core.exception_handlers import register_exception_handlers
from core.logging import configure_logging, request_logging_middleware
from core.rate_limiter import RateLimiterMiddleware
from core.response import ok
from services.notification_service import NotificationService
from services.push_sender import NullPushSender, PushSender, WebPushSender
from services.restroom_service import RestroomService, build_restroom_service
from services.subscription_store import SubscriptionStore
from workers.reminder_scheduler import ReminderScheduler

logger = logging.getLogger(__name__)


def build_push_sender(settings: Settings) -> PushSender:
    if not settings.push_enabled:
        logger.warning("Missing VAPID keys (VAPID_PUBLIC_KEY / VAPID_PRIVATE_KEY); push delivery disabled")
        return NullPushSender()
    return WebPushSender(
        private_key=settings.VAPID_PRIVATE_KEY,
        subject=settings.VAPID_SUBJECT,
        timeout_seconds=settings.PUSH_TIMEOUT_SECONDS,
    )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[SubscriptionStore] = None,
    sender: Optional[PushSender] = None,
    restroom_service: Optional[RestroomService] = None,
) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title=settings.API_TITLE, version=settings.API_VERSION, debug=settings.DEBUG)

    store = store if store is not None else SubscriptionStore()
    notification_service = NotificationService(
        store, sender or build_push_sender(settings), ttl_seconds=settings.PUSH_TTL_SECONDS
    )
    app.state.settings = settings
    app.state.store = store
    app.state.notification_service = notification_service
    app.state.scheduler = ReminderScheduler(store, notification_service, interval_seconds=settings.TICK_INTERVAL_SECONDS)
    app.state.restroom_service = restroom_service or build_restroom_service(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.CORS_ORIGIN],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RateLimiterMiddleware, calls=settings.RATE_LIMIT_CALLS, per_seconds=settings.RATE_LIMIT_PERIOD)
    app.middleware("http")(request_logging_middleware)

    app.include_router(routes_push.router, prefix="/api", tags=["push"])
    app.include_router(routes_restrooms.router, prefix="/api", tags=["restrooms"])

    register_exception_handlers(app)

    @app.get("/health")
    async def health():
        """Simple health endpoint used by load balancers and orchestrators."""
        return ok(status="ok")

    @app.on_event("startup")
    async def on_startup():
        if settings.SCHEDULER_ENABLED:
            app.state.scheduler.start()
        else:
            logger.info("Reminder scheduler disabled (SCHEDULER_ENABLED=false)")

    @app.on_event("shutdown")
    async def on_shutdown():
        await app.state.scheduler.stop()

    return app


app = create_app()

if __name__ == "__main__":
    # Run with: python main.py for local dev. Keep a single worker (in-memory store).
    uvicorn.run("main:app", host="0.0.0.0", port=default_settings.PORT)
