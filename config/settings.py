"""
Application settings and environment configuration.

Purpose:
- Centralize all config (VAPID keys, scheduler cadence, suggestion backends)
- Load from environment variables / .env for 12-factor app compliance
- Provide sensible defaults for local development
"""
import os
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # API Configuration
    API_TITLE: str = "PeePal Reminder API"
    API_VERSION: str = "0.1"
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"
    PORT: int = int(os.getenv("PORT", "4000"))

    # CORS: single origin or "*" for local development
    CORS_ORIGIN: str = os.getenv("CORS_ORIGIN", "*")

    # Web Push (VAPID). Generate a key pair with `vapid --gen` (py-vapid) or web-push.
    VAPID_PUBLIC_KEY: str = os.getenv("VAPID_PUBLIC_KEY", "")
    VAPID_PRIVATE_KEY: str = os.getenv("VAPID_PRIVATE_KEY", "")
    VAPID_SUBJECT: str = os.getenv("VAPID_SUBJECT", "mailto:you@example.com")
    PUSH_TTL_SECONDS: int = int(os.getenv("PUSH_TTL_SECONDS", "60"))
    PUSH_TIMEOUT_SECONDS: float = float(os.getenv("PUSH_TIMEOUT_SECONDS", "10"))

    # Reminder scheduler
    SCHEDULER_ENABLED: bool = os.getenv("SCHEDULER_ENABLED", "True").lower() == "true"
    TICK_INTERVAL_SECONDS: float = float(os.getenv("TICK_INTERVAL_SECONDS", "30"))

    # Logging: Values: DEBUG, INFO, WARNING, ERROR, CRITICAL
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Rate Limiter: calls per period (seconds), per client IP
    RATE_LIMIT_CALLS: int = int(os.getenv("RATE_LIMIT_CALLS", "120"))
    RATE_LIMIT_PERIOD: int = int(os.getenv("RATE_LIMIT_PERIOD", "60"))

    # Restroom suggestions: "overpass" (OpenStreetMap) or "llm" (Groq)
    SUGGEST_BACKEND: str = os.getenv("SUGGEST_BACKEND", "overpass")
    OVERPASS_URL: str = os.getenv("OVERPASS_URL", "https://overpass-api.de/api/interpreter")
    # Many Overpass instances reject requests without a descriptive UA
    OVERPASS_USER_AGENT: str = os.getenv("OVERPASS_USER_AGENT", "bathroom-reminder/1.0 (contact@example.com)")
    OVERPASS_TIMEOUT_SECONDS: float = float(os.getenv("OVERPASS_TIMEOUT_SECONDS", "30"))

    GROQ_API_KEY: str | None = os.getenv("GROQ_API_KEY", None)
    GROQ_MODEL: str = os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile")
    GROQ_MAX_TOKENS: int = int(os.getenv("GROQ_MAX_TOKENS", "1200"))

    class Config:
        env_file = ".env"  # Load from .env file if present
        extra = "allow"

    @property
    def push_enabled(self) -> bool:
        return bool(self.VAPID_PUBLIC_KEY and self.VAPID_PRIVATE_KEY)

# Global settings instance
settings = Settings()
