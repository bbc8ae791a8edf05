from pydantic_settings import BaseSettings

from pactflow.services.temporal import ExpiryPolicy, ExpiryThresholds


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All values come from .env file or environment. Validated at startup;
    missing required values cause an immediate error with a clear message.
    """

    # Database
    DATABASE_URL: str  # async driver (asyncpg)
    DATABASE_URL_SYNC: str = ""  # sync driver (for Alembic CLI)
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10

    # Redis
    REDIS_URL: str = "redis://redis:6379/0"

    # Expiry thresholds (days). Lifecycle widgets and card badges use different cut-offs.
    LIFECYCLE_CRITICAL_DAYS: int = 15
    LIFECYCLE_WARNING_DAYS: int = 60
    BADGE_CRITICAL_DAYS: int = 30
    BADGE_WARNING_DAYS: int = 60
    EXPIRY_WINDOWS_DAYS: list[int] = [7, 30, 60, 90]

    # Lifecycle
    TRANSITION_MAX_ATTEMPTS: int = 2
    SYSTEM_IDENTITY_DOMAIN: str = "pactflow.local"
    EXPIRY_SWEEP_HOUR: int = 1

    # App
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def expiry_policy(self) -> ExpiryPolicy:
        return ExpiryPolicy(
            lifecycle=ExpiryThresholds(
                critical_days=self.LIFECYCLE_CRITICAL_DAYS,
                warning_days=self.LIFECYCLE_WARNING_DAYS,
            ),
            badge=ExpiryThresholds(
                critical_days=self.BADGE_CRITICAL_DAYS,
                warning_days=self.BADGE_WARNING_DAYS,
            ),
            windows=tuple(sorted(self.EXPIRY_WINDOWS_DAYS)),
        )
