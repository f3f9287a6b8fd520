"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from decimal import Decimal

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from network_settlement.config.constants import (
    DEFAULT_COMMISSION_DEPTH,
    DEFAULT_DAILY_WITHDRAWAL_LIMIT_CENTS,
    DEFAULT_MAX_PAYOUT_RATIO,
    DEFAULT_MONTHLY_WITHDRAWAL_LIMIT_CENTS,
    DEFAULT_SINGLE_WITHDRAWAL_LIMIT_CENTS,
    DEFAULT_TREE_DEPTH,
    PAYMENT_REQUEST_TTL_HOURS,
    PHASE1_MIN_DIRECT_ACTIVE,
    PHASE2_MIN_SECOND_LEVEL_TOTAL,
    PHASE3_MIN_BRANCH_SECOND_LEVEL,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Environment
    environment: str = "development"

    # Database
    database_url: str
    database_echo: bool = False

    # Redis (Dramatiq broker)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Logging
    log_level: str = "INFO"
    log_file: str = "logs/settlement.log"
    log_rotation: str = "1 day"
    log_retention: str = "7 days"

    # Downline tree
    tree_default_depth: int = Field(
        default=DEFAULT_TREE_DEPTH,
        ge=1,
        description="Default number of downline levels materialized per query",
    )
    tree_max_depth_cap: int = Field(
        default=DEFAULT_TREE_DEPTH,
        ge=1,
        description="Hard cap on downline depth regardless of caller request",
    )

    # Commission plan
    commission_max_depth: int = Field(
        default=DEFAULT_COMMISSION_DEPTH,
        ge=1,
        description="Maximum number of upline levels paid per order",
    )
    max_payout_ratio: Decimal = Field(
        default=DEFAULT_MAX_PAYOUT_RATIO,
        gt=0,
        le=1,
        description="Maximum share of an order distributed as commissions",
    )

    # Phase thresholds
    phase1_min_direct_active: int = Field(
        default=PHASE1_MIN_DIRECT_ACTIVE, ge=0
    )
    phase2_min_second_level_total: int = Field(
        default=PHASE2_MIN_SECOND_LEVEL_TOTAL, ge=0
    )
    phase3_min_branch_second_level: int = Field(
        default=PHASE3_MIN_BRANCH_SECOND_LEVEL, ge=0
    )

    # Withdrawals
    payment_request_ttl_hours: int = Field(
        default=PAYMENT_REQUEST_TTL_HOURS,
        gt=0,
        description="Hours before an unresolved payment request expires",
    )
    single_withdrawal_limit_cents: int = Field(
        default=DEFAULT_SINGLE_WITHDRAWAL_LIMIT_CENTS, gt=0
    )
    daily_withdrawal_limit_cents: int = Field(
        default=DEFAULT_DAILY_WITHDRAWAL_LIMIT_CENTS, gt=0
    )
    monthly_withdrawal_limit_cents: int = Field(
        default=DEFAULT_MONTHLY_WITHDRAWAL_LIMIT_CENTS, gt=0
    )

    # Notification side-channel (optional webhook)
    notification_webhook_url: str | None = None
    notification_timeout_seconds: float = Field(default=10.0, gt=0)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode='after')
    def validate_limits(self) -> 'Settings':
        """Ensure withdrawal limits are consistent with each other."""
        if self.daily_withdrawal_limit_cents > self.monthly_withdrawal_limit_cents:
            raise ValueError(
                'DAILY_WITHDRAWAL_LIMIT_CENTS cannot exceed '
                'MONTHLY_WITHDRAWAL_LIMIT_CENTS'
            )
        if self.tree_default_depth > self.tree_max_depth_cap:
            logger.warning(
                'TREE_DEFAULT_DEPTH is above TREE_MAX_DEPTH_CAP, '
                'queries will be clamped to the cap'
            )
        return self

    @model_validator(mode='after')
    def validate_production(self) -> 'Settings':
        """Reject development-only configuration in production."""
        if self.environment == 'production':
            if self.database_url.startswith('sqlite'):
                raise ValueError(
                    'SQLite DATABASE_URL is not allowed in production'
                )
            if self.database_echo:
                logger.warning(
                    'DATABASE_ECHO is enabled in production, '
                    'SQL statements will be logged'
                )
        return self

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(
            ('postgresql://', 'postgresql+asyncpg://', 'sqlite+aiosqlite://')
        ):
            raise ValueError(
                'DATABASE_URL must start with postgresql://, '
                'postgresql+asyncpg:// or sqlite+aiosqlite://'
            )
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level name."""
        level = v.upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f'Unknown log level: {v}')
        return level


# Global settings instance
settings = Settings()
