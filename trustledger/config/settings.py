"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Ambiguous glyphs (I, O, 0, 1) are left out
DEFAULT_REFERRAL_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./trustledger.db"
    database_echo: bool = False

    # Application
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str | None = None

    # Commission rates (minor units, paise)
    commission_rate_level_1: int = Field(
        default=160, gt=0, description="Level 1 commission (direct referrer)"
    )
    commission_rate_level_2: int = Field(
        default=80, gt=0, description="Level 2 commission"
    )
    commission_rate_level_3: int = Field(
        default=40, gt=0, description="Level 3 commission"
    )
    commission_rate_level_4: int = Field(
        default=20, gt=0, description="Level 4 commission"
    )
    max_commission_depth: int = Field(
        default=4, ge=1, le=4, description="Referral levels paid per fee event"
    )
    commission_due_days: int = Field(
        default=7, ge=0, description="Days until a commission is due"
    )
    platform_fee_amount: int = Field(
        default=1000, gt=0, description="Platform fee that triggers commissions"
    )

    # Payouts
    payout_threshold: int = Field(
        default=1000, gt=0, description="Minimum pending balance for payout"
    )

    # Referral codes
    referral_code_alphabet: str = DEFAULT_REFERRAL_CODE_ALPHABET
    referral_code_length: int = Field(
        default=6, ge=6, le=10, description="Generated referral code length"
    )
    referral_code_max_attempts: int = Field(
        default=10, ge=1, description="Collision retries before giving up"
    )

    # Transactions
    description_max_length: int = Field(
        default=200, ge=0, description="Max transaction description length"
    )
    amount_max: int = Field(
        default=10**8, gt=0, description="Max transaction amount (minor units)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode='after')
    def validate_commission_budget(self) -> 'Settings':
        """Commissions paid for one fee event must fit inside the fee."""
        total = sum(self.get_commission_rates().values())
        if total > self.platform_fee_amount:
            raise ValueError(
                f'Commission rates for {self.max_commission_depth} levels '
                f'sum to {total}, more than the platform fee '
                f'{self.platform_fee_amount}'
            )
        return self

    @model_validator(mode='after')
    def validate_production(self) -> 'Settings':
        """Validate production-specific requirements."""
        if self.environment == 'production':
            if self.debug:
                raise ValueError(
                    'DEBUG must be False in production environment. '
                    'Set DEBUG=false in your .env file.'
                )
            if self.database_url.startswith('sqlite'):
                logger.warning(
                    'DATABASE_URL points at SQLite in production. '
                    'Use postgresql+asyncpg:// for concurrent writers.'
                )
        return self

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(('postgresql+asyncpg://', 'sqlite+aiosqlite://')):
            raise ValueError(
                'DATABASE_URL must start with postgresql+asyncpg:// '
                'or sqlite+aiosqlite://'
            )
        return v

    @field_validator('referral_code_alphabet')
    @classmethod
    def validate_alphabet(cls, v: str) -> str:
        """Alphabet must be upper-case alphanumerics without repeats."""
        v = v.strip()
        if len(v) < 2:
            raise ValueError('Referral code alphabet needs at least 2 symbols')
        if len(set(v)) != len(v):
            raise ValueError('Referral code alphabet has repeated symbols')
        if not v.isalnum() or v != v.upper():
            raise ValueError(
                'Referral code alphabet must be upper-case letters and digits'
            )
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize log level name."""
        level = v.upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING",
                         "ERROR", "CRITICAL"}:
            raise ValueError(f'Unknown log level: {v}')
        return level

    def get_commission_rates(self) -> dict[int, int]:
        """Commission amount per referral level, up to max depth."""
        rates = {
            1: self.commission_rate_level_1,
            2: self.commission_rate_level_2,
            3: self.commission_rate_level_3,
            4: self.commission_rate_level_4,
        }
        return {
            level: amount
            for level, amount in rates.items()
            if level <= self.max_commission_depth
        }


# Global settings instance
settings = Settings()
