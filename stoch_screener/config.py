import os
from pathlib import Path
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

from . import constants as C
from .exceptions import ConfigError
from .models import ScanMode

load_dotenv()

DEFAULT_CONFIG_PATH = "config.yaml"


class TelegramConfig(BaseModel):
    bot_token: str = Field(..., min_length=10, description="Telegram bot token")
    chat_ids: List[str] = Field(default_factory=list, description="Subscriber chat IDs")
    progress_every: int = Field(default=C.PROGRESS_EVERY, ge=1)

    @field_validator('bot_token')
    @classmethod
    def not_placeholder(cls, v: str) -> str:
        if v.startswith('YOUR_'):
            raise ValueError('Replace placeholder values in config')
        return v

    @field_validator('chat_ids', mode='before')
    @classmethod
    def split_chat_ids(cls, v):
        if isinstance(v, (str, int)):
            v = str(v).split(",")
        return [str(c).strip() for c in v if str(c).strip()]


class MarketDataConfig(BaseModel):
    base_url: str = Field(default=C.MARKET_DATA_URL)
    symbol_suffix: str = Field(default=C.SYMBOL_SUFFIX)
    lookback_days: int = Field(default=C.DAYS_TO_FETCH, ge=1)
    request_timeout: float = Field(default=C.REQUEST_TIMEOUT, gt=0)
    max_attempts: int = Field(default=C.MAX_RETRY_ATTEMPTS, ge=1, le=10)
    retry_base_delay: float = Field(default=C.DEFAULT_RETRY_DELAY, ge=0)
    min_bars: int = Field(default=C.MIN_DATA_POINTS, ge=1)


class ScreenerConfig(BaseModel):
    batch_size: int = Field(default=C.BATCH_SIZE, ge=1)
    max_concurrency: int = Field(default=C.MAX_CONCURRENT, ge=1)
    pacing_seconds: float = Field(default=C.BATCH_SLEEP_SECONDS, ge=0)
    deadline_seconds: Optional[float] = Field(default=None, gt=0, description="Wall-clock budget per scan")


class IndicatorConfig(BaseModel):
    k_period: int = Field(default=C.STOCH_K_PERIOD, ge=1)
    k_smoothing: int = Field(default=C.STOCH_K_SMOOTH, ge=1)
    d_period: int = Field(default=C.STOCH_D_PERIOD, ge=1)
    oversold: float = Field(default=C.STOCH_OVERSOLD, gt=0, lt=100)
    oversold_rule: str = Field(default="both", pattern="^(both|either)$")
    min_length: str = Field(default="full", pattern="^(full|k_period)$")
    signal_policy: str = Field(default="base", pattern="^(base|volume)$")


class MomentumConfig(BaseModel):
    min_change_1d: float = C.MOMENTUM_MIN_CHANGE_1D
    min_price: float = Field(default=C.MOMENTUM_MIN_PRICE, ge=0)
    near_high_fraction: float = Field(default=C.MOMENTUM_NEAR_HIGH, gt=0, le=1)
    min_traded_value: float = Field(default=C.MOMENTUM_MIN_VALUE, ge=0)
    volume_spike: float = Field(default=C.MOMENTUM_VOLUME_SPIKE, ge=0)
    top_n: int = Field(default=C.MOMENTUM_TOP_N, ge=1)


class CacheConfig(BaseModel):
    ttl_minutes: float = Field(default=C.CACHE_TTL_MINUTES, gt=0)
    sweep_minutes: float = Field(default=C.CACHE_SWEEP_MINUTES, gt=0)


class ScheduleEntryConfig(BaseModel):
    time: str = Field(..., pattern=r"^([01]\d|2[0-3]):[0-5]\d$", description="HH:MM local time")
    mode: ScanMode = ScanMode.OVERSOLD
    weekdays: List[int] = Field(default_factory=lambda: [0, 1, 2, 3, 4], description="0=Monday")

    @field_validator('weekdays')
    @classmethod
    def validate_weekdays(cls, v: List[int]) -> List[int]:
        if not v or any(d < 0 or d > 6 for d in v):
            raise ValueError('weekdays must be non-empty values in 0..6')
        return sorted(set(v))


def _default_scans() -> List[ScheduleEntryConfig]:
    return [
        ScheduleEntryConfig(time="10:00", mode=ScanMode.OVERSOLD),
        ScheduleEntryConfig(time="15:30", mode=ScanMode.MOMENTUM),
        ScheduleEntryConfig(time="16:00", mode=ScanMode.OVERSOLD),
    ]


class ScheduleConfig(BaseModel):
    timezone: str = Field(default=C.TIMEZONE)
    scans: List[ScheduleEntryConfig] = Field(default_factory=_default_scans)

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f'Unknown timezone: {v}')
        return v


class StorageConfig(BaseModel):
    scan_store_path: str = "data/last_scans.json"
    signal_history_path: str = "data/signal_history.json"


class Config(BaseModel):
    telegram: Optional[TelegramConfig] = None
    market_data: MarketDataConfig = Field(default_factory=MarketDataConfig)
    screener: ScreenerConfig = Field(default_factory=ScreenerConfig)
    indicator: IndicatorConfig = Field(default_factory=IndicatorConfig)
    momentum: MomentumConfig = Field(default_factory=MomentumConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    sentry_dsn: Optional[str] = None
    log_level: str = Field(default="INFO")

    @model_validator(mode='after')
    def check_oscillator_fits_lookback(self) -> "Config":
        ind = self.indicator
        if ind.min_length == "full":
            required = ind.k_period + ind.k_smoothing + ind.d_period
        else:
            required = ind.k_period
        if self.market_data.min_bars < required:
            raise ValueError(
                f'market_data.min_bars ({self.market_data.min_bars}) is below the '
                f'{required} bars the oscillator needs'
            )
        return self

    @classmethod
    def load(cls, path: str | None = None) -> "Config":
        """
        Load config from YAML with environment overrides for secrets.

        With no path, config.yaml is used when present, otherwise defaults.
        """
        if path is None:
            p = Path(DEFAULT_CONFIG_PATH)
            raw_text = p.read_text() if p.exists() else ""
        else:
            p = Path(path)
            if not p.exists():
                raise ConfigError(f"Config file not found: {path}")
            raw_text = p.read_text()

        try:
            raw = yaml.safe_load(raw_text) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse YAML: {e}", original_error=e)

        if not isinstance(raw, dict):
            raise ConfigError(f"Config root must be a mapping: {p}")

        # Environment variable overrides for sensitive data
        if bot := os.getenv("TELEGRAM_BOT_TOKEN"):
            raw.setdefault("telegram", {})["bot_token"] = bot
        if chats := os.getenv("TELEGRAM_CHAT_IDS"):
            raw.setdefault("telegram", {})["chat_ids"] = chats
        if dsn := os.getenv("SENTRY_DSN"):
            raw["sentry_dsn"] = dsn
        if url := os.getenv("MARKET_DATA_URL"):
            raw.setdefault("market_data", {})["base_url"] = url

        try:
            return cls(**raw)
        except Exception as e:
            raise ConfigError(f"Invalid configuration: {e}", original_error=e)
