"""
Configuration module for the Sniffy trade relay.
Loads settings from environment variables with validation.
"""

import os
from dataclasses import dataclass, field
from typing import Optional
from dotenv import load_dotenv

from .errors import ConfigError
from .models import Platform

# Load .env file if present
load_dotenv()


@dataclass
class TelegramConfig:
    """Telegram Bot API configuration."""
    bot_token: str
    poll_timeout_seconds: int = 25
    api_url: str = "https://api.telegram.org"


@dataclass
class PrivyConfig:
    """Privy key-management service configuration."""
    app_id: str
    app_secret: str
    auth_key_id: str
    api_url: str = "https://api.privy.io"


@dataclass
class VenueConfig:
    """Per-venue endpoints, credentials and timeouts."""
    jupiter_api_key: Optional[str] = None
    hyperliquid_testnet: bool = False

    # Polymarket CLOB operator credentials (venue disabled when unset)
    polymarket_api_key: Optional[str] = None
    polymarket_api_secret: Optional[str] = None
    polymarket_api_passphrase: Optional[str] = None
    polymarket_private_key: Optional[str] = None

    # Timeouts per venue call (seconds)
    solana_timeout_seconds: float = 30.0
    hyperliquid_timeout_seconds: float = 10.0
    polymarket_timeout_seconds: float = 15.0

    @property
    def polymarket_enabled(self) -> bool:
        return all((
            self.polymarket_api_key,
            self.polymarket_api_secret,
            self.polymarket_api_passphrase,
            self.polymarket_private_key,
        ))


@dataclass
class MonitorConfig:
    """Limit order monitor settings."""
    interval_seconds: float = 30.0
    max_execution_failures: int = 3
    limit_order_platforms: list[str] = field(
        default_factory=lambda: ["solana", "hyperliquid"]
    )


@dataclass
class RiskConfig:
    """Risk control settings."""
    kill_switch: bool
    simulation_mode: bool  # Dry run - quote but don't submit


@dataclass
class LogConfig:
    """Logging configuration."""
    log_level: str
    json_logging: bool


@dataclass
class Config:
    """Main configuration container."""
    telegram: TelegramConfig
    privy: PrivyConfig
    venues: VenueConfig
    monitor: MonitorConfig
    risk: RiskConfig
    logging: LogConfig


def get_env(key: str, default: Optional[str] = None, required: bool = True) -> str:
    """Get environment variable with validation."""
    value = os.getenv(key, default)
    if required and not value:
        raise ConfigError(f"Required environment variable {key} is not set")
    return value or ""


def get_env_optional(key: str) -> Optional[str]:
    """Get environment variable, None when unset or empty."""
    return os.getenv(key) or None


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    value = os.getenv(key, str(default)).lower()
    return value in ("true", "1", "yes")


def get_env_int(key: str, default: int) -> int:
    """Get integer environment variable."""
    value = os.getenv(key, str(default))
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"Environment variable {key} must be an integer, got {value!r}")


def get_env_float(key: str, default: float) -> float:
    """Get float environment variable."""
    value = os.getenv(key, str(default))
    try:
        return float(value)
    except ValueError:
        raise ConfigError(f"Environment variable {key} must be a number, got {value!r}")


def get_env_list(key: str, default: list[str]) -> list[str]:
    """Get comma-separated list environment variable (lowercased)."""
    value = os.getenv(key)
    if not value:
        return list(default)
    return [item.strip().lower() for item in value.split(",") if item.strip()]


def load_config() -> Config:
    """Load and validate configuration from environment."""
    monitor_defaults = MonitorConfig()

    config = Config(
        telegram=TelegramConfig(
            bot_token=get_env("TELEGRAM_BOT_TOKEN"),
            poll_timeout_seconds=get_env_int("TELEGRAM_POLL_TIMEOUT", 25),
        ),
        privy=PrivyConfig(
            app_id=get_env("PRIVY_APP_ID"),
            app_secret=get_env("PRIVY_APP_SECRET"),
            auth_key_id=get_env("PRIVY_AUTH_KEY_ID"),
        ),
        venues=VenueConfig(
            jupiter_api_key=get_env_optional("JUPITER_API_KEY"),
            hyperliquid_testnet=get_env_bool("HYPERLIQUID_TESTNET", False),
            polymarket_api_key=get_env_optional("POLYMARKET_API_KEY"),
            polymarket_api_secret=get_env_optional("POLYMARKET_API_SECRET"),
            polymarket_api_passphrase=get_env_optional("POLYMARKET_API_PASSPHRASE"),
            polymarket_private_key=get_env_optional("POLYMARKET_PRIVATE_KEY"),
            solana_timeout_seconds=get_env_float("SOLANA_TIMEOUT_SECONDS", 30.0),
            hyperliquid_timeout_seconds=get_env_float("HYPERLIQUID_TIMEOUT_SECONDS", 10.0),
            polymarket_timeout_seconds=get_env_float("POLYMARKET_TIMEOUT_SECONDS", 15.0),
        ),
        monitor=MonitorConfig(
            interval_seconds=get_env_float("MONITOR_INTERVAL_SECONDS", 30.0),
            max_execution_failures=get_env_int("MAX_EXECUTION_FAILURES", 3),
            limit_order_platforms=get_env_list(
                "LIMIT_ORDER_PLATFORMS", monitor_defaults.limit_order_platforms
            ),
        ),
        risk=RiskConfig(
            kill_switch=get_env_bool("KILL_SWITCH", False),
            simulation_mode=get_env_bool("SIMULATION_MODE", True),  # Default to simulation
        ),
        logging=LogConfig(
            log_level=get_env("LOG_LEVEL", "INFO", required=False),
            json_logging=get_env_bool("JSON_LOGGING", True),
        ),
    )

    if config.monitor.interval_seconds <= 0:
        raise ConfigError("MONITOR_INTERVAL_SECONDS must be positive")

    if config.monitor.max_execution_failures < 1:
        raise ConfigError("MAX_EXECUTION_FAILURES must be at least 1")

    for name in config.monitor.limit_order_platforms:
        try:
            Platform.parse(name)
        except ValueError as e:
            raise ConfigError(f"LIMIT_ORDER_PLATFORMS: {e}")

    return config
