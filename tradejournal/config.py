"""Configuration loading for the trade journal.

Settings live in ``~/.config/tradejournal/config.toml``. The directory can be
moved with the ``TRADEJOURNAL_HOME`` environment variable; the SQLite database
is stored next to the config file.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import toml

from tradejournal.analytics.filters import DateRange

CONFIG_FILE = "config.toml"
DB_FILE = "tradejournal.db"

DATE_RANGES = [r.value for r in DateRange if r != DateRange.CUSTOM]

DEFAULT_CONFIG = {
    "journal": {
        "timezone": "UTC",
        "default_account": "",
    },
    "import": {
        "broker": "tradovate",
    },
    "risk": {
        "account_size": 50000.0,
        "risk_percent": 1.0,
        "daily_loss_limit": 1000.0,
        "max_trades_per_day": 0,  # 0 disables the trade count limit
    },
    "analytics": {
        "starting_balance": 0.0,
        "date_range": "all",
    },
    "discipline": {
        "trading_days": [1, 2, 3, 4, 5],  # 0 = Sunday
    },
}


class ConfigError(ValueError):
    """Raised when the config file cannot be parsed or holds invalid values."""


def get_config_dir() -> Path:
    """Get the configuration directory."""
    home = os.environ.get("TRADEJOURNAL_HOME")
    if home:
        return Path(home).expanduser()
    return Path.home() / ".config" / "tradejournal"


def get_config_path() -> Path:
    return get_config_dir() / CONFIG_FILE


def get_db_path() -> Path:
    return get_config_dir() / DB_FILE


def _merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def get_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration merged over the defaults.

    Args:
        config_path: Optional explicit path. Defaults to the config directory.

    Returns:
        Config dict. Defaults are returned when no file exists.

    Raises:
        ConfigError: If the file is not valid TOML.
    """
    config_path = config_path or get_config_path()
    if not config_path.exists():
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        loaded = toml.load(config_path)
    except toml.TomlDecodeError as e:
        raise ConfigError(f"Invalid config file {config_path}: {e}") from e

    return _merge(DEFAULT_CONFIG, loaded)


def create_template_config() -> Path:
    """Create a template configuration file.

    Returns:
        Path of the written file.
    """
    config_dir = get_config_dir()
    config_path = config_dir / CONFIG_FILE

    config_dir.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        toml.dump(DEFAULT_CONFIG, f)

    return config_path


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: dict) -> list[str]:
    """Validate configuration and return a list of problems.

    Args:
        config: Configuration dictionary.

    Returns:
        List of human readable problems, empty when valid.
    """
    problems = []

    tz_name = config.get("journal", {}).get("timezone", "UTC")
    try:
        ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        problems.append(f"journal.timezone: unknown timezone '{tz_name}'")

    risk = config.get("risk", {})
    risk_percent = risk.get("risk_percent", 0)
    if not _is_number(risk_percent) or risk_percent < 0 or risk_percent > 100:
        problems.append("risk.risk_percent must be a number between 0 and 100")
    daily_loss_limit = risk.get("daily_loss_limit", 0)
    if not _is_number(daily_loss_limit) or daily_loss_limit < 0:
        problems.append("risk.daily_loss_limit must be a number, not negative")

    date_range = config.get("analytics", {}).get("date_range", "all")
    if date_range not in DATE_RANGES:
        problems.append(f"analytics.date_range must be one of {', '.join(DATE_RANGES)}")

    days = config.get("discipline", {}).get("trading_days", [])
    if any(not isinstance(d, int) or d < 0 or d > 6 for d in days):
        problems.append("discipline.trading_days must hold weekday numbers 0-6 (0 = Sunday)")

    return problems


def get_timezone(config: dict) -> ZoneInfo:
    """Get the journal timezone.

    Raises:
        ConfigError: If the configured timezone is unknown.
    """
    tz_name = config.get("journal", {}).get("timezone", "UTC") or "UTC"
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"Unknown timezone '{tz_name}'") from e


def setup_logging(verbose: bool = False) -> None:
    """Route library logging through rich.

    Args:
        verbose: Log at DEBUG instead of WARNING.
    """
    from rich.logging import RichHandler

    level = logging.DEBUG if verbose else logging.WARNING
    logger = logging.getLogger("tradejournal")
    logger.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(show_path=False, rich_tracebacks=True))
