"""Environment-driven configuration for the bio countdown."""
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, TypeVar
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from retry_policy import RetryOverrides, RetryPolicy
from zoned_clock import DEFAULT_TIMEZONE

T = TypeVar("T")


@dataclass(frozen=True)
class AppConfig:
    api_id: int
    api_hash: str
    openweather_api_key: str
    lat: float
    lon: float
    target: datetime  # aware, in ``timezone``
    timezone: str
    reset_hour: int
    reset_minute: int
    session_string: str = ""
    update_interval_seconds: float = 3600.0
    weather_cache_ttl_seconds: float = 3 * 3600.0
    weather_timeout_seconds: float = 10.0
    weather_lang: str = "ru"
    bio_max_length: int = 140
    retry: RetryPolicy = RetryPolicy()
    weather_retry: RetryOverrides = RetryOverrides()  # layered over ``retry`` for forecast fetches


def _parse_target(value: str, tz: ZoneInfo) -> datetime:
    # fromisoformat() only learned the "Z" suffix in 3.11
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=tz)
    return parsed.astimezone(tz)


def _parse_reset_time(value: str) -> tuple:
    hour, minute = value.split(":")
    hour, minute = int(hour), int(minute)
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError("out of range")
    return hour, minute


def _ms(value: str) -> float:
    ms = int(value)
    if ms < 0:
        raise ValueError("must be non-negative")
    return ms / 1000.0


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise ValueError("must be >= 1")
    return number


def load_config(env_file: Optional[str] = None) -> AppConfig:
    """
    Load and validate configuration from the environment (and ``.env``).

    Args:
        env_file: Path to a dotenv file; defaults to searching for ``.env``

    Returns:
        AppConfig: Validated configuration

    Raises:
        SystemExit: If any variable is missing or invalid (all problems are reported)
    """
    load_dotenv(env_file)
    errors: List[str] = []

    def read(name: str, parse: Callable[[str], T], default: Optional[str] = None, hint: str = "") -> Optional[T]:
        raw = os.getenv(name, default)
        if raw is None or raw.strip() == "":
            if default is None:
                errors.append(f"{name}: required")
            return None
        try:
            return parse(raw.strip())
        except (ValueError, TypeError) as exc:
            errors.append(f"{name}: invalid value {raw!r}{hint} ({exc})")
            return None

    api_id = read("API_ID", int)
    api_hash = read("API_HASH", str)
    weather_key = read("OPENWEATHER_API_KEY", str)
    lat = read("LAT", float)
    lon = read("LON", float)

    tz_name = os.getenv("TZ_OVERRIDE") or DEFAULT_TIMEZONE
    tz = None
    try:
        tz = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        errors.append(f"TZ_OVERRIDE: unknown time zone {tz_name!r}")

    target = None
    if tz is not None:
        target = read(
            "TARGET_DATETIME",
            lambda raw: _parse_target(raw, tz),
            hint=" (expected ISO 8601, e.g. '2025-11-04T16:30:00')",
        )

    reset = read("RESET_TIME", _parse_reset_time, default="", hint=" (expected HH:MM)")
    if reset is None and target is not None:
        reset = (target.hour, target.minute)

    update_interval = read("UPDATE_INTERVAL_MS", _ms, default="3600000")
    cache_ttl = read("WEATHER_CACHE_MS", _ms, default=str(3 * 60 * 60 * 1000))
    weather_timeout = read("WEATHER_TIMEOUT_MS", _ms, default="10000")
    bio_max_length = read("BIO_MAX_LENGTH", _positive_int, default="140")

    retry = None
    max_attempts = read("RETRY_MAX_ATTEMPTS", _positive_int, default="6")
    base_delay = read("RETRY_BASE_DELAY_MS", _ms, default="1500")
    max_delay = read("RETRY_MAX_DELAY_MS", _ms, default="45000")
    max_total = read("RETRY_MAX_TOTAL_MS", _ms, default=str(5 * 60 * 1000))
    if None not in (max_attempts, base_delay, max_delay, max_total):
        retry = RetryPolicy(max_attempts, base_delay, max_delay, max_total)

    weather_retry = RetryOverrides(
        max_attempts=read("WEATHER_RETRY_MAX_ATTEMPTS", _positive_int, default=""),
        max_total_elapsed=read("WEATHER_RETRY_MAX_TOTAL_MS", _ms, default=""),
    )

    if lat is not None and not -90 <= lat <= 90:
        errors.append(f"LAT: {lat} is outside -90..90")
    if lon is not None and not -180 <= lon <= 180:
        errors.append(f"LON: {lon} is outside -180..180")
    if update_interval is not None and update_interval <= 0:
        errors.append("UPDATE_INTERVAL_MS: must be greater than zero")
    if weather_timeout is not None and weather_timeout <= 0:
        errors.append("WEATHER_TIMEOUT_MS: must be greater than zero")

    if errors:
        raise SystemExit("Invalid configuration: " + ", ".join(errors))

    config = AppConfig(
        api_id=api_id,
        api_hash=api_hash,
        openweather_api_key=weather_key,
        lat=lat,
        lon=lon,
        target=target,
        timezone=tz_name,
        reset_hour=reset[0],
        reset_minute=reset[1],
        session_string=os.getenv("SESSION_STRING", ""),
        update_interval_seconds=update_interval,
        weather_cache_ttl_seconds=cache_ttl,
        weather_timeout_seconds=weather_timeout,
        weather_lang=os.getenv("WEATHER_LANG") or "ru",
        bio_max_length=bio_max_length,
        retry=retry,
        weather_retry=weather_retry,
    )
    logging.info(
        "Configuration loaded: lat=%s lon=%s tz=%s target=%s reset=%02d:%02d",
        lat, lon, tz_name, target.isoformat(), config.reset_hour, config.reset_minute,
    )
    return config
