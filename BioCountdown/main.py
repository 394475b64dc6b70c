"""Telegram bio countdown: a vacation countdown plus current weather, refreshed periodically."""
import argparse
import logging
import os
import signal
import sys
import threading
from datetime import datetime

from dotenv import set_key

from bio_refresher import BioRefresher
from openweather_provider import OpenWeatherProvider
from profile_client import ProfileUpdateError, TelegramProfileClient
from settings import AppConfig, load_config
from weather_service import WeatherService
from zoned_clock import ZonedClock

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DEFAULT_LOG_FILE = os.path.join(BASE_DIR, "bio-countdown.log")
DEFAULT_ENV_FILE = ".env"


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser("Telegram bio countdown")
    parser.add_argument("--log-file", default=DEFAULT_LOG_FILE)
    parser.add_argument("--env-file", default=DEFAULT_ENV_FILE)
    parser.add_argument("--once", action="store_true", help="Run a single refresh and exit")
    parser.add_argument("--shutdown-grace", type=int, default=10, help="Seconds to wait for a refresh in flight on shutdown")
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def setup_logging(log_file: str, verbose: bool, tz_name: str = None) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file, encoding="utf-8")
        ],
        force=True,
    )
    if tz_name:
        clock = ZonedClock(tz_name)
        for handler in logging.getLogger().handlers:
            handler.formatter.converter = lambda ts: datetime.fromtimestamp(ts, clock.tz).timetuple()


def build_weather_service(config: AppConfig) -> WeatherService:
    provider = OpenWeatherProvider(
        api_key=config.openweather_api_key,
        lat=config.lat,
        lon=config.lon,
        lang=config.weather_lang,
        timeout=config.weather_timeout_seconds,
    )
    service = WeatherService(
        provider=provider,
        cache_ttl_seconds=config.weather_cache_ttl_seconds,
        retry_policy=config.retry.with_overrides(config.weather_retry),
    )
    logging.info("Weather service ready (cache ttl=%ss)", config.weather_cache_ttl_seconds)
    return service


def init_profile_client(config: AppConfig, env_file: str) -> TelegramProfileClient:
    client = TelegramProfileClient(config.api_id, config.api_hash, config.session_string)
    session_string = client.login(interactive=sys.stdin.isatty())
    if session_string:
        try:
            set_key(env_file, "SESSION_STRING", session_string, quote_mode="never")
            logging.info("SESSION_STRING saved to %s", env_file)
        except OSError as exc:
            logging.warning("Could not write SESSION_STRING to %s (%s), copy it manually:", env_file, exc)
            print(session_string)
    return client


def install_signal_handlers(stop_event: threading.Event, grace_seconds: int) -> None:
    def alarm_handler(signum, frame):
        logging.warning("Shutdown grace period of %ss elapsed, interrupting", grace_seconds)
        raise KeyboardInterrupt()

    def signal_handler(signum, frame):
        if stop_event.is_set():
            raise KeyboardInterrupt()
        logging.info("Received signal %s, shutting down", signum)
        stop_event.set()
        if hasattr(signal, "SIGALRM"):
            signal.signal(signal.SIGALRM, alarm_handler)
            signal.alarm(grace_seconds)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_file, args.verbose)
    config = load_config(args.env_file)
    setup_logging(args.log_file, args.verbose, config.timezone)

    clock = ZonedClock(config.timezone)
    logging.info("Starting bio countdown. Time zone: %s. Time: %s", config.timezone, clock.stamp())

    try:
        client = init_profile_client(config, args.env_file)
    except ProfileUpdateError as err:
        logging.error("Telegram login failed: %s", err)
        return 1

    refresher = BioRefresher(
        profile_client=client,
        weather_service=build_weather_service(config),
        clock=clock,
        target=config.target,
        reset_hour=config.reset_hour,
        reset_minute=config.reset_minute,
        retry_policy=config.retry,
        max_length=config.bio_max_length,
    )

    stop_event = threading.Event()
    install_signal_handlers(stop_event, args.shutdown_grace)

    exit_code = 0
    try:
        if args.once:
            exit_code = 0 if refresher.refresh_once() else 1
        else:
            refresher.run(config.update_interval_seconds, stop_event)
    except KeyboardInterrupt:
        logging.info("Stopping refresh loop")
    finally:
        if hasattr(signal, "SIGALRM"):
            signal.alarm(0)
        try:
            client.disconnect()
            logging.info("Telegram client disconnected")
        except (ProfileUpdateError, OSError) as err:
            logging.warning("Disconnect failed: %s", err)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
