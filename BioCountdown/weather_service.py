"""Weather service with hourly forecast caching, retries and last-known-good fallback."""
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional
from retry_policy import RetryHooks, RetryPolicy, execute, is_transient
from weather_provider import WeatherProviderBase, WeatherProviderError
from weather_data import ForecastEntry


CONDITION_EMOJI = {
    "Thunderstorm": "⛈️",
    "Drizzle": "🌧️",
    "Rain": "🌦️",
    "Snow": "❄️",
    "Clear": "☀️",
    "Clouds": "☁️",
    "Mist": "🌫️",
    "Fog": "🌫️",
    "Haze": "🌫️",
    "Dust": "💨",
    "Smoke": "💨",
    "Sand": "💨",
    "Squall": "🌬️",
    "Tornado": "🌪️",
}
DEFAULT_EMOJI = "🌤️"


def condition_emoji(condition_main: Optional[str]) -> str:
    """Emoji for an OpenWeather condition group; unknown groups get a generic one."""
    return CONDITION_EMOJI.get(condition_main or "", DEFAULT_EMOJI)


def format_weather(entry: ForecastEntry) -> str:
    """Short weather text, e.g. "☀️21°C". Temperatures round half up."""
    return f"{condition_emoji(entry.condition_main)}{math.floor(entry.temp + 0.5)}°C"


def pick_nearest(forecast: List[ForecastEntry], now_ts: float) -> Optional[ForecastEntry]:
    """Entry closest to ``now_ts``; the first one wins on ties."""
    if not forecast:
        return None
    return min(forecast, key=lambda entry: entry.distance_from(now_ts))


@dataclass
class WeatherCacheState:
    """Mutable cache owned by a single WeatherService."""
    fetched_at: float = 0.0
    forecast: Optional[List[ForecastEntry]] = None
    last_rendered: Optional[str] = None


class WeatherService:
    """
    Service that wraps a weather provider with caching and retries.

    The whole hourly forecast is cached, so within the TTL the entry nearest
    to "now" is re-selected on every call without touching the network.
    After a successful fetch the rendered text is kept as a fallback and
    returned whenever a later fetch fails.
    """

    def __init__(
        self,
        provider: WeatherProviderBase,
        cache_ttl_seconds: float = 3 * 60 * 60,
        retry_policy: Optional[RetryPolicy] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize weather service.

        Args:
            provider: Weather provider to use
            cache_ttl_seconds: How long a fetched forecast is reused
            retry_policy: Retry limits for fetching; defaults to RetryPolicy()
            clock: Epoch-seconds clock used for TTL and nearest-hour selection
            sleep: Sleep function used between retries
        """
        self.provider = provider
        self.cache_ttl_seconds = cache_ttl_seconds
        self.retry_policy = retry_policy or RetryPolicy()
        self.state = WeatherCacheState()
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()

    def get_weather(self) -> str:
        """
        Get the current weather text, using the cache if still fresh.

        Returns:
            str: Rendered weather (may come from cache or fallback)

        Raises:
            WeatherProviderError: If fetching fails and no fallback exists yet
        """
        with self._lock:
            now = self._clock()
            state = self.state

            if state.forecast and now - state.fetched_at < self.cache_ttl_seconds:
                text = format_weather(pick_nearest(state.forecast, now))
                logging.info(f"Weather from cache (age: {now - state.fetched_at:.0f}s): {text}")
                return text

            if state.forecast:
                logging.info(f"Cache expired (age: {now - state.fetched_at:.0f}s > TTL: {self.cache_ttl_seconds}s), fetching new data")
            else:
                logging.info("No cached forecast, fetching weather data from provider...")

            try:
                forecast = execute(
                    self.provider.get_hourly,
                    self.retry_policy,
                    RetryHooks(
                        on_failure=self._log_failure,
                        should_retry=is_transient,
                        before_retry=self._wait_retry_after,
                    ),
                    sleep=self._sleep,
                )
            except WeatherProviderError as e:
                return self._fallback_or_raise(e)

            if not forecast:
                return self._fallback_or_raise(
                    WeatherProviderError("Forecast has no hourly entries")
                )

            fetched_at = self._clock()
            text = format_weather(pick_nearest(forecast, fetched_at))
            state.forecast = forecast
            state.fetched_at = fetched_at
            state.last_rendered = text
            logging.info(f"Hourly forecast refreshed ({len(forecast)} entries): {text}")
            return text

    def _fallback_or_raise(self, error: WeatherProviderError) -> str:
        if self.state.last_rendered is not None:
            logging.warning(f"Weather fetch failed ({error}), using fallback: {self.state.last_rendered}")
            return self.state.last_rendered
        logging.error(f"Weather fetch failed and no fallback is available: {error}")
        raise error

    @staticmethod
    def _log_failure(error: Exception, attempt: int) -> None:
        logging.warning(f"Weather fetch attempt {attempt + 1} failed: {error}")

    def _wait_retry_after(self, error: Exception, attempt: int) -> None:
        retry_after = getattr(error, "retry_after", None)
        if retry_after:
            wait = min(retry_after, self.retry_policy.max_delay)
            logging.info(f"Honouring Retry-After, waiting {wait:.0f}s before the next attempt")
            self._sleep(wait)
