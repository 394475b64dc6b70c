"""Periodic profile bio refresh: countdown phrase + weather, pushed with retries."""
import logging
import random
import threading
import time
from datetime import datetime
from typing import Callable, Optional

from countdown import generate_message
from phrasebook import DEFAULT_PHRASEBOOK, Phrasebook
from profile_client import ProfileClientBase
from retry_policy import ClassifiedError, RetryHooks, RetryPolicy, execute, is_transient
from weather_service import WeatherService
from zoned_clock import ZonedClock, effective_base

SEPARATOR = " | "
ELLIPSIS = "…"
DEFAULT_MAX_LENGTH = 140


def truncate_with_ellipsis(text: str, max_len: int) -> str:
    if len(text) <= max_len:
        return text
    return text[:max(0, max_len - 1)] + ELLIPSIS


def compose_status(phrase: str, weather: str, budget: int = DEFAULT_MAX_LENGTH) -> str:
    """
    Join phrase and weather, shortening only the phrase when over budget.

    The weather suffix always survives intact. If the budget cannot fit even
    one character of phrase next to it, the weather text alone is returned.
    """
    suffix = f"{SEPARATOR}{weather}"
    status = f"{phrase}{suffix}"
    if len(status) <= budget:
        return status

    room = budget - len(suffix)
    if room < 1:
        return truncate_with_ellipsis(weather, budget)
    return truncate_with_ellipsis(phrase, room) + suffix


class CountdownBase:
    """Day boundary the countdown is measured from; it only ever moves forward."""

    def __init__(self, initial: datetime):
        self.value = initial

    def advance(self, candidate: datetime) -> bool:
        """Adopt ``candidate`` if it is strictly later. Returns True on rollover."""
        if candidate <= self.value:
            return False
        logging.info(f"Countdown day rolled over: {self.value.isoformat()} -> {candidate.isoformat()}")
        self.value = candidate
        return True


class BioRefresher:
    """
    Builds the status text and pushes it to the profile on a fixed cadence.

    One refresh runs at a time; a slow refresh (retries included) makes the
    loop skip the ticks it overran instead of stacking them.
    """

    def __init__(
        self,
        profile_client: ProfileClientBase,
        weather_service: WeatherService,
        clock: ZonedClock,
        target: datetime,
        reset_hour: int,
        reset_minute: int,
        retry_policy: Optional[RetryPolicy] = None,
        max_length: int = DEFAULT_MAX_LENGTH,
        phrasebook: Phrasebook = DEFAULT_PHRASEBOOK,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], None] = time.sleep,
        monotonic: Callable[[], float] = time.monotonic
    ):
        """
        Initialize refresher.

        Args:
            profile_client: Where the composed text is pushed
            weather_service: Source of the weather suffix
            clock: Zone-aware clock for the countdown
            target: The moment being counted down to
            reset_hour: Hour at which the countdown day advances
            reset_minute: Minute at which the countdown day advances
            retry_policy: Retry limits for the profile update
            max_length: Maximum length of the composed text
            phrasebook: Phrase tables for the countdown
            rng: Random source for phrase variants
            sleep: Sleep function used by retries and flood waits
            monotonic: Clock driving the tick schedule
        """
        self.profile_client = profile_client
        self.weather_service = weather_service
        self.clock = clock
        self.target = clock.localize(target)
        self.reset_hour = reset_hour
        self.reset_minute = reset_minute
        self.retry_policy = retry_policy or RetryPolicy()
        self.max_length = max_length
        self.phrasebook = phrasebook
        self.rng = rng or random.Random()
        self._sleep = sleep
        self._monotonic = monotonic
        self.countdown_base = CountdownBase(self._candidate_base())

    def _candidate_base(self) -> datetime:
        return effective_base(self.clock.now(), self.reset_hour, self.reset_minute)

    def build_status(self) -> str:
        """
        Compose the current bio text.

        Raises:
            WeatherProviderError: If weather is unavailable and no fallback exists
        """
        self.countdown_base.advance(self._candidate_base())
        phrase = generate_message(self.target, self.countdown_base.value, self.phrasebook, self.rng)
        weather = self.weather_service.get_weather()
        return compose_status(phrase, weather, self.max_length)

    def push(self, text: str) -> None:
        """
        Push ``text`` to the profile, retrying transient failures.

        Raises:
            ProfileUpdateError: The last failure once retries are exhausted
        """
        def update() -> None:
            self._ensure_connected()
            self.profile_client.set_profile_text(text)

        execute(
            update,
            self.retry_policy,
            RetryHooks(
                on_failure=self._log_failure,
                should_retry=is_transient,
                before_retry=self._before_retry,
            ),
            sleep=self._sleep,
        )
        logging.info(f"Bio updated: \"{text}\"")

    def refresh_once(self) -> bool:
        """Run one full cycle. Failures are logged, never raised."""
        try:
            self.push(self.build_status())
            return True
        except ClassifiedError as e:
            logging.error(f"Bio refresh failed: {e}")
        except Exception as e:
            logging.exception(f"Unexpected error during bio refresh: {e}")
        return False

    def run(self, interval_seconds: float, stop_event: threading.Event) -> None:
        """Refresh now and then every ``interval_seconds`` until ``stop_event`` is set."""
        next_tick = self._monotonic()
        cycle = 0
        while not stop_event.is_set():
            cycle += 1
            logging.info(f"Refresh cycle {cycle} at {self.clock.stamp()}")
            self.refresh_once()

            next_tick += interval_seconds
            now = self._monotonic()
            if next_tick <= now:
                skipped = int((now - next_tick) // interval_seconds) + 1
                logging.warning(f"Refresh overran its interval, skipping {skipped} tick(s)")
                next_tick += skipped * interval_seconds
            stop_event.wait(next_tick - now)
        logging.info("Refresh loop stopped")

    def _ensure_connected(self) -> None:
        if not self.profile_client.is_connected():
            logging.info("Profile client is not connected, connecting...")
            self.profile_client.connect()
            logging.info("Profile client connected")

    @staticmethod
    def _log_failure(error: Exception, attempt: int) -> None:
        retry_after = getattr(error, "retry_after", None)
        if retry_after:
            logging.warning(f"Flood wait: pausing {retry_after:.0f}s before retrying (attempt {attempt + 1})")
        else:
            logging.warning(f"Bio update attempt {attempt + 1} failed: {error}")

    def _before_retry(self, error: Exception, attempt: int) -> None:
        retry_after = getattr(error, "retry_after", None)
        if retry_after:
            self._sleep(retry_after)
        try:
            self._ensure_connected()
        except ClassifiedError as e:
            logging.warning(f"Reconnect before retry failed: {e}")
