"""OpenWeather One Call API 3.0 hourly forecast provider."""
import logging
import math
import requests
from typing import List, Optional
from retry_policy import ErrorKind
from weather_provider import WeatherProviderBase, WeatherProviderError
from weather_data import ForecastEntry


class OpenWeatherProvider(WeatherProviderBase):
    """
    Weather provider using the OpenWeather One Call API 3.0.

    Only the ``hourly`` block is requested: https://openweathermap.org/api/one-call-3
    Failures are raised as WeatherProviderError tagged transient (timeouts,
    connection errors, 5xx, 429) or permanent (everything else).
    """

    BASE_URL = "https://api.openweathermap.org/data/3.0/onecall"
    EXCLUDE = "current,minutely,daily,alerts"

    def __init__(
        self,
        api_key: str,
        lat: float,
        lon: float,
        units: str = "metric",
        lang: str = "ru",
        timeout: float = 10
    ):
        """
        Initialize OpenWeather provider.

        Args:
            api_key: OpenWeather API key
            lat: Latitude (-90 to 90)
            lon: Longitude (-180 to 180)
            units: Temperature units ("metric", "imperial", or "standard")
            lang: Language code for descriptions (e.g., "ru", "en")
            timeout: Per-request deadline in seconds; the request is aborted past it
        """
        self.api_key = api_key
        self.lat = lat
        self.lon = lon
        self.units = units
        self.lang = lang
        self.timeout = timeout

    def get_hourly(self) -> List[ForecastEntry]:
        """
        Fetch the hourly forecast from the One Call API.

        Returns:
            List[ForecastEntry]: Hourly entries; empty if the response has none

        Raises:
            WeatherProviderError: If the request fails or the payload is malformed
        """
        params = {
            "lat": self.lat,
            "lon": self.lon,
            "exclude": self.EXCLUDE,
            "appid": self.api_key,
            "units": self.units,
            "lang": self.lang,
        }

        try:
            logging.info(f"Requesting hourly forecast: {self.BASE_URL}")
            logging.debug(f"Request parameters: lat={self.lat}, lon={self.lon}, appid=***, units={self.units}, lang={self.lang}")

            response = requests.get(self.BASE_URL, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            logging.error(f"Weather request timed out after {self.timeout}s: {e}")
            raise WeatherProviderError(f"Request timed out: {e}", kind=ErrorKind.TRANSIENT) from e
        except requests.exceptions.ConnectionError as e:
            logging.error(f"Network error during API request: {e}")
            raise WeatherProviderError(f"Network error: {e}", kind=ErrorKind.TRANSIENT) from e
        except requests.exceptions.RequestException as e:
            logging.error(f"Request could not be sent: {e}")
            raise WeatherProviderError(f"Request failed: {e}") from e

        logging.info(f"API response status: {response.status_code}")

        if not response.ok:
            logging.error(f"API request failed with status {response.status_code}")
            self._handle_error_response(response)

        try:
            data = response.json()
        except ValueError as e:
            logging.error(f"Non-JSON response body: {response.text[:200]}")
            raise WeatherProviderError(f"Failed to parse response: {e}") from e

        if not isinstance(data, dict):
            raise WeatherProviderError("Failed to parse response: top-level JSON is not an object")

        hourly = data.get("hourly") or []
        if not hourly:
            logging.warning("Response has no 'hourly' entries")
            return []

        try:
            entries = [self._parse_entry(item) for item in hourly]
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logging.error(f"Failed to parse hourly entry: {e}", exc_info=True)
            raise WeatherProviderError(f"Failed to parse response: {e}") from e

        logging.info(f"Parsed {len(entries)} hourly entries")
        return entries

    @staticmethod
    def _parse_entry(item: dict) -> ForecastEntry:
        weather = item.get("weather") or [{}]
        temp = float(item["temp"])
        # json accepts NaN/Infinity literals, which cannot be rounded for display
        if not math.isfinite(temp):
            raise ValueError(f"non-finite temperature {item['temp']!r}")
        return ForecastEntry(
            timestamp=int(item["dt"]),
            temp=temp,
            condition_main=weather[0].get("main"),
        )

    def _handle_error_response(self, response: requests.Response) -> None:
        """Classify and raise an error from an OpenWeather error response."""
        status = response.status_code
        if status == 429:
            retry_after = self._parse_retry_after(response.headers.get("Retry-After"))
            logging.warning(f"Rate limited by OpenWeather (Retry-After: {retry_after})")
            raise WeatherProviderError(
                "HTTP 429: rate limited", kind=ErrorKind.TRANSIENT, retry_after=retry_after
            )

        kind = ErrorKind.TRANSIENT if status >= 500 else ErrorKind.PERMANENT
        try:
            error_data = response.json()
            cod = error_data.get("cod", status)
            message = error_data.get("message", "Unknown error")
            logging.error(f"OpenWeather API error response: {error_data}")
            error_msg = f"OpenWeather API error {cod}: {message}"
        except (ValueError, AttributeError):
            # Not a JSON object, use HTTP status
            logging.error(f"Non-JSON error response: HTTP {status}, body: {response.text[:500]}")
            error_msg = f"HTTP {status}: {response.text[:200]}"

        raise WeatherProviderError(error_msg, kind=kind)

    @staticmethod
    def _parse_retry_after(value: Optional[str]) -> Optional[float]:
        if not value:
            return None
        try:
            return max(0.0, float(int(value)))
        except ValueError:
            return None
