"""Tests for OpenWeather provider."""
import pytest
import requests
from unittest.mock import Mock, patch
from openweather_provider import OpenWeatherProvider, WeatherProviderError
from retry_policy import ErrorKind
from weather_data import ForecastEntry


@pytest.fixture
def sample_onecall_response():
    """Sample One Call API response with the hourly block only."""
    return {
        "lat": 55.75,
        "lon": 37.62,
        "timezone": "Europe/Moscow",
        "timezone_offset": 10800,
        "hourly": [
            {
                "dt": 1684926000,
                "temp": 21.4,
                "feels_like": 20.9,
                "weather": [{"id": 800, "main": "Clear", "description": "ясно", "icon": "01d"}],
            },
            {
                "dt": 1684929600,
                "temp": 19.6,
                "weather": [{"id": 803, "main": "Clouds", "description": "облачно", "icon": "04d"}],
            },
            {
                "dt": 1684933200,
                "temp": 18.0,
            },
        ],
    }


@pytest.fixture
def provider():
    """Create OpenWeather provider instance."""
    return OpenWeatherProvider(
        api_key="test_key",
        lat=55.75,
        lon=37.62,
        timeout=5
    )


def make_response(status_code=200, json_data=None, text="", headers=None):
    mock_response = Mock()
    mock_response.ok = status_code < 400
    mock_response.status_code = status_code
    mock_response.text = text
    mock_response.headers = headers or {}
    if isinstance(json_data, Exception):
        mock_response.json.side_effect = json_data
    else:
        mock_response.json.return_value = json_data
    return mock_response


def test_openweather_provider_success(provider, sample_onecall_response):
    """Test successful API call and parsing."""
    with patch('openweather_provider.requests.get') as mock_get:
        mock_get.return_value = make_response(json_data=sample_onecall_response)

        entries = provider.get_hourly()

        assert entries == [
            ForecastEntry(timestamp=1684926000, temp=21.4, condition_main="Clear"),
            ForecastEntry(timestamp=1684929600, temp=19.6, condition_main="Clouds"),
            ForecastEntry(timestamp=1684933200, temp=18.0, condition_main=None),
        ]


def test_openweather_provider_request_params(provider, sample_onecall_response):
    """Only the hourly block is requested, with the per-call timeout."""
    with patch('openweather_provider.requests.get') as mock_get:
        mock_get.return_value = make_response(json_data=sample_onecall_response)

        provider.get_hourly()

        args, kwargs = mock_get.call_args
        assert args[0] == OpenWeatherProvider.BASE_URL
        assert kwargs["timeout"] == 5
        assert kwargs["params"]["exclude"] == "current,minutely,daily,alerts"
        assert kwargs["params"]["units"] == "metric"
        assert kwargs["params"]["appid"] == "test_key"


@pytest.mark.parametrize("payload", [{"lat": 1.0}, {"hourly": []}, {"hourly": None}])
def test_openweather_provider_missing_hourly(provider, payload):
    """Missing or empty hourly block yields an empty forecast, not an error."""
    with patch('openweather_provider.requests.get') as mock_get:
        mock_get.return_value = make_response(json_data=payload)

        assert provider.get_hourly() == []


def test_openweather_provider_http_error(provider):
    """Test handling of non-retryable HTTP errors."""
    with patch('openweather_provider.requests.get') as mock_get:
        mock_get.return_value = make_response(
            status_code=401,
            json_data={"cod": 401, "message": "Invalid API key"}
        )

        with pytest.raises(WeatherProviderError) as exc_info:
            provider.get_hourly()

        assert "401" in str(exc_info.value)
        assert "Invalid API key" in str(exc_info.value)
        assert exc_info.value.kind is ErrorKind.PERMANENT


def test_openweather_provider_server_error_is_transient(provider):
    """5xx responses are retry-eligible."""
    with patch('openweather_provider.requests.get') as mock_get:
        mock_get.return_value = make_response(
            status_code=503,
            json_data=ValueError("no json"),
            text="Service Unavailable"
        )

        with pytest.raises(WeatherProviderError) as exc_info:
            provider.get_hourly()

        assert "HTTP 503" in str(exc_info.value)
        assert exc_info.value.transient


def test_openweather_provider_rate_limited(provider):
    """429 is transient and carries the Retry-After hint."""
    with patch('openweather_provider.requests.get') as mock_get:
        mock_get.return_value = make_response(status_code=429, headers={"Retry-After": "30"})

        with pytest.raises(WeatherProviderError) as exc_info:
            provider.get_hourly()

        assert exc_info.value.transient
        assert exc_info.value.retry_after == 30.0


def test_openweather_provider_rate_limited_without_hint(provider):
    """429 without a usable Retry-After still retries, without a wait hint."""
    with patch('openweather_provider.requests.get') as mock_get:
        mock_get.return_value = make_response(status_code=429, headers={"Retry-After": "soon"})

        with pytest.raises(WeatherProviderError) as exc_info:
            provider.get_hourly()

        assert exc_info.value.transient
        assert exc_info.value.retry_after is None


def test_openweather_provider_network_error(provider):
    """Test handling of network errors."""
    with patch('openweather_provider.requests.get') as mock_get:
        mock_get.side_effect = requests.exceptions.ConnectionError("Connection refused")

        with pytest.raises(WeatherProviderError) as exc_info:
            provider.get_hourly()

        assert "Network error" in str(exc_info.value)
        assert exc_info.value.transient


def test_openweather_provider_timeout(provider):
    """Aborted requests are transient."""
    with patch('openweather_provider.requests.get') as mock_get:
        mock_get.side_effect = requests.exceptions.ReadTimeout("timed out")

        with pytest.raises(WeatherProviderError) as exc_info:
            provider.get_hourly()

        assert "timed out" in str(exc_info.value)
        assert exc_info.value.transient


def test_openweather_provider_non_json_body(provider):
    """A 200 with a non-JSON body is a permanent failure."""
    with patch('openweather_provider.requests.get') as mock_get:
        mock_get.return_value = make_response(json_data=ValueError("Expecting value"), text="<html>")

        with pytest.raises(WeatherProviderError) as exc_info:
            provider.get_hourly()

        assert "Failed to parse response" in str(exc_info.value)
        assert not exc_info.value.transient


def test_openweather_provider_malformed_entry(provider):
    """Hourly entries without a temperature are rejected."""
    with patch('openweather_provider.requests.get') as mock_get:
        mock_get.return_value = make_response(json_data={"hourly": [{"dt": 1684926000}]})

        with pytest.raises(WeatherProviderError) as exc_info:
            provider.get_hourly()

        assert "Failed to parse response" in str(exc_info.value)
        assert exc_info.value.kind is ErrorKind.PERMANENT


@pytest.mark.parametrize("temp", [float("nan"), float("inf"), "-Infinity", "nan"])
def test_openweather_provider_non_finite_temperature(provider, temp):
    """NaN/Infinity temperatures are a malformed payload, not a renderable reading."""
    hourly = [{"dt": 1684926000, "temp": temp, "weather": [{"main": "Clear"}]}]
    with patch('openweather_provider.requests.get') as mock_get:
        mock_get.return_value = make_response(json_data={"hourly": hourly})

        with pytest.raises(WeatherProviderError) as exc_info:
            provider.get_hourly()

        assert "non-finite temperature" in str(exc_info.value)
        assert exc_info.value.kind is ErrorKind.PERMANENT
