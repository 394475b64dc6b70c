"""Weather provider abstraction - allows swapping different weather APIs."""
from abc import ABC, abstractmethod
from typing import List

from retry_policy import ClassifiedError
from weather_data import ForecastEntry


class WeatherProviderBase(ABC):
    """Abstract base class for hourly forecast providers."""
    
    @abstractmethod
    def get_hourly(self) -> List[ForecastEntry]:
        """
        Fetch the hourly forecast.
        
        Returns:
            List[ForecastEntry]: Forecast entries in API order (may be empty)
            
        Raises:
            WeatherProviderError: If the provider fails to fetch data
        """
        pass


class WeatherProviderError(ClassifiedError):
    """Exception raised when a weather provider fails."""
    pass
