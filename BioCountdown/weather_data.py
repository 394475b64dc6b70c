"""Weather domain model - pure data structures independent of any API."""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ForecastEntry:
    """One hour of an hourly forecast, independent of any specific API."""
    timestamp: int  # UNIX timestamp (UTC) the forecast hour starts at
    temp: float  # Celsius
    condition_main: Optional[str] = None  # e.g., "Clouds", "Rain", "Clear"

    def distance_from(self, now_ts: float) -> float:
        """Seconds between this entry and ``now_ts``, in either direction."""
        return abs(self.timestamp - now_ts)
