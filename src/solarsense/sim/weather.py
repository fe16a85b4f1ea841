"""Weather sources for the SolarSense simulation.

This module provides the weather observation consumed by the forecaster and
the sources that produce it:

- OpenMeteoWeatherSource: live observations from the Open-Meteo API
- FallbackWeatherGenerator: deterministic observations keyed by a time bucket
- WeatherService: live source with transparent fallback on failure
- WeatherSimulator: the engine's current weather, with operator override
"""

import math
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime
from typing import Any

import requests  # type: ignore
from pydantic import BaseModel, ConfigDict, Field
from requests.adapters import HTTPAdapter  # type: ignore
from urllib3.util.retry import Retry  # type: ignore

from solarsense.config.schema import WeatherConfig
from solarsense.exceptions import WeatherSourceError
from solarsense.utils.enums import WeatherConditionType
from solarsense.utils.logger import logger


class WeatherObservation(BaseModel):
    """A single weather observation, immutable for the duration of a tick."""

    model_config = ConfigDict(frozen=True)

    condition: WeatherConditionType = Field(..., description="Sky condition")
    temperature_c: float = Field(..., ge=-90.0, le=70.0, description="Air temperature in Celsius")
    cloud_cover_pct: float = Field(..., ge=0.0, le=100.0, description="Cloud cover in percent")
    wind_speed: float = Field(default=0.0, ge=0.0, description="Wind speed in km/h")

    def __str__(self) -> str:
        """String representation of the observation."""
        return (
            f"Weather({self.condition.value}, {self.temperature_c:.1f}C, "
            f"clouds={self.cloud_cover_pct:.0f}%, wind={self.wind_speed:.1f})"
        )


class Location(BaseModel):
    """Geographic coordinates of the simulated network."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)

    def cache_key(self) -> str:
        return f"{self.latitude:.4f},{self.longitude:.4f}"


# Per-condition defaults used when an operator overrides the weather
CONDITION_TEMPERATURE_C: dict[WeatherConditionType, float] = {
    WeatherConditionType.SUNNY: 28.0,
    WeatherConditionType.PARTLY_CLOUDY: 25.0,
    WeatherConditionType.CLOUDY: 22.0,
    WeatherConditionType.OVERCAST: 20.0,
    WeatherConditionType.RAINY: 18.0,
    WeatherConditionType.STORMY: 16.0,
}

CONDITION_CLOUD_COVER_PCT: dict[WeatherConditionType, float] = {
    WeatherConditionType.SUNNY: 10.0,
    WeatherConditionType.PARTLY_CLOUDY: 40.0,
    WeatherConditionType.CLOUDY: 80.0,
    WeatherConditionType.OVERCAST: 95.0,
    WeatherConditionType.RAINY: 100.0,
    WeatherConditionType.STORMY: 100.0,
}

CONDITION_WIND_SPEED: dict[WeatherConditionType, float] = {
    WeatherConditionType.SUNNY: 8.0,
    WeatherConditionType.PARTLY_CLOUDY: 12.0,
    WeatherConditionType.CLOUDY: 15.0,
    WeatherConditionType.OVERCAST: 18.0,
    WeatherConditionType.RAINY: 22.0,
    WeatherConditionType.STORMY: 35.0,
}

# Monthly base temperatures for the fallback generator, January first
SEASONAL_BASE_TEMPERATURE_C = [5, 8, 15, 22, 28, 32, 35, 33, 28, 20, 12, 7]


def map_wmo_weather_code(code: int, is_day: bool = True) -> WeatherConditionType:
    """Map a WMO weather interpretation code onto a sky condition.

    Args:
        code: WMO weather code as reported by Open-Meteo
        is_day: Whether the observation is taken during daylight

    Returns:
        The matching condition; "sunny" is reported as partly-cloudy at night
    """
    if code <= 1:
        condition = WeatherConditionType.SUNNY
    elif code <= 3:
        condition = WeatherConditionType.PARTLY_CLOUDY
    elif code <= 48:
        condition = WeatherConditionType.CLOUDY
    elif code <= 67:
        condition = WeatherConditionType.OVERCAST
    elif code <= 82:
        condition = WeatherConditionType.RAINY
    else:
        condition = WeatherConditionType.STORMY

    if not is_day and condition == WeatherConditionType.SUNNY:
        condition = WeatherConditionType.PARTLY_CLOUDY
    return condition


class WeatherSource(ABC):
    """Abstract supplier of current weather observations."""

    @abstractmethod
    def get_current(self, location: Location) -> WeatherObservation:
        """Return the current observation for ``location``.

        Raises:
            WeatherSourceError: If no observation can be produced
        """
        pass


class OpenMeteoWeatherSource(WeatherSource):
    """Live weather from the Open-Meteo forecast API (no API key required).

    Responses are cached per rounded coordinate for ``cache_ttl_seconds``.
    """

    def __init__(
        self,
        config: WeatherConfig | None = None,
        session: requests.Session | None = None,
        now: Callable[[], float] = time.time,
    ):
        self.config = config or WeatherConfig()
        self.session = session or self._create_session()
        self._now = now
        self._cache: dict[str, tuple[float, WeatherObservation]] = {}
        self._lock = threading.RLock()

        logger.info(f"OpenMeteoWeatherSource initialized for {self.config.api_url}")

    def _create_session(self) -> requests.Session:
        """Create an HTTP session with retry handling."""
        session = requests.Session()
        retry_strategy = Retry(
            total=self.config.retry_attempts,
            backoff_factor=0.5,
            status_forcelist=[429, 500, 502, 503, 504],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def get_current(self, location: Location) -> WeatherObservation:
        """Fetch the current observation, serving fresh cache entries first."""
        cache_key = location.cache_key()
        with self._lock:
            cached = self._cache.get(cache_key)
            if cached is not None and self._now() - cached[0] < self.config.cache_ttl_seconds:
                logger.debug(f"Using cached weather for {cache_key}")
                return cached[1]

        params = {
            "latitude": location.latitude,
            "longitude": location.longitude,
            "current_weather": "true",
            "hourly": "cloud_cover",
            "timezone": "auto",
        }

        try:
            response = self.session.get(self.config.api_url, params=params, timeout=self.config.timeout_seconds)
        except requests.RequestException as e:
            raise WeatherSourceError(f"Weather API request failed: {e}") from e

        if response.status_code != 200:
            raise WeatherSourceError(f"Weather API error: {response.status_code}")

        try:
            observation = self._parse_response(response.json())
        except (KeyError, TypeError, ValueError) as e:
            raise WeatherSourceError(f"Malformed weather API response: {e}") from e

        with self._lock:
            self._cache[cache_key] = (self._now(), observation)
        return observation

    def _parse_response(self, data: dict[str, Any]) -> WeatherObservation:
        """Convert an Open-Meteo payload into an observation."""
        current = data["current_weather"]
        is_day = current.get("is_day", 1) == 1
        code = int(current.get("weathercode", current.get("weather_code", 0)))

        cloud_cover = 0.0
        hourly_cover = data.get("hourly", {}).get("cloud_cover") or []
        hour = datetime.fromisoformat(current["time"]).hour if "time" in current else datetime.now().hour
        if hour < len(hourly_cover) and hourly_cover[hour] is not None:
            cloud_cover = float(hourly_cover[hour])

        return WeatherObservation(
            condition=map_wmo_weather_code(code, is_day),
            temperature_c=round(float(current["temperature"]), 1),
            cloud_cover_pct=max(0.0, min(100.0, cloud_cover)),
            wind_speed=round(float(current.get("windspeed", 0.0)), 1),
        )

    def clear_cache(self) -> None:
        """Clear cached observations."""
        with self._lock:
            self._cache.clear()


class FallbackWeatherGenerator:
    """Deterministic weather generator used when the live feed is unavailable.

    Observations are stable within a time bucket (15 minutes by default) and
    depend only on the bucket, the month and the location, so repeated calls
    in the same bucket return identical weather.
    """

    def __init__(self, bucket_minutes: int = 15):
        self.bucket_minutes = bucket_minutes

    @staticmethod
    def _seeded_random(seed: float) -> float:
        x = math.sin(seed) * 10000
        return x - math.floor(x)

    @staticmethod
    def sun_hours(location: Location, when: datetime) -> tuple[float, float]:
        """Approximate local sunrise and sunset hours for ``when``."""
        day_of_year = when.timetuple().tm_yday
        declination = 23.45 * math.sin(math.radians(360 * (284 + day_of_year) / 365))
        cos_hour_angle = -math.tan(math.radians(location.latitude)) * math.tan(math.radians(declination))
        # Polar day / night
        cos_hour_angle = max(-1.0, min(1.0, cos_hour_angle))
        half_day_hours = math.degrees(math.acos(cos_hour_angle)) / 15
        solar_noon = 12.0
        return solar_noon - half_day_hours, solar_noon + half_day_hours

    def generate(self, location: Location, when: datetime) -> WeatherObservation:
        """Generate the observation for ``location`` at ``when``."""
        hour = when.hour + when.minute / 60
        sunrise, sunset = self.sun_hours(location, when)
        is_day = sunrise <= hour <= sunset

        base_temperature = SEASONAL_BASE_TEMPERATURE_C[when.month - 1]
        variation = math.sin((hour - 6) / 12 * math.pi) * 8 if is_day else 0.0
        temperature = base_temperature + variation

        seed = math.floor(when.timestamp() / (self.bucket_minutes * 60))

        if not is_day:
            night_random = self._seeded_random(seed + 200)
            if night_random > 0.7:
                condition, cloud_cover = WeatherConditionType.PARTLY_CLOUDY, 30.0
            else:
                condition, cloud_cover = WeatherConditionType.CLOUDY, 70.0
        else:
            day_random = self._seeded_random(seed + 300)
            if day_random > 0.7:
                condition, cloud_cover = WeatherConditionType.SUNNY, 10.0
            elif day_random > 0.5:
                condition, cloud_cover = WeatherConditionType.PARTLY_CLOUDY, 40.0
            elif day_random > 0.3:
                condition, cloud_cover = WeatherConditionType.CLOUDY, 80.0
            else:
                condition, cloud_cover = WeatherConditionType.OVERCAST, 95.0

        return WeatherObservation(
            condition=condition,
            temperature_c=round(temperature, 1),
            cloud_cover_pct=cloud_cover,
            wind_speed=round(10 + self._seeded_random(seed + 500) * 15, 1),
        )


class WeatherService:
    """Live weather with a deterministic fallback.

    Failures of the live source are logged and replaced by the fallback
    generator; :meth:`get_current` never raises for source errors.
    """

    def __init__(
        self,
        source: WeatherSource | None = None,
        fallback: FallbackWeatherGenerator | None = None,
    ):
        self.source = source
        self.fallback = fallback or FallbackWeatherGenerator()
        self.fallback_count = 0

    def get_current(self, location: Location, when: datetime) -> WeatherObservation:
        """Return live weather, or the fallback observation for ``when``."""
        if self.source is None:
            return self.fallback.generate(location, when)

        try:
            return self.source.get_current(location)
        except WeatherSourceError as e:
            self.fallback_count += 1
            logger.warning(f"Weather source failed, using fallback weather: {e}")
            return self.fallback.generate(location, when)


class WeatherSimulator:
    """Current weather of the simulation.

    An operator override pins the weather until :meth:`clear_override` is
    called. Without an override, :meth:`refresh` pulls from the weather
    service when one is configured and otherwise keeps the current weather.
    """

    def __init__(self, service: WeatherService | None = None, location: Location | None = None):
        self.service = service
        self.location = location or Location(latitude=0.0, longitude=0.0)
        self._current = WeatherObservation(
            condition=WeatherConditionType.SUNNY,
            temperature_c=CONDITION_TEMPERATURE_C[WeatherConditionType.SUNNY],
            cloud_cover_pct=CONDITION_CLOUD_COVER_PCT[WeatherConditionType.SUNNY],
            wind_speed=CONDITION_WIND_SPEED[WeatherConditionType.SUNNY],
        )
        self._override = False

    @property
    def current(self) -> WeatherObservation:
        return self._current

    @property
    def is_overridden(self) -> bool:
        return self._override

    def observe(self, when: datetime) -> WeatherObservation:
        """Return the weather for a tick at ``when`` without making it current."""
        if not self._override and self.service is not None:
            return self.service.get_current(self.location, when)
        return self._current

    def commit(self, observation: WeatherObservation) -> None:
        """Make ``observation`` current unless an override pins the weather."""
        if not self._override:
            self._current = observation

    def refresh(self, when: datetime) -> WeatherObservation:
        """Update and return the current weather for a tick at ``when``."""
        observation = self.observe(when)
        self.commit(observation)
        return observation

    def set_weather(self, condition: WeatherConditionType | str, when: datetime) -> WeatherObservation:
        """Override the weather with the defaults of ``condition``.

        Temperature follows a daily curve of +/-3 C around the condition default.

        Raises:
            ValueError: If ``condition`` is not a known condition
        """
        condition = WeatherConditionType(condition)
        daily_variation = math.sin((when.hour - 6) / 12 * math.pi) * 3
        self._current = WeatherObservation(
            condition=condition,
            temperature_c=round(CONDITION_TEMPERATURE_C[condition] + daily_variation),
            cloud_cover_pct=CONDITION_CLOUD_COVER_PCT[condition],
            wind_speed=CONDITION_WIND_SPEED[condition],
        )
        self._override = True
        return self._current

    def clear_override(self) -> None:
        """Return control of the weather to the configured service."""
        self._override = False


__all__ = [
    "FallbackWeatherGenerator",
    "Location",
    "OpenMeteoWeatherSource",
    "WeatherObservation",
    "WeatherService",
    "WeatherSimulator",
    "WeatherSource",
    "map_wmo_weather_code",
]
