"""Tests for weather sources, fallback generation and the weather simulator."""

from datetime import datetime
from unittest.mock import Mock

import pytest
import requests
from solarsense.config.schema import WeatherConfig
from solarsense.exceptions import WeatherSourceError
from solarsense.sim.weather import (
    CONDITION_CLOUD_COVER_PCT,
    CONDITION_TEMPERATURE_C,
    FallbackWeatherGenerator,
    Location,
    OpenMeteoWeatherSource,
    WeatherObservation,
    WeatherService,
    WeatherSimulator,
    WeatherSource,
    map_wmo_weather_code,
)
from solarsense.utils.enums import WeatherConditionType

LOCATION = Location(latitude=30.7333, longitude=76.7794)


def make_response(status_code: int = 200, payload: dict | None = None) -> Mock:
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload if payload is not None else {}
    return response


OPEN_METEO_PAYLOAD = {
    "current_weather": {
        "temperature": 31.26,
        "windspeed": 11.04,
        "weathercode": 2,
        "is_day": 1,
        "time": "2024-06-01T12:00",
    },
    "hourly": {"cloud_cover": [0] * 12 + [35] + [0] * 11},
}


class TestWmoMapping:
    """Test WMO code mapping."""

    @pytest.mark.parametrize(
        "code,expected",
        [
            (0, WeatherConditionType.SUNNY),
            (1, WeatherConditionType.SUNNY),
            (3, WeatherConditionType.PARTLY_CLOUDY),
            (45, WeatherConditionType.CLOUDY),
            (61, WeatherConditionType.OVERCAST),
            (80, WeatherConditionType.RAINY),
            (95, WeatherConditionType.STORMY),
        ],
    )
    def test_daytime_mapping(self, code, expected):
        """Test code bands map to conditions."""
        assert map_wmo_weather_code(code) == expected

    def test_clear_night_is_partly_cloudy(self):
        """Test a clear sky at night is not reported as sunny."""
        assert map_wmo_weather_code(0, is_day=False) == WeatherConditionType.PARTLY_CLOUDY
        assert map_wmo_weather_code(95, is_day=False) == WeatherConditionType.STORMY


class TestOpenMeteoWeatherSource:
    """Test the live Open-Meteo client with a mocked session."""

    def setup_method(self):
        """Set up test fixtures."""
        self.session = Mock()
        self.clock = Mock(return_value=1000.0)
        self.source = OpenMeteoWeatherSource(WeatherConfig(), session=self.session, now=self.clock)

    def test_is_weather_source(self):
        """Test the client implements the source interface."""
        assert isinstance(self.source, WeatherSource)

    def test_parse_current_weather(self):
        """Test a successful response is parsed."""
        self.session.get.return_value = make_response(payload=OPEN_METEO_PAYLOAD)

        observation = self.source.get_current(LOCATION)
        assert observation.condition == WeatherConditionType.PARTLY_CLOUDY
        assert observation.temperature_c == 31.3
        assert observation.cloud_cover_pct == 35.0
        assert observation.wind_speed == 11.0

        _, kwargs = self.session.get.call_args
        assert kwargs["params"]["latitude"] == LOCATION.latitude
        assert kwargs["timeout"] == 10.0

    def test_cache_within_ttl(self):
        """Test repeated requests within the TTL are served from cache."""
        self.session.get.return_value = make_response(payload=OPEN_METEO_PAYLOAD)

        first = self.source.get_current(LOCATION)
        self.clock.return_value = 1000.0 + 599
        second = self.source.get_current(LOCATION)
        assert first == second
        assert self.session.get.call_count == 1

        self.clock.return_value = 1000.0 + 601
        self.source.get_current(LOCATION)
        assert self.session.get.call_count == 2

    def test_clear_cache(self):
        """Test clearing the cache forces a new request."""
        self.session.get.return_value = make_response(payload=OPEN_METEO_PAYLOAD)
        self.source.get_current(LOCATION)
        self.source.clear_cache()
        self.source.get_current(LOCATION)
        assert self.session.get.call_count == 2

    def test_http_error_raises(self):
        """Test non-200 responses raise WeatherSourceError."""
        self.session.get.return_value = make_response(status_code=503)
        with pytest.raises(WeatherSourceError):
            self.source.get_current(LOCATION)

    def test_request_exception_raises(self):
        """Test transport failures raise WeatherSourceError."""
        self.session.get.side_effect = requests.ConnectionError("offline")
        with pytest.raises(WeatherSourceError):
            self.source.get_current(LOCATION)

    def test_malformed_payload_raises(self):
        """Test payloads without current weather raise WeatherSourceError."""
        self.session.get.return_value = make_response(payload={"hourly": {}})
        with pytest.raises(WeatherSourceError):
            self.source.get_current(LOCATION)


class TestFallbackWeatherGenerator:
    """Test the deterministic fallback generator."""

    def setup_method(self):
        """Set up test fixtures."""
        self.generator = FallbackWeatherGenerator(bucket_minutes=15)

    def test_stable_within_bucket(self):
        """Test observations are identical within a time bucket."""
        first = self.generator.generate(LOCATION, datetime(2024, 6, 1, 12, 0, 30))
        second = self.generator.generate(LOCATION, datetime(2024, 6, 1, 12, 0, 50))
        assert first == second

    def test_deterministic(self):
        """Test the same input always yields the same observation."""
        when = datetime(2024, 1, 15, 3, 20)
        assert self.generator.generate(LOCATION, when) == self.generator.generate(LOCATION, when)

    def test_night_conditions(self):
        """Test night observations only use night conditions."""
        observation = self.generator.generate(LOCATION, datetime(2024, 6, 1, 1, 0))
        assert observation.condition in (WeatherConditionType.PARTLY_CLOUDY, WeatherConditionType.CLOUDY)

    def test_observation_bounds(self):
        """Test generated values stay within the observation bounds."""
        for hour in range(24):
            observation = self.generator.generate(LOCATION, datetime(2024, 7, 1, hour, 0))
            assert 0.0 <= observation.cloud_cover_pct <= 100.0
            assert 10.0 <= observation.wind_speed <= 25.0

    def test_sun_hours_order(self):
        """Test sunrise precedes sunset around solar noon."""
        sunrise, sunset = FallbackWeatherGenerator.sun_hours(LOCATION, datetime(2024, 6, 21))
        assert sunrise < 12.0 < sunset
        assert sunset - sunrise > 12.0


class TestWeatherService:
    """Test live weather with fallback."""

    def test_source_success(self):
        """Test the live observation is returned when available."""
        observation = WeatherObservation(condition="rainy", temperature_c=18.0, cloud_cover_pct=100.0)
        source = Mock(spec=WeatherSource)
        source.get_current.return_value = observation

        service = WeatherService(source=source)
        assert service.get_current(LOCATION, datetime(2024, 6, 1, 12)) == observation
        assert service.fallback_count == 0

    def test_source_failure_uses_fallback(self):
        """Test source failures are absorbed by the fallback."""
        source = Mock(spec=WeatherSource)
        source.get_current.side_effect = WeatherSourceError("down")
        fallback = FallbackWeatherGenerator()
        when = datetime(2024, 6, 1, 12)

        service = WeatherService(source=source, fallback=fallback)
        assert service.get_current(LOCATION, when) == fallback.generate(LOCATION, when)
        assert service.fallback_count == 1

    def test_no_source_uses_fallback(self):
        """Test a service without a source always uses the fallback."""
        service = WeatherService()
        when = datetime(2024, 6, 1, 12)
        assert service.get_current(LOCATION, when) == FallbackWeatherGenerator().generate(LOCATION, when)


class TestWeatherSimulator:
    """Test the engine's current weather."""

    def test_initial_weather(self):
        """Test the simulation starts sunny."""
        simulator = WeatherSimulator()
        assert simulator.current.condition == WeatherConditionType.SUNNY
        assert simulator.current.temperature_c == 28.0
        assert simulator.current.cloud_cover_pct == 10.0
        assert simulator.is_overridden is False

    def test_set_weather(self):
        """Test overriding uses the condition defaults and a daily temperature curve."""
        simulator = WeatherSimulator()
        observation = simulator.set_weather("stormy", datetime(2024, 6, 1, 12))

        assert observation.condition == WeatherConditionType.STORMY
        assert observation.cloud_cover_pct == CONDITION_CLOUD_COVER_PCT[WeatherConditionType.STORMY]
        assert observation.temperature_c == round(CONDITION_TEMPERATURE_C[WeatherConditionType.STORMY] + 3)
        assert simulator.is_overridden is True
        assert simulator.current == observation

    def test_set_unknown_weather(self):
        """Test unknown conditions are rejected."""
        with pytest.raises(ValueError):
            WeatherSimulator().set_weather("foggy", datetime(2024, 6, 1, 12))

    def test_refresh_respects_override(self):
        """Test refresh does not replace an override."""
        service = Mock(spec=WeatherService)
        service.get_current.return_value = WeatherObservation(
            condition="cloudy", temperature_c=22.0, cloud_cover_pct=80.0
        )
        simulator = WeatherSimulator(service=service)
        when = datetime(2024, 6, 1, 12)

        assert simulator.refresh(when).condition == WeatherConditionType.CLOUDY
        simulator.set_weather("rainy", when)
        assert simulator.refresh(when).condition == WeatherConditionType.RAINY

        simulator.clear_override()
        assert simulator.refresh(when).condition == WeatherConditionType.CLOUDY

    def test_refresh_without_service_keeps_weather(self):
        """Test refresh without a service keeps the current weather."""
        simulator = WeatherSimulator()
        before = simulator.current
        assert simulator.refresh(datetime(2024, 6, 1, 12)) == before

    def test_observe_does_not_commit(self):
        """Test observe leaves the current weather until the observation is committed."""
        service = Mock(spec=WeatherService)
        service.get_current.return_value = WeatherObservation(
            condition="rainy", temperature_c=18.0, cloud_cover_pct=90.0
        )
        simulator = WeatherSimulator(service=service)
        before = simulator.current

        observation = simulator.observe(datetime(2024, 6, 1, 12))
        assert observation.condition == WeatherConditionType.RAINY
        assert simulator.current == before

        simulator.commit(observation)
        assert simulator.current == observation

    def test_commit_respects_override(self):
        """Test committing an observation does not replace an override."""
        simulator = WeatherSimulator()
        override = simulator.set_weather("windy", datetime(2024, 6, 1, 12))

        simulator.commit(WeatherObservation(condition="sunny", temperature_c=28.0, cloud_cover_pct=10.0))

        assert simulator.current == override
