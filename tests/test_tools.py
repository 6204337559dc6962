import pytest
import requests

from core.config import settings
from tools import geocoding_api, weather_api
from tools.weather_api import WeatherServiceError, fetch_weather_data, format_forecast

FORECAST_PAYLOAD = {
    "current": {
        "temp_c": 29.6,
        "humidity": 78,
        "condition": {"text": "Partly cloudy"},
        "wind_kph": 11.2,
        "pressure_mb": 1008.4,
    },
    "forecast": {
        "forecastday": [
            {
                "date": "2024-06-01",
                "day": {
                    "maxtemp_c": 31.4,
                    "mintemp_c": 24.5,
                    "condition": {"text": "Moderate rain"},
                    "avghumidity": 84.6,
                    "daily_chance_of_rain": 89,
                },
            },
        ]
    },
}


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.payload


@pytest.fixture
def weather_key(monkeypatch):
    monkeypatch.setattr(settings, "weather_api_key", "test-key")


def test_weather_report_is_rounded(monkeypatch, weather_key):
    calls = []

    def fake_get(url, params=None, timeout=None):
        calls.append((url, params))
        return FakeResponse(FORECAST_PAYLOAD)

    monkeypatch.setattr(weather_api.requests, "get", fake_get)

    report = fetch_weather_data(10.52, 76.21)

    assert calls[0][0].endswith("/forecast.json")
    assert calls[0][1]["q"] == "10.52,76.21"
    assert calls[0][1]["days"] == 5
    assert report.current.temperature == 30
    assert report.current.wind_speed == 11
    assert report.current.pressure == 1008
    assert report.forecast[0].max_temp == 31
    assert report.forecast[0].humidity == 85
    assert report.forecast[0].precipitation == 89


def test_weather_requires_key(monkeypatch):
    monkeypatch.setattr(settings, "weather_api_key", None)
    with pytest.raises(WeatherServiceError, match="not configured"):
        fetch_weather_data(10.52, 76.21)


def test_weather_http_error(monkeypatch, weather_key):
    monkeypatch.setattr(weather_api.requests, "get", lambda *a, **kw: FakeResponse({}, status_code=503))
    with pytest.raises(WeatherServiceError, match="Failed to fetch"):
        fetch_weather_data(10.52, 76.21)


def test_weather_bad_payload(monkeypatch, weather_key):
    monkeypatch.setattr(weather_api.requests, "get", lambda *a, **kw: FakeResponse({"current": {}}))
    with pytest.raises(WeatherServiceError, match="Failed to process"):
        fetch_weather_data(10.52, 76.21)


def test_format_forecast(monkeypatch, weather_key):
    monkeypatch.setattr(weather_api.requests, "get", lambda *a, **kw: FakeResponse(FORECAST_PAYLOAD))

    text = format_forecast(fetch_weather_data(10.52, 76.21))

    assert text.splitlines() == [
        "Now: 30°C, Partly cloudy, humidity 78.0%, wind 11 km/h",
        "- 2024-06-01: 24°C to 31°C, Moderate rain, 89.0% chance of rain",
    ]


def test_geocoding(monkeypatch):
    monkeypatch.setattr(geocoding_api.requests, "get",
                        lambda *a, **kw: FakeResponse([{"lat": "10.5276", "lon": "76.2144"}]))

    coordinates = geocoding_api.get_coordinates_for_location("Thrissur, Kerala")

    assert coordinates == {"latitude": 10.5276, "longitude": 76.2144}


@pytest.mark.parametrize("response", [FakeResponse([]), FakeResponse([{"lat": "north"}]),
                                      FakeResponse(None, status_code=500)])
def test_geocoding_without_result(monkeypatch, response):
    monkeypatch.setattr(geocoding_api.requests, "get", lambda *a, **kw: response)
    assert geocoding_api.get_coordinates_for_location("Nowhere") is None


def test_geocoding_blank_query():
    assert geocoding_api.get_coordinates_for_location("   ") is None
