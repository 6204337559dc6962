# tools/weather_api.py
import requests
from core.config import settings
from core.exceptions import FarmLedgerError
from core.models import CurrentWeather, ForecastDay, WeatherReport

FORECAST_DAYS = 5


class WeatherServiceError(FarmLedgerError):
    """The weather provider is not configured or did not answer."""


def fetch_weather_data(latitude: float, longitude: float) -> WeatherReport:
    """
    Fetches current conditions and a 5-day forecast from WeatherAPI.com.
    Temperatures, wind and pressure are rounded to whole numbers.
    """
    if not settings.weather_api_key:
        raise WeatherServiceError("WeatherAPI key not configured")

    print(f"---TOOL: Fetching weather for Lat={latitude}, Lon={longitude}---")
    params = {
        "key": settings.weather_api_key,
        "q": f"{latitude},{longitude}",
        "days": FORECAST_DAYS,
        "aqi": "no",
    }

    try:
        response = requests.get(f"{settings.weather_api_url}/forecast.json", params=params,
                                timeout=settings.http_timeout)
        response.raise_for_status()
        data = response.json()

        current = data["current"]
        report = WeatherReport(
            current=CurrentWeather(
                temperature=round(current["temp_c"]),
                humidity=current["humidity"],
                description=current["condition"]["text"],
                wind_speed=round(current["wind_kph"]),
                pressure=round(current["pressure_mb"]),
            ),
            forecast=[
                ForecastDay(
                    date=day["date"],
                    max_temp=round(day["day"]["maxtemp_c"]),
                    min_temp=round(day["day"]["mintemp_c"]),
                    description=day["day"]["condition"]["text"],
                    humidity=round(day["day"]["avghumidity"]),
                    precipitation=day["day"]["daily_chance_of_rain"],
                )
                for day in data["forecast"]["forecastday"]
            ],
        )
    except requests.exceptions.RequestException as e:
        print(f"---TOOL: Weather request failed: {e}---")
        raise WeatherServiceError("Failed to fetch weather data from WeatherAPI") from e
    except (KeyError, IndexError, TypeError) as e:
        print(f"---TOOL: Unexpected weather payload: {e}---")
        raise WeatherServiceError("Failed to process weather data from WeatherAPI") from e

    return report


def format_forecast(report: WeatherReport) -> str:
    """Plain-text forecast, used as farm context for the advisor."""
    lines = [
        f"Now: {report.current.temperature}°C, {report.current.description}, "
        f"humidity {report.current.humidity}%, wind {report.current.wind_speed} km/h"
    ]
    for day in report.forecast:
        lines.append(
            f"- {day.date}: {day.min_temp}°C to {day.max_temp}°C, {day.description}, "
            f"{day.precipitation}% chance of rain"
        )
    return "\n".join(lines)
