from datetime import datetime
from typing import Optional

import requests

from app.config import Settings
from app.core import log_warning


def describe_weather_code(code: int) -> str:
    """Map a WMO weather interpretation code to a short description."""
    if code == 0:
        return "Clear"
    if code <= 3:
        return "Partly Cloudy"
    if code <= 48:
        return "Foggy"
    if code <= 57:
        return "Drizzle"
    if code <= 67:
        return "Rain"
    if code <= 77:
        return "Snow"
    if code <= 82:
        return "Rain Showers"
    if code <= 86:
        return "Snow Showers"
    if code <= 99:
        return "Thunderstorm"
    return "Cloudy"


def time_of_day(hour: Optional[int] = None) -> str:
    if hour is None:
        hour = datetime.now().hour

    if 5 <= hour < 12:
        return "Morning"
    if 12 <= hour < 17:
        return "Afternoon"
    if 17 <= hour < 21:
        return "Evening"
    return "Night"


class WeatherClient:
    """Current conditions from Open-Meteo (no API key needed)."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def current(self, latitude: float, longitude: float) -> Optional[str]:
        """
        Return e.g. "Rain, 12°C", or None when the lookup fails.

        Weather is optional context for generation, so failures are logged
        rather than raised.
        """
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "current": "temperature_2m,weather_code",
            "temperature_unit": "celsius",
        }
        try:
            r = requests.get(
                self.settings.weather_url,
                params=params,
                timeout=self.settings.http_timeout,
            )
            if not r.ok:
                log_warning(f"Weather lookup failed with HTTP {r.status_code}.")
                return None
            current = r.json()["current"]
            temperature = round(current["temperature_2m"])
            description = describe_weather_code(int(current["weather_code"]))
        except (requests.RequestException, KeyError, TypeError, ValueError) as e:
            log_warning(f"Weather lookup failed: {e}")
            return None

        return f"{description}, {temperature}°C"
