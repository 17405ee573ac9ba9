from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional

import requests
from dotenv import load_dotenv

load_dotenv()

HEAT_THRESHOLD_C = 35
COLD_THRESHOLD_C = 5
WIND_THRESHOLD_MS = 10


@dataclass
class WeatherSnapshot:
    city: str
    temperature: float
    description: str
    condition: str
    wind_speed: float
    alerts: List[str] = field(default_factory=list)


def derive_alerts(temperature: float, wind_speed: float,
                  condition: str, description: str) -> List[str]:
    """Alert lines for a reading, always in heat/cold/wind/rain/storm order."""
    alerts = []
    if temperature > HEAT_THRESHOLD_C:
        alerts.append(f"🌡️ Heat Alert: {temperature}°C")
    if temperature < COLD_THRESHOLD_C:
        alerts.append(f"❄️ Cold Alert: {temperature}°C")
    if wind_speed > WIND_THRESHOLD_MS:
        alerts.append(f"💨 Wind Alert: {wind_speed} m/s")
    if condition == "Rain":
        alerts.append(f"🌧️ Rain Alert: {description}")
    if condition == "Thunderstorm":
        alerts.append(f"⛈️ Storm Alert: {description}")
    return alerts


class WeatherService:

    def __init__(self, api_key: str = None, timeout: float = 10.0):
        self.api_key = api_key or os.getenv('WEATHER_API_KEY')
        self.base_url = "https://api.openweathermap.org/data/2.5"
        self.timeout = timeout

    def get_weather(self, city: str) -> Optional[WeatherSnapshot]:
        """Current weather for a city name, or None if the lookup fails."""
        try:
            response = requests.get(
                f"{self.base_url}/weather",
                params={"q": city, "appid": self.api_key, "units": "metric"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()

            temperature = data['main']['temp']
            wind_speed = data.get('wind', {}).get('speed', 0)
            condition = data['weather'][0]['main']
            description = data['weather'][0]['description']

            return WeatherSnapshot(
                city=data.get('name') or city,
                temperature=temperature,
                description=description,
                condition=condition,
                wind_speed=wind_speed,
                alerts=derive_alerts(temperature, wind_speed, condition, description),
            )

        except Exception as e:
            print(f"[Weather] Lookup failed for {city!r}: {e}")
            return None

    def format_weather_english(self, snapshot: WeatherSnapshot) -> str:
        message = f"🌤️ Current weather in {snapshot.city}:\n\n"
        message += f"🌡️ Temperature: {snapshot.temperature}°C\n"
        message += f"☁️ Conditions: {snapshot.description}"
        if snapshot.alerts:
            message += "\n\n⚠️ ALERTS:\n" + "\n".join(snapshot.alerts)
        return message
