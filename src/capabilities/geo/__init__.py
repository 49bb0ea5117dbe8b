"""Geo tools - geocoding and weather forecasts.

Backed by OpenStreetMap Nominatim and Open-Meteo.
"""

from datetime import date
from typing import Any, Optional

import httpx

from shared.config import GeoSettings
from shared.logging import get_logger
from shared.models import (
    CapabilityDescriptor,
    CapabilityKind,
    FieldSpec,
    ToolOutput,
)
from shared.schema import build_object_schema
from capabilities.base import HTTPProvider, format_number, text_content_schema

logger = get_logger(__name__)


WEATHER_CODES = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    56: "Light freezing drizzle",
    57: "Dense freezing drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    66: "Light freezing rain",
    67: "Heavy freezing rain",
    71: "Slight snow",
    73: "Moderate snow",
    75: "Heavy snow",
    77: "Snow grains",
    80: "Slight rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    85: "Slight snow showers",
    86: "Heavy snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm with slight hail",
    99: "Thunderstorm with heavy hail",
}

DAILY_FIELDS = "temperature_2m_max,temperature_2m_min,precipitation_sum,weathercode"


def describe_weather(code: Any) -> str:
    """Return a description for a WMO weather code."""
    return WEATHER_CODES.get(code, f"Code {code}")


class GeoProvider(HTTPProvider):
    """
    Geo tools.

    Provides:
    - geocode: address to coordinates
    - get-weather: current weather and daily forecast for coordinates
    """

    def __init__(
        self,
        settings: GeoSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(
            "geo",
            timeout=settings.timeout_seconds,
            headers={"User-Agent": settings.user_agent},
            transport=transport,
        )
        self.settings = settings
        self._descriptors = self._define_tools()

    def _define_tools(self) -> list[CapabilityDescriptor]:
        """Define all geo tools."""
        return [
            CapabilityDescriptor(
                name="geocode",
                kind=CapabilityKind.TOOL,
                description="Returns latitude and longitude for a city name or address.",
                input_schema=build_object_schema([
                    FieldSpec(
                        name="address",
                        type="string",
                        description='City name or address (e.g. "Seoul", "New York")',
                    ),
                ]),
                output_schema=text_content_schema("Coordinates"),
                handler=self.geocode,
            ),
            CapabilityDescriptor(
                name="get-weather",
                kind=CapabilityKind.TOOL,
                description=(
                    "Returns current weather and a daily forecast for the given "
                    "coordinates and forecast period."
                ),
                input_schema=build_object_schema([
                    FieldSpec(
                        name="latitude",
                        type="number",
                        description="Latitude (-90 to 90)",
                        minimum=-90,
                        maximum=90,
                    ),
                    FieldSpec(
                        name="longitude",
                        type="number",
                        description="Longitude (-180 to 180)",
                        minimum=-180,
                        maximum=180,
                    ),
                    FieldSpec(
                        name="forecastDays",
                        type="integer",
                        description="Forecast period in days (default: 7, max: 16)",
                        required=False,
                        default=7,
                        minimum=1,
                        maximum=16,
                    ),
                ]),
                output_schema=text_content_schema("Weather report"),
                handler=self.get_weather,
            ),
        ]

    @property
    def descriptors(self) -> list[CapabilityDescriptor]:
        return self._descriptors

    async def geocode(self, params: dict[str, Any]) -> ToolOutput:
        address = params["address"]
        logger.debug("Geocoding address", address=address)
        try:
            data = await self._get_json(
                self.settings.nominatim_url,
                "Nominatim API",
                params={
                    "q": address,
                    "format": "jsonv2",
                    "limit": "1",
                    "addressdetails": "1",
                },
            )
            if not data:
                raise LookupError(f"Address not found: {address}")

            place = data[0]
            lat = float(place["lat"])
            lon = float(place["lon"])
        except Exception as e:
            raise RuntimeError(f"Geocoding failed: {e}") from e

        display_name = place.get("display_name") or address
        text = (
            f"Address: {display_name}\n"
            f"Latitude: {format_number(lat)}\n"
            f"Longitude: {format_number(lon)}\n"
            f"Coordinates: ({format_number(lat)}, {format_number(lon)})"
        )
        return ToolOutput.from_text(text)

    async def get_weather(self, params: dict[str, Any]) -> ToolOutput:
        latitude = params["latitude"]
        longitude = params["longitude"]
        forecast_days = int(params["forecastDays"])

        try:
            data = await self._get_json(
                self.settings.open_meteo_url,
                "Open-Meteo API",
                params={
                    "latitude": str(latitude),
                    "longitude": str(longitude),
                    "current_weather": "true",
                    "daily": DAILY_FIELDS,
                    "timezone": "auto",
                    "forecast_days": str(forecast_days),
                },
            )
            if not data or not data.get("current_weather"):
                raise LookupError("Weather data is unavailable")

            text = self._format_report(data, latitude, longitude, forecast_days)
        except Exception as e:
            raise RuntimeError(f"Weather lookup failed: {e}") from e

        return ToolOutput.from_text(text)

    @staticmethod
    def _format_report(
        data: dict[str, Any],
        latitude: float,
        longitude: float,
        forecast_days: int,
    ) -> str:
        current = data["current_weather"]
        daily = data.get("daily") or {}

        lines = [
            "=== Current weather ===",
            f"Location: latitude {format_number(latitude)}, longitude {format_number(longitude)}",
            f"Temperature: {current.get('temperature')}°C",
            f"Conditions: {describe_weather(current.get('weathercode'))}",
            f"Wind speed: {current.get('windspeed')} km/h",
            f"Wind direction: {current.get('winddirection')}°",
            "",
            f"=== {forecast_days}-day forecast ===",
        ]

        days = daily.get("time", [])
        for i in range(min(forecast_days, len(days))):
            day = date.fromisoformat(days[i])
            lines.append("")
            lines.append(f"{day:%b %d (%a)}:")
            lines.append(f"  High: {daily['temperature_2m_max'][i]}°C")
            lines.append(f"  Low: {daily['temperature_2m_min'][i]}°C")
            lines.append(f"  Precipitation: {daily['precipitation_sum'][i]} mm")
            lines.append(f"  Conditions: {describe_weather(daily['weathercode'][i])}")

        return "\n".join(lines) + "\n"


def register_geo_capabilities(registry, settings: GeoSettings) -> GeoProvider:
    """Register the geo tools."""
    provider = GeoProvider(settings)
    provider.register(registry)
    return provider
