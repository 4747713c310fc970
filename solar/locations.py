"""Observer locations and a set of well-known presets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float = 0.0
    timezone: Optional[str] = None
    name: str = ""


PRESET_LOCATIONS: Tuple[Location, ...] = (
    Location(0.0, -90.0, "Pacific/Galapagos", "Equator (Pacific)"),
    Location(23.4, 77.0, "Asia/Kolkata", "Tropic of Cancer (India)"),
    Location(-23.4, -46.0, "America/Sao_Paulo", "Tropic of Capricorn (Brazil)"),
    Location(59.9, 10.7, "Europe/Oslo", "Oslo, Norway"),
    Location(69.7, 19.0, "Europe/Oslo", "Tromsø, Norway"),
    Location(78.2, 15.6, "Arctic/Longyearbyen", "Longyearbyen, Svalbard"),
    Location(64.1, -21.9, "Atlantic/Reykjavik", "Reykjavik, Iceland"),
    Location(51.5, -0.1, "Europe/London", "London, UK"),
    Location(40.7, -74.0, "America/New_York", "New York, USA"),
    Location(61.2, -149.9, "America/Anchorage", "Anchorage, USA"),
    Location(35.7, 139.7, "Asia/Tokyo", "Tokyo, Japan"),
    Location(-33.9, 151.2, "Australia/Sydney", "Sydney, Australia"),
    Location(-36.8, 174.8, "Pacific/Auckland", "Auckland, New Zealand"),
    Location(66.5, 15.0, "Europe/Oslo", "Arctic Circle (Norway)"),
    Location(-66.5, 110.5, "Antarctica/Casey", "Antarctic Circle"),
    Location(90.0, 0.0, "UTC", "North Pole"),
    Location(-90.0, 0.0, "Antarctica/South_Pole", "South Pole"),
)


def find_preset(name: str) -> Optional[Location]:
    lowered = name.strip().lower()
    for location in PRESET_LOCATIONS:
        if location.name.lower() == lowered:
            return location
    return None
