"""Pydantic models for API requests and responses."""

from __future__ import annotations

import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

import pytz
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Ephemeris(str, Enum):
    """Enumeration of supported ephemeris providers."""

    analytic = "analytic"
    spice = "spice"


class DayQueryParams(BaseModel):
    """Validated query parameters shared by the per-day endpoints."""

    model_config = ConfigDict(populate_by_name=True)

    lat: float = Field(..., ge=-90.0, le=90.0, description="Latitude in degrees")
    lon: float = Field(0.0, ge=-180.0, le=180.0, description="Longitude in degrees")
    day: datetime.date = Field(..., alias="date", description="Civil calendar date (YYYY-MM-DD)")
    timezone: Optional[str] = Field(
        None,
        description="IANA timezone; looked up from the coordinates when omitted",
    )

    @field_validator("timezone")
    def validate_timezone(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        if value not in pytz.all_timezones_set:
            raise ValueError(f"unknown timezone: {value}")
        return value


class SeasonQueryParams(BaseModel):
    """Query parameters for the solstice/equinox endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    lat: float = Field(0.0, ge=-90.0, le=90.0, description="Latitude (selects hemisphere names)")
    day: datetime.date = Field(..., alias="date", description="Start date (YYYY-MM-DD)")
    count: int = Field(4, ge=1, le=8, description="Number of events to return")


class SolarDayResponse(BaseModel):
    ok: bool = True
    date: datetime.date
    latitude: float
    longitude: float
    timezone: str
    sunrise_utc: Optional[str] = Field(None, description="Sunrise in UTC (ISO-8601)")
    sunset_utc: Optional[str] = Field(None, description="Sunset in UTC (ISO-8601)")
    solar_noon_utc: str
    nadir_utc: Optional[str] = Field(None, description="Lowest sun before solar noon (ISO-8601)")
    sunrise_local: str = Field(..., description="HH:MM, or the polar condition")
    sunset_local: str = Field(..., description="HH:MM, or the polar condition")
    daylight_ms: int = Field(..., ge=0, le=86_400_000)
    daylight: str
    daylight_change: Optional[str] = Field(None, description="Change since the previous day, e.g. +2m 5s")
    max_altitude_deg: float
    is_polar_day: bool
    is_polar_night: bool
    mirror_date: Optional[datetime.date] = None
    source: Ephemeris


class BandsResponse(BaseModel):
    ok: bool = True
    date: datetime.date
    latitude: float
    longitude: float
    timezone: str
    daylight: List[Tuple[float, float]]
    civil: List[Tuple[float, float]]
    nautical: List[Tuple[float, float]]
    astronomical: List[Tuple[float, float]]
    durations: Dict[str, float] = Field(..., description="Hours spent in each zone")


class MilestoneModel(BaseModel):
    date: datetime.date
    kind: str
    description: str
    priority: int
    threshold: Optional[float] = None
    sunrise_time: Optional[str] = None
    sunset_time: Optional[str] = None


class MilestoneGroup(BaseModel):
    date: datetime.date
    milestones: List[MilestoneModel]


class MilestonesResponse(BaseModel):
    ok: bool = True
    date: datetime.date
    latitude: float
    longitude: float
    timezone: str
    groups: List[MilestoneGroup]


class MirrorResponse(BaseModel):
    ok: bool = True
    date: datetime.date
    mirror_date: Optional[datetime.date]


class SeasonModel(BaseModel):
    name: str
    moment_utc: str
    target_deg: int


class SeasonsResponse(BaseModel):
    ok: bool = True
    date: datetime.date
    latitude: float
    events: List[SeasonModel]


class PathPoint(BaseModel):
    time_utc: str
    altitude_deg: float
    azimuth_deg: float = Field(..., description="Compass bearing, North = 0, eastward")


class PathResponse(BaseModel):
    ok: bool = True
    date: datetime.date
    latitude: float
    longitude: float
    timezone: str
    points: List[PathPoint]


class LocationModel(BaseModel):
    name: str
    latitude: float
    longitude: float
    timezone: Optional[str] = None


class LocationsResponse(BaseModel):
    ok: bool = True
    locations: List[LocationModel]


class HealthResponse(BaseModel):
    """Health-check response."""

    ok: bool = True
    ephemeris: Ephemeris
    files: List[str]
    cache: Dict[str, int]


class ErrorResponse(BaseModel):
    """Error payload."""

    ok: bool = False
    code: str
    error: str


