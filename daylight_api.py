"""FastAPI application exposing the solar time engine."""

from __future__ import annotations

import json
import logging
import time
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Optional, Tuple

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from timezonefinder import TimezoneFinder

from models import (
    BandsResponse,
    DayQueryParams,
    Ephemeris,
    ErrorResponse,
    HealthResponse,
    LocationModel,
    LocationsResponse,
    MilestoneGroup,
    MilestoneModel,
    MilestonesResponse,
    MirrorResponse,
    PathPoint,
    PathResponse,
    SeasonModel,
    SeasonQueryParams,
    SeasonsResponse,
    SolarDayResponse,
)
from solar import SolarEngine, group_by_date
from solar.config import EngineConfig
from solar.formatting import format_duration
from solar.kernels import EphemerisAcquisitionError
from solar.locations import PRESET_LOCATIONS, Location, find_preset
from solar.spice import EphemerisError, loaded_kernels

logging.basicConfig(level=logging.INFO, format="%(message)s")
LOGGER = logging.getLogger("daylight-api")

APP_DESCRIPTION = (
    "Daylight, twilight, milestone and season calculations for any place and date"
)

ENGINE: Optional[SolarEngine] = None
_TIMEZONE_FINDER: Optional[TimezoneFinder] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global ENGINE
    config = EngineConfig.from_env()
    try:
        ENGINE = SolarEngine.from_config(config)
    except (EphemerisAcquisitionError, EphemerisError) as exc:
        LOGGER.error(json.dumps({"event": "engine_start_failed", "error": str(exc)}))
        raise
    LOGGER.info(json.dumps({"event": "startup", "ephemeris": config.ephemeris}))
    yield
    ENGINE.reset()


app = FastAPI(
    title="Daylight API",
    description=APP_DESCRIPTION,
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)


def get_engine() -> SolarEngine:
    global ENGINE
    if ENGINE is None:
        ENGINE = SolarEngine.from_config()
    return ENGINE


def _resolve_timezone(params: DayQueryParams) -> str:
    global _TIMEZONE_FINDER
    if params.timezone:
        return params.timezone
    if _TIMEZONE_FINDER is None:
        _TIMEZONE_FINDER = TimezoneFinder()
    return _TIMEZONE_FINDER.timezone_at(lng=params.lon, lat=params.lat) or "UTC"


def _format_utc(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return dt.astimezone(UTC).isoformat().replace("+00:00", "Z")


def _source(engine: SolarEngine) -> Ephemeris:
    return Ephemeris(engine.config.ephemeris)


def _log_request(event: str, params: DayQueryParams, zone: str, start_time: float) -> None:
    LOGGER.info(
        json.dumps(
            {
                "event": event,
                "lat": params.lat,
                "lon": params.lon,
                "date": params.day.isoformat(),
                "timezone": zone,
                "duration_ms": round((time.perf_counter() - start_time) * 1000.0, 3),
            }
        )
    )


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    payload = ErrorResponse(code=code, error=message)
    LOGGER.error(json.dumps({"event": "error", "code": code, "message": message}))
    return JSONResponse(status_code=status_code, content=payload.model_dump())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = ", ".join(error["msg"] for error in exc.errors())
    return _error_response(422, "validation_error", messages)


@app.exception_handler(ValidationError)
async def model_validation_exception_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    # Raised by model validators when query models are built as dependencies.
    messages = ", ".join(error["msg"] for error in exc.errors())
    return _error_response(422, "validation_error", messages)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict):
        message = detail.get("error") or detail.get("message") or str(detail)
    elif isinstance(detail, list):
        message = ", ".join(str(item) for item in detail)
    else:
        message = str(detail)
    return _error_response(exc.status_code, f"http_{exc.status_code}", message)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    LOGGER.exception("Unhandled exception", exc_info=exc)
    return _error_response(500, "internal_error", "Unhandled server error")


@app.get("/health", response_model=HealthResponse)
def health(engine: SolarEngine = Depends(get_engine)) -> HealthResponse:
    return HealthResponse(
        ephemeris=_source(engine),
        files=loaded_kernels(),
        cache=engine.cache_sizes(),
    )


@app.get(
    "/day",
    response_model=SolarDayResponse,
    responses={422: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def day_endpoint(
    params: DayQueryParams = Depends(), engine: SolarEngine = Depends(get_engine)
) -> SolarDayResponse:
    start_time = time.perf_counter()
    zone = _resolve_timezone(params)
    solar_day = engine.solar_day(params.day, params.lat, params.lon, zone)
    stats = engine.day_stats(params.day, params.lat, params.lon, zone)
    response = SolarDayResponse(
        date=params.day,
        latitude=params.lat,
        longitude=params.lon,
        timezone=zone,
        sunrise_utc=_format_utc(solar_day.sunrise),
        sunset_utc=_format_utc(solar_day.sunset),
        solar_noon_utc=_format_utc(solar_day.solar_noon),
        nadir_utc=_format_utc(solar_day.nadir),
        sunrise_local=stats.sunrise,
        sunset_local=stats.sunset,
        daylight_ms=solar_day.daylight_ms,
        daylight=format_duration(solar_day.daylight_ms),
        daylight_change=stats.change_seconds,
        max_altitude_deg=round(solar_day.max_altitude_deg, 3),
        is_polar_day=solar_day.is_polar_day,
        is_polar_night=solar_day.is_polar_night,
        mirror_date=engine.mirror_of(params.day),
        source=_source(engine),
    )
    _log_request("day", params, zone, start_time)
    return response


@app.get("/bands", response_model=BandsResponse, responses={422: {"model": ErrorResponse}})
def bands_endpoint(
    params: DayQueryParams = Depends(), engine: SolarEngine = Depends(get_engine)
) -> BandsResponse:
    start_time = time.perf_counter()
    zone = _resolve_timezone(params)
    bands = engine.bands(params.day, params.lat, params.lon, zone)
    response = BandsResponse(
        date=params.day,
        latitude=params.lat,
        longitude=params.lon,
        timezone=zone,
        daylight=list(bands.daylight),
        civil=list(bands.civil),
        nautical=list(bands.nautical),
        astronomical=list(bands.astronomical),
        durations=engine.twilight_durations(params.day, params.lat, params.lon, zone),
    )
    _log_request("bands", params, zone, start_time)
    return response


@app.get("/milestones", response_model=MilestonesResponse, responses={422: {"model": ErrorResponse}})
def milestones_endpoint(
    params: DayQueryParams = Depends(), engine: SolarEngine = Depends(get_engine)
) -> MilestonesResponse:
    start_time = time.perf_counter()
    zone = _resolve_timezone(params)
    milestones = engine.scan_milestones(params.day, params.lat, params.lon, zone)
    groups = [
        MilestoneGroup(
            date=day,
            milestones=[
                MilestoneModel(
                    date=milestone.date,
                    kind=milestone.kind.value,
                    description=milestone.description,
                    priority=milestone.priority,
                    threshold=milestone.threshold,
                    sunrise_time=milestone.sunrise_time,
                    sunset_time=milestone.sunset_time,
                )
                for milestone in group
            ],
        )
        for day, group in group_by_date(milestones)
    ]
    response = MilestonesResponse(
        date=params.day,
        latitude=params.lat,
        longitude=params.lon,
        timezone=zone,
        groups=groups,
    )
    _log_request("milestones", params, zone, start_time)
    return response


@app.get("/mirror", response_model=MirrorResponse, responses={422: {"model": ErrorResponse}})
def mirror_endpoint(
    params: DayQueryParams = Depends(), engine: SolarEngine = Depends(get_engine)
) -> MirrorResponse:
    return MirrorResponse(date=params.day, mirror_date=engine.mirror_of(params.day))


@app.get("/seasons", response_model=SeasonsResponse, responses={422: {"model": ErrorResponse}})
def seasons_endpoint(
    params: SeasonQueryParams = Depends(), engine: SolarEngine = Depends(get_engine)
) -> SeasonsResponse:
    events = engine.upcoming_seasons(params.day, params.lat, params.count)
    return SeasonsResponse(
        date=params.day,
        latitude=params.lat,
        events=[
            SeasonModel(name=event.name, moment_utc=_format_utc(event.moment), target_deg=event.target_deg)
            for event in events
        ],
    )


@app.get("/path", response_model=PathResponse, responses={422: {"model": ErrorResponse}})
def path_endpoint(
    params: DayQueryParams = Depends(), engine: SolarEngine = Depends(get_engine)
) -> PathResponse:
    start_time = time.perf_counter()
    zone = _resolve_timezone(params)
    samples = engine.sun_path(params.day, params.lat, params.lon, zone)
    response = PathResponse(
        date=params.day,
        latitude=params.lat,
        longitude=params.lon,
        timezone=zone,
        points=[
            PathPoint(
                time_utc=_format_utc(sample.time),
                altitude_deg=round(sample.altitude_deg, 3),
                azimuth_deg=round(sample.azimuth_deg, 3),
            )
            for sample in samples
        ],
    )
    _log_request("path", params, zone, start_time)
    return response


@app.get("/locations", response_model=LocationsResponse, responses={404: {"model": ErrorResponse}})
def locations_endpoint(name: Optional[str] = None) -> LocationsResponse:
    locations: Tuple[Location, ...] = PRESET_LOCATIONS
    if name is not None:
        preset = find_preset(name)
        if preset is None:
            raise HTTPException(status_code=404, detail=f"Unknown location: {name}")
        locations = (preset,)
    return LocationsResponse(
        locations=[
            LocationModel(
                name=location.name,
                latitude=location.latitude,
                longitude=location.longitude,
                timezone=location.timezone,
            )
            for location in locations
        ]
    )
