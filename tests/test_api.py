from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

import sys

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest
from fastapi.testclient import TestClient


@pytest.fixture(scope="module")
def api_client() -> Iterable[TestClient]:
    os.environ["SOLAR_EPHEMERIS"] = "analytic"
    from daylight_api import app

    with TestClient(app) as client:
        yield client


def test_health_endpoint(api_client: TestClient) -> None:
    response = api_client.get("/health")
    assert response.status_code == 200
    payload = response.json()
    assert payload["ok"] is True
    assert payload["ephemeris"] == "analytic"
    assert set(payload["cache"]) == {"large", "medium", "small"}


def test_validation_error(api_client: TestClient) -> None:
    response = api_client.get(
        "/day",
        params={
            "lat": 95,  # invalid latitude
            "lon": 0,
            "date": "2024-10-21",
        },
    )
    assert response.status_code == 422
    payload = response.json()
    assert payload["code"] == "validation_error"
    assert payload["ok"] is False


def test_unknown_timezone_is_rejected(api_client: TestClient) -> None:
    response = api_client.get(
        "/day",
        params={"lat": 10, "lon": 0, "date": "2024-10-21", "timezone": "Mars/Olympus_Mons"},
    )
    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"


def test_polar_night_day(api_client: TestClient) -> None:
    response = api_client.get(
        "/day",
        params={"lat": 78.2, "lon": 15.6, "date": "2024-01-01", "timezone": "Arctic/Longyearbyen"},
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["is_polar_night"] is True
    assert payload["sunrise_utc"] is None
    assert payload["sunrise_local"] == "Polar night"
    assert payload["daylight"] == "0h 0m"
    assert payload["source"] == "analytic"


def test_timezone_is_looked_up_from_coordinates(api_client: TestClient) -> None:
    response = api_client.get("/day", params={"lat": 59.9, "lon": 10.7, "date": "2024-07-01"})
    assert response.status_code == 200
    payload = response.json()
    assert payload["timezone"] == "Europe/Oslo"
    assert payload["sunrise_utc"].endswith("Z")
    assert payload["nadir_utc"] < payload["sunrise_utc"]
    assert payload["daylight_change"].startswith("-")
    assert payload["mirror_date"] is not None


def test_bands_endpoint(api_client: TestClient) -> None:
    response = api_client.get(
        "/bands", params={"lat": 51.5, "lon": -0.1, "date": "2024-06-21", "timezone": "Europe/London"}
    )
    assert response.status_code == 200
    payload = response.json()
    assert len(payload["daylight"]) == 1
    assert sum(payload["durations"].values()) == pytest.approx(24.0)


def test_milestones_endpoint(api_client: TestClient) -> None:
    response = api_client.get(
        "/milestones",
        params={"lat": 59.9, "lon": 10.7, "date": "2024-03-01", "timezone": "Europe/Oslo"},
    )
    assert response.status_code == 200
    groups = {group["date"]: group["milestones"] for group in response.json()["groups"]}
    assert "2024-03-31" in groups
    dst = [m for m in groups["2024-03-31"] if m["kind"] == "dst_begins"]
    assert dst and dst[0]["threshold"] == 1.0


def test_seasons_endpoint(api_client: TestClient) -> None:
    response = api_client.get("/seasons", params={"date": "2024-05-01", "count": 2})
    assert response.status_code == 200
    names = [event["name"] for event in response.json()["events"]]
    assert names == ["Summer Solstice", "Autumn Equinox"]


def test_mirror_and_path_endpoints(api_client: TestClient) -> None:
    mirror = api_client.get("/mirror", params={"lat": 45, "date": "2024-05-01"})
    assert mirror.status_code == 200
    assert mirror.json()["mirror_date"].startswith("2024-08")

    path = api_client.get("/path", params={"lat": 45, "lon": 0, "date": "2024-05-01", "timezone": "UTC"})
    assert path.status_code == 200
    assert len(path.json()["points"]) == 288


def test_locations_endpoint(api_client: TestClient) -> None:
    response = api_client.get("/locations")
    assert response.status_code == 200
    names = [location["name"] for location in response.json()["locations"]]
    assert "Oslo, Norway" in names


def test_location_lookup_by_name(api_client: TestClient) -> None:
    response = api_client.get("/locations", params={"name": "tromsø, norway"})
    assert response.status_code == 200
    [location] = response.json()["locations"]
    assert location["timezone"] == "Europe/Oslo"
    assert location["latitude"] == 69.7

    missing = api_client.get("/locations", params={"name": "Atlantis"})
    assert missing.status_code == 404
    assert missing.json()["code"] == "http_404"
