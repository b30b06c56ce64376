from datetime import datetime, timezone

import httpx
import pytest

from skytrack.config import settings
from skytrack.ingestors.adsb import ADSBIngestor
from skytrack.models.entities import Classification


def _state(icao="abc123", lat=10.0, lon=20.0):
    return [
        icao,  # icao24
        "TEST123 ",  # callsign with trailing space
        "USA",
        1714765198,  # time_position
        1714765200,  # last_contact
        lon,  # longitude
        lat,  # latitude
        3657.6,  # baro_altitude meters
        False,  # on_ground
        164.6,  # velocity m/s
        90.0,  # true_track
        2.0,  # vertical_rate m/s
        None,  # sensors
        3700.0,  # geo_altitude meters
        "7000",  # squawk
        False,  # spi
        0,  # position_source
    ]


@pytest.mark.anyio
async def test_adsb_snapshot_parses_states():
    payload = {"time": 1714765200, "states": [_state()]}

    def handler(request: httpx.Request):
        assert "lamin" in request.url.params
        return httpx.Response(200, json=payload)

    transport = httpx.MockTransport(handler)
    ingestor = ADSBIngestor(base_url="https://example.test", transport=transport)

    records = await ingestor.get_snapshot(10.0, 20.0, radius_nm=50.0)

    assert len(records) == 1
    record = records[0]
    assert record.id == "ABC123"
    assert record.classification is Classification.AIRCRAFT
    assert record.position == (10.0, 20.0)
    assert record.altitude == pytest.approx(3700.0)
    assert record.speed == pytest.approx(592.56, rel=1e-3)
    assert record.heading == 90
    assert record.timestamp == datetime(2024, 5, 3, 19, 40, tzinfo=timezone.utc)
    assert record.metadata["callsign"] == "TEST123"
    assert record.metadata["source"] == "adsb"


@pytest.mark.anyio
async def test_adsb_snapshot_drops_invalid_states():
    payload = {"states": [_state(lat=95.0), _state(icao=None), ["short"], _state("def456")]}

    def handler(request: httpx.Request):
        return httpx.Response(200, json=payload)

    transport = httpx.MockTransport(handler)
    ingestor = ADSBIngestor(base_url="https://example.test", transport=transport)

    records = await ingestor.get_snapshot(10.0, 20.0)

    assert [record.id for record in records] == ["DEF456"]


@pytest.mark.anyio
async def test_adsb_snapshot_handles_rate_limit():
    def handler(request: httpx.Request):
        return httpx.Response(429, text="rate limited")

    transport = httpx.MockTransport(handler)
    ingestor = ADSBIngestor(base_url="https://example.test", transport=transport)

    assert await ingestor.get_snapshot(0.0, 0.0, radius_nm=10.0) == []


@pytest.mark.anyio
async def test_adsb_snapshot_handles_error_response():
    def handler(request: httpx.Request):
        return httpx.Response(503, text="unavailable")

    transport = httpx.MockTransport(handler)
    ingestor = ADSBIngestor(base_url="https://example.test", transport=transport)

    assert await ingestor.get_snapshot(0.0, 0.0) == []


@pytest.mark.anyio
async def test_adsb_snapshot_handles_transport_error():
    def handler(request: httpx.Request):
        raise httpx.ConnectError("unreachable", request=request)

    transport = httpx.MockTransport(handler)
    ingestor = ADSBIngestor(base_url="https://example.test", transport=transport)

    assert await ingestor.get_snapshot(0.0, 0.0) == []


@pytest.mark.anyio
async def test_adsb_snapshot_uses_configured_defaults(monkeypatch):
    monkeypatch.setattr(settings, "adsb_base_url", "https://configured.test/states")
    monkeypatch.setattr(settings, "adsb_default_radius_nm", 60.0)
    seen = {}

    def handler(request: httpx.Request):
        seen["host"] = request.url.host
        seen["lamax"] = float(request.url.params["lamax"])
        return httpx.Response(200, json={"states": None})

    ingestor = ADSBIngestor(transport=httpx.MockTransport(handler))

    assert await ingestor.get_snapshot(10.0, 20.0) == []
    assert seen["host"] == "configured.test"
    assert seen["lamax"] == pytest.approx(11.0)
