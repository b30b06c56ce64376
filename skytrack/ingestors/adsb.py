"""ADS-B snapshot source for nearby aircraft using the OpenSky REST API."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import math
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from skytrack.config import settings
from skytrack.models.entities import Classification
from skytrack.models.snapshots import SnapshotRecord

logger = logging.getLogger("skytrack.ingestors.adsb")


def _parse_timestamp(raw_ts: Any) -> datetime | None:
    if raw_ts is None:
        return None
    try:
        if isinstance(raw_ts, (int, float)):
            # OpenSky returns seconds since epoch
            return datetime.fromtimestamp(raw_ts, tz=timezone.utc)
        if isinstance(raw_ts, str):
            if raw_ts.endswith("Z"):
                raw_ts = raw_ts.replace("Z", "+00:00")
            return datetime.fromisoformat(raw_ts)
    except (OverflowError, OSError, ValueError):  # pragma: no cover - defensive conversion
        logger.debug("Failed to parse ADS-B timestamp: %s", raw_ts)
        return None
    return None


def _ms_to_kmh(value_ms: Any) -> float | None:
    if value_ms is None:
        return None
    try:
        return max(float(value_ms) * 3.6, 0.0)
    except (TypeError, ValueError):  # pragma: no cover - defensive conversion
        return None


def _as_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):  # pragma: no cover - defensive conversion
        return None


class ADSBIngestor:
    """Fetch a snapshot of aircraft inside a box around a centre point."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        default_radius_nm: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.adsb_base_url
        self.timeout = timeout or settings.adsb_timeout
        self.default_radius_nm = default_radius_nm or settings.adsb_default_radius_nm
        self.transport = transport

    async def get_snapshot(
        self, lat: float, lon: float, radius_nm: float | None = None
    ) -> list[SnapshotRecord]:
        """Return one record per aircraft, or ``[]`` when the provider fails."""

        radius = radius_nm or self.default_radius_nm
        lat_delta = radius / 60.0
        lon_delta = radius / max(60.0 * math.cos(math.radians(lat)), 0.0001)
        params = {
            "lamin": lat - lat_delta,
            "lomin": lon - lon_delta,
            "lamax": lat + lat_delta,
            "lomax": lon + lon_delta,
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.get(self.base_url, params=params)
        except httpx.TimeoutException as exc:
            logger.warning("ADSB request timed out: %s", exc)
            return []
        except httpx.RequestError as exc:
            logger.warning("ADSB request failed: %s", exc)
            return []

        if response.status_code == 429:
            logger.warning("ADSB provider rate limit encountered: %s", response.text)
            return []
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "ADSB provider returned HTTP %s: %s", exc.response.status_code, exc
            )
            return []

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning("Failed to parse ADSB JSON response: %s", exc)
            return []

        raw_states = []
        if isinstance(payload, dict):
            raw_states = payload.get("states", []) or []

        records: list[SnapshotRecord] = []
        for entry in raw_states:
            record = self._normalize_state(entry)
            if record:
                records.append(record)

        logger.debug("Ingested %s aircraft records", len(records))
        return records

    def _normalize_state(self, entry: Any) -> Optional[SnapshotRecord]:
        if not isinstance(entry, (list, tuple)) or len(entry) < 7:
            return None

        icao = entry[0].strip().upper() if entry[0] else None
        lon = _as_float(entry[5])
        lat = _as_float(entry[6])
        if not icao or lat is None or lon is None:
            return None

        callsign = entry[1].strip() if entry[1] else None
        altitude_m = entry[13] if len(entry) > 13 and entry[13] is not None else entry[7]
        velocity_ms = entry[9] if len(entry) > 9 else None
        heading = entry[10] if len(entry) > 10 else None
        on_ground = bool(entry[8]) if len(entry) > 8 else False
        last_seen = entry[4] if len(entry) > 4 and entry[4] is not None else entry[3]

        try:
            return SnapshotRecord(
                id=icao,
                classification=Classification.AIRCRAFT,
                position=(lat, lon),
                altitude=_as_float(altitude_m),
                speed=_ms_to_kmh(velocity_ms),
                heading=_as_float(heading),
                timestamp=_parse_timestamp(last_seen),
                metadata={
                    "callsign": callsign,
                    "origin_country": entry[2] if len(entry) > 2 else None,
                    "on_ground": on_ground,
                    "source": "adsb",
                },
            )
        except ValidationError as exc:
            logger.debug("Dropping ADS-B state for %s: %s", icao, exc)
            return None


__all__ = ["ADSBIngestor"]
