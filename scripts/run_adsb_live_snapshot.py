#!/usr/bin/env python
"""
Pull two live ADS-B snapshots and reconcile them into a fresh registry.

Usage (from repo root):
    python scripts/run_adsb_live_snapshot.py
"""

import asyncio
from datetime import datetime, timezone

from skytrack.ingestors import ADSBIngestor
from skytrack.services import EntityRegistry


# Kyiv
LAT = 50.4501
LON = 30.5234
POLL_GAP_SECONDS = 15


async def main() -> None:
    now = datetime.now(timezone.utc)
    ingestor = ADSBIngestor()
    registry = EntityRegistry()

    print(f"=== Live ADS-B reconciliation test for {LAT}, {LON} (UTC now: {now.isoformat()}) ===\n")

    for poll in (1, 2):
        print(f"Requesting snapshot #{poll} from OpenSky...")
        records = await ingestor.get_snapshot(LAT, LON)
        if not records:
            print("No aircraft returned; skipping reconcile.")
        else:
            result = registry.reconcile(records)
            print(f"Reconciled {len(records)} records: {result.counts()}")
        if poll == 1:
            await asyncio.sleep(POLL_GAP_SECONDS)

    print(f"\nTracking {len(registry)} aircraft. Showing a few:")
    for idx, entity in enumerate(registry.query()[:5], start=1):
        prediction = registry.predict(entity.id, 60)
        print(
            f"{idx}. id={entity.id!r}, callsign={entity.metadata.get('callsign')!r}, "
            f"lat={entity.position[0]:.5f}, lon={entity.position[1]:.5f}, "
            f"alt_m={entity.altitude}, speed_kmh={entity.speed:.1f}, "
            f"hdg={entity.heading:.0f} ({entity.compass_point}), "
            f"predicted_60s={prediction.position if prediction else None}"
        )


if __name__ == "__main__":
    asyncio.run(main())
