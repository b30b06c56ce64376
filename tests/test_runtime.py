import pytest

from skytrack.config import Settings
from skytrack.models.snapshots import SnapshotRecord
from skytrack.services.runtime import TrackingRuntime


class FakeIngestor:
    def __init__(self, snapshots):
        self.snapshots = list(snapshots)
        self.calls = []

    async def get_snapshot(self, lat, lon, radius_nm=None):
        self.calls.append((lat, lon))
        return self.snapshots.pop(0)


def _config(**overrides) -> Settings:
    values = {
        "enable_tick": False,
        "enable_adsb_ingestor": False,
        "area_center_lat": 50.45,
        "area_center_lon": 30.52,
    }
    values.update(overrides)
    return Settings(**values)


def _aircraft(icao: str) -> SnapshotRecord:
    return SnapshotRecord(id=icao, classification="aircraft", position=(50.4, 30.5))


@pytest.mark.anyio
async def test_poll_adsb_reconciles_snapshot():
    ingestor = FakeIngestor([[_aircraft("A1"), _aircraft("B2")], [_aircraft("B2")]])
    runtime = TrackingRuntime(_config(), adsb_ingestor=ingestor)

    first = await runtime.poll_adsb()
    second = await runtime.poll_adsb()

    assert first.added == ["A1", "B2"]
    assert second.removed == ["A1"]
    assert runtime.registry.ids() == ["B2"]
    assert ingestor.calls[0] == (50.45, 30.52)


@pytest.mark.anyio
async def test_empty_adsb_snapshot_keeps_entities():
    ingestor = FakeIngestor([[_aircraft("A1")], []])
    runtime = TrackingRuntime(_config(), adsb_ingestor=ingestor)

    await runtime.poll_adsb()
    result = await runtime.poll_adsb()

    assert result is None
    assert runtime.registry.ids() == ["A1"]


@pytest.mark.anyio
async def test_start_and_close_periodic_tasks():
    runtime = TrackingRuntime(_config())

    runtime.start()
    assert [task.name for task in runtime.tasks] == ["sweep"]
    assert all(task.running for task in runtime.tasks)

    await runtime.aclose()
    assert runtime.tasks == []


@pytest.mark.anyio
async def test_start_schedules_tick_and_adsb_when_enabled():
    runtime = TrackingRuntime(
        _config(enable_tick=True, enable_adsb_ingestor=True),
        adsb_ingestor=FakeIngestor([]),
    )

    runtime.start()
    names = [task.name for task in runtime.tasks]
    await runtime.aclose()

    assert names == ["tick", "sweep", "adsb"]
