"""Wire the registry, its periodic triggers and snapshot sources together."""

from __future__ import annotations

import logging
from typing import Optional

from skytrack.config import Settings, settings as default_settings
from skytrack.ingestors import ADSBIngestor
from skytrack.services.registry import EntityRegistry, ReconcileResult
from skytrack.services.scheduler import PeriodicTask

logger = logging.getLogger("skytrack.runtime")


class TrackingRuntime:
    """Own one registry and the periodic tasks that keep it fresh."""

    def __init__(
        self,
        config: Optional[Settings] = None,
        *,
        registry: Optional[EntityRegistry] = None,
        adsb_ingestor: Optional[ADSBIngestor] = None,
    ) -> None:
        self.config = config or default_settings
        self.registry = registry or EntityRegistry(
            max_points=self.config.trajectory_max_points
        )
        self.adsb_ingestor = adsb_ingestor
        self.tasks: list[PeriodicTask] = []

    def start(self) -> None:
        """Start tick, sweep and (if configured) ADS-B polling tasks."""

        if self.tasks:
            return

        if self.config.enable_tick:
            self.tasks.append(
                PeriodicTask("tick", self.config.tick_interval_seconds, self.registry.tick)
            )
        self.tasks.append(
            PeriodicTask("sweep", self.config.sweep_interval_seconds, self._sweep)
        )

        if self.config.enable_adsb_ingestor:
            if self.config.area_center_lat is None or self.config.area_center_lon is None:
                logger.warning("ADS-B ingestion enabled without an area centre; skipping")
            else:
                self.tasks.append(
                    PeriodicTask(
                        "adsb", self.config.adsb_poll_interval_seconds, self.poll_adsb
                    )
                )

        for task in self.tasks:
            task.start()

    async def aclose(self) -> None:
        for task in self.tasks:
            await task.aclose()
        self.tasks = []

    def _sweep(self, _elapsed: float) -> None:
        self.registry.sweep_stale_trajectories(self.config.trajectory_max_age_seconds)

    async def poll_adsb(self, _elapsed: float = 0.0) -> Optional[ReconcileResult]:
        """Fetch one ADS-B snapshot and reconcile it.

        An empty snapshot usually means the provider failed, so it is not
        reconciled (that would evict every live aircraft).
        """

        if self.adsb_ingestor is None:
            self.adsb_ingestor = ADSBIngestor()
        records = await self.adsb_ingestor.get_snapshot(
            self.config.area_center_lat,
            self.config.area_center_lon,
        )
        if not records:
            logger.info("ADS-B snapshot empty; keeping current entities")
            return None

        result = self.registry.reconcile(records)
        logger.info("ADS-B snapshot reconciled: %s", result.counts())
        return result


__all__ = ["TrackingRuntime"]
