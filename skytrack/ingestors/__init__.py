"""Snapshot sources for SkyTrack."""

from .adsb import ADSBIngestor

__all__ = ["ADSBIngestor"]
