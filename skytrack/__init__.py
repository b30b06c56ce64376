"""SkyTrack: live entity reconciliation and trajectory tracking."""

__version__ = "0.1.0"
