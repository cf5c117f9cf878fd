"""hwsnap - capture and restore hardware-describing /proc and /sys snapshots."""

__version__ = "0.1.0"
