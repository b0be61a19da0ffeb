"""Restaurant inventory consumption and replenishment core."""

__version__ = "0.1.0"
