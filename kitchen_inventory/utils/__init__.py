"""Utility modules."""

from kitchen_inventory.utils.logging import setup_logging
from kitchen_inventory.utils.scheduling import PeriodicTask

__all__ = ["setup_logging", "PeriodicTask"]
