from . import names
from .base import MetricsHook, NoOpMetricsHook, measure

__all__ = [
    "MetricsHook",
    "NoOpMetricsHook",
    "measure",
    "names",
]
