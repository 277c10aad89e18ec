"""cesium - live host-resource monitor."""

__version__ = "0.1.0"
