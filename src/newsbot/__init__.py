"""Tech news pipeline: discover, harvest, enrich, rank and deliver."""

__version__ = "0.1.0"
