"""ASC Registry analytics: license normalization, appraiser resolution and rollups"""

__version__ = "0.1.0"
