"""clipharvest: resolve short-video share links into canonical video records."""

__version__ = "0.1.0"
