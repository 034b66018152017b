"""Google Photos Takeout migration into a flat, metadata-complete library."""

__version__ = "0.1.0"
