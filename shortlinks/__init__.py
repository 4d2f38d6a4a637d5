"""Short link resolution and visit analytics service."""

__version__ = "1.0.0"
