"""Per-connection SSH authentication bridge."""

__version__ = "0.1.0"
