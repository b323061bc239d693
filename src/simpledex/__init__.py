"""simpledex - swap client for a constant-product AMM pair."""

__version__ = "0.1.0"
