"""HTTP API for the swap client."""

from simpledex.api.app import create_app

__all__ = ["create_app"]
