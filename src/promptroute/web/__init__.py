"""HTTP API for promptroute."""

from promptroute.web.app import create_app

__all__ = ["create_app"]
