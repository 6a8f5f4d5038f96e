"""Routes package for the promptroute HTTP API."""

from promptroute.web.routes import recommend

__all__ = ["recommend"]
