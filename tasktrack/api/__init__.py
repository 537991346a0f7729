"""TaskTrack HTTP API — FastAPI application, dependencies and routers."""

from tasktrack.api.app import create_app

__all__ = ["create_app"]
