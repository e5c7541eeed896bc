"""Compatibility package that exposes the backend Flask application factory."""

from backend.potaflow import Config, build_poller, create_app

__all__ = ["Config", "build_poller", "create_app"]
