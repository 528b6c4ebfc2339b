"""HTTP control surface for builder sessions."""

from .server import create_app

__all__ = ["create_app"]
