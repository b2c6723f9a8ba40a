"""ASGI Entry Point - Root Module.

This is the root-level entry point for `uvicorn main:app`.
It imports from the incidenthub package.
"""

from incidenthub.main import app

__all__ = [
    "app",
]
