# app/dependencies.py
"""Shared FastAPI dependencies that are not tied to a single router."""

from app.utils.clock import utcnow


def get_clock():
    """Time source for the reservation engine. Tests override this to simulate expiry."""
    return utcnow
