"""
HTTP layer for the subscriber webhook service.

This package provides a single FastAPI application that exposes:
- The Gumroad ping webhook
- Verify, health and service descriptor endpoints
- Admin endpoints guarded by the X-Admin-Key header
"""

from api.main import app, create_app

__all__ = ["app", "create_app"]
