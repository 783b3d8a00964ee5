"""
Web Routes Package.

This package contains FastAPI route modules:
- api: REST API endpoints (/api/*)
"""

from routepause.web.routes.api import register_api_routes

__all__ = [
    "register_api_routes",
]
