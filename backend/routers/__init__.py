"""
Routers package
FastAPI route handlers organized by domain
"""
from . import pages
from . import realtime

__all__ = [
    "pages",
    "realtime",
]
