"""
API v1 Routers

Version 1 of the Fishing Advice API.
"""

from api.v1.advice import router as advice_router

__all__ = ["advice_router"]
