"""
Routers Module

API routers for the Turnstile solver application.
"""

from .turnstile import router as turnstile_router

__all__ = ["turnstile_router"]
