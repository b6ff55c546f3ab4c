"""
FastAPI Dependencies Module

Provides dependency injection for the dispatcher owned by the app.
The dispatcher is created by main.create_app() and stored on app.state,
so tests can swap in one built around a fake browser engine.

Usage:
    from core.dependencies import get_dispatcher

    @router.get("/result")
    async def result(dispatcher: Dispatcher = Depends(get_dispatcher)):
        ...
"""

from fastapi import Request

from services.turnstile.dispatcher import Dispatcher


def get_dispatcher(request: Request) -> Dispatcher:
    """Return the dispatcher attached to the running application."""
    return request.app.state.dispatcher
