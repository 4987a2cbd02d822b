"""HTTP rendering of storefront errors.

Protean's FastAPI integration maps ``ValidationError`` to 400 and
``ObjectNotFoundError`` to 404. Stock conflicts and illegal transitions are
conflicts with the current state (409); a failed or timed-out placement is
a "try again" outcome (503).
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from storefront.errors import CheckoutTimedOut, IllegalTransition, InsufficientStock, OrderPlacementFailed


async def _conflict(request: Request, exc):
    return JSONResponse(status_code=409, content={"error": exc.messages})


async def _placement_failed(request: Request, exc: OrderPlacementFailed):
    content = {"error": {"order": [exc.message]}}
    if isinstance(exc, CheckoutTimedOut):
        content["outcome"] = "unknown"
    return JSONResponse(status_code=503, content=content)


def register_error_handlers(app: FastAPI):
    register_exception_handlers(app)
    app.add_exception_handler(InsufficientStock, _conflict)
    app.add_exception_handler(IllegalTransition, _conflict)
    app.add_exception_handler(OrderPlacementFailed, _placement_failed)
