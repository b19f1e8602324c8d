# restclient/handlers.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .errors import HttpError

async def http_error_handler(_request: Request, exc: HttpError) -> JSONResponse:
    """Relay an upstream failure: same status, normalized body (message, code, ...)."""
    return JSONResponse(status_code=exc.status_code, content=exc.detail)

def register_exception_handlers(app: FastAPI) -> FastAPI:
    app.add_exception_handler(HttpError, http_error_handler)
    return app
