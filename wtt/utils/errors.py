from typing import Any

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from wtt.utils.datetime_utils import get_utc_now, to_iso_string
from wtt.utils.exceptions import WttException


def wtt_exception_handler(request: Any, exc: WttException) -> JSONResponse:
    """Convert wtt exceptions to HTTP responses."""
    response = {
        "success": False,
        "error": {
            "code": exc.code,
            "message": exc.message,
            "details": None,
        },
        "meta": {
            "timestamp": to_iso_string(get_utc_now()),
        }
    }

    return JSONResponse(status_code=exc.status_code, content=response)


def register_exception_handlers(app: FastAPI) -> None:
    """Map every store error onto its transport status for an HTTP layer."""
    app.add_exception_handler(WttException, wtt_exception_handler)
