"""Builders for the `{success, data, message}` / `{success, error}` JSON envelope."""
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success_response(
    data: Any = None,
    message: str | None = None,
    status_code: int = 200,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Success envelope. `data` and `message` are omitted when None."""
    content: dict[str, Any] = {"success": True}
    if data is not None:
        content["data"] = jsonable_encoder(data, by_alias=True)
    if message is not None:
        content["message"] = message
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def error_response(
    status_code: int,
    error: str,
    data: Any = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Error envelope. `data` is only included for conflicts that carry a record."""
    content: dict[str, Any] = {"success": False, "error": error}
    if data is not None:
        content["data"] = jsonable_encoder(data, by_alias=True)
    return JSONResponse(status_code=status_code, content=content, headers=headers)
