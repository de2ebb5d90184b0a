"""Uniform response envelopes: {success, message, data} and {success, message, errors?}."""
from typing import Any, List, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from errors import FieldError


def success_response(data: Any, message: str, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": True,
            "message": message,
            "data": jsonable_encoder(data, by_alias=True),
        },
    )


def error_response(
    status_code: int,
    message: str,
    errors: Optional[List[FieldError]] = None,
    stack: Optional[str] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    content: dict = {"success": False, "message": message}
    if errors:
        content["errors"] = [error.model_dump() for error in errors]
    if stack:
        content["stack"] = stack
    return JSONResponse(status_code=status_code, content=content, headers=headers)
