# backend/responses.py

from typing import Any, Optional
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def _envelope(**fields: Any) -> dict:
    # Absent fields are dropped rather than sent as null.
    return {key: value for key, value in fields.items() if value is not None}


def success_response(data: Any = None, message: Optional[str] = None, status_code: int = 200) -> JSONResponse:
    body = _envelope(success=True, data=data, message=message)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def created_response(data: Any, message: str = "Resource created successfully") -> JSONResponse:
    return success_response(data, message, status_code=201)


def error_response(
    status_code: int,
    error: str,
    code: Optional[str] = None,
    details: Any = None,
) -> JSONResponse:
    body = _envelope(success=False, error=error, code=code, details=details)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))
