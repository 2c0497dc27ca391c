from typing import Any, List, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def envelope(
    success: bool,
    message: Optional[str] = None,
    data: Any = None,
    errors: Optional[List[str]] = None,
    status_code: int = 200,
    headers: Optional[dict] = None,
    **extra: Any,
) -> JSONResponse:
    """{success, message?, data?, errors?} - пустые ключи не отдаём."""
    body = {"success": success}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    if errors is not None:
        body["errors"] = errors
    body.update({k: v for k, v in extra.items() if v is not None})
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=headers)


def error_response(
    status_code: int,
    message: str,
    errors: Optional[List[str]] = None,
    data: Any = None,
    headers: Optional[dict] = None,
    **extra: Any,
) -> JSONResponse:
    return envelope(False, message=message, data=data, errors=errors,
                    status_code=status_code, headers=headers, **extra)
