"""JSON envelope shared by every endpoint: {success, message, data?, error?}."""
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

_UNSET = object()


def encode(data: Any, exclude_none: bool = False) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(by_alias=True, mode="json", exclude_none=exclude_none)
    if isinstance(data, (list, tuple)):
        return [encode(item, exclude_none) for item in data]
    if isinstance(data, dict):
        return {key: encode(value, exclude_none) for key, value in data.items()}
    return jsonable_encoder(data)


def envelope(
    message: str,
    data: Any = _UNSET,
    *,
    success: bool = True,
    error: Optional[str] = None,
    status_code: int = 200,
    exclude_none: bool = False,
    **extra: Any,
) -> JSONResponse:
    """
    Build the response. `data` is omitted when not passed; pass data=None to send an
    explicit null (e.g. no active subscription).
    """
    body = {"success": success, "message": message}
    if data is not _UNSET:
        body["data"] = encode(data, exclude_none) if data is not None else None
    if error:
        body["error"] = error
    for key, value in extra.items():
        body[key] = encode(value)
    return JSONResponse(status_code=status_code, content=body)
