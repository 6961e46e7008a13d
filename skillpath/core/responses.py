"""The ``{success, data | error}`` envelope every endpoint answers with."""
from typing import Generic, List, Optional, TypeVar

from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    data: T


def ok(data) -> dict:
    return {"success": True, "data": data}


def error_response(
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    message: str = "Internal server error",
    headers: Optional[dict] = None,
    unanswered: Optional[List[int]] = None,
) -> JSONResponse:
    body = {"success": False, "error": message}
    if unanswered:
        body["unanswered"] = unanswered
    return JSONResponse(status_code=status_code, content=body, headers=headers)
