import logging

from fastapi import HTTPException
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ValidationError(HTTPException):
    """Request rejected before reaching the validation engine."""

    def __init__(self, message: str, field: str = None, limit: int = None):
        detail = {"error": "validation_error", "message": message}
        if field:
            detail["field"] = field
        if limit is not None:
            detail["limit"] = limit
        super().__init__(status_code=422, detail=detail)


async def validation_exception_handler(request, exc):
    logger.warning(f"Rejected request {request.method} {request.url.path}: {exc.detail.get('message')}")
    content = {
        "error": "Validation Error",
        "message": exc.detail.get("message", "Validation error"),
        "field": exc.detail.get("field"),
    }
    if "limit" in exc.detail:
        content["limit"] = exc.detail["limit"]
    return JSONResponse(status_code=422, content=content)
