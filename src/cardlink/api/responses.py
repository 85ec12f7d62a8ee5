"""JSON envelope shared by every endpoint: ``{success, data | message | error}``."""

from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse


def success(data: Any = None, message: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    """Envelope for a successful response."""
    body: Dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body


def failure(status_code: int, message: str, error: str, **extra: Any) -> JSONResponse:
    """Envelope for an error response."""
    content: Dict[str, Any] = {"success": False, "message": message, "error": error}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)
