"""
Response envelopes.

Every route answers with {"success": true, ...} or
{"success": false, "error": {"message", "code", ...}} so the settings page can
show one message per submission.

Example:
    from common.utils import success_response, exception_response

    try:
        action = await read_avatar_action(form)
    except ValidationException as e:
        return exception_response(e)
    return success_response(message="Account settings saved")
"""

from typing import Any, Optional, Dict

from fastapi.responses import JSONResponse

from common.utils.exceptions import APIException


def success_response(
    data: Any = None,
    message: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build a success envelope.

    Args:
        data: Payload, omitted when None
        message: Text shown to the user, omitted when empty
    """
    response: Dict[str, Any] = {"success": True}

    if data is not None:
        response["data"] = data

    if message:
        response["message"] = message

    return response


def error_response(
    message: str,
    code: Optional[str] = None,
    details: Optional[Any] = None,
) -> Dict[str, Any]:
    """
    Build an error envelope.

    Args:
        message: Text shown to the user, verbatim
        code: Machine-readable code (e.g. "PASSWORD_MISMATCH")
        details: Extra context such as a provider code
    """
    error: Dict[str, Any] = {"message": message}

    if code:
        error["code"] = code

    if details is not None:
        error["details"] = details

    return {"success": False, "error": error}


def exception_response(exc: APIException) -> JSONResponse:
    """Render an APIException with its own status code and headers."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.message, code=exc.code, details=exc.details),
        headers=exc.headers,
    )
