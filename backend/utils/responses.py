from fastapi.responses import JSONResponse


def success_response(data=None, message="OK", status=200):
    return JSONResponse(
        status_code=status,
        content={
            "ok": True,
            "data": data if data is not None else {},
            "error": None,
            "message": message,
        }
    )


def error_response(error_code, status=400, message="An error occurred", data=None):
    return JSONResponse(
        status_code=status,
        content={
            "ok": False,
            "data": data or {},
            "error": error_code,
            "message": message,
        }
    )


def service_response(result: dict, message="OK", status=200):
    """Turn a service's {"data"/"error", "is_error"} dict into a JSON response."""
    if result.get("is_error"):
        return error_response(
            result.get("error", "unknown_error"),
            status=result.get("status", 400),
            message=result.get("message", "An error occurred"),
        )
    return success_response(result.get("data"), message=message, status=status)
