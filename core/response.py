def ok(**fields):
    """Standard success envelope: {"ok": true, ...fields}."""
    return {"ok": True, **fields}


def error(message: str = "An internal error occurred", detail=None):
    """Standard error envelope. `detail` is only included when provided."""
    body = {"ok": False, "error": message}
    if detail is not None:
        body["detail"] = detail
    return body
