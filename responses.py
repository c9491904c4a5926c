from typing import Any


def envelope(data: Any = None, message: str | None = None, success: bool = True, **extra) -> dict:
    """Wrap a payload in the {success, message, data} body every endpoint returns."""
    body: dict[str, Any] = {"success": success}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body
