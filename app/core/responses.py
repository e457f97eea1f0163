import json
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi.responses import JSONResponse


class EnvelopeResponse(JSONResponse):
    """
    Default response class for the API.

    Wraps the serialized route result in ``{success, message, data}``.
    """

    message = "Success"

    def render(self, content: Any) -> bytes:
        return json.dumps(
            {"success": True, "message": self.message, "data": content},
            ensure_ascii=False,
            allow_nan=False,
            separators=(",", ":"),
        ).encode("utf-8")


class RawJSONResponse(JSONResponse):
    """
    Opt-out of the envelope. Routes declare it with ``response_class=RawJSONResponse``
    when the client expects the payload exactly as produced (gateway order
    objects, order confirmations).
    """


def error_payload(
    status_code: int,
    message: Any,
    path: str,
    error: Optional[str] = None,
) -> dict:
    payload = {
        "success": False,
        "message": message,
        "statusCode": status_code,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "path": path,
    }
    if error:
        payload["error"] = error

    return payload
