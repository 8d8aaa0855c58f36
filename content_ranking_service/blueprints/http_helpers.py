"""Request parsing and response helpers shared by the blueprints."""
import json
from typing import Any, Dict, Optional

import azure.functions as func

from content_ranking_service.exceptions import InvalidRequestError
from content_ranking_service.services import SearchIdentity

SESSION_HEADER = "x-session-id"


def json_response(payload: Any, status_code: int = 200) -> func.HttpResponse:
    return func.HttpResponse(
        json.dumps(payload, default=str),  # default=str handles datetime
        status_code=status_code,
        mimetype="application/json"
    )


def error_response(message: str, status_code: int) -> func.HttpResponse:
    return json_response({"error": message}, status_code=status_code)


def int_param(req: func.HttpRequest, name: str, default: int, minimum: int, maximum: int) -> int:
    """
    Read an integer query parameter and check its range.

    Raises:
        InvalidRequestError: If the value is not an integer or out of range
    """
    raw = req.params.get(name)
    if raw is None or raw == "":
        return default

    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise InvalidRequestError(f"{name} must be an integer")

    if value < minimum or value > maximum:
        raise InvalidRequestError(f"{name} must be between {minimum} and {maximum}")

    return value


def json_body(req: func.HttpRequest) -> Dict:
    """
    Decode a JSON object body. An empty body is an empty object.

    Raises:
        InvalidRequestError: If the body is not a JSON object
    """
    if not req.get_body():
        return {}

    try:
        body = req.get_json()
    except ValueError:
        raise InvalidRequestError("Request body must be valid JSON")

    if body is None:
        return {}
    if not isinstance(body, dict):
        raise InvalidRequestError("Request body must be a JSON object")

    return body


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def request_identity(req: func.HttpRequest, source: Optional[Dict] = None) -> SearchIdentity:
    """
    Who is making the request.

    user_id and session_id come from source (a JSON body, or the query
    parameters when None); the session header is used when no session_id is given.
    """
    if source is None:
        source = req.params

    session_id = _optional_str(source.get("session_id"))
    if session_id is None:
        session_id = _optional_str(req.headers.get(SESSION_HEADER))

    return SearchIdentity(
        user_id=_optional_str(source.get("user_id")),
        session_id=session_id,
    )
