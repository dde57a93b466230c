"""
Payload reader: turns any supported request encoding into a plain dict.

Supported: application/json, application/x-www-form-urlencoded,
multipart/form-data, or no body at all (query-string-only integrations).
"""
import json
import logging
import re
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import parse_qsl

from starlette.requests import Request

from backend.webhook.errors import MalformedPayload

logger = logging.getLogger(__name__)

NUMERIC_KEYS = {"amount", "total_price"}

_BRACKET_KEY = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])+)$")


def coerce_number(value: Any) -> Optional[Union[int, float]]:
    """
    "37" -> 37, "37.90" -> 37.9, 12 -> 12. Anything non-numeric -> None.
    Booleans are not amounts.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    text = str(value).strip().replace(",", ".")
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return int(number) if number.is_integer() else number


def unflatten_form(items: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Expand bracket keys the way form posts encode nested objects:
    {"customer[email]": "a@x.com"} -> {"customer": {"email": "a@x.com"}}
    """
    result: Dict[str, Any] = {}
    for key, value in items.items():
        match = _BRACKET_KEY.match(key)
        if not match:
            result[key] = value
            continue
        path = [match.group(1)] + re.findall(r"\[([^\[\]]*)\]", match.group(2))
        node = result
        for part in path[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[path[-1]] = value
    return result


def _coerce_numeric_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in list(data.items()):
        if isinstance(value, dict):
            _coerce_numeric_fields(value)
        elif key in NUMERIC_KEYS:
            number = coerce_number(value)
            if number is None:
                logger.warning(f"Ignoring non-numeric {key}={value!r} in webhook payload")
                data.pop(key)
            else:
                data[key] = number
    return data


async def read_payload(request: Request) -> Dict[str, Any]:
    """
    Read the request body into a dict.

    Empty bodies give {}. A JSON body that cannot be parsed raises
    MalformedPayload unless the query string carries the data instead.
    An untyped body starting with "{" or "[" counts as JSON.

    Args:
        request: Incoming Starlette/FastAPI request

    Returns:
        Dict of candidate fields (possibly nested)
    """
    content_type = request.headers.get("content-type", "").lower()
    has_query = bool(request.query_params)
    body = await request.body()

    if not body.strip():
        return {}

    if "form" in content_type:
        form = await request.form()
        flat = {k: v for k, v in form.multi_items() if isinstance(v, str)}
        return _coerce_numeric_fields(unflatten_form(flat))

    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        looks_like_json = body.lstrip()[:1] in (b"{", b"[")
        if "json" not in content_type and not looks_like_json:
            # Untyped body: accept a urlencoded string, otherwise nothing
            pairs = dict(parse_qsl(body.decode("utf-8", errors="ignore")))
            return _coerce_numeric_fields(unflatten_form(pairs))
        if has_query:
            logger.warning(f"Unparseable JSON webhook body, using query parameters only: {e}")
            return {}
        raise MalformedPayload(f"Invalid JSON body: {e}") from e

    if not isinstance(data, dict):
        if has_query:
            logger.warning("JSON webhook body is not an object, using query parameters only")
            return {}
        raise MalformedPayload("JSON body must be an object")

    return _coerce_numeric_fields(data)
