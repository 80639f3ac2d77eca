# medilens/utils/response_formatter.py
"""
Turn webhook replies into chat display text.

Workflows answer with anything from a bare string to nested JSON. The reply
is pulled from the first non-empty conventional field (``result``, ``data``,
``output``, ``response``) and nested objects/arrays are rendered as a
markdown-like block: scalar fields as ``Key: value``, nested fields under a
bold ``**Key:**`` header, arrays as numbered lines.
"""
import json
import logging
import re
from typing import Any

from medilens.core.errors import ParseError

logger = logging.getLogger(__name__)

RESULT_KEYS = ("result", "data", "output", "response")
NO_RESULT_MESSAGE = "No result data found in the response."
UNPARSEABLE_MESSAGE = "Received response from workflow but could not parse it."

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
INDENT = "  "


def _is_blank(value: Any) -> bool:
    # empty lists/dicts count as content
    return value is None or value == "" or value == 0


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def title_case_key(key: str) -> str:
    words = _CAMEL_BOUNDARY.sub(" ", str(key)).replace("_", " ").replace("-", " ").split()
    return " ".join(word[:1].upper() + word[1:] for word in words)


def format_object(value: Any, depth: int = 0) -> str:
    pad = INDENT * depth
    lines = []

    if isinstance(value, list):
        for index, item in enumerate(value, start=1):
            if isinstance(item, (dict, list)):
                lines.append(f"{pad}{index}.")
                nested = format_object(item, depth + 1)
                if nested:
                    lines.append(nested)
            else:
                lines.append(f"{pad}{index}. {_scalar(item)}")
        return "\n".join(lines)

    for key, item in value.items():
        label = title_case_key(key)
        if isinstance(item, (dict, list)):
            lines.append(f"{pad}**{label}:**")
            nested = format_object(item, depth + 1)
            if nested:
                lines.append(nested)
        else:
            lines.append(f"{pad}{label}: {_scalar(item)}")
    return "\n".join(lines)


def format_response(data: Any) -> str:
    result = data
    if isinstance(data, dict):
        for key in RESULT_KEYS:
            if not _is_blank(data.get(key)):
                result = data[key]
                break

    if _is_blank(result):
        return NO_RESULT_MESSAGE
    if isinstance(result, str):
        return result
    if isinstance(result, (dict, list)):
        return format_object(result).strip() or NO_RESULT_MESSAGE
    return _scalar(result)


def parse_reply(raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise ParseError(f"Webhook reply is not JSON: {exc}") from exc


def reply_to_text(raw: str) -> str:
    """Parse a raw webhook body; non-JSON bodies are used verbatim."""
    try:
        data = parse_reply(raw)
    except ParseError as exc:
        logger.info("Falling back to raw webhook text: %s", exc.message)
        return raw or UNPARSEABLE_MESSAGE
    return format_response(data)
