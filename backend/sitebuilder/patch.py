"""Split a model reply into chat text and an allow-listed content update"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from sitebuilder.logger import get_logger
from sitebuilder.models import (
    APPLY_JSON_MARKER,
    CANVAS_COPY_KEYS,
    TOP_LEVEL_FIELDS,
    CanvasCopyKey,
    ParsedUpdate,
)
from sitebuilder.utils import extract_json_object, strip_code_fence

logger = get_logger(__name__)


@dataclass
class ParsedReply:
    """Chat text shown to the user plus the update to apply"""

    clean_text: str
    update: ParsedUpdate = field(default_factory=ParsedUpdate)


def _fix_string_escapes(match: re.Match) -> str:
    # Keep valid escapes: \" \\ \/ \b \f \n \r \t \u
    fixed = re.sub(r'\\([^"\\/bfnrtu])', r"\1", match.group(1))
    return f'"{fixed}"'


def _loads_object(json_text: str) -> Optional[dict]:
    """Decode a JSON object, retrying once with invalid escapes removed"""
    try:
        result = json.loads(json_text)
    except json.JSONDecodeError as e:
        logger.warning(f"APPLY_JSON payload is not valid JSON, attempting to fix: {e}")
        cleaned = re.sub(r'"((?:[^"\\]|\\.)*)"', _fix_string_escapes, json_text)
        try:
            result = json.loads(cleaned)
            logger.info("Successfully cleaned malformed APPLY_JSON payload")
        except json.JSONDecodeError as parse_error:
            logger.warning(
                f"Discarding APPLY_JSON payload: {parse_error}; payload (first 200 chars): {json_text[:200]}"
            )
            return None

    if not isinstance(result, dict):
        logger.warning(f"Discarding APPLY_JSON payload of type {type(result).__name__}")
        return None
    return result


def project_update(obj: dict[str, Any]) -> ParsedUpdate:
    """Keep only allow-listed keys whose values are strings"""
    values = {}
    for wire_name, attr in TOP_LEVEL_FIELDS.items():
        if isinstance(obj.get(wire_name), str):
            values[attr] = obj[wire_name]

    canvas_copy = {
        CanvasCopyKey(key): obj[key]
        for key in CANVAS_COPY_KEYS
        if isinstance(obj.get(key), str)
    }

    dropped = [k for k in obj if k not in TOP_LEVEL_FIELDS and k not in CANVAS_COPY_KEYS]
    if dropped:
        logger.debug(f"Ignoring keys outside the allow-list: {dropped}")

    return ParsedUpdate(**values, canvas_copy=canvas_copy)


def parse_apply_json(text: str, marker: str = APPLY_JSON_MARKER) -> ParsedReply:
    """Split `text` at the last `marker` and decode the object after it.

    Malformed or missing payloads give an empty update; they are never
    reported as errors.
    """
    index = text.rfind(marker)
    if index == -1:
        return ParsedReply(clean_text=text.strip())

    clean_text = text[:index].strip()
    after = strip_code_fence(text[index + len(marker) :])

    json_text = extract_json_object(after)
    if not json_text:
        logger.warning("Marker found but no complete JSON object followed it")
        return ParsedReply(clean_text=clean_text)

    obj = _loads_object(json_text)
    if obj is None:
        return ParsedReply(clean_text=clean_text)

    return ParsedReply(clean_text=clean_text, update=project_update(obj))
