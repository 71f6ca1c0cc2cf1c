from __future__ import annotations

import json
import logging
import re
from typing import Any

from vagas_ai.core.errors import ExtractionError, ExtractionErrorKind

logger = logging.getLogger(__name__)

_FENCE_OPEN = "```json"
_FENCE_CLOSE_RE = re.compile(r"\n[ \t]*```")
_CONTROL_ESCAPES = {"\n": "\\n", "\r": "\\r", "\t": "\\t"}


def _find_fenced_block(text: str) -> tuple[str, bool] | None:
    """Return (interior, closed) for the first ```json fence, or None."""
    start = text.find(_FENCE_OPEN)
    if start == -1:
        return None
    body_start = start + len(_FENCE_OPEN)
    close = _FENCE_CLOSE_RE.search(text, body_start)
    if close is None:
        return text[body_start:].strip(), False
    return text[body_start : close.start()].strip(), True


def _scan_object_span(text: str) -> tuple[str, bool] | None:
    """String-aware brace matching from the first '{'.

    Returns (span, complete). A span that never balances runs to the end of
    the text and is reported as incomplete.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escape_next = False
    for index in range(start, len(text)):
        char = text[index]
        if escape_next:
            escape_next = False
            continue
        if char == "\\":
            escape_next = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1], True
    return text[start:], False


def repair_json_string(raw: str) -> str:
    """Escape literal newlines, carriage returns and tabs inside string values.

    Sequences that are already escaped are left alone. Stray quotes are not
    repaired because their intended boundaries cannot be recovered.
    """
    output: list[str] = []
    in_string = False
    escape_next = False
    for char in raw:
        if escape_next:
            escape_next = False
            output.append(char)
            continue
        if char == "\\":
            escape_next = True
            output.append(char)
            continue
        if char == '"':
            in_string = not in_string
            output.append(char)
            continue
        if in_string and char in _CONTROL_ESCAPES:
            output.append(_CONTROL_ESCAPES[char])
            continue
        output.append(char)
    return "".join(output)


def _loads_with_repair(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        repaired = repair_json_string(raw)
        if repaired == raw:
            raise
        try:
            parsed = json.loads(repaired)
        except json.JSONDecodeError:
            raise exc from None
        logger.info("json_extraction_repaired chars=%s", len(raw))
        return parsed


def _looks_truncated(text: str) -> bool:
    """True when ``text`` stops mid-structure (unbalanced braces or brackets)."""
    stripped = text.strip()
    if not stripped.endswith(("}", "]")):
        return True

    depth = 0
    in_string = False
    escape_next = False
    for char in stripped:
        if escape_next:
            escape_next = False
            continue
        if char == "\\":
            escape_next = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if char in "{[":
            depth += 1
        elif char in "}]":
            depth -= 1
    return depth != 0 or in_string


def _salvage_leading_object(text: str) -> Any | None:
    """Parse the complete object that precedes a cut-off tail, if there is one."""
    span = _scan_object_span(text)
    if span is None:
        return None
    raw, complete = span
    if not complete or len(raw) == len(text.strip()):
        return None
    try:
        return _loads_with_repair(raw)
    except json.JSONDecodeError:
        return None


def extract_json(text: str) -> Any:
    """Pull the JSON payload out of a model reply.

    A ```json fence wins when present and closed; a broken fence is reported
    as such instead of falling back to a raw scan, unless its payload was cut
    off after a complete leading object, which is then returned. Otherwise the
    first balanced object found by a string-aware brace scan is parsed.
    """
    text = text or ""

    fenced = _find_fenced_block(text)
    if fenced is not None:
        interior, closed = fenced
        if closed:
            try:
                return _loads_with_repair(interior)
            except json.JSONDecodeError as exc:
                truncated = _looks_truncated(interior)
                if truncated:
                    salvaged = _salvage_leading_object(interior)
                    if salvaged is not None:
                        logger.warning("json_extraction_salvaged chars=%s", len(interior))
                        return salvaged
                logger.warning(
                    "json_extraction_failed kind=%s chars=%s truncated=%s: %s",
                    ExtractionErrorKind.INVALID_FENCED_JSON.value,
                    len(interior),
                    truncated,
                    exc,
                )
                raise ExtractionError(
                    ExtractionErrorKind.INVALID_FENCED_JSON,
                    f"Invalid JSON in code fence: {exc}",
                    truncated=truncated,
                ) from exc
        text = interior

    span = _scan_object_span(text)
    if span is None:
        raise ExtractionError(
            ExtractionErrorKind.NO_JSON_FOUND,
            "No valid JSON found in model response",
        )

    raw, complete = span
    try:
        return _loads_with_repair(raw)
    except json.JSONDecodeError as exc:
        logger.warning(
            "json_extraction_failed kind=%s chars=%s truncated=%s: %s",
            ExtractionErrorKind.INVALID_DIRECT_JSON.value,
            len(raw),
            not complete,
            exc,
        )
        detail = " (incomplete structure, output may have hit the token limit)" if not complete else ""
        raise ExtractionError(
            ExtractionErrorKind.INVALID_DIRECT_JSON,
            f"Invalid JSON format{detail}: {exc}",
            truncated=not complete,
        ) from exc
