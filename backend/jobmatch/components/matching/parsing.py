"""Turn raw Claude reply text into a candidate JSON document."""

from __future__ import annotations

import json
import re
from typing import Any

from .errors import ParseError

_FENCE_OPEN_RE = re.compile(r"^```[a-zA-Z0-9_-]*[ \t]*\n?")
_FENCE_CLOSE_RE = re.compile(r"\n?```\s*$")


def strip_code_fence(text: str) -> str:
    stripped = (text or "").strip()
    if not stripped.startswith("```"):
        return stripped
    stripped = _FENCE_OPEN_RE.sub("", stripped, count=1)
    stripped = _FENCE_CLOSE_RE.sub("", stripped, count=1)
    return stripped.strip()


def parse_model_response(raw_text: str) -> Any:
    """Parse a model reply, tolerating a ```json fenced wrapper.

    Field bounds are not checked here; see ``validation.validate_match_payload``.
    """
    body = strip_code_fence(raw_text)
    if not body:
        raise ParseError("Failed to parse Claude response: empty reply", fragment=raw_text or "")
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Failed to parse Claude response: {exc.msg} at position {exc.pos}", fragment=raw_text) from exc
    except ValueError as exc:
        # e.g. integer literals beyond the interpreter's digit limit
        raise ParseError(f"Failed to parse Claude response: {exc}", fragment=raw_text) from exc
