"""Scalar field lookup in GitHub JSON responses.

Most commands only need one or two fields out of a response (``html_url``,
``message``, ``sha``...). :func:`extract_field` parses the whole document and
returns the first scalar value stored under a key, rendered as text.
"""

from __future__ import annotations

import json
from collections import deque
from typing import Any


def _render_scalar(value: object) -> str | None:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, str):
        return value
    return None


def parse_json(text: str | bytes | None) -> Any:
    """Parse ``text`` as JSON, returning ``None`` when it is empty or invalid."""

    if text is None:
        return None
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")
    if not text.strip():
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


def extract_field(document: Any, key: str) -> str:
    """Return the first string/bool/null value stored under ``key``.

    ``document`` may be JSON text or an already parsed value. Objects are
    searched breadth-first in document order, so a top-level field wins over a
    nested field with the same name. Numbers, objects and arrays stored under
    ``key`` are skipped.

    Returns an empty string when the key is absent or the text is not JSON.
    """

    if isinstance(document, (str, bytes)):
        document = parse_json(document)

    queue: deque[Any] = deque([document])
    while queue:
        node = queue.popleft()
        if isinstance(node, dict):
            if key in node:
                rendered = _render_scalar(node[key])
                if rendered is not None:
                    return rendered
            queue.extend(v for v in node.values() if isinstance(v, (dict, list)))
        elif isinstance(node, list):
            queue.extend(v for v in node if isinstance(v, (dict, list)))
    return ""
