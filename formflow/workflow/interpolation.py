"""Template interpolation and dot-path lookup against a run context.

``{{token}}`` placeholders resolve against the context by exact key first and
then as a dot path (``{{lookup.data.items[0].name}}``). Unresolved tokens are
replaced with the empty string, so interpolating an already interpolated
string leaves it unchanged.
"""

from __future__ import annotations

import json
import re
from typing import Any, Mapping


TOKEN_RE = re.compile(r"\{\{\s*([\w.\-\[\]]+)\s*\}\}")
INDEXED_SEGMENT_RE = re.compile(r"^([^\[\]]*)\[(\d+)\]$")


def interpolate(template: str, context: Mapping[str, Any]) -> str:
    def _replace(match: re.Match[str]) -> str:
        return stringify(resolve_reference(context, match.group(1)))

    return TOKEN_RE.sub(_replace, template)


def template_refs(template: str) -> list[str]:
    refs: list[str] = []
    for match in TOKEN_RE.finditer(template):
        ref = match.group(1)
        if ref not in refs:
            refs.append(ref)
    return refs


def resolve_reference(context: Mapping[str, Any], ref: str) -> Any:
    if ref in context:
        return context[ref]
    return extract_path(context, ref)


def extract_path(obj: Any, path: str) -> Any:
    if not path or path == "$":
        return obj

    current = obj
    for part in path.split("."):
        if current is None:
            return None

        match = INDEXED_SEGMENT_RE.match(part)
        if match:
            key, index = match.groups()
            if key:
                current = _step(current, key)
            if not isinstance(current, (list, tuple)):
                return None
            position = int(index)
            current = current[position] if position < len(current) else None
            continue

        current = _step(current, part)
    return current


def stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    return str(value)


def _step(current: Any, key: str) -> Any:
    if isinstance(current, Mapping):
        return current.get(key)
    if isinstance(current, (list, tuple)) and key.isdecimal():
        position = int(key)
        return current[position] if position < len(current) else None
    return None
