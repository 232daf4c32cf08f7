"""Turn chat-completion payloads and model JSON into display text.

``normalize_content`` flattens whatever shape the API returns for
``choices[0].message.content`` into one string. ``format_value`` renders a
parsed JSON value (a section of the model's answer) as indented, readable
text. Both are total: unexpected shapes are stringified, never rejected.
"""

import json
import re
from typing import Any, List, Optional

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


def _dump(value: Any, **kwargs) -> str:
    try:
        return json.dumps(value, ensure_ascii=False, **kwargs)
    except (TypeError, ValueError, RecursionError):
        pass
    try:
        return str(value)
    except RecursionError:
        return ""


def normalize_content(content: Any) -> str:
    if not content:
        return ""
    if isinstance(content, str):
        return content.strip()
    if isinstance(content, (list, tuple)):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("text"):
                parts.append(str(part["text"]))
            elif isinstance(part, dict) and isinstance(part.get("content"), dict) and part["content"].get("text"):
                parts.append(str(part["content"]["text"]))
            else:
                parts.append(_dump(part, separators=(",", ":")))
        return "\n".join(parts).strip()
    return _dump(content, indent=2)


def _format_scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (str, int, float)):
        return str(value)
    return _dump(value, indent=2)


def _is_container(value: Any) -> bool:
    return isinstance(value, (list, tuple, dict))


def _entries(value: Any):
    if isinstance(value, dict):
        return iter(list(value.items()))
    return iter([(None, item) for item in value])


def _collect(node: Any, parts: List[str], key: Any, text: str) -> None:
    if not text:
        return
    parts.append(f"{key}: {text}" if isinstance(node, dict) else text)


def _join(node: Any, parts: List[str]) -> str:
    return "\n".join(parts) if isinstance(node, dict) else "\n\n".join(parts)


def format_value(value: Any) -> str:
    if not _is_container(value):
        return _format_scalar(value)

    # Walked with an explicit stack; model output can nest deeper than the interpreter allows
    # Each frame: [container, remaining entries, rendered parts, key of the child being rendered]
    stack = [[value, _entries(value), [], None]]
    result = ""
    while stack:
        frame = stack[-1]
        node, entries, parts = frame[0], frame[1], frame[2]
        for key, child in entries:
            if _is_container(child):
                frame[3] = key
                stack.append([child, _entries(child), [], None])
                break
            _collect(node, parts, key, _format_scalar(child))
        else:
            stack.pop()
            text = _join(node, parts)
            if stack:
                parent = stack[-1]
                _collect(parent[0], parent[2], parent[3], text)
            else:
                result = text
    return result


def parse_json_safe(content: Optional[str]) -> Any:
    """Decode model output as JSON, or return None when it is not JSON."""
    if not content or not isinstance(content, str):
        return None
    text = content.strip()
    fenced = _FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1)
    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        return None
