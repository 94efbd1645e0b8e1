"""JSON transformer that keeps dates (and sets) intact across the wire.

Plain ``json`` turns a datetime into a string and the receiver cannot tell it
apart from any other string. This transformer emits superjson-style payloads:

    {"json": {...plain JSON...}, "meta": {"values": {"0.post.createdAt": ["Date"]}}}

``meta.values`` maps dotted paths (dots inside keys escaped as ``\\.``) to the
original type, so ``deserialize`` can restore the values. Pydantic models are
dumped by alias before walking.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

from pydantic import BaseModel

DATE = "Date"
SET = "set"


def _escape_key(key: str) -> str:
    return key.replace("\\", "\\\\").replace(".", "\\.")


def _split_path(path: str) -> list[str]:
    parts: list[str] = []
    current: list[str] = []
    escaped = False
    for char in path:
        if escaped:
            current.append(char)
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == ".":
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return parts


def _format_date(value: datetime) -> str:
    if value.tzinfo is None:
        # Naive timestamps coming out of the store are UTC.
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _walk(value: Any, path: list[str], annotations: dict[str, list[str]]) -> Any:
    if isinstance(value, BaseModel):
        value = value.model_dump(by_alias=True)

    if isinstance(value, datetime):
        annotations[".".join(path)] = [DATE]
        return _format_date(value)
    if isinstance(value, date):
        annotations[".".join(path)] = [DATE]
        return _format_date(datetime(value.year, value.month, value.day))
    if isinstance(value, dict):
        return {
            str(k): _walk(v, path + [_escape_key(str(k))], annotations)
            for k, v in value.items()
        }
    if isinstance(value, (set, frozenset)):
        annotations[".".join(path)] = [SET]
        return [_walk(v, path + [str(i)], annotations) for i, v in enumerate(value)]
    if isinstance(value, (list, tuple)):
        return [_walk(v, path + [str(i)], annotations) for i, v in enumerate(value)]
    return value


def serialize(value: Any) -> dict[str, Any]:
    """Encode ``value`` into a JSON-safe payload plus type annotations."""
    annotations: dict[str, list[str]] = {}
    payload: dict[str, Any] = {"json": _walk(value, [], annotations)}
    if annotations:
        payload["meta"] = {"values": annotations}
    return payload


def _restore(value: Any, kind: str) -> Any:
    if kind == DATE:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    if kind == SET:
        return set(value)
    raise ValueError(f"Unsupported annotation: {kind}")


def deserialize(payload: dict[str, Any]) -> Any:
    """Decode a payload produced by ``serialize``."""
    data = payload["json"]
    annotations: dict[str, list[str]] = payload.get("meta", {}).get("values", {})

    # Deepest paths first so sets are rebuilt after their members.
    for path in sorted(annotations, key=lambda p: len(_split_path(p)) if p else 0, reverse=True):
        kind = annotations[path][0]
        if path == "":
            data = _restore(data, kind)
            continue
        *parents, last = _split_path(path)
        container = data
        for part in parents:
            container = container[int(part)] if isinstance(container, list) else container[part]
        if isinstance(container, list):
            container[int(last)] = _restore(container[int(last)], kind)
        else:
            container[last] = _restore(container[last], kind)

    return data
