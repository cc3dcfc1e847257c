from __future__ import annotations

import base64
from dataclasses import asdict
from typing import Any


def _normalize(obj: Any) -> Any:
    if isinstance(obj, bytes):
        return base64.b64encode(obj).decode("ascii")
    if isinstance(obj, dict):
        return {str(k): _normalize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_normalize(v) for v in obj]
    return obj


def to_json_safe_dict(obj: Any) -> dict[str, Any]:
    """
    Convert a dataclass object into a JSON safe dict.

    bytes fields are rendered as base64 text. This is intended for display
    and debug logs only.
    """
    raw = asdict(obj)
    normalized = _normalize(raw)
    if not isinstance(normalized, dict):
        raise TypeError("expected dict after normalization")
    return normalized


def describe_matches(matches: Any) -> str:
    """
    One line rendering of allocation constraint matches.

    Empty maps are omitted. Keys are sorted for deterministic output.
    """
    parts = []
    for section, mapping in sorted(to_json_safe_dict(matches).items()):
        if not mapping:
            continue
        inner = ", ".join(f"{label}={ids}" for label, ids in sorted(mapping.items()))
        parts.append(f"{section}: {inner}")
    if not parts:
        return "no constraint matches"
    return "; ".join(parts)
