"""Readable rendering of objects for error reports."""

from __future__ import annotations

import dataclasses
import enum
import json
from typing import Any


def _to_jsonable(o: Any) -> Any:
    if dataclasses.is_dataclass(o) and not isinstance(o, type):
        return {f.name: getattr(o, f.name) for f in dataclasses.fields(o)}
    if isinstance(o, enum.Enum):
        return o.value
    if isinstance(o, (set, frozenset)):
        return sorted(o)
    raise TypeError(f"cannot serialize {type(o).__name__}")


def prettify(o: Any, compact: bool) -> str:
    """Return a readable JSON string representing the object."""
    try:
        if compact:
            return json.dumps(o, default=_to_jsonable, ensure_ascii=False, separators=(",", ":"))
        return json.dumps(o, default=_to_jsonable, ensure_ascii=False, indent=2)
    except (TypeError, ValueError):
        return f"(invalid) {o!r}"