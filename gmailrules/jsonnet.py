"""Writing values as Jsonnet-looking configuration."""

from __future__ import annotations

import dataclasses
import enum
import json
import re
from typing import Any, TextIO

_LABELS_COMMENT = """  // Note: labels management is optional. If you prefer to use the
  // GMail interface to add and remove labels, you can safely remove
  // this section of the config.
"""

_LABELS_LINE = "  labels: ["

_KEY_RE = re.compile(r'^ *"([a-zA-Z01]+)":')

_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _jsonable(o: Any) -> Any:
    if dataclasses.is_dataclass(o) and not isinstance(o, type):
        return {f.name: getattr(o, f.name) for f in dataclasses.fields(o)}
    if isinstance(o, enum.Enum):
        return o.value
    raise TypeError(f"cannot serialize {type(o).__name__}")


def _unquote_key(line: str) -> str:
    m = _KEY_RE.match(line)
    if m is None:
        return line
    return line[: m.start(1) - 1] + m.group(1) + line[m.end(1) + 1 :]


def marshal_jsonnet(v: Any, w: TextIO, header: str) -> None:
    """Write v to w as indented JSON made to look like Jsonnet, after header."""
    text = json.dumps(v, indent=2, ensure_ascii=False, default=_jsonable)
    for char, escaped in _ESCAPES.items():
        text = text.replace(char, escaped)

    w.write(header)
    for line in text.split("\n"):
        line = _unquote_key(line)
        if line == _LABELS_LINE:
            w.write(_LABELS_COMMENT)
        w.write(line)
        w.write("\n")