"""Filters as they exist in Gmail: criteria plus actions."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional

from .gmail import Category

_INDENT = "  "


@dataclass(frozen=True)
class Actions:
    """An action associated with a Gmail filter."""

    add_label: str = ""
    category: Optional[Category] = None
    archive: bool = False
    delete: bool = False
    mark_important: bool = False
    mark_not_important: bool = False
    mark_read: bool = False
    mark_not_spam: bool = False
    star: bool = False
    forward: str = ""

    def empty(self) -> bool:
        """Return True if no action is specified."""
        return self == Actions()


@dataclass(frozen=True)
class Criteria:
    """The filtering criteria associated with a Gmail filter."""

    from_: str = ""
    to: str = ""
    subject: str = ""
    query: str = ""

    def empty(self) -> bool:
        """Return True if no criteria is specified."""
        return self == Criteria()

    def to_gmail_search(self) -> str:
        """Return the equivalent query in Gmail search syntax."""
        parts = []
        if self.from_:
            parts.append(f"from:{self.from_}")
        if self.to:
            parts.append(f"to:{self.to}")
        if self.subject:
            parts.append(f"subject:{self.subject}")
        if self.query:
            parts.append(self.query)
        return " ".join(parts)


def _param(name: str, value: str) -> str:
    return f"    {name}: {value}\n" if value else ""


def _flag(name: str, value: bool) -> str:
    return f"    {name}\n" if value else ""


@dataclass(frozen=True)
class Filter:
    """A single filter as created on Gmail; the ID is optional."""

    criteria: Criteria = field(default_factory=Criteria)
    action: Actions = field(default_factory=Actions)
    id: str = ""

    def __str__(self) -> str:
        c, a = self.criteria, self.action
        category = a.category.value if a.category else ""
        return "".join(
            [
                "* Criteria:\n",
                _param("from", c.from_),
                _param("to", c.to),
                _param("subject", c.subject),
                _param("query", indent(c.query, 2)),
                "  Actions:\n",
                _flag("archive", a.archive),
                _flag("delete", a.delete),
                _flag("mark as important", a.mark_important),
                _flag("never mark as important", a.mark_not_important),
                _flag("never mark as spam", a.mark_not_spam),
                _flag("mark as read", a.mark_read),
                _flag("star", a.star),
                _param("categorize as", category),
                _param("apply label", a.add_label),
                _param("forward to", a.forward),
            ]
        )

    def has_label(self, name: str) -> bool:
        """Return True if the filter applies the given label."""
        return self.action.add_label == name


class Filters(list):
    """A list of filters."""

    def __str__(self) -> str:
        return "\n".join(str(f) for f in self)

    def has_label(self, name: str) -> bool:
        """Return True if at least one filter applies the given label."""
        return any(f.has_label(name) for f in self)


class _State(enum.Enum):
    OTHER = enum.auto()
    SKIP_SPACES = enum.auto()
    IN_QUOTES = enum.auto()


def _indent_query(query: str, level: int) -> tuple[str, bool]:
    out = [_INDENT * level]
    needed = False

    def newline(n: int) -> None:
        nonlocal needed
        out.append("\n" + _INDENT * n)
        needed = True

    state = _State.SKIP_SPACES
    for ch in query:
        if state is _State.IN_QUOTES:
            out.append(ch)
            if ch == '"':
                state = _State.OTHER
            continue
        if ch == " ":
            if state is _State.SKIP_SPACES:
                continue
            newline(level)
        elif ch in "{(":
            out.append(ch)
            level += 1
            newline(level)
            state = _State.SKIP_SPACES
        elif ch in "})":
            newline(level - 1)
            out.append(ch)
            level -= 1
            newline(level)
            state = _State.SKIP_SPACES
        elif ch == ":":
            out.append(":")
            state = _State.SKIP_SPACES
        elif ch == '"':
            state = _State.IN_QUOTES
            out.append('"')
        else:
            state = _State.OTHER
            out.append(ch)
    return "".join(out), needed


def indent(query: str, level: int) -> str:
    """Spread a query over several indented lines, if it has any structure."""
    text, needed = _indent_query(query, level + 1)
    if not needed:
        return query
    return "\n" + text.rstrip("\n ")