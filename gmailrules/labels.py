"""Gmail labels, their validation and the differences between two sets."""

from __future__ import annotations

import difflib
import json
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .filters import Filter


def _quote(s: str) -> str:
    return json.dumps(s, ensure_ascii=False)


@dataclass(frozen=True)
class Color:
    """The colour of a label."""

    background: str
    text: str


@dataclass(frozen=True)
class Label:
    """Information about a Gmail label; the ID is optional."""

    name: str
    color: Optional[Color] = None
    id: str = ""

    def __str__(self) -> str:
        parts = [f"{self.name} [{self.id}]" if self.id else self.name]
        if self.color is not None:
            parts.append(f"color: {self.color.background}, {self.color.text}")
        return "; ".join(parts)


class Labels(list):
    """A list of labels."""

    def __str__(self) -> str:
        return "\n".join(str(label) for label in self)

    def validate(self) -> None:
        """Raise ValueError if the labels have names Gmail would refuse."""
        seen: set[str] = set()
        for label in self:
            name = label.name
            if not name:
                raise ValueError("invalid label without a name")
            if name.startswith("/"):
                raise ValueError(f"label {_quote(name)} shouldn't start with /")
            if name.endswith("/"):
                raise ValueError(f"label {_quote(name)} shouldn't end with /")
            if name in seen:
                raise ValueError(f"label {_quote(name)} provided multiple times")
            seen.add(name)


@dataclass(frozen=True)
class ModifiedLabel:
    """A label in two versions, the old and the new."""

    old: Label
    new: Label


@dataclass
class LabelsDiff:
    """The difference between two lists of labels."""

    modified: list = field(default_factory=list)
    added: Labels = field(default_factory=Labels)
    removed: Labels = field(default_factory=Labels)

    def empty(self) -> bool:
        """Return True if the diff is empty."""
        return not self.added and not self.removed and not self.modified

    def __str__(self) -> str:
        def cleanup(label: Label) -> Label:
            # Leave out distracting information, such as the ID.
            return Label(name=label.name, color=label.color)

        old = [f"{cleanup(m.old)}\n" for m in self.modified]
        new = [f"{m.new}\n" for m in self.modified]
        old.extend(f"{cleanup(label)}\n" for label in self.removed)
        new.extend(f"{label}\n" for label in self.added)
        return "".join(
            difflib.unified_diff(old, new, fromfile="Current", tofile="TO BE APPLIED", n=3)
        )


def equivalent(upstream: Label, local: Label) -> bool:
    """Return True if two labels match, ignoring IDs and unspecified local colour."""
    if upstream.name != local.name:
        return False
    if local.color is None:
        return True
    if upstream.color is None:
        return False
    return upstream.color == local.color


def diff_labels(upstream: Iterable[Label], local: Iterable[Label]) -> LabelsDiff:
    """Compute the diff between two lists of labels, ignoring their IDs."""
    ups = sorted(upstream, key=lambda label: label.name)
    loc = sorted(local, key=lambda label: label.name)
    res = LabelsDiff()
    i = j = 0
    while i < len(ups) and j < len(loc):
        u, l = ups[i], loc[j]
        if u.name < l.name:
            res.removed.append(u)
            i += 1
        elif u.name > l.name:
            res.added.append(l)
            j += 1
        else:
            if not equivalent(u, l):
                res.modified.append(ModifiedLabel(old=u, new=l))
            i += 1
            j += 1
    res.removed.extend(ups[i:])
    res.added.extend(loc[j:])
    return res


def validate_diff(d: LabelsDiff, filters: Iterable[Filter]) -> None:
    """Raise ValueError if the diff removes a label still used by a filter."""
    filters = list(filters)
    for label in d.removed:
        if any(f.has_label(label.name) for f in filters):
            raise ValueError(f"cannot remove label {_quote(label.name)}, used in filter")