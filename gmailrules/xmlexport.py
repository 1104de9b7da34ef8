"""Export of filters to the XML format Gmail imports filters from."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional, TextIO, Union

from .filters import Actions, Criteria, Filter
from .gmail import Category, possible_category_values

PROPERTY_FROM = "from"
PROPERTY_TO = "to"
PROPERTY_SUBJECT = "subject"
PROPERTY_HAS = "hasTheWord"
PROPERTY_MARK_IMPORTANT = "shouldAlwaysMarkAsImportant"
PROPERTY_MARK_NOT_IMPORTANT = "shouldNeverMarkAsImportant"
PROPERTY_APPLY_LABEL = "label"
PROPERTY_APPLY_CATEGORY = "smartLabelToApply"
PROPERTY_DELETE = "shouldTrash"
PROPERTY_ARCHIVE = "shouldArchive"
PROPERTY_MARK_READ = "shouldMarkAsRead"
PROPERTY_MARK_NOT_SPAM = "shouldNeverSpam"
PROPERTY_STAR = "shouldStar"
PROPERTY_FORWARD = "forwardTo"

SMART_LABEL_PERSONAL = "personal"
SMART_LABEL_GROUP = "group"
SMART_LABEL_NOTIFICATION = "notification"
SMART_LABEL_PROMO = "promo"
SMART_LABEL_SOCIAL = "social"

XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>\n'
ATOM_NAMESPACE = "http://www.w3.org/2005/Atom"
APPS_NAMESPACE = "http://schemas.google.com/apps/2006"

_SMART_LABELS = {
    Category.PERSONAL: SMART_LABEL_PERSONAL,
    Category.SOCIAL: SMART_LABEL_SOCIAL,
    Category.UPDATES: SMART_LABEL_NOTIFICATION,
    Category.FORUMS: SMART_LABEL_GROUP,
    Category.PROMOTIONS: SMART_LABEL_PROMO,
}

_ESCAPES = {
    '"': "&#34;",
    "'": "&#39;",
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    "\t": "&#x9;",
    "\n": "&#xA;",
    "\r": "&#xD;",
}


@dataclass(frozen=True)
class Author:
    """Author of the exported filters."""

    name: str = ""
    email: str = ""


def category_to_smart_label(cat: Union[Category, str]) -> str:
    """Return the smart label Gmail uses for a category."""
    try:
        smart = _SMART_LABELS[Category(cat)]
    except ValueError:
        raise ValueError(
            f'unrecognized category "{cat}" '
            f"(possible values: {', '.join(possible_category_values())})"
        ) from None
    return f"^smartlabel_{smart}"


def _valid_xml_char(code: int) -> bool:
    return (
        code in (0x09, 0x0A, 0x0D)
        or 0x20 <= code <= 0xD7FF
        or 0xE000 <= code <= 0xFFFD
        or 0x10000 <= code <= 0x10FFFF
    )


def _escape(s: str) -> str:
    out = []
    for ch in s:
        escaped = _ESCAPES.get(ch)
        if escaped is not None:
            out.append(escaped)
        elif _valid_xml_char(ord(ch)):
            out.append(ch)
        else:
            out.append("\ufffd")
    return "".join(out)


def _format_time(t: datetime) -> str:
    if t.tzinfo is None:
        t = t.astimezone()
    text = (
        f"{t.year:04d}-{t.month:02d}-{t.day:02d}"
        f"T{t.hour:02d}:{t.minute:02d}:{t.second:02d}"
    )
    if t.microsecond:
        text += "." + f"{t.microsecond:06d}".rstrip("0")
    offset = t.utcoffset() or timedelta(0)
    if offset == timedelta(0):
        return text + "Z"
    total = int(offset.total_seconds())
    sign = "+" if total >= 0 else "-"
    total = abs(total)
    return f"{text}{sign}{total // 3600:02d}:{total % 3600 // 60:02d}"


def _default_now() -> datetime:
    return datetime.now().astimezone()


def _string_props(pairs: Iterable[tuple[str, str]]) -> list[tuple[str, str]]:
    return [(name, value) for name, value in pairs if value]


def _bool_props(pairs: Iterable[tuple[str, bool]]) -> list[tuple[str, str]]:
    return [(name, "true") for name, value in pairs if value]


def _criteria_properties(c: Criteria) -> list[tuple[str, str]]:
    return _string_props(
        [
            (PROPERTY_FROM, c.from_),
            (PROPERTY_TO, c.to),
            (PROPERTY_SUBJECT, c.subject),
            (PROPERTY_HAS, c.query),
        ]
    )


def _action_properties(a: Actions) -> list[tuple[str, str]]:
    res = _bool_props(
        [
            (PROPERTY_ARCHIVE, a.archive),
            (PROPERTY_DELETE, a.delete),
            (PROPERTY_MARK_IMPORTANT, a.mark_important),
            (PROPERTY_MARK_NOT_IMPORTANT, a.mark_not_important),
            (PROPERTY_MARK_READ, a.mark_read),
            (PROPERTY_MARK_NOT_SPAM, a.mark_not_spam),
            (PROPERTY_STAR, a.star),
        ]
    )
    res += _string_props(
        [(PROPERTY_APPLY_LABEL, a.add_label), (PROPERTY_FORWARD, a.forward)]
    )
    if a.category:
        res.append((PROPERTY_APPLY_CATEGORY, category_to_smart_label(a.category)))
    return res


class Exporter:
    """Exports filters to the Gmail XML format."""

    def __init__(self, now: Optional[Callable[[], datetime]] = None):
        self._now = now or _default_now

    def export(self, author: Author, filters: Iterable[Filter], w: TextIO) -> None:
        """Write the filters as a Gmail XML document to w."""
        entries = [
            _criteria_properties(f.criteria) + _action_properties(f.action)
            for f in filters
        ]

        lines = [
            f'<feed xmlns="{_escape(ATOM_NAMESPACE)}" '
            f'xmlns:apps="{_escape(APPS_NAMESPACE)}">',
            "  <title>Mail Filters</title>",
            f"  <id>{_escape('tag:mail.google.com,2008:filters:')}</id>",
            f"  <updated>{_format_time(self._now())}</updated>",
            "  <author>",
            f"    <name>{_escape(author.name)}</name>",
            f"    <email>{_escape(author.email)}</email>",
            "  </author>",
        ]
        for props in entries:
            lines.append("  <entry>")
            lines.append('    <category term="filter"></category>')
            lines.append("    <title>Mail Filter</title>")
            lines.append("    <content></content>")
            lines.extend(
                f'    <apps:property name="{_escape(name)}" '
                f'value="{_escape(value)}"></apps:property>'
                for name, value in props
            )
            lines.append("  </entry>")
        lines.append("</feed>")

        w.write(XML_HEADER)
        w.write("\n".join(lines))
        w.write("\n")