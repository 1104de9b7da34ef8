"""Conversion between filters and the objects of the Gmail API."""

from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .errors import MultiError, with_details
from .filters import Actions, Criteria, Filter, Filters
from .gmail import Category
from .labels import Label
from .reporting import prettify

LABEL_ID_INBOX = "INBOX"
LABEL_ID_TRASH = "TRASH"
LABEL_ID_IMPORTANT = "IMPORTANT"
LABEL_ID_UNREAD = "UNREAD"
LABEL_ID_SPAM = "SPAM"
LABEL_ID_STAR = "STARRED"

LABEL_ID_CATEGORY_PERSONAL = "CATEGORY_PERSONAL"
LABEL_ID_CATEGORY_SOCIAL = "CATEGORY_SOCIAL"
LABEL_ID_CATEGORY_UPDATES = "CATEGORY_UPDATES"
LABEL_ID_CATEGORY_FORUMS = "CATEGORY_FORUMS"
LABEL_ID_CATEGORY_PROMOTIONS = "CATEGORY_PROMOTIONS"

_CATEGORY_TO_ID = {
    Category.PERSONAL: LABEL_ID_CATEGORY_PERSONAL,
    Category.SOCIAL: LABEL_ID_CATEGORY_SOCIAL,
    Category.UPDATES: LABEL_ID_CATEGORY_UPDATES,
    Category.FORUMS: LABEL_ID_CATEGORY_FORUMS,
    Category.PROMOTIONS: LABEL_ID_CATEGORY_PROMOTIONS,
}
_ID_TO_CATEGORY = {v: k for k, v in _CATEGORY_TO_ID.items()}

_UNSUPPORTED_CRITERIA_FIELDS = ("exclude_chats", "size", "size_comparison")
_UNSUPPORTED_ACTION_FIELDS: tuple = ()


def _quote(s: str) -> str:
    return json.dumps(s, ensure_ascii=False)


class LabelMap:
    """Maps label names and IDs to each other."""

    def __init__(self, labels: Optional[Iterable[Label]] = None):
        self._name_to_id: dict[str, str] = {}
        self._id_to_name: dict[str, str] = {}
        for label in labels or ():
            self.add_label(label.id, label.name)

    def name_to_id(self, name: str) -> Optional[str]:
        """Return the ID of the named label, or None if unknown."""
        return self._name_to_id.get(name)

    def id_to_name(self, id: str) -> Optional[str]:
        """Return the name of the label with the given ID, or None if unknown."""
        return self._id_to_name.get(id)

    def add_label(self, id: str, name: str) -> None:
        """Add a label to the mapping."""
        self._name_to_id[name] = id
        self._id_to_name[id] = name


@dataclass
class GmailFilterCriteria:
    """Criteria of a filter as the Gmail API represents it."""

    from_: str = ""
    to: str = ""
    subject: str = ""
    query: str = ""
    negated_query: str = ""
    has_attachment: bool = False
    exclude_chats: bool = False
    size: int = 0
    size_comparison: str = ""


@dataclass
class GmailFilterAction:
    """Action of a filter as the Gmail API represents it."""

    add_label_ids: list = field(default_factory=list)
    remove_label_ids: list = field(default_factory=list)
    forward: str = ""


@dataclass
class GmailFilter:
    """A filter as the Gmail API represents it."""

    action: Optional[GmailFilterAction] = None
    criteria: Optional[GmailFilterCriteria] = None
    id: str = ""


class PartialImportError(MultiError):
    """Some filters could not be imported; the valid ones are in ``filters``."""

    def __init__(self, errors, filters: Filters):
        super().__init__(errors)
        self.filters = filters


def export_filters(filters: Iterable[Filter], lmap: LabelMap) -> list:
    """Export filters into Gmail API objects."""
    res = []
    for i, f in enumerate(filters):
        try:
            res.append(_export(f, lmap))
        except ValueError as err:
            raise with_details(
                ValueError(f"exporting filter #{i}: {err}"),
                f"Filter (internal representation): {prettify(f, False)}",
            ) from err
    return res


def _export(f: Filter, lmap: LabelMap) -> GmailFilter:
    if f.action.empty():
        raise ValueError("no action specified")
    if f.criteria.empty():
        raise ValueError("no criteria specified")
    try:
        action = _export_action(f.action, lmap)
    except ValueError as err:
        raise ValueError(f"in export action: {err}") from err
    c = f.criteria
    criteria = GmailFilterCriteria(from_=c.from_, to=c.to, subject=c.subject, query=c.query)
    return GmailFilter(action=action, criteria=criteria)


def _export_action(action: Actions, lmap: LabelMap) -> GmailFilterAction:
    add: list[str] = []
    remove: list[str] = []
    if action.archive:
        remove.append(LABEL_ID_INBOX)
    if action.delete:
        add.append(LABEL_ID_TRASH)
    if action.mark_important:
        add.append(LABEL_ID_IMPORTANT)
    if action.mark_not_important:
        remove.append(LABEL_ID_IMPORTANT)
    if action.mark_read:
        remove.append(LABEL_ID_UNREAD)
    if action.mark_not_spam:
        remove.append(LABEL_ID_SPAM)
    if action.star:
        add.append(LABEL_ID_STAR)

    if action.category:
        cat_id = _CATEGORY_TO_ID.get(action.category)
        if cat_id is None:
            raise ValueError(f"unknown category {_quote(str(action.category))}")
        add.append(cat_id)
    if action.add_label:
        label_id = lmap.name_to_id(action.add_label)
        if label_id is None:
            raise ValueError(f"label {_quote(action.add_label)} not found")
        add.append(label_id)

    return GmailFilterAction(add_label_ids=add, remove_label_ids=remove, forward=action.forward)


def import_filters(filters: Iterable[GmailFilter], lmap: LabelMap) -> Filters:
    """Import Gmail API filters.

    Invalid filters are skipped; if there are any, PartialImportError is
    raised at the end, carrying the errors and the valid filters.
    """
    res = Filters()
    errors = []
    for gf in filters:
        try:
            res.append(_import_filter(gf, lmap))
        except ValueError as err:
            errors.append(ValueError(f"importing filter {_quote(gf.id)}: {err}"))
    if errors:
        raise PartialImportError(errors, res)
    return res


def _import_filter(gf: GmailFilter, lmap: LabelMap) -> Filter:
    try:
        action = _import_action(gf.action, lmap)
    except ValueError as err:
        raise ValueError(f"importing action: {err}") from err
    try:
        criteria = _import_criteria(gf.criteria)
    except ValueError as err:
        raise ValueError(f"importing criteria: {err}") from err
    return Filter(criteria=criteria, action=action, id=gf.id)


def _import_action(action: Optional[GmailFilterAction], lmap: LabelMap) -> Actions:
    if action is None:
        raise ValueError("empty action")
    try:
        _check_unsupported_fields(action, _UNSUPPORTED_ACTION_FIELDS)
    except ValueError as err:
        raise ValueError(f"criteria: {err}") from err

    values: dict = {}
    for label_id in action.add_label_ids or ():
        category = _ID_TO_CATEGORY.get(label_id)
        if category is not None:
            if values.get("category") is not None:
                raise ValueError(
                    f"multiple categories: '{category}', '{values['category']}'"
                )
            values["category"] = category
        elif label_id == LABEL_ID_TRASH:
            values["delete"] = True
        elif label_id == LABEL_ID_IMPORTANT:
            values["mark_important"] = True
        elif label_id == LABEL_ID_STAR:
            values["star"] = True
        else:
            name = lmap.id_to_name(label_id)
            if name is None:
                raise ValueError(f"unknown label ID '{label_id}'")
            values["add_label"] = name

    removals = {
        LABEL_ID_INBOX: "archive",
        LABEL_ID_UNREAD: "mark_read",
        LABEL_ID_IMPORTANT: "mark_not_important",
        LABEL_ID_SPAM: "mark_not_spam",
    }
    for label_id in action.remove_label_ids or ():
        flag = removals.get(label_id)
        if flag is None:
            # Filters not created by us are not supported.
            raise ValueError(f"unupported label to remove {_quote(label_id)}")
        values[flag] = True

    res = Actions(forward=action.forward, **values)
    if res.empty():
        raise ValueError("empty or unsupported action")
    return res


def _import_criteria(criteria: Optional[GmailFilterCriteria]) -> Criteria:
    # Fields we never generate are folded into the query instead.
    if criteria is None:
        raise ValueError("empty criteria")
    try:
        _check_unsupported_fields(criteria, _UNSUPPORTED_CRITERIA_FIELDS)
    except ValueError as err:
        raise ValueError(f"criteria: {err}") from err

    query = [criteria.query] if criteria.query else []
    if criteria.negated_query:
        # Terms of a negated query are in OR together in Gmail.
        query.append(f"-{{{criteria.negated_query}}}")
    if criteria.has_attachment:
        query.append("has:attachment")

    return Criteria(
        from_=criteria.from_,
        to=criteria.to,
        subject=criteria.subject,
        query=" ".join(query),
    )


def _check_unsupported_fields(obj, unsupported: Iterable[str]) -> None:
    names = set(unsupported)
    for f in dataclasses.fields(obj):
        if f.name not in names:
            continue
        if f.default is not dataclasses.MISSING:
            default = f.default
        else:
            default = f.default_factory()  # type: ignore[misc]
        value = getattr(obj, f.name)
        if value != default:
            raise ValueError(f"usage of unsupported field {_quote(f.name)} (value {value})")