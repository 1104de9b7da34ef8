"""An in-memory fake of the Gmail labels and filters service."""

from __future__ import annotations

import copy
import dataclasses
import hashlib
import json
import threading
from dataclasses import dataclass
from typing import Optional

from .gmailapi import GmailFilter

DEFAULT_LABELS = frozenset(
    {
        "INBOX",
        "TRASH",
        "IMPORTANT",
        "UNREAD",
        "SPAM",
        "STARRED",
        "CATEGORY_PERSONAL",
        "CATEGORY_SOCIAL",
        "CATEGORY_UPDATES",
        "CATEGORY_FORUMS",
        "CATEGORY_PROMOTIONS",
    }
)

_BAD_REQUEST = 400
_NOT_FOUND = 404


def _quote(s: str) -> str:
    return json.dumps(s, ensure_ascii=False)


class StatusError(Exception):
    """A failed request, with the HTTP status the service answers with."""

    def __init__(self, status_code: int, message: str):
        super().__init__(status_code, message)
        self.status_code = status_code
        self.message = message

    def __str__(self) -> str:
        return f"{self.message} (status {self.status_code})"


@dataclass
class GmailLabelColor:
    """Colour of a label as the Gmail API represents it."""

    background_color: str = ""
    text_color: str = ""


@dataclass
class GmailLabel:
    """A label as the Gmail API represents it."""

    name: str = ""
    id: str = ""
    color: Optional[GmailLabelColor] = None


def _hash_filter(f: GmailFilter) -> str:
    # Only criteria and action count, never the ID.
    payload = json.dumps(
        [dataclasses.asdict(f.criteria), dataclasses.asdict(f.action)],
        sort_keys=True,
        default=str,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


class FakeGmail:
    """Stores labels and filters in memory, behaving like the Gmail service."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._labels: dict[str, Optional[GmailLabel]] = dict.fromkeys(DEFAULT_LABELS)
        self._label_names: set[str] = set()
        self._next_label_id = 0
        self._filters: dict[str, GmailFilter] = {}

    def labels(self) -> list[GmailLabel]:
        """Return the user labels, sorted by ID."""
        with self._lock:
            res = [
                copy.deepcopy(label)
                for label_id, label in self._labels.items()
                if label_id not in DEFAULT_LABELS
            ]
        return sorted(res, key=lambda label: label.id)

    def create_label(self, label: GmailLabel) -> GmailLabel:
        """Create a label, assigning it a new ID."""
        with self._lock:
            if label.id:
                raise StatusError(
                    _BAD_REQUEST,
                    f"cannot create label with non empty ID. Got: {_quote(label.id)}",
                )
            if label.name in self._label_names:
                raise StatusError(
                    _BAD_REQUEST, f"label with name {_quote(label.name)} is already present"
                )
            stored = copy.deepcopy(label)
            stored.id = f"ID{self._next_label_id}"
            self._next_label_id += 1
            self._labels[stored.id] = stored
            self._label_names.add(stored.name)
            return copy.deepcopy(stored)

    def _user_label(self, label_id: str) -> GmailLabel:
        if label_id not in self._labels:
            raise StatusError(_NOT_FOUND, f"id {_quote(label_id)} not found")
        target = self._labels[label_id]
        if target is None:
            raise StatusError(_BAD_REQUEST, f"label {_quote(label_id)} is a system label")
        return target

    def delete_label(self, id: str) -> None:
        """Delete the label with the given ID."""
        with self._lock:
            target = self._user_label(id)
            self._label_names.discard(target.name)
            del self._labels[id]

    def update_label(self, label: GmailLabel) -> GmailLabel:
        """Update name and, when given, colour of the label with label.id."""
        with self._lock:
            target = self._user_label(label.id)
            if label.color is not None:
                target.color = copy.deepcopy(label.color)
            if target.name != label.name:
                self._label_names.discard(target.name)
                self._label_names.add(label.name)
                target.name = label.name
            return copy.deepcopy(target)

    def filters(self) -> list[GmailFilter]:
        """Return all filters, sorted by ID."""
        with self._lock:
            res = [copy.deepcopy(f) for f in self._filters.values()]
        return sorted(res, key=lambda f: f.id)

    def create_filter(self, f: GmailFilter) -> GmailFilter:
        """Create a filter; its ID is the hash of its contents."""
        with self._lock:
            if f.criteria is None or f.action is None:
                raise StatusError(_BAD_REQUEST, "filter needs both criteria and action")
            h = _hash_filter(f)
            if h in self._filters:
                raise StatusError(_BAD_REQUEST, f"filter with hash {_quote(h)} already exists")
            for label_id in f.action.add_label_ids or ():
                if label_id not in self._labels:
                    raise StatusError(_BAD_REQUEST, f"invalid label {_quote(label_id)}")
            stored = copy.deepcopy(f)
            stored.id = h
            self._filters[h] = stored
            return copy.deepcopy(stored)

    def delete_filter(self, id: str) -> None:
        """Delete the filter with the given ID."""
        with self._lock:
            if id not in self._filters:
                raise StatusError(_NOT_FOUND, f"id {_quote(id)} not found")
            del self._filters[id]