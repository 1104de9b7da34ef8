import io
import xml.etree.ElementTree as ET
from datetime import datetime, timedelta, timezone

import pytest

from gmailrules.filters import Actions, Criteria, Filter, Filters
from gmailrules.gmail import Category
from gmailrules.xmlexport import (
    APPS_NAMESPACE,
    ATOM_NAMESPACE,
    XML_HEADER,
    Author,
    Exporter,
    category_to_smart_label,
)

FIXED = datetime(2019, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
ATOM = "{" + ATOM_NAMESPACE + "}"
APPS = "{" + APPS_NAMESPACE + "}"


def _export(filters, author=Author(name="Someone", email="someone@example.com")):
    out = io.StringIO()
    Exporter(lambda: FIXED).export(author, filters, out)
    return out.getvalue()


def _properties(doc):
    root = ET.fromstring(doc.encode("utf-8"))
    return [
        [(p.get("name"), p.get("value")) for p in entry.iter(APPS + "property")]
        for entry in root.iter(ATOM + "entry")
    ]


def test_header_and_metadata():
    doc = _export(Filters())
    assert doc.startswith(XML_HEADER)
    assert doc.endswith("</feed>\n")
    root = ET.fromstring(doc.encode("utf-8"))
    assert root.tag == ATOM + "feed"
    assert root.find(ATOM + "title").text == "Mail Filters"
    assert root.find(ATOM + "id").text == "tag:mail.google.com,2008:filters:"
    assert root.find(ATOM + "updated").text == "2019-01-02T03:04:05Z"
    assert root.find(f"{ATOM}author/{ATOM}name").text == "Someone"
    assert root.find(f"{ATOM}author/{ATOM}email").text == "someone@example.com"
    assert root.findall(ATOM + "entry") == []


def test_properties_order():
    filters = Filters(
        [
            Filter(
                criteria=Criteria(from_="a@example.com", to="b@example.com", subject="s", query="q"),
                action=Actions(
                    archive=True,
                    delete=True,
                    mark_important=True,
                    mark_read=True,
                    mark_not_spam=True,
                    star=True,
                    add_label="lbl",
                    forward="c@example.com",
                    category=Category.FORUMS,
                ),
            )
        ]
    )
    props = _properties(_export(filters))
    assert props == [
        [
            ("from", "a@example.com"),
            ("to", "b@example.com"),
            ("subject", "s"),
            ("hasTheWord", "q"),
            ("shouldArchive", "true"),
            ("shouldTrash", "true"),
            ("shouldAlwaysMarkAsImportant", "true"),
            ("shouldMarkAsRead", "true"),
            ("shouldNeverSpam", "true"),
            ("shouldStar", "true"),
            ("label", "lbl"),
            ("forwardTo", "c@example.com"),
            ("smartLabelToApply", "^smartlabel_group"),
        ]
    ]


def test_entry_layout():
    doc = _export(Filters([Filter(criteria=Criteria(to="x"), action=Actions(mark_not_important=True))]))
    root = ET.fromstring(doc.encode("utf-8"))
    entry = root.find(ATOM + "entry")
    assert entry.find(ATOM + "category").get("term") == "filter"
    assert entry.find(ATOM + "title").text == "Mail Filter"
    assert _properties(doc) == [[("to", "x"), ("shouldNeverMarkAsImportant", "true")]]


def test_special_characters_round_trip():
    query = 'from:"a b" <x> & \'y\'\tz\nw'
    doc = _export(Filters([Filter(criteria=Criteria(query=query), action=Actions(star=True))]))
    assert _properties(doc) == [[("hasTheWord", query), ("shouldStar", "true")]]


def test_multiple_entries():
    filters = Filters(
        [
            Filter(criteria=Criteria(from_="a"), action=Actions(archive=True)),
            Filter(criteria=Criteria(from_="b"), action=Actions(delete=True)),
        ]
    )
    props = _properties(_export(filters))
    assert props == [
        [("from", "a"), ("shouldArchive", "true")],
        [("from", "b"), ("shouldTrash", "true")],
    ]


@pytest.mark.parametrize(
    "cat,expected",
    [
        (Category.PERSONAL, "^smartlabel_personal"),
        (Category.SOCIAL, "^smartlabel_social"),
        (Category.UPDATES, "^smartlabel_notification"),
        (Category.FORUMS, "^smartlabel_group"),
        (Category.PROMOTIONS, "^smartlabel_promo"),
        ("updates", "^smartlabel_notification"),
    ],
)
def test_category_to_smart_label(cat, expected):
    assert category_to_smart_label(cat) == expected


def test_unknown_category():
    with pytest.raises(ValueError, match="unrecognized category"):
        category_to_smart_label("bogus")


def test_export_error_writes_nothing():
    out = io.StringIO()
    bad = Filter(criteria=Criteria(from_="a"), action=Actions(category="bogus"))
    with pytest.raises(ValueError, match="possible values: personal"):
        Exporter(lambda: FIXED).export(Author(), [bad], out)
    assert out.getvalue() == ""


def test_default_now_is_current_time():
    before = datetime.now(timezone.utc) - timedelta(seconds=2)
    out = io.StringIO()
    Exporter().export(Author(), [], out)
    after = datetime.now(timezone.utc) + timedelta(seconds=2)
    root = ET.fromstring(out.getvalue().encode("utf-8"))
    parsed = datetime.fromisoformat(root.find(ATOM + "updated").text.replace("Z", "+00:00"))
    assert before <= parsed <= after