import pytest

from gmailrules.fakegmail import FakeGmail, GmailLabel, GmailLabelColor, StatusError
from gmailrules.filters import Actions, Criteria, Filter, Filters
from gmailrules.gmail import Category
from gmailrules.gmailapi import (
    GmailFilter,
    GmailFilterAction,
    GmailFilterCriteria,
    LabelMap,
    export_filters,
)
from gmailrules.labels import Label


def _label_map(svc):
    return LabelMap([Label(name=l.name, id=l.id) for l in svc.labels()])


def _create(svc, filters):
    for gf in export_filters(filters, _label_map(svc)):
        svc.create_filter(gf)


def test_labels():
    svc = FakeGmail()
    svc.create_label(GmailLabel(name="Label1", color=GmailLabelColor("red", "blue")))
    svc.create_label(GmailLabel(name="Label2"))

    ls = svc.labels()
    assert [l.name for l in ls] == ["Label1", "Label2"]
    assert ls[0].color == GmailLabelColor("red", "blue")

    with pytest.raises(StatusError) as exc:
        svc.create_label(GmailLabel(name="Label2"))
    assert exc.value.status_code == 400

    svc.delete_label(ls[0].id)
    ls = svc.labels()
    assert len(ls) == 1

    ls[0].color = GmailLabelColor(background_color="green", text_color="blue")
    svc.update_label(ls[0])
    ls = svc.labels()
    assert len(ls) == 1
    assert ls[0].color.background_color == "green"
    assert ls[0].color.text_color == "blue"


def test_label_ids_are_assigned():
    svc = FakeGmail()
    created = svc.create_label(GmailLabel(name="a"))
    assert created.id == "ID0"
    assert svc.labels()[0].id == created.id


def test_create_label_with_id_fails():
    svc = FakeGmail()
    with pytest.raises(StatusError) as exc:
        svc.create_label(GmailLabel(name="a", id="X"))
    assert exc.value.status_code == 400
    assert svc.labels() == []


def test_delete_unknown_label():
    svc = FakeGmail()
    with pytest.raises(StatusError) as exc:
        svc.delete_label("nope")
    assert exc.value.status_code == 404
    assert str(exc.value).endswith("(status 404)")


def test_update_renames_and_frees_old_name():
    svc = FakeGmail()
    created = svc.create_label(GmailLabel(name="old"))
    updated = svc.update_label(GmailLabel(name="new", id=created.id))
    assert updated.name == "new"
    assert updated.color is None
    # The old name can be used again.
    again = svc.create_label(GmailLabel(name="old"))
    assert sorted(l.name for l in svc.labels()) == ["new", "old"]
    assert again.id != created.id


def test_filters():
    svc = FakeGmail()
    svc.create_label(GmailLabel(name="label1"))

    _create(
        svc,
        Filters(
            [
                Filter(
                    criteria=Criteria(from_="someone@example.com"),
                    action=Actions(category=Category.PERSONAL, mark_important=True),
                ),
                Filter(criteria=Criteria(subject="foo"), action=Actions(add_label="label1")),
            ]
        ),
    )
    fs = svc.filters()
    assert len(fs) == 2
    assert fs == sorted(fs, key=lambda f: f.id)

    with pytest.raises(StatusError) as exc:
        _create(svc, [Filter(criteria=Criteria(subject="foo"), action=Actions(add_label="label1"))])
    assert exc.value.status_code == 400

    with pytest.raises(StatusError) as exc:
        svc.create_filter(
            GmailFilter(
                action=GmailFilterAction(add_label_ids=["this-does-not-exist"]),
                criteria=GmailFilterCriteria(subject="bar"),
            )
        )
    assert exc.value.status_code == 400

    svc.delete_filter(fs[0].id)
    assert [f.id for f in svc.filters()] == [fs[1].id]


def test_filter_id_ignores_input_id():
    svc = FakeGmail()
    a = svc.create_filter(
        GmailFilter(
            action=GmailFilterAction(add_label_ids=["TRASH"]),
            criteria=GmailFilterCriteria(from_="x"),
            id="whatever",
        )
    )
    b = FakeGmail().create_filter(
        GmailFilter(
            action=GmailFilterAction(add_label_ids=["TRASH"]),
            criteria=GmailFilterCriteria(from_="x"),
        )
    )
    assert a.id == b.id
    assert a.id != "whatever"


def test_delete_unknown_filter():
    svc = FakeGmail()
    with pytest.raises(StatusError) as exc:
        svc.delete_filter("nope")
    assert exc.value.status_code == 404


def test_system_labels_are_hidden_but_usable():
    svc = FakeGmail()
    created = svc.create_filter(
        GmailFilter(
            action=GmailFilterAction(add_label_ids=["STARRED", "CATEGORY_SOCIAL"]),
            criteria=GmailFilterCriteria(to="y"),
        )
    )
    assert svc.labels() == []
    assert svc.filters() == [created]
    with pytest.raises(StatusError):
        svc.delete_label("INBOX")