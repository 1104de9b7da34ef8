import pytest

from gmailrules.errors import DetailedError
from gmailrules.filters import Actions, Criteria, Filter, Filters
from gmailrules.gmail import Category
from gmailrules.gmailapi import (
    GmailFilter,
    GmailFilterAction,
    GmailFilterCriteria,
    LabelMap,
    PartialImportError,
    export_filters,
    import_filters,
)
from gmailrules.labels import Label


def empty_label_map():
    return LabelMap([])


def two_labels():
    return LabelMap([Label("MyLabel", id="label1"), Label("NewLabel", id="label2")])


def test_label_map_lookups():
    lmap = two_labels()
    assert lmap.name_to_id("MyLabel") == "label1"
    assert lmap.id_to_name("label2") == "NewLabel"
    assert lmap.name_to_id("missing") is None
    lmap.add_label("label3", "Third")
    assert lmap.name_to_id("Third") == "label3"
    assert lmap.id_to_name("label3") == "Third"


def test_export_actions():
    filters = Filters([
        Filter(
            action=Actions(
                archive=True, delete=True, mark_read=True, star=True,
                mark_not_spam=True, mark_important=True,
                category=Category.UPDATES, forward="[email]",
            ),
            criteria=Criteria(from_="[email]"),
        )
    ])
    expected = [
        GmailFilter(
            action=GmailFilterAction(
                add_label_ids=["TRASH", "IMPORTANT", "STARRED", "CATEGORY_UPDATES"],
                remove_label_ids=["INBOX", "UNREAD", "SPAM"],
                forward="[email]",
            ),
            criteria=GmailFilterCriteria(from_="[email]"),
        )
    ]
    assert export_filters(filters, empty_label_map()) == expected


def test_export_criteria():
    filters = [
        Filter(
            action=Actions(delete=True),
            criteria=Criteria(from_="[email]", to="[email]", subject="baz", query="my query"),
        )
    ]
    expected = [
        GmailFilter(
            action=GmailFilterAction(add_label_ids=["TRASH"]),
            criteria=GmailFilterCriteria(
                from_="[email]", to="[email]", subject="baz", query="my query"
            ),
        )
    ]
    assert export_filters(filters, empty_label_map()) == expected


def test_export_no_actions():
    with pytest.raises(DetailedError, match="no action specified"):
        export_filters([Filter(criteria=Criteria(from_="[email]"))], empty_label_map())


def test_export_no_criteria():
    with pytest.raises(DetailedError, match="no criteria specified"):
        export_filters([Filter(action=Actions(category=Category.FORUMS))], empty_label_map())


def test_export_labels():
    filters = [
        Filter(
            action=Actions(category=Category.FORUMS, add_label="MyLabel"),
            criteria=Criteria(from_="[email]"),
        )
    ]
    expected = [
        GmailFilter(
            action=GmailFilterAction(add_label_ids=["CATEGORY_FORUMS", "label1"]),
            criteria=GmailFilterCriteria(from_="[email]"),
        )
    ]
    assert export_filters(filters, two_labels()) == expected

    missing = [Filter(action=Actions(add_label="NonExisting"), criteria=Criteria(from_="[email]"))]
    with pytest.raises(DetailedError, match="not found"):
        export_filters(missing, empty_label_map())


def test_import_actions():
    filters = [
        GmailFilter(
            action=GmailFilterAction(
                add_label_ids=["TRASH", "IMPORTANT", "STARRED", "CATEGORY_UPDATES"],
                remove_label_ids=["INBOX", "UNREAD", "SPAM"],
                forward="[email]",
            ),
            criteria=GmailFilterCriteria(from_="[email]"),
        )
    ]
    expected = Filters([
        Filter(
            action=Actions(
                archive=True, delete=True, mark_read=True, star=True,
                mark_not_spam=True, mark_important=True,
                category=Category.UPDATES, forward="[email]",
            ),
            criteria=Criteria(from_="[email]"),
        )
    ])
    assert import_filters(filters, empty_label_map()) == expected


def test_import_criteria():
    filters = [
        GmailFilter(
            action=GmailFilterAction(add_label_ids=["TRASH"], remove_label_ids=[]),
            criteria=GmailFilterCriteria(
                from_="[email]", to="[email]", subject="baz",
                query="my query", has_attachment=True,
            ),
        )
    ]
    expected = [
        Filter(
            action=Actions(delete=True),
            criteria=Criteria(
                from_="[email]", to="[email]", subject="baz",
                query="my query has:attachment",
            ),
        )
    ]
    assert import_filters(filters, empty_label_map()) == expected


def test_import_negated_query():
    filters = [
        GmailFilter(
            action=GmailFilterAction(add_label_ids=["STARRED"]),
            criteria=GmailFilterCriteria(query="a", negated_query="b c"),
            id="f1",
        )
    ]
    imported = import_filters(filters, empty_label_map())
    assert imported[0].criteria.query == "a -{b c}"
    assert imported[0].id == "f1"


def test_import_labels():
    filters = [
        GmailFilter(
            action=GmailFilterAction(add_label_ids=["CATEGORY_FORUMS", "label1"], remove_label_ids=[]),
            criteria=GmailFilterCriteria(from_="[email]"),
        )
    ]
    expected = [
        Filter(
            action=Actions(category=Category.FORUMS, add_label="MyLabel"),
            criteria=Criteria(from_="[email]"),
        )
    ]
    assert import_filters(filters, two_labels()) == expected

    unknown = [
        GmailFilter(
            action=GmailFilterAction(add_label_ids=["CATEGORY_FORUMS", "labelXXX"], remove_label_ids=[]),
            criteria=GmailFilterCriteria(from_="[email]"),
        )
    ]
    with pytest.raises(PartialImportError) as exc:
        import_filters(unknown, two_labels())
    assert exc.value.filters == []
    assert "unknown label ID 'labelXXX'" in str(exc.value.errors[0])


def test_import_bad():
    filters = [
        GmailFilter(action=GmailFilterAction(add_label_ids=["TRASH"]), criteria=None),
        GmailFilter(
            action=GmailFilterAction(add_label_ids=["TRASH"]),
            criteria=GmailFilterCriteria(from_="[email]"),
        ),
        GmailFilter(
            action=GmailFilterAction(add_label_ids=["TRASH"]),
            criteria=GmailFilterCriteria(size=123),
        ),
    ]
    with pytest.raises(PartialImportError) as exc:
        import_filters(filters, empty_label_map())
    assert len(exc.value.filters) == 1
    assert len(exc.value.errors) == 2
    assert "unsupported field" in str(exc.value.errors[1])

    filters = [
        GmailFilter(action=None, criteria=GmailFilterCriteria(from_="[email]")),
        GmailFilter(
            action=GmailFilterAction(add_label_ids=["TRASH"]),
            criteria=GmailFilterCriteria(from_="[email]"),
        ),
    ]
    with pytest.raises(PartialImportError) as exc:
        import_filters(filters, empty_label_map())
    assert len(exc.value.filters) == 1
    assert "empty action" in str(exc.value.errors[0])


def test_import_multiple_categories():
    filters = [
        GmailFilter(
            action=GmailFilterAction(add_label_ids=["CATEGORY_FORUMS", "CATEGORY_SOCIAL"]),
            criteria=GmailFilterCriteria(from_="[email]"),
        )
    ]
    with pytest.raises(PartialImportError) as exc:
        import_filters(filters, empty_label_map())
    assert "multiple categories" in str(exc.value.errors[0])


def test_import_unsupported_removal():
    filters = [
        GmailFilter(
            action=GmailFilterAction(remove_label_ids=["STARRED"]),
            criteria=GmailFilterCriteria(from_="[email]"),
        )
    ]
    with pytest.raises(PartialImportError) as exc:
        import_filters(filters, empty_label_map())
    assert "unupported label to remove" in str(exc.value.errors[0])


def test_import_empty_action():
    filters = [GmailFilter(action=GmailFilterAction(), criteria=GmailFilterCriteria(from_="[email]"))]
    with pytest.raises(PartialImportError) as exc:
        import_filters(filters, empty_label_map())
    assert "empty or unsupported action" in str(exc.value.errors[0])


def test_export_import_round_trip():
    original = Filters([
        Filter(
            action=Actions(archive=True, add_label="MyLabel", category=Category.SOCIAL),
            criteria=Criteria(subject="hello", query="list:foo"),
        )
    ])
    lmap = two_labels()
    assert import_filters(export_filters(original, lmap), lmap) == original