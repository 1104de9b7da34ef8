import pytest

from gmailrules.gmail import Category, possible_category_values


def test_possible_values():
    assert possible_category_values() == [
        "personal",
        "social",
        "updates",
        "forums",
        "promotions",
    ]


def test_values_round_trip():
    for value in possible_category_values():
        assert Category(value).value == value


def test_unknown_category():
    with pytest.raises(ValueError):
        Category("unknown")


def test_string_rendering():
    assert str(Category("forums")) == "forums"
    assert f"{Category('social')}" == "social"
    assert Category("updates") == "updates"
    assert [str(Category(v)) for v in possible_category_values()] == possible_category_values()