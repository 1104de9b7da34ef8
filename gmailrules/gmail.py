"""Constants describing Gmail concepts."""

from __future__ import annotations

import enum


class Category(str, enum.Enum):
    """One of the smart categories in Gmail."""

    PERSONAL = "personal"
    SOCIAL = "social"
    UPDATES = "updates"
    FORUMS = "forums"
    PROMOTIONS = "promotions"

    def __str__(self) -> str:
        return self.value

    def __format__(self, spec: str) -> str:
        return format(self.value, spec)


def possible_category_values() -> list[str]:
    """Return the list of values a Category can assume."""
    return [c.value for c in Category]