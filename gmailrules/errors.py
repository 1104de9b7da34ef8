"""Error helpers: annotated causes, attached details and combined errors."""

from __future__ import annotations

import io
from typing import Iterator, Optional, TextIO, Type, TypeVar

E = TypeVar("E", bound=BaseException)


def _indent(text: str, levels: int = 1) -> str:
    return text.replace("\n", "\n" + "  " * levels)


def _verbose(err: BaseException) -> str:
    formatter = getattr(err, "format_multiline", None)
    if callable(formatter):
        return formatter()
    return str(err)


class AnnotatedError(Exception):
    """A symptom error annotated with the error that caused it."""

    def __init__(self, symptom: BaseException, cause: BaseException):
        super().__init__(symptom, cause)
        self.symptom = symptom
        self.cause = cause
        self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.cause}: {self.symptom}"


class DetailedError(Exception):
    """An error carrying human readable notes."""

    def __init__(self, error: BaseException, details):
        super().__init__(error)
        self.error = error
        self.details = list(details)
        self.__cause__ = error

    def __str__(self) -> str:
        return str(self.error)

    def format_multiline(self) -> str:
        """Render the error followed by its notes."""
        parts = [_verbose(self.error)]
        if self.details:
            parts.append("\nNote:")
            parts.extend("\n- " + _indent(d) for d in self.details)
        return "".join(parts)


class MultiError(Exception):
    """Several errors reported together."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__(*self.errors)

    def __str__(self) -> str:
        if not self.errors:
            return "multiple errors (0)"
        return f"multiple errors ({len(self.errors)}); sample: {self.errors[0]}"

    def format_multiline(self) -> str:
        """Render every contained error on its own item."""
        parts = [f"multiple errors ({len(self.errors)}):"]
        parts.extend("\n- " + _indent(_verbose(e)) for e in self.errors)
        return "".join(parts)


def _walk(err: Optional[BaseException]) -> Iterator[BaseException]:
    seen: set[int] = set()
    stack = [err]
    while stack:
        current = stack.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        if isinstance(current, MultiError):
            stack.extend(reversed(current.errors))
        elif isinstance(current, AnnotatedError):
            stack.extend([current.cause, current.symptom])
        elif isinstance(current, DetailedError):
            stack.append(current.error)
        else:
            stack.append(current.__cause__)


def is_error(err: Optional[BaseException], target: BaseException) -> bool:
    """Return True if target appears anywhere in the error chain of err."""
    return any(e is target or e == target for e in _walk(err))


def find_error(err: Optional[BaseException], cls: Type[E]) -> Optional[E]:
    """Return the first error of type cls in the chain of err, if any."""
    return next((e for e in _walk(err) if isinstance(e, cls)), None)


def with_cause(symptom: BaseException, cause: BaseException) -> AnnotatedError:
    """Annotate a symptom error with its cause."""
    return AnnotatedError(symptom, cause)


def with_details(err: Optional[BaseException], *args: str) -> Optional[DetailedError]:
    """Attach notes to an error; None stays None."""
    if err is None:
        return None
    return DetailedError(err, args)


def write_details(w: TextIO, err: Optional[BaseException]) -> None:
    """Write the notes of every detailed error in the chain to w."""
    current = err
    while (found := find_error(current, DetailedError)) is not None:
        for d in found.details:
            w.write(_indent("\n- "))
            w.write(_indent(d, 2))
        current = found.error


def details(err: Optional[BaseException]) -> str:
    """Return the notes of every detailed error in the chain."""
    buffer = io.StringIO()
    write_details(buffer, err)
    return buffer.getvalue()


def combine(*args: Optional[BaseException]) -> Optional[BaseException]:
    """Combine errors, ignoring None and flattening combined errors."""
    merged: Optional[MultiError] = None
    others: list[BaseException] = []
    for err in args:
        if err is None:
            continue
        if isinstance(err, MultiError):
            merged = err
            continue
        others.append(err)

    if merged is not None:
        return MultiError([*merged.errors, *others])
    if not others:
        return None
    if len(others) == 1:
        return others[0]
    return MultiError(others)


def error_list(err: Optional[BaseException]) -> list:
    """Return the individual errors held by err."""
    if err is None:
        return []
    if isinstance(err, MultiError):
        return list(err.errors)
    return [err]