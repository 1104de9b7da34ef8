"""Differences between two lists of filters."""

from __future__ import annotations

import dataclasses
import difflib
import hashlib
import json
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from .filters import Filter, Filters
from .munkres import Munkres


def _split_lines(s: str) -> list[str]:
    return [line + "\n" for line in s.split("\n")]


@dataclass
class FiltersDiff:
    """Filters added and removed locally with respect to upstream."""

    added: Filters = field(default_factory=Filters)
    removed: Filters = field(default_factory=Filters)

    def empty(self) -> bool:
        """Return True if the diff is empty."""
        return not self.added and not self.removed

    def __str__(self) -> str:
        return "".join(
            difflib.unified_diff(
                _split_lines(str(Filters(self.removed))),
                _split_lines(str(Filters(self.added))),
                fromfile="Current",
                tofile="TO BE APPLIED",
                n=5,
            )
        )


def diff(upstream: Iterable[Filter], local: Iterable[Filter]) -> FiltersDiff:
    """Compute the diff between two lists of filters, ignoring their IDs."""
    added, removed = _changed_filters(upstream, local)
    return new_minimal_filters_diff(added, removed)


def new_minimal_filters_diff(
    added: Sequence[Filter], removed: Sequence[Filter]
) -> FiltersDiff:
    """Build a diff where similar added and removed filters sit side by side."""
    added, removed = list(added), list(removed)
    if added and removed:
        added, removed = _reorder_with_hungarian(added, removed)
    return FiltersDiff(Filters(added), Filters(removed))


def _content_hash(f: Filter) -> str:
    payload = json.dumps(
        [dataclasses.asdict(f.action), dataclasses.asdict(f.criteria)],
        sort_keys=True,
        default=str,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def _hashed(fs: Iterable[Filter]) -> dict[str, Filter]:
    # Duplicates collapse into one entry: Gmail doesn't support them anyway.
    return {_content_hash(f): f for f in fs}


def _changed_filters(
    upstream: Iterable[Filter], local: Iterable[Filter]
) -> tuple[list[Filter], list[Filter]]:
    hupstream = _hashed(upstream)
    hlocal = _hashed(local)
    removed = [hupstream[h] for h in sorted(hupstream) if h not in hlocal]
    added = [hlocal[h] for h in sorted(hlocal) if h not in hupstream]
    return added, removed


def _diff_cost(s1: list[str], s2: list[str]) -> float:
    return 1 - difflib.SequenceMatcher(None, s1, s2).ratio()


def _cost_matrix(fs1: Sequence[Filter], fs2: Sequence[Filter]) -> list[list[float]]:
    ss1 = [_split_lines(str(f)) for f in fs1]
    ss2 = [_split_lines(str(f)) for f in fs2]
    return [[_diff_cost(s1, s2) for s2 in ss2] for s1 in ss1]


def _hungarian(c: list[list[float]]) -> list[int]:
    if not c:
        return []
    mnk = Munkres(len(c), len(c[0]))
    mnk.set_cost_matrix(c)
    mnk.run()
    return list(mnk.links)


def _reorder_with_hungarian(
    f1: Sequence[Filter], f2: Sequence[Filter]
) -> tuple[list[Filter], list[Filter]]:
    mapping = _hungarian(_cost_matrix(f1, f2))
    return _reorder_with_mapping(f1, f2, mapping)


def _reorder_with_mapping(
    f1: Sequence[Filter], f2: Sequence[Filter], mapping: Sequence[int]
) -> tuple[list[Filter], list[Filter]]:
    pairs = [(i, j) for i, j in enumerate(mapping) if j >= 0]
    mapped1 = {i for i, _ in pairs}
    mapped2 = {j for _, j in pairs}
    r1 = [f1[i] for i, _ in pairs]
    r2 = [f2[j] for _, j in pairs]
    r1.extend(f for i, f in enumerate(f1) if i not in mapped1)
    r2.extend(f for j, f in enumerate(f2) if j not in mapped2)
    return r1, r2