"""Munkres (Hungarian) algorithm for the minimum cost assignment problem."""

from __future__ import annotations

import enum
import math
import sys
from decimal import Decimal
from typing import Callable, Optional, Sequence


class MaskType(enum.IntEnum):
    """Marker of a cell in the mask matrix."""

    NONE = 0
    STAR = 1
    PRIME = 2


_MARKERS = {MaskType.NONE: " ", MaskType.STAR: "*", MaskType.PRIME: "'"}

_Step = Callable[[], Optional[Callable]]


def _format_float(x: float) -> str:
    """Format a float using the shortest representation, in %g style."""
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "+Inf" if x > 0 else "-Inf"
    sign_str = "-" if math.copysign(1.0, x) < 0 else ""
    if x == 0:
        return sign_str + "0"
    _, digit_tuple, exponent = Decimal(repr(abs(x))).as_tuple()
    digits = "".join(map(str, digit_tuple)).rstrip("0")
    stripped = len("".join(map(str, digit_tuple))) - len(digits)
    exponent += stripped
    digits = digits.lstrip("0") or "0"
    nd = len(digits)
    dp = nd + exponent  # value is 0.<digits> * 10**dp
    exp = dp - 1
    if exp < -4 or exp >= 6:
        mantissa = digits[0]
        if nd > 1:
            mantissa += "." + digits[1:]
        exp_sign = "+" if exp >= 0 else "-"
        return f"{sign_str}{mantissa}e{exp_sign}{abs(exp):02d}"
    if dp <= 0:
        return f"{sign_str}0.{'0' * -dp}{digits}"
    if dp >= nd:
        return sign_str + digits + "0" * (dp - nd)
    return f"{sign_str}{digits[:dp]}.{digits[dp:]}"


class Munkres:
    """Solves the assignment problem, minimising the total cost.

    Rectangular matrices are padded to a square one with zero cost entries.
    After run(), ``links[i] == j`` means row i is assigned to column j, and
    -1 means no assignment; ``cost`` holds the total cost of the links.
    """

    def __init__(self, nrow: int, ncol: int):
        if nrow <= 0:
            raise ValueError(f"assert 0 < {nrow} failed")
        if ncol <= 0:
            raise ValueError(f"assert 0 < {ncol} failed")
        self._nrow_ori = nrow
        self._ncol_ori = ncol
        size = max(nrow, ncol)
        self._nrow = size
        self._ncol = size
        self.c: list[list[float]] = [[0.0] * size for _ in range(size)]
        self.c_ori: Sequence[Sequence[float]] = []
        self.m: list[list[MaskType]] = [[MaskType.NONE] * size for _ in range(size)]
        self.links: list[int] = [0] * nrow
        self.cost = 0.0
        self._row_covered = [False] * size
        self._col_covered = [False] * size
        self._path_start = (0, 0)

    def set_cost_matrix(self, c: Sequence[Sequence[float]]) -> None:
        """Copy the cost matrix in; it must not contain NaN values."""
        if len(c) < self._nrow_ori or any(
            len(row) < self._ncol_ori for row in c[: self._nrow_ori]
        ):
            raise ValueError(
                f"cost matrix must be at least {self._nrow_ori}x{self._ncol_ori}"
            )
        self.c_ori = c
        size = self._nrow
        self.c = [[0.0] * size for _ in range(size)]
        self.m = [[MaskType.NONE] * size for _ in range(size)]
        for i, row in enumerate(c[: self._nrow_ori]):
            for j, value in enumerate(row[: self._ncol_ori]):
                if math.isnan(value):
                    raise ValueError("cannot set cost matrix because of NaN value")
                self.c[i][j] = float(value)
        self._row_covered = [False] * size
        self._col_covered = [False] * size
        self._path_start = (0, 0)

    def run(self) -> None:
        """Run the algorithm, filling links and cost."""
        if self._ncol == 1:
            column = [row[0] for row in self.c]
            isel = min(range(self._nrow), key=column.__getitem__)
            self.cost = column[isel]
            self.links = [-1] * self._nrow_ori
            self.links[isel] = 0
            return

        if self._nrow == 1:
            row = self.c[0]
            jsel = min(range(self._ncol), key=row.__getitem__)
            self.cost = row[jsel]
            self.links[0] = jsel
            return

        step: Optional[_Step] = self._step1
        while step is not None:
            step = step()

        self.cost = 0.0
        self.links = [-1] * self._nrow_ori
        for i in range(self._nrow_ori):
            j = next(
                (j for j in range(self._ncol_ori) if self.m[i][j] == MaskType.STAR), -1
            )
            if j >= 0:
                self.links[i] = j
                self.cost += self.c_ori[i][j]

    def _step1(self) -> _Step:
        # Subtract the smallest element of each row from the whole row.
        for row in self.c:
            xmin = min(row)
            row[:] = [x - xmin for x in row]
        return self._step2

    def _step2(self) -> _Step:
        # Star every zero with no other starred zero in its row or column.
        for i, row in enumerate(self.c):
            for j, value in enumerate(row):
                if not self._row_covered[i] and not self._col_covered[j] and value == 0:
                    self.m[i][j] = MaskType.STAR
                    self._row_covered[i] = True
                    self._col_covered[j] = True
        self._clear_covers()
        return self._step3

    def _step3(self) -> Optional[_Step]:
        # Cover every column holding a starred zero; done if all are covered.
        for row in self.m:
            for j, mask in enumerate(row):
                if mask == MaskType.STAR:
                    self._col_covered[j] = True
        count = sum(self._col_covered)
        if count >= self._ncol or count >= self._nrow:
            return None
        return self._step4

    def _step4(self) -> _Step:
        # Prime uncovered zeros until one has no starred zero in its row.
        while True:
            found = self._find_noncov_zero()
            if found is None:
                return self._step6
            row, col = found
            self.m[row][col] = MaskType.PRIME
            col_star = self._find_star_in_row(row)
            if col_star >= 0:
                self._row_covered[row] = True
                self._col_covered[col_star] = False
            else:
                self._path_start = (row, col)
                return self._step5

    def _step5(self) -> _Step:
        # Build the alternating path of primed and starred zeros and flip it.
        path = [self._path_start]
        while True:
            r = self._find_star_in_col(path[-1][1])
            if r < 0:
                break
            path.append((r, path[-1][1]))
            path.append((r, self._find_prime_in_row(r)))

        for r, c in path:
            self.m[r][c] = (
                MaskType.NONE if self.m[r][c] == MaskType.STAR else MaskType.STAR
            )

        self._clear_covers()
        for row in self.m:
            row[:] = [MaskType.NONE if x == MaskType.PRIME else x for x in row]
        return self._step3

    def _step6(self) -> _Step:
        # Add the smallest uncovered value to covered rows, subtract it from
        # uncovered columns.
        xmin = sys.float_info.max
        for i, row in enumerate(self.c):
            if self._row_covered[i]:
                continue
            for j, value in enumerate(row):
                if not self._col_covered[j]:
                    xmin = min(xmin, value)

        for i, row in enumerate(self.c):
            for j in range(self._ncol):
                if self._row_covered[i]:
                    row[j] += xmin
                if not self._col_covered[j]:
                    row[j] -= xmin
        return self._step4

    def _clear_covers(self) -> None:
        self._row_covered = [False] * self._nrow
        self._col_covered = [False] * self._ncol

    def _find_noncov_zero(self) -> Optional[tuple[int, int]]:
        for i, row in enumerate(self.c):
            if self._row_covered[i]:
                continue
            for j, value in enumerate(row):
                if not self._col_covered[j] and value == 0:
                    return i, j
        return None

    def _find_star_in_row(self, row: int) -> int:
        stars = [j for j, mask in enumerate(self.m[row]) if mask == MaskType.STAR]
        return stars[-1] if stars else -1

    def _find_star_in_col(self, col: int) -> int:
        stars = [i for i, row in enumerate(self.m) if row[col] == MaskType.STAR]
        return stars[-1] if stars else -1

    def _find_prime_in_row(self, row: int) -> int:
        primes = [j for j, mask in enumerate(self.m[row]) if mask == MaskType.PRIME]
        return primes[-1] if primes else 0

    def str_cost_matrix(self) -> str:
        """Return the cost matrix with masks and covers, for debugging."""
        lines = [
            f"{' ':>4}"
            + "".join(f"{'T ' if covered else 'F ':>8}" for covered in self._col_covered)
        ]
        for i, row in enumerate(self.c):
            cells = "".join(
                f"{_format_float(value) + _MARKERS[self.m[i][j]]:>8}"
                for j, value in enumerate(row)
            )
            lines.append(f"{'T' if self._row_covered[i] else 'F':>4}" + cells)
        return "\n".join(lines) + "\n"