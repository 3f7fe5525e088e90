"""
Per-group bookkeeping of the digits placed on a 9x9 Sudoku grid.

For every row, column and 3x3 sector the tracker remembers which digits are
already present, so that "may digit d go here?" is answered with three set
lookups instead of scanning the grid.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, List, Sequence, Set, Tuple

from sudoku_grid import BOX, DIGITS, EMPTY, SIZE, SolverError


class Group(Enum):
    ROW = "row"
    COLUMN = "column"
    SECTOR = "sector"


class InvalidStartingGridError(SolverError):
    """The clues of the starting grid already repeat a digit within a group."""

    def __init__(self, row: int, column: int, digit: int, group: Group) -> None:
        super().__init__(
            f"Invalid starting grid: digit {digit} at cell ({row}, {column}) "
            f"is already used in its {group.value}."
        )
        self.row = row
        self.column = column
        self.digit = digit
        self.group = group


def sector_of(row: int, column: int) -> int:
    """Return the sector id (0..8, row-major over the 3x3 blocks) of a cell."""
    if not (0 <= row < SIZE and 0 <= column < SIZE):
        raise ValueError(f"Cell ({row}, {column}) is outside the {SIZE}x{SIZE} grid.")
    return BOX * (row // BOX) + column // BOX


class ConstraintTracker:
    """Which digits are used in each row, column and sector."""

    def __init__(self) -> None:
        self._used: Dict[Group, Dict[int, Set[int]]] = {group: {} for group in Group}

    @classmethod
    def from_grid(cls, grid: Sequence[Sequence[int]]) -> "ConstraintTracker":
        """
        Build a tracker from the non-empty cells of `grid`.

        Raises:
            InvalidStartingGridError: if a digit repeats within a row, column
                or sector.
        """
        tracker = cls()
        for r, row in enumerate(grid):
            for c, digit in enumerate(row):
                if digit == EMPTY:
                    continue
                for group, index in (
                    (Group.ROW, r),
                    (Group.COLUMN, c),
                    (Group.SECTOR, sector_of(r, c)),
                ):
                    if not tracker.set_used(group, index, digit, True):
                        raise InvalidStartingGridError(r, c, digit, group)
        return tracker

    def is_used(self, group: Group, index: int, digit: int) -> bool:
        slot = self._used[group].get(index)
        return slot is not None and digit in slot

    def set_used(self, group: Group, index: int, digit: int, present: bool) -> bool:
        """
        Mark `digit` present or absent at `index` of `group`.

        Marking a digit that is already present fails and leaves the state
        untouched. Unmarking always succeeds, even if the digit was absent.
        """
        slot = self._used[group].setdefault(index, set())
        if present:
            if digit in slot:
                return False
            slot.add(digit)
        else:
            slot.discard(digit)
        return True

    def mark(self, row: int, column: int, digit: int) -> bool:
        """Mark `digit` in the cell's row, column and sector, all or nothing."""
        marked: List[Tuple[Group, int]] = []
        for group, index in self._groups_of(row, column):
            if not self.set_used(group, index, digit, True):
                for done_group, done_index in marked:
                    self.set_used(done_group, done_index, digit, False)
                return False
            marked.append((group, index))
        return True

    def unmark(self, row: int, column: int, digit: int) -> None:
        for group, index in self._groups_of(row, column):
            self.set_used(group, index, digit, False)

    def candidates(self, row: int, column: int) -> List[int]:
        """Digits, ascending, that are free in the cell's row, column and sector."""
        groups = self._groups_of(row, column)
        return [
            digit
            for digit in DIGITS
            if not any(self.is_used(group, index, digit) for group, index in groups)
        ]

    def used(self, group: Group, index: int) -> FrozenSet[int]:
        return frozenset(self._used[group].get(index, ()))

    @staticmethod
    def _groups_of(row: int, column: int) -> Tuple[Tuple[Group, int], ...]:
        return (
            (Group.ROW, row),
            (Group.COLUMN, column),
            (Group.SECTOR, sector_of(row, column)),
        )


__all__ = [
    "ConstraintTracker",
    "Group",
    "InvalidStartingGridError",
    "sector_of",
]
