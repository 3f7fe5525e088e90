"""
9x9 Sudoku grid helpers.

This module provides:
- grid constants and the shared `SolverError` base class
- validation / copying helpers for 9x9 grids (0 marks an empty cell)
- text and JSON-array ingestion of puzzles
- `board_to_text` rendering and a rule checker for finished grids
- the canonical example puzzle together with its known solution
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

SIZE = 9
BOX = 3
EMPTY = 0
DIGITS = range(1, SIZE + 1)

EMPTY_TOKENS = {".", "0", "_", ""}

Grid = List[List[int]]


class SolverError(RuntimeError):
    """Base class for every error raised by the solver package."""


class InvalidGridError(SolverError, ValueError):
    """The supplied grid is not a 9x9 grid of ints in 0..9."""


def validate_grid(grid: Sequence[Sequence[Any]]) -> Grid:
    """
    Check the shape and values of a grid and return a deep copy of it.

    Raises:
        InvalidGridError: if the grid is not 9x9 or holds anything but 0..9.
    """
    if grid is None or len(grid) != SIZE:
        raise InvalidGridError(f"Sudoku grid must have {SIZE} rows.")

    board: Grid = []
    for r, row in enumerate(grid):
        if row is None or len(row) != SIZE:
            raise InvalidGridError(f"Row {r} must contain exactly {SIZE} cells.")
        for c, value in enumerate(row):
            # bool is an int subclass, but True/False are never cell values
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidGridError(
                    f"Cell ({r}, {c}) holds {value!r}; expected an int in 0..{SIZE}."
                )
            if value != EMPTY and value not in DIGITS:
                raise InvalidGridError(
                    f"Cell ({r}, {c}) contains invalid value {value}."
                )
        board.append(list(row))
    return board


def copy_grid(grid: Sequence[Sequence[int]]) -> Grid:
    return [list(row) for row in grid]


def count_empty(grid: Sequence[Sequence[int]]) -> int:
    return sum(1 for row in grid for value in row if value == EMPTY)


def given_mask(grid: Sequence[Sequence[int]]) -> List[List[bool]]:
    """Mark the cells that hold a clue (non-empty before solving)."""
    return [[value != EMPTY for value in row] for row in grid]


def board_to_text(grid: Sequence[Sequence[int]], *, separators: bool = False) -> str:
    """Render the grid as nine lines of digits, empty cells shown as '.'."""

    if not separators:
        return "\n".join(
            " ".join(str(value) if value else "." for value in row) for row in grid
        )

    lines: List[str] = []
    for i, row in enumerate(grid):
        if i % BOX == 0 and i != 0:
            lines.append("-" * 21)
        cells: List[str] = []
        for j, value in enumerate(row):
            if j % BOX == 0 and j != 0:
                cells.append("|")
            cells.append(str(value) if value else ".")
        lines.append(" ".join(cells))
    return "\n".join(lines)


# ----------------------------------------------------------------------
# Ingestion
# ----------------------------------------------------------------------
def _parse_token(token: Any, row: int, col: int) -> int:
    if isinstance(token, bool):
        raise InvalidGridError(f"Cell ({row}, {col}) holds {token!r}.")
    if isinstance(token, int):
        value = token
    elif isinstance(token, str):
        text = token.strip()
        if text in EMPTY_TOKENS:
            return EMPTY
        if len(text) != 1 or not text.isdigit():
            raise InvalidGridError(f"Cell ({row}, {col}) holds {token!r}.")
        value = int(text)
    else:
        raise InvalidGridError(f"Cell ({row}, {col}) holds {token!r}.")

    if value != EMPTY and value not in DIGITS:
        raise InvalidGridError(f"Cell ({row}, {col}) contains invalid value {value}.")
    return value


def parse_row(line: str, row: int = 0) -> List[int]:
    """Parse one row of nine cells, e.g. "5 3 . . 7 . . . ." or "53..7...."."""
    tokens = line.split()
    if len(tokens) == 1 and len(tokens[0]) == SIZE:
        tokens = list(tokens[0])
    if len(tokens) != SIZE:
        raise InvalidGridError(f"Row {row} must contain exactly {SIZE} cells.")
    return [_parse_token(token, row, c) for c, token in enumerate(tokens)]


def parse_grid_text(text: str) -> Grid:
    """
    Parse nine non-blank lines of nine tokens each.

    Tokens may be separated by whitespace or written back to back
    ("53..7...."). '.', '0' and '_' mark empty cells.
    """
    rows: Grid = []
    for line in text.splitlines():
        if line.strip():
            rows.append(parse_row(line, len(rows)))

    return validate_grid(rows)


def parse_grid_json(text: str) -> Grid:
    """
    Parse a JSON array of nine arrays of nine tokens.

    A token is a digit (number or one-character string); '.', '' and 0 mean
    empty, e.g. ``[["5", "3", ".", ...], ...]``.
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidGridError(f"Incorrect array: {exc}") from exc

    if not isinstance(payload, list):
        raise InvalidGridError("Incorrect array: expected a list of rows.")

    rows: Grid = []
    for r, row in enumerate(payload):
        if not isinstance(row, list):
            raise InvalidGridError(f"Incorrect array: row {r} is not a list.")
        rows.append([_parse_token(token, r, c) for c, token in enumerate(row)])
    return validate_grid(rows)


# ----------------------------------------------------------------------
# Checking
# ----------------------------------------------------------------------
@dataclass
class SudokuCheckResult:
    """Outcome of `check_solution`."""

    is_correct: bool
    issues: List[str] = field(default_factory=list)


def _unit_issues(label: str, values: Sequence[int]) -> Optional[str]:
    expected = set(DIGITS)
    present = set(values)
    if present == expected:
        return None
    missing = expected - present
    duplicates = sorted({num for num in values if num and values.count(num) > 1})
    issue_parts = []
    if missing:
        issue_parts.append(f"missing {sorted(missing)}")
    if duplicates:
        issue_parts.append(f"duplicate {duplicates}")
    return f"{label} violates Sudoku rules: {'; '.join(issue_parts)}."


def check_solution(
    candidate: Sequence[Sequence[int]],
    puzzle: Optional[Sequence[Sequence[int]]] = None,
) -> SudokuCheckResult:
    """Verify a completed grid, and that it keeps the clues of `puzzle`."""

    board = validate_grid(candidate)
    issues: List[str] = []

    if puzzle is not None:
        clues = validate_grid(puzzle)
        for r in range(SIZE):
            for c in range(SIZE):
                clue = clues[r][c]
                if clue and board[r][c] != clue:
                    issues.append(
                        f"Cell ({r}, {c}) must be {clue} per the puzzle, but the grid uses {board[r][c]}."
                    )

    for r in range(SIZE):
        issue = _unit_issues(f"Row {r}", board[r])
        if issue:
            issues.append(issue)

    for c in range(SIZE):
        issue = _unit_issues(f"Column {c}", [board[r][c] for r in range(SIZE)])
        if issue:
            issues.append(issue)

    for box_row in range(BOX):
        for box_col in range(BOX):
            cells = [
                board[r][c]
                for r in range(box_row * BOX, box_row * BOX + BOX)
                for c in range(box_col * BOX, box_col * BOX + BOX)
            ]
            issue = _unit_issues(f"Sector {box_row * BOX + box_col}", cells)
            if issue:
                issues.append(issue)

    return SudokuCheckResult(is_correct=not issues, issues=issues)


# ----------------------------------------------------------------------
# Example puzzle
# ----------------------------------------------------------------------
EXAMPLE_SOLUTION: Grid = [
    [5, 3, 4, 6, 7, 8, 9, 1, 2],
    [6, 7, 2, 1, 9, 5, 3, 4, 8],
    [1, 9, 8, 3, 4, 2, 5, 6, 7],
    [8, 5, 9, 7, 6, 1, 4, 2, 3],
    [4, 2, 6, 8, 5, 3, 7, 9, 1],
    [7, 1, 3, 9, 2, 4, 8, 5, 6],
    [9, 6, 1, 5, 3, 7, 2, 8, 4],
    [2, 8, 7, 4, 1, 9, 6, 3, 5],
    [3, 4, 5, 2, 8, 6, 1, 7, 9],
]


def create_example_board() -> Grid:
    """Return a fresh copy of the classic "easy" puzzle."""
    return [
        [5, 3, 0, 0, 7, 0, 0, 0, 0],
        [6, 0, 0, 1, 9, 5, 0, 0, 0],
        [0, 9, 8, 0, 0, 0, 0, 6, 0],
        [8, 0, 0, 0, 6, 0, 0, 0, 3],
        [4, 0, 0, 8, 0, 3, 0, 0, 1],
        [7, 0, 0, 0, 2, 0, 0, 0, 6],
        [0, 6, 0, 0, 0, 0, 2, 8, 0],
        [0, 0, 0, 4, 1, 9, 0, 0, 5],
        [0, 0, 0, 0, 8, 0, 0, 7, 9],
    ]


__all__ = [
    "BOX",
    "DIGITS",
    "EMPTY",
    "EXAMPLE_SOLUTION",
    "Grid",
    "InvalidGridError",
    "SIZE",
    "SolverError",
    "SudokuCheckResult",
    "board_to_text",
    "check_solution",
    "copy_grid",
    "count_empty",
    "create_example_board",
    "given_mask",
    "parse_grid_json",
    "parse_grid_text",
    "parse_row",
    "validate_grid",
]
