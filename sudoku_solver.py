"""
Sudoku Solver
Backtracking search over a 9x9 grid, pruned by a ConstraintTracker.

Every tentative placement and every rollback is reported as a StepEvent to the
registered observers, which lets a front end animate the search. An optional
delay paces the events; it never changes the result.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from loguru import logger

from constraint_tracker import (
    ConstraintTracker,
    Group,
    InvalidStartingGridError,
    sector_of,
)
from solver_config import SolverConfig
from sudoku_grid import (
    DIGITS,
    EMPTY,
    SIZE,
    Grid,
    SolverError,
    copy_grid,
    count_empty,
    validate_grid,
)


class UnsolvableError(SolverError):
    """The search exhausted every branch without completing the grid."""


class SolveCancelledError(SolverError):
    """The search was aborted on request before it finished."""


class StepKind(Enum):
    PLACED = "placed"
    RETRACTED = "retracted"


@dataclass(frozen=True)
class StepEvent:
    row: int
    column: int
    digit: int
    kind: StepKind


StepCallback = Callable[[StepEvent], None]


class SolveStatus(Enum):
    SOLVED = "solved"
    INVALID = "invalid"
    UNSOLVABLE = "unsolvable"
    CANCELLED = "cancelled"


@dataclass
class SolveResult:
    """
    Outcome of one solve call.

    `grid` is the solved grid on success; otherwise the grid as the solver
    left it, which equals the starting grid because every placement is rolled
    back.
    """

    status: SolveStatus
    grid: Grid
    error: Optional[SolverError] = None
    placements: int = 0
    retractions: int = 0
    elapsed: float = 0.0

    @property
    def solved(self) -> bool:
        return self.status is SolveStatus.SOLVED

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


class SudokuSolver:
    """Backtracking Sudoku solver with observable steps and cancellation."""

    def __init__(
        self,
        board: Sequence[Sequence[int]],
        *,
        step_delay: float = 0.0,
        cancel_check: Optional[Callable[[], bool]] = None,
    ) -> None:
        """
        Args:
            board: 9x9 grid, 0 marks an empty cell. The solver works on a copy.
            step_delay: seconds to sleep after each emitted step.
            cancel_check: optional callable polled before each candidate digit;
                returning True aborts the search.
        """
        if step_delay < 0:
            raise ValueError(f"step_delay must be >= 0, got {step_delay}.")
        self.board: Grid = validate_grid(board)
        self.step_delay = step_delay
        self._cancel_check = cancel_check
        self._cancel_event = threading.Event()
        self._observers: List[StepCallback] = []
        self._tracker: Optional[ConstraintTracker] = None
        self.placements = 0
        self.retractions = 0

    def on_step(self, callback: StepCallback) -> None:
        self._observers.append(callback)

    def cancel(self) -> None:
        """Ask a running search to unwind. Safe to call from another thread."""
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        if self._cancel_event.is_set():
            return True
        if self._cancel_check is not None and self._cancel_check():
            self._cancel_event.set()
            return True
        return False

    def solve(self) -> SolveResult:
        """
        Run the search to completion and report the outcome.

        Returns:
            SolveResult: SOLVED with the filled grid, INVALID when the clues
            conflict, UNSOLVABLE when no completion exists, CANCELLED when
            `cancel()` was requested first.
        """
        self.placements = 0
        self.retractions = 0
        start = time.perf_counter()

        try:
            self._tracker = ConstraintTracker.from_grid(self.board)
        except InvalidStartingGridError as exc:
            logger.warning("Rejecting starting grid: {}", exc)
            self._cancel_event.clear()
            return SolveResult(SolveStatus.INVALID, self.get_solution(), error=exc)

        logger.debug("Solving grid with {} empty cell(s)", count_empty(self.board))
        starting_board = self.get_solution()
        try:
            found = self._solve_from(0, 0)
        except BaseException:
            # an observer raised mid-search; the rollback path was skipped
            self.board = starting_board
            raise
        finally:
            self._tracker = None
        elapsed = time.perf_counter() - start

        if found:
            status, error = SolveStatus.SOLVED, None
        elif self._cancel_event.is_set():
            status = SolveStatus.CANCELLED
            error = SolveCancelledError(
                f"Search cancelled after {self.placements} placement(s)."
            )
            logger.warning("{}", error)
        else:
            status = SolveStatus.UNSOLVABLE
            error = UnsolvableError(
                f"No solution exists; search exhausted after {self.placements} placement(s)."
            )
        self._cancel_event.clear()

        logger.debug(
            "Solve finished | status={status} placements={placements} retractions={retractions} elapsed={elapsed:.4f}s",
            status=status.value,
            placements=self.placements,
            retractions=self.retractions,
            elapsed=elapsed,
        )
        return SolveResult(
            status,
            self.get_solution(),
            error=error,
            placements=self.placements,
            retractions=self.retractions,
            elapsed=elapsed,
        )

    def get_solution(self) -> Grid:
        return copy_grid(self.board)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------
    def find_empty(self, row: int, column: int) -> Optional[Tuple[int, int]]:
        """First empty cell at or after (row, column) in row-major order."""
        for r in range(row, SIZE):
            for c in range(column if r == row else 0, SIZE):
                if self.board[r][c] == EMPTY:
                    return r, c
        return None

    def _solve_from(self, row: int, column: int) -> bool:
        empty = self.find_empty(row, column)
        if empty is None:
            return True

        x, y = empty
        s = sector_of(x, y)
        tracker = self._tracker
        for digit in DIGITS:
            if self.cancelled:
                return False
            if (
                tracker.is_used(Group.ROW, x, digit)
                or tracker.is_used(Group.COLUMN, y, digit)
                or tracker.is_used(Group.SECTOR, s, digit)
            ):
                continue
            if self._try(x, y, digit):
                return True
        return False

    def _try(self, row: int, column: int, digit: int) -> bool:
        self._tracker.mark(row, column, digit)
        self.board[row][column] = digit
        self.placements += 1
        self._emit(StepEvent(row, column, digit, StepKind.PLACED))

        next_row, next_column = (row, column + 1) if column + 1 < SIZE else (row + 1, 0)
        if self._solve_from(next_row, next_column):
            return True

        self._tracker.unmark(row, column, digit)
        self.board[row][column] = EMPTY
        self.retractions += 1
        self._emit(StepEvent(row, column, digit, StepKind.RETRACTED))
        return False

    def _emit(self, event: StepEvent) -> None:
        for callback in self._observers:
            callback(event)
        if self.step_delay and not self._cancel_event.is_set():
            time.sleep(self.step_delay)


def solve(
    grid: Sequence[Sequence[int]],
    *,
    on_step: Optional[StepCallback] = None,
    config: Optional[SolverConfig] = None,
    cancel_check: Optional[Callable[[], bool]] = None,
) -> SolveResult:
    """Solve `grid` without modifying it; see `SudokuSolver.solve`."""

    config = config or SolverConfig()
    solver = SudokuSolver(grid, step_delay=config.step_delay, cancel_check=cancel_check)
    if on_step is not None:
        solver.on_step(on_step)
    return solver.solve()


__all__ = [
    "SolveCancelledError",
    "SolveResult",
    "SolveStatus",
    "StepEvent",
    "StepKind",
    "SudokuSolver",
    "UnsolvableError",
    "solve",
]
