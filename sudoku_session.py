"""
Interactive Sudoku solving session and terminal visualizer.

A front end never touches the grid directly. It sends discrete commands to a
SudokuSession (`load_grid`, `set_cell`, `start_solve`, `cancel_solve`) and
receives the solver's steps through `on_step` callbacks. The solve itself runs
on a worker thread so that a cancel request can arrive while it is paced.

Usage examples
--------------

    python sudoku_session.py --example --delay 0.01
    python sudoku_session.py --grid '[["5","3",".",".","7",".",".",".","."], ...]'
    python sudoku_session.py --file puzzle.txt --quiet
"""

from __future__ import annotations

import argparse
import sys
import threading
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Set, Tuple, Union

from loguru import logger

from solver_config import SolverConfig
from sudoku_grid import (
    EMPTY,
    SIZE,
    Grid,
    InvalidGridError,
    SolverError,
    board_to_text,
    copy_grid,
    create_example_board,
    parse_grid_json,
    parse_grid_text,
    parse_row,
    validate_grid,
)
from sudoku_solver import SolveResult, SolveStatus, StepCallback, StepEvent, StepKind, SudokuSolver

EXIT_SOLVED = 0
EXIT_FAILED = 1
EXIT_INVALID = 2


class SessionBusyError(SolverError):
    """A command arrived that is not allowed while a solve is running."""


class SudokuSession:
    """Owns one grid and at most one in-flight solve of it."""

    def __init__(
        self,
        grid: Optional[Sequence[Sequence[int]]] = None,
        *,
        config: Optional[SolverConfig] = None,
    ) -> None:
        self.config = config or SolverConfig()
        self._board: Grid = (
            validate_grid(grid) if grid is not None else [[EMPTY] * SIZE for _ in range(SIZE)]
        )
        self._derived: Set[Tuple[int, int]] = set()
        self._observers: List[StepCallback] = []
        self._lock = threading.Lock()
        self._solver: Optional[SudokuSolver] = None
        self._worker: Optional[threading.Thread] = None
        self._result: Optional[SolveResult] = None
        self._failure: Optional[BaseException] = None

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def on_step(self, callback: StepCallback) -> None:
        self._observers.append(callback)

    def load_grid(self, grid: Sequence[Sequence[int]]) -> None:
        board = validate_grid(grid)
        with self._lock:
            self._ensure_idle("load a grid")
            self._board = board
            self._derived.clear()
            self._result = None
        logger.info("Loaded grid with {} clue(s)", sum(1 for row in board for v in row if v))

    def set_cell(self, row: int, column: int, value: Union[int, str]) -> None:
        """
        Enter one cell. Accepts a single digit 0-9 (int or str); 0 or an empty
        string clears the cell.
        """
        if not (0 <= row < SIZE and 0 <= column < SIZE):
            raise InvalidGridError(f"Cell ({row}, {column}) is outside the grid.")
        digit = _cell_input(value)
        with self._lock:
            self._ensure_idle("edit a cell")
            self._board[row][column] = digit
            self._derived.discard((row, column))
            self._result = None
        logger.debug("Cell ({}, {}) set to {}", row, column, digit)

    def reset(self) -> None:
        """Clear the digits the solver filled in, keeping the clues."""
        with self._lock:
            self._ensure_idle("reset the grid")
            for row, column in self._derived:
                self._board[row][column] = EMPTY
            self._derived.clear()
            self._result = None

    def start_solve(self, config: Optional[SolverConfig] = None) -> None:
        config = config or self.config
        with self._lock:
            self._ensure_idle("start another solve")
            solver = SudokuSolver(self._board, step_delay=config.step_delay)
            for callback in self._observers:
                solver.on_step(callback)
            self._solver = solver
            self._result = None
            self._failure = None
            self._worker = threading.Thread(
                target=self._run, args=(solver,), name="sudoku-solve", daemon=True
            )
            self._worker.start()
        logger.info("Solve started (step_delay={}s)", config.step_delay)

    def cancel_solve(self) -> bool:
        """Request cancellation; returns False when nothing is running."""
        with self._lock:
            solver = self._solver
        if solver is None:
            return False
        logger.info("Cancelling solve")
        solver.cancel()
        return True

    def wait(self, timeout: Optional[float] = None) -> Optional[SolveResult]:
        """
        Wait for the running solve and return its result, or None if it is
        still running after `timeout` seconds.
        """
        worker = self._worker
        if worker is not None:
            worker.join(timeout)
            if worker.is_alive():
                return None
        if self._failure is not None:
            failure, self._failure = self._failure, None
            raise failure
        return self._result

    def solve(self, config: Optional[SolverConfig] = None) -> SolveResult:
        self.start_solve(config)
        result = self.wait()
        assert result is not None
        return result

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def is_solving(self) -> bool:
        return self._solver is not None

    @property
    def result(self) -> Optional[SolveResult]:
        return self._result

    def snapshot(self) -> Grid:
        with self._lock:
            return copy_grid(self._board)

    def _ensure_idle(self, action: str) -> None:
        if self._solver is not None:
            raise SessionBusyError(f"Cannot {action} while a solve is running.")

    def _run(self, solver: SudokuSolver) -> None:
        try:
            result = solver.solve()
        except Exception as exc:
            logger.exception("Solve failed: {}", exc)
            with self._lock:
                self._failure = exc
                self._solver = None
            return

        with self._lock:
            if result.solved:
                self._derived = {
                    (r, c)
                    for r in range(SIZE)
                    for c in range(SIZE)
                    if self._board[r][c] == EMPTY
                }
                self._board = copy_grid(result.grid)
            self._result = result
            self._solver = None
        logger.info("Solve finished: {}", result.status.value)


def _cell_input(value: Union[int, str]) -> int:
    if isinstance(value, bool):
        raise InvalidGridError(f"Invalid cell input {value!r}.")
    if isinstance(value, int):
        if 0 <= value <= 9:
            return value
        raise InvalidGridError(f"Invalid cell input {value!r}; expected a digit 0-9.")
    text = str(value).strip()
    if not text:
        return EMPTY
    if len(text) == 1 and text in "0123456789":
        return int(text)
    raise InvalidGridError(f"Invalid cell input {value!r}; expected a digit 0-9.")


# ----------------------------------------------------------------------
# Command line
# ----------------------------------------------------------------------
def input_board(read: Callable[[str], str] = input) -> Grid:
    """Read nine rows from the user; empty cells are written as 0 or '.'."""

    print("Enter the puzzle: 9 rows of 9 digits separated by spaces, 0 or . for empty cells.")
    rows: Grid = []
    while len(rows) < SIZE:
        line = read(f"Row {len(rows) + 1}: ")
        try:
            rows.append(parse_row(line, len(rows)))
        except InvalidGridError as exc:
            print(f"Error: {exc} Please re-enter the row.")
    return rows


def format_step(event: StepEvent) -> str:
    arrow = "+" if event.kind is StepKind.PLACED else "-"
    return f"{arrow} ({event.row}, {event.column}) {event.digit}"


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Solve a 9x9 Sudoku by backtracking and show the search step by step."
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--example",
        action="store_true",
        help="Solve the built-in example puzzle (default when no other source is given).",
    )
    source.add_argument(
        "--grid",
        type=str,
        default=None,
        help='Puzzle as a JSON array of 9 rows, "." for empty cells.',
    )
    source.add_argument(
        "--file",
        type=Path,
        default=None,
        help="Text file with 9 lines of 9 cells, '.' or 0 for empty cells.",
    )
    source.add_argument(
        "--interactive",
        action="store_true",
        help="Type the puzzle row by row.",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=None,
        help="Seconds to pause after each step (default: $SUDOKU_STEP_DELAY or 0).",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Loguru level for diagnostics on stderr (default: $SUDOKU_LOG_LEVEL or INFO).",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Do not print individual search steps.",
    )
    return parser.parse_args(argv)


def load_puzzle(args: argparse.Namespace) -> Grid:
    if args.grid is not None:
        return parse_grid_json(args.grid)
    if args.file is not None:
        return parse_grid_text(args.file.read_text(encoding="utf-8"))
    if args.interactive:
        return input_board()
    return create_example_board()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    try:
        config = SolverConfig.from_env().with_overrides(
            step_delay=args.delay, log_level=args.log_level
        )
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return EXIT_INVALID

    logger.remove()
    logger.add(sys.stderr, level=config.log_level)

    try:
        puzzle = load_puzzle(args)
    except (InvalidGridError, OSError) as exc:
        print(f"Cannot read puzzle: {exc}", file=sys.stderr)
        return EXIT_INVALID

    session = SudokuSession(puzzle, config=config)
    if not args.quiet:
        session.on_step(lambda event: print(format_step(event), flush=True))

    print("Puzzle:")
    print(board_to_text(puzzle, separators=True))
    print()

    session.start_solve()
    result: Optional[SolveResult] = None
    while result is None:
        try:
            result = session.wait(timeout=0.1)
        except KeyboardInterrupt:
            session.cancel_solve()

    if result.status is SolveStatus.SOLVED:
        print(f"\nSolved ({result.placements} placements, {result.retractions} retractions):")
        print(board_to_text(result.grid, separators=True))
        return EXIT_SOLVED

    print(f"\n{result.error}")
    if result.status is SolveStatus.INVALID:
        return EXIT_INVALID
    return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
