import random
import threading

import pytest

from constraint_tracker import InvalidStartingGridError
from solver_config import SolverConfig
from sudoku_grid import InvalidGridError, check_solution, copy_grid
from sudoku_solver import (
    SolveCancelledError,
    SolveStatus,
    StepKind,
    SudokuSolver,
    UnsolvableError,
    solve,
)


def test_example_puzzle_solves_to_known_solution(example_board, example_solution):
    result = solve(example_board)

    assert result.status is SolveStatus.SOLVED
    assert result.solved
    assert result.error is None
    assert result.grid == example_solution


def test_solve_does_not_modify_input(example_board):
    original = copy_grid(example_board)
    solve(example_board)
    assert example_board == original


def test_resolving_a_solution_is_a_noop(example_board, example_solution):
    solver = SudokuSolver(example_board)
    assert solver.solve().solved

    again = solver.solve()
    assert again.solved
    assert again.placements == 0
    assert again.grid == example_solution


def test_full_valid_grid_returns_unchanged_without_events(example_solution):
    events = []
    result = solve(example_solution, on_step=events.append)

    assert result.solved
    assert result.grid == example_solution
    assert events == []


def test_duplicate_clues_are_invalid_not_unsolvable():
    board = [[0] * 9 for _ in range(9)]
    board[0][0] = 5
    board[0][4] = 5
    events = []
    result = solve(board, on_step=events.append)

    assert result.status is SolveStatus.INVALID
    assert isinstance(result.error, InvalidStartingGridError)
    assert result.grid == board
    assert events == []
    with pytest.raises(InvalidStartingGridError):
        result.raise_for_error()


def test_unsolvable_grid_reports_unsolvable(unsolvable_board):
    result = solve(unsolvable_board)

    assert result.status is SolveStatus.UNSOLVABLE
    assert isinstance(result.error, UnsolvableError)
    assert result.grid == unsolvable_board


def test_unsolvable_after_backtracking_restores_grid():
    # Row 0 needs 7, 8 and 9 in its last three cells, but the top-right
    # sector already holds a 9: the search tries both orders of 7 and 8
    # before giving up.
    board = [[0] * 9 for _ in range(9)]
    board[0][:6] = [1, 2, 3, 4, 5, 6]
    board[1][6] = 9
    result = solve(board)

    assert result.status is SolveStatus.UNSOLVABLE
    assert result.grid == board
    assert result.placements == result.retractions
    assert result.placements == 4


def test_empty_grid_solves_deterministically():
    empty = [[0] * 9 for _ in range(9)]
    first = solve(empty)
    second = solve(empty)

    assert first.solved
    assert first.grid == second.grid
    assert first.grid[0] == [1, 2, 3, 4, 5, 6, 7, 8, 9]
    assert check_solution(first.grid).is_correct


@pytest.mark.parametrize("seed", [3, 17, 2024])
def test_removing_cells_and_resolving_keeps_constraints(example_solution, seed):
    rng = random.Random(seed)
    puzzle = copy_grid(example_solution)
    cells = [(r, c) for r in range(9) for c in range(9)]
    for r, c in rng.sample(cells, 45):
        puzzle[r][c] = 0

    result = solve(puzzle)

    assert result.solved
    assert check_solution(result.grid, puzzle).is_correct


def test_events_balance_to_number_of_empty_cells(example_board):
    events = []
    result = solve(example_board, on_step=events.append)

    placed = [e for e in events if e.kind is StepKind.PLACED]
    retracted = [e for e in events if e.kind is StepKind.RETRACTED]
    empty_cells = sum(1 for row in example_board for v in row if v == 0)

    assert len(placed) == result.placements
    assert len(retracted) == result.retractions
    assert len(placed) - len(retracted) == empty_cells
    assert all(example_board[e.row][e.column] == 0 for e in events)


def test_first_event_is_smallest_candidate_of_first_empty_cell(example_board):
    events = []
    solve(example_board, on_step=events.append)

    first = events[0]
    assert (first.row, first.column, first.digit, first.kind) == (0, 2, 1, StepKind.PLACED)


def test_delay_does_not_change_the_search(example_board, monkeypatch):
    sleeps = []
    monkeypatch.setattr("sudoku_solver.time.sleep", sleeps.append)

    fast_events, paced_events = [], []
    fast = solve(example_board, on_step=fast_events.append)
    paced = solve(
        example_board,
        on_step=paced_events.append,
        config=SolverConfig(step_delay=0.25),
    )

    assert paced.grid == fast.grid
    assert paced_events == fast_events
    assert len(sleeps) == len(paced_events)
    assert set(sleeps) == {0.25}


def test_cancel_from_observer_unwinds_every_placement(example_board):
    solver = SudokuSolver(example_board)
    events = []

    def observer(event):
        events.append(event)
        if len(events) == 20:
            solver.cancel()

    solver.on_step(observer)
    result = solver.solve()

    assert result.status is SolveStatus.CANCELLED
    assert isinstance(result.error, SolveCancelledError)
    assert result.grid == example_board
    assert result.placements == result.retractions
    placed = sum(1 for e in events if e.kind is StepKind.PLACED)
    retracted = sum(1 for e in events if e.kind is StepKind.RETRACTED)
    assert placed == retracted


def test_cancel_check_is_consulted(example_board):
    calls = []

    def cancel_check():
        calls.append(1)
        return len(calls) > 5

    result = solve(example_board, cancel_check=cancel_check)

    assert result.status is SolveStatus.CANCELLED
    assert result.grid == example_board


def test_solver_can_run_again_after_cancel(example_board, example_solution):
    solver = SudokuSolver(example_board)
    solver.cancel()
    assert solver.solve().status is SolveStatus.CANCELLED

    result = solver.solve()
    assert result.solved
    assert result.grid == example_solution


def test_cancel_from_another_thread(example_board):
    solver = SudokuSolver(example_board, step_delay=0.001)
    started = threading.Event()
    solver.on_step(lambda event: started.set())
    outcome = {}

    worker = threading.Thread(target=lambda: outcome.update(result=solver.solve()))
    worker.start()
    assert started.wait(5)
    solver.cancel()
    worker.join(10)

    assert not worker.is_alive()
    assert outcome["result"].status in (SolveStatus.CANCELLED, SolveStatus.SOLVED)
    if outcome["result"].status is SolveStatus.CANCELLED:
        assert outcome["result"].grid == example_board


def test_malformed_grid_raises_immediately():
    with pytest.raises(InvalidGridError):
        SudokuSolver([[0] * 9 for _ in range(8)])
    with pytest.raises(InvalidGridError):
        solve([[0] * 8 + [10]] + [[0] * 9 for _ in range(8)])


def test_negative_delay_is_rejected(example_board):
    with pytest.raises(ValueError):
        SudokuSolver(example_board, step_delay=-1)


def test_observer_failure_leaves_solver_reusable(example_board, example_solution):
    solver = SudokuSolver(example_board)
    seen = []

    def observer(event):
        seen.append(event)
        if len(seen) == 10:
            raise RuntimeError("display went away")

    solver.on_step(observer)
    with pytest.raises(RuntimeError, match="display went away"):
        solver.solve()

    assert solver.get_solution() == example_board

    result = solver.solve()
    assert result.status is SolveStatus.SOLVED
    assert result.grid == example_solution


def test_cancelled_solve_unwinds_without_pacing(example_board, monkeypatch):
    sleeps = []
    monkeypatch.setattr("sudoku_solver.time.sleep", sleeps.append)
    solver = SudokuSolver(example_board, step_delay=0.5)
    events = []

    def observer(event):
        events.append(event)
        if len(events) == 20:
            solver.cancel()

    solver.on_step(observer)
    result = solver.solve()

    assert result.status is SolveStatus.CANCELLED
    assert len(events) > 20
    assert any(e.kind is StepKind.RETRACTED for e in events[20:])
    assert len(sleeps) == 19
