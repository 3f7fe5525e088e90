import pytest
from loguru import logger

from sudoku_grid import EXAMPLE_SOLUTION, copy_grid, create_example_board


@pytest.fixture(autouse=True)
def _reset_loguru():
    # main() installs a sink bound to the (captured) stderr of the current test
    yield
    logger.remove()


@pytest.fixture
def example_board():
    return create_example_board()


@pytest.fixture
def example_solution():
    return copy_grid(EXAMPLE_SOLUTION)


@pytest.fixture
def unsolvable_board():
    # Row 0 holds 1..8, so (0, 8) needs a 9, but column 8 already has one.
    board = [[0] * 9 for _ in range(9)]
    board[0][:8] = [1, 2, 3, 4, 5, 6, 7, 8]
    board[3][8] = 9
    return board
