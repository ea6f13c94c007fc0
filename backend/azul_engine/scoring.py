"""
Wall scoring: per-placement adjacency points, floor penalties and end-game bonuses.
All functions are pure and work on any row-major 5x5 grid of colors / None.
"""
from typing import Sequence

from .tiles import (
    Cell,
    FLOOR_CAPACITY,
    FLOOR_PENALTIES,
    TileColor,
    WALL_SIZE,
    wall_column_for_color,
)

ROW_BONUS = 2
COLUMN_BONUS = 7
COLOR_BONUS = 10

WallGrid = Sequence[Sequence[Cell]]


def _count_run(wall: WallGrid, row: int, col: int, d_row: int, d_col: int) -> int:
    """Count contiguous occupied cells from (row, col) in one direction, excluding the start."""
    count = 0
    r, c = row + d_row, col + d_col
    while 0 <= r < WALL_SIZE and 0 <= c < WALL_SIZE and wall[r][c] is not None:
        count += 1
        r += d_row
        c += d_col
    return count


def score_adjacency(wall: WallGrid, row: int, col: int) -> int:
    """
    Points earned by the tile just placed at wall[row][col].

    An isolated tile scores 1. Otherwise each axis with at least one
    contiguous neighbor scores the whole run on that axis, the placed tile
    included, so a tile joining both a row and a column run counts twice.
    """
    horizontal = _count_run(wall, row, col, 0, -1) + _count_run(wall, row, col, 0, 1)
    vertical = _count_run(wall, row, col, -1, 0) + _count_run(wall, row, col, 1, 0)

    if horizontal == 0 and vertical == 0:
        return 1

    points = 0
    if horizontal:
        points += horizontal + 1
    if vertical:
        points += vertical + 1
    return points


def calculate_floor_penalty(floor: Sequence[TileColor], has_first_player_marker: bool = False) -> int:
    """
    Total (non-positive) penalty for a floor line.

    The first-player marker takes the first floor slot. Slots beyond the
    seventh carry no penalty.
    """
    slots = len(floor) + (1 if has_first_player_marker else 0)
    return sum(FLOOR_PENALTIES[:min(slots, FLOOR_CAPACITY)])


def is_row_complete(wall: WallGrid, row: int) -> bool:
    return all(cell is not None for cell in wall[row])


def is_column_complete(wall: WallGrid, col: int) -> bool:
    return all(wall[row][col] is not None for row in range(WALL_SIZE))


def is_color_complete(wall: WallGrid, color: TileColor) -> bool:
    """True when `color` fills all five of its designated wall cells."""
    return all(
        wall[row][wall_column_for_color(row, color)] is not None
        for row in range(WALL_SIZE)
    )


def complete_row_count(wall: WallGrid) -> int:
    return sum(1 for row in range(WALL_SIZE) if is_row_complete(wall, row))


def has_complete_row(wall: WallGrid) -> bool:
    return complete_row_count(wall) > 0


def calculate_end_game_bonus(wall: WallGrid) -> int:
    """+2 per complete row, +7 per complete column, +10 per complete color."""
    bonus = ROW_BONUS * complete_row_count(wall)
    bonus += COLUMN_BONUS * sum(1 for col in range(WALL_SIZE) if is_column_complete(wall, col))
    bonus += COLOR_BONUS * sum(1 for color in TileColor if is_color_complete(wall, color))
    return bonus
