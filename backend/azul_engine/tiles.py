"""
Tile colors, board dimensions and the fixed wall placement table.
"""
from enum import Enum
from typing import Dict, Optional, Sequence, Tuple


class TileColor(Enum):
    """Tile colors in the game."""
    BLUE = "BLUE"
    YELLOW = "YELLOW"
    RED = "RED"
    BLACK = "BLACK"
    TEAL = "TEAL"


MIN_PLAYERS = 2
MAX_PLAYERS = 4
WALL_SIZE = 5
PATTERN_LINE_COUNT = WALL_SIZE
FLOOR_CAPACITY = 7
TILES_PER_FACTORY = 4
TILES_PER_COLOR = 20
TOTAL_TILE_SUPPLY = TILES_PER_COLOR * len(TileColor)  # 100

# Index into this list with the floor position (0-6)
FLOOR_PENALTIES = (-1, -1, -2, -2, -2, -3, -3)

# Pattern line index meaning "send the drafted tiles straight to the floor"
FLOOR_LINE_INDEX = -1

Cell = Optional[TileColor]
Wall = Tuple[Tuple[Cell, ...], ...]
PatternLines = Tuple[Tuple[Cell, ...], ...]

# Row 0 of the wall; each following row shifts every color one column right
BASE_PALETTE: Tuple[TileColor, ...] = (
    TileColor.BLUE,
    TileColor.YELLOW,
    TileColor.RED,
    TileColor.BLACK,
    TileColor.TEAL,
)


def _build_wall_pattern() -> Tuple[Tuple[TileColor, ...], ...]:
    pattern = tuple(
        tuple(BASE_PALETTE[(col - row) % WALL_SIZE] for col in range(WALL_SIZE))
        for row in range(WALL_SIZE)
    )
    # Every row and column must hold each color exactly once
    every_color = set(TileColor)
    for index in range(WALL_SIZE):
        row_colors = set(pattern[index])
        col_colors = {pattern[row][index] for row in range(WALL_SIZE)}
        if row_colors != every_color or col_colors != every_color:
            raise RuntimeError(f"Wall pattern is not a Latin square at index {index}")
    return pattern


WALL_PATTERN = _build_wall_pattern()

_WALL_COLUMNS: Dict[Tuple[int, TileColor], int] = {
    (row, color): col
    for row, colors in enumerate(WALL_PATTERN)
    for col, color in enumerate(colors)
}


def wall_column_for_color(row: int, color: TileColor) -> int:
    """Return the wall column that `color` must occupy in `row`."""
    try:
        return _WALL_COLUMNS[(row, color)]
    except KeyError:
        raise ValueError(f"No wall slot for {color!r} in row {row}")


def wall_pattern_color(row: int, col: int) -> TileColor:
    """Return the only color that may be placed at wall[row][col]."""
    if not (0 <= row < WALL_SIZE and 0 <= col < WALL_SIZE):
        raise ValueError(f"Wall cell ({row}, {col}) is out of range")
    return WALL_PATTERN[row][col]


def full_tile_supply() -> Tuple[TileColor, ...]:
    """The complete, unshuffled tile supply for one match."""
    return tuple(color for color in TileColor for _ in range(TILES_PER_COLOR))


def empty_wall() -> Wall:
    return tuple((None,) * WALL_SIZE for _ in range(WALL_SIZE))


def empty_pattern_lines() -> PatternLines:
    # Row r holds up to r + 1 tiles
    return tuple((None,) * (row + 1) for row in range(PATTERN_LINE_COUNT))


def filled_cells(grid: Sequence[Sequence[Cell]]) -> int:
    return sum(1 for row in grid for cell in row if cell is not None)
