"""
Pure rules engine for a 2-4 player tile-drafting game.
No web framework or database dependencies.
"""

from .tiles import (
    TileColor,
    WALL_PATTERN,
    FLOOR_PENALTIES,
    FLOOR_LINE_INDEX,
    TOTAL_TILE_SUPPLY,
    wall_column_for_color,
    wall_pattern_color,
)
from .engine import (
    Phase,
    MoveSource,
    InvalidMoveError,
    PlayerState,
    GameState,
    MovePayload,
    MoveResult,
    WallPlacement,
    RoundReport,
    create_initial_state,
    fill_factories,
    apply_move,
    resolve_round,
    is_game_over,
    get_winner_index,
    count_tiles,
)
from .scoring import (
    score_adjacency,
    calculate_end_game_bonus,
    calculate_floor_penalty,
)
from .serialization import (
    MoveRequest,
    serialize_game_state,
    deserialize_game_state,
    serialize_move,
    deserialize_move,
    serialize_move_result,
    legal_moves,
)

__all__ = [
    "TileColor",
    "WALL_PATTERN",
    "FLOOR_PENALTIES",
    "FLOOR_LINE_INDEX",
    "TOTAL_TILE_SUPPLY",
    "wall_column_for_color",
    "wall_pattern_color",
    "Phase",
    "MoveSource",
    "InvalidMoveError",
    "PlayerState",
    "GameState",
    "MovePayload",
    "MoveResult",
    "WallPlacement",
    "RoundReport",
    "create_initial_state",
    "fill_factories",
    "apply_move",
    "resolve_round",
    "is_game_over",
    "get_winner_index",
    "count_tiles",
    "score_adjacency",
    "calculate_end_game_bonus",
    "calculate_floor_penalty",
    "MoveRequest",
    "serialize_game_state",
    "deserialize_game_state",
    "serialize_move",
    "deserialize_move",
    "serialize_move_result",
    "legal_moves",
]
