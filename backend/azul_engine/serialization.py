"""
Serialization of engine values to plain JSON documents, move parsing and
legal move enumeration.
"""
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from .engine import (
    GameState,
    MovePayload,
    MoveResult,
    MoveSource,
    Phase,
    PlayerState,
    RoundReport,
    WallPlacement,
)
from .tiles import (
    FLOOR_CAPACITY,
    FLOOR_LINE_INDEX,
    PATTERN_LINE_COUNT,
    TileColor,
    WALL_SIZE,
    wall_pattern_color,
)


def _color_or_none(cell: Optional[TileColor]) -> Optional[str]:
    return cell.value if cell is not None else None


def _parse_cell(value: Optional[str]) -> Optional[TileColor]:
    return TileColor(value) if value is not None else None


def _parse_tiles(values: Sequence[str]) -> tuple:
    return tuple(TileColor(v) for v in values)


def serialize_game_state(state: GameState) -> Dict[str, Any]:
    """
    Serialize GameState to a JSON-serializable dictionary.
    """
    return {
        "factories": [[t.value for t in display] for display in state.factories],
        "center": [t.value for t in state.center],
        "first_player_marker_in_center": state.first_player_marker_in_center,
        "players": [serialize_player(p) for p in state.players],
        "bag": [t.value for t in state.bag],
        "discard_box": [t.value for t in state.discard_box],
        "phase": state.phase.value,
        "turn_index": state.turn_index,
        "round_start_player_index": state.round_start_player_index,
        "round": state.round,
    }


def deserialize_game_state(data: Dict[str, Any]) -> GameState:
    """
    Deserialize a dictionary to GameState.

    Raises ValueError on documents that could not have come from the engine.
    """
    try:
        players = tuple(deserialize_player(p) for p in data["players"])
        state = GameState(
            players=players,
            factories=tuple(_parse_tiles(display) for display in data["factories"]),
            center=_parse_tiles(data.get("center", [])),
            first_player_marker_in_center=bool(data.get("first_player_marker_in_center", True)),
            bag=_parse_tiles(data.get("bag", [])),
            discard_box=_parse_tiles(data.get("discard_box", [])),
            phase=Phase(data.get("phase", Phase.OFFER.value)),
            turn_index=int(data.get("turn_index", 0)),
            round_start_player_index=int(data.get("round_start_player_index", 0)),
            round=int(data.get("round", 1)),
        )
    except KeyError as e:
        raise ValueError(f"Game state document is missing {e}")

    if not 0 <= state.turn_index < len(state.players):
        raise ValueError(f"turn_index {state.turn_index} does not address a player")
    if len(state.factories) != 2 * len(state.players) + 1:
        raise ValueError(f"Expected {2 * len(state.players) + 1} factories, got {len(state.factories)}")
    return state


def serialize_player(player: PlayerState) -> Dict[str, Any]:
    """Serialize a PlayerState to a dictionary."""
    return {
        "id": player.id,
        "pattern_lines": [[_color_or_none(c) for c in line] for line in player.pattern_lines],
        "wall": [[_color_or_none(c) for c in row] for row in player.wall],
        "floor": [t.value for t in player.floor],
        "has_first_player_marker": player.has_first_player_marker,
        "score": player.score,
    }


def deserialize_player(data: Dict[str, Any]) -> PlayerState:
    """Deserialize a dictionary to PlayerState."""
    pattern_lines = tuple(tuple(_parse_cell(c) for c in line) for line in data["pattern_lines"])
    if [len(line) for line in pattern_lines] != list(range(1, PATTERN_LINE_COUNT + 1)):
        raise ValueError(f"Player {data['id']} has malformed pattern lines")
    for row, line in enumerate(pattern_lines):
        if len({c for c in line if c is not None}) > 1:
            raise ValueError(f"Player {data['id']} pattern line {row} mixes colors")

    wall = tuple(tuple(_parse_cell(c) for c in row) for row in data["wall"])
    if len(wall) != WALL_SIZE or any(len(row) != WALL_SIZE for row in wall):
        raise ValueError(f"Player {data['id']} wall must be {WALL_SIZE}x{WALL_SIZE}")
    for row in range(WALL_SIZE):
        for col in range(WALL_SIZE):
            cell = wall[row][col]
            if cell is not None and cell is not wall_pattern_color(row, col):
                raise ValueError(f"Player {data['id']} wall cell ({row}, {col}) cannot hold {cell.value}")

    floor = _parse_tiles(data.get("floor", []))
    if len(floor) > FLOOR_CAPACITY:
        raise ValueError(f"Player {data['id']} floor holds more than {FLOOR_CAPACITY} tiles")

    score = int(data.get("score", 0))
    if score < 0:
        raise ValueError(f"Player {data['id']} has a negative score")

    return PlayerState(
        id=data["id"],
        pattern_lines=pattern_lines,
        wall=wall,
        floor=floor,
        has_first_player_marker=bool(data.get("has_first_player_marker", False)),
        score=score,
    )


class MoveRequest(BaseModel):
    """
    Incoming move document. Accepts snake_case or camelCase keys
    (e.g. `patternLineIndex`).
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    source: MoveSource
    color: TileColor
    pattern_line_index: int = Field(ge=FLOOR_LINE_INDEX, le=PATTERN_LINE_COUNT - 1)
    factory_index: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_factory_index(self) -> "MoveRequest":
        if self.source is MoveSource.FACTORY and self.factory_index is None:
            raise ValueError("factory moves require factory_index")
        return self

    def to_payload(self) -> MovePayload:
        return MovePayload(
            source=self.source,
            color=self.color,
            pattern_line_index=self.pattern_line_index,
            factory_index=self.factory_index if self.source is MoveSource.FACTORY else None,
        )


def serialize_move(move: MovePayload) -> Dict[str, Any]:
    """Serialize a MovePayload to a dictionary."""
    result = {
        "source": move.source.value,
        "color": move.color.value,
        "pattern_line_index": move.pattern_line_index,
    }
    if move.factory_index is not None:
        result["factory_index"] = move.factory_index
    return result


def deserialize_move(data: Dict[str, Any]) -> MovePayload:
    """Deserialize a move document. Raises ValueError on malformed input."""
    if not isinstance(data, dict):
        raise ValueError("Move must be a JSON object")
    try:
        return MoveRequest.model_validate(data).to_payload()
    except ValidationError as e:
        raise ValueError(f"Invalid move format: {e}")


def serialize_wall_placement(placement: WallPlacement) -> Dict[str, Any]:
    return {
        "player_index": placement.player_index,
        "row": placement.row,
        "col": placement.col,
        "color": placement.color.value,
        "points": placement.points,
    }


def serialize_round_report(report: RoundReport) -> Dict[str, Any]:
    return {
        "round": report.round,
        "placements": [serialize_wall_placement(p) for p in report.placements],
        "floor_penalties": list(report.floor_penalties),
        "end_game_bonuses": list(report.end_game_bonuses),
    }


def serialize_move_result(result: MoveResult) -> Dict[str, Any]:
    """Serialize a MoveResult; optional fields are omitted when unset."""
    data: Dict[str, Any] = {"success": result.success}
    if result.error is not None:
        data["error"] = result.error
    if result.new_state is not None:
        data["new_state"] = serialize_game_state(result.new_state)
        data["game_over"] = result.game_over
    if result.winner_index is not None:
        data["winner_index"] = result.winner_index
    if result.round_report is not None:
        data["round_report"] = serialize_round_report(result.round_report)
    return data


def legal_moves(state: GameState, player_index: int) -> List[MovePayload]:
    """
    Get every move apply_move() would accept from this player right now.
    Empty when the game is not in the offer phase or it is not their turn.
    """
    legal: List[MovePayload] = []
    if state.phase is not Phase.OFFER or player_index != state.turn_index:
        return legal

    player = state.players[player_index]

    def targets(color: TileColor) -> List[int]:
        rows = [row for row in range(PATTERN_LINE_COUNT) if player.can_place_on_pattern_line(row, color)]
        return rows + [FLOOR_LINE_INDEX]

    for factory_index, display in enumerate(state.factories):
        for color in TileColor:
            if color in display:
                for row in targets(color):
                    legal.append(MovePayload(MoveSource.FACTORY, color, row, factory_index))

    for color in TileColor:
        if color in state.center:
            for row in targets(color):
                legal.append(MovePayload(MoveSource.CENTER, color, row))

    return legal
