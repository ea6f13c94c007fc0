"""
Pure game engine for the tile-drafting game.
No persistence, no globals - every operation returns a new GameState and
leaves its input untouched.
"""
from enum import Enum
from typing import List, Optional, Sequence, Tuple
from dataclasses import dataclass, field, replace
import random

from .config import default_random_source
from .logging_config import get_logger
from .scoring import (
    calculate_end_game_bonus,
    calculate_floor_penalty,
    complete_row_count,
    has_complete_row,
    score_adjacency,
)
from .tiles import (
    FLOOR_CAPACITY,
    FLOOR_LINE_INDEX,
    MAX_PLAYERS,
    MIN_PLAYERS,
    PATTERN_LINE_COUNT,
    TILES_PER_FACTORY,
    PatternLines,
    TileColor,
    Wall,
    empty_pattern_lines,
    empty_wall,
    filled_cells,
    full_tile_supply,
    wall_column_for_color,
)

logger = get_logger(__name__)


class Phase(Enum):
    """Phases of a round."""
    OFFER = "OFFER"
    WALL_TILING = "WALL_TILING"  # only ever exists inside resolve_round
    FINISHED = "FINISHED"


class MoveSource(Enum):
    """Where a move drafts its tiles from."""
    FACTORY = "factory"
    CENTER = "center"


class InvalidMoveError(ValueError):
    """Raised by the move handlers when a move breaks the drafting rules."""


@dataclass(frozen=True)
class PlayerState:
    """A player's board: pattern lines, wall, floor and score."""
    id: str
    pattern_lines: PatternLines = field(default_factory=empty_pattern_lines)
    wall: Wall = field(default_factory=empty_wall)
    floor: Tuple[TileColor, ...] = ()
    has_first_player_marker: bool = False
    score: int = 0

    def pattern_line_color(self, row: int) -> Optional[TileColor]:
        """Color currently staged on a pattern line, or None if the line is empty."""
        return next((cell for cell in self.pattern_lines[row] if cell is not None), None)

    def pattern_line_fill(self, row: int) -> int:
        return sum(1 for cell in self.pattern_lines[row] if cell is not None)

    def is_pattern_line_full(self, row: int) -> bool:
        return self.pattern_line_fill(row) == len(self.pattern_lines[row])

    def can_place_on_pattern_line(self, row: int, color: TileColor) -> bool:
        """A line accepts a color if it holds nothing else and the wall slot is still free."""
        staged = self.pattern_line_color(row)
        if staged is not None and staged is not color:
            return False
        return self.wall[row][wall_column_for_color(row, color)] is None

    def tile_count(self) -> int:
        return filled_cells(self.pattern_lines) + filled_cells(self.wall) + len(self.floor)


@dataclass(frozen=True)
class GameState:
    """Current state of a match - immutable, advanced via apply_move()."""
    players: Tuple[PlayerState, ...]
    factories: Tuple[Tuple[TileColor, ...], ...] = ()
    center: Tuple[TileColor, ...] = ()
    first_player_marker_in_center: bool = True
    bag: Tuple[TileColor, ...] = ()
    discard_box: Tuple[TileColor, ...] = ()
    phase: Phase = Phase.OFFER
    turn_index: int = 0
    round_start_player_index: int = 0
    round: int = 1

    @property
    def current_player(self) -> PlayerState:
        return self.players[self.turn_index]

    def has_tiles_to_draft(self) -> bool:
        return bool(self.center) or any(self.factories)

    def step(self, player_index: int, move: 'MovePayload', rng: Optional[random.Random] = None) -> 'MoveResult':
        """Apply one move; see apply_move()."""
        return apply_move(self, player_index, move, rng)


@dataclass(frozen=True)
class MovePayload:
    """A tile-selection move. pattern_line_index == -1 sends the tiles to the floor."""
    source: MoveSource
    color: TileColor
    pattern_line_index: int
    factory_index: Optional[int] = None


@dataclass(frozen=True)
class WallPlacement:
    """One pattern line moved onto the wall during round resolution."""
    player_index: int
    row: int
    col: int
    color: TileColor
    points: int


@dataclass(frozen=True)
class RoundReport:
    """Score breakdown of one wall-tiling phase."""
    round: int
    placements: Tuple[WallPlacement, ...] = ()
    floor_penalties: Tuple[int, ...] = ()  # per player, non-positive
    end_game_bonuses: Tuple[int, ...] = ()  # per player, only when the game ended


@dataclass(frozen=True)
class MoveResult:
    """Outcome of apply_move(). new_state is set only when success is True."""
    success: bool
    error: Optional[str] = None
    new_state: Optional[GameState] = None
    game_over: bool = False
    winner_index: Optional[int] = None
    round_report: Optional[RoundReport] = None


# ---------------------------------------------------------------------------
# State factory
# ---------------------------------------------------------------------------

def _shuffled(tiles: Sequence[TileColor], rng: random.Random) -> Tuple[TileColor, ...]:
    pool = list(tiles)
    rng.shuffle(pool)
    return tuple(pool)


def create_initial_state(player_ids: Sequence[str], rng: Optional[random.Random] = None) -> GameState:
    """
    Build the opening state for a match of 2-4 players.

    The full supply is shuffled into the bag and 2 * players + 1 factory
    displays are dealt four tiles each.
    """
    player_ids = list(player_ids)
    if len(player_ids) < MIN_PLAYERS or len(player_ids) > MAX_PLAYERS:
        raise ValueError(f"Game must have {MIN_PLAYERS}-{MAX_PLAYERS} players, got {len(player_ids)}")

    rng = rng or default_random_source()
    factory_count = 2 * len(player_ids) + 1
    state = GameState(
        players=tuple(PlayerState(id=player_id) for player_id in player_ids),
        factories=tuple(() for _ in range(factory_count)),
        bag=_shuffled(full_tile_supply(), rng),
    )
    state = fill_factories(state, rng)
    logger.info("game_created", players=len(player_ids), factories=factory_count)
    return state


def fill_factories(state: GameState, rng: Optional[random.Random] = None) -> GameState:
    """
    Top every factory display up to four tiles drawn from the bag.

    When the bag runs dry mid-fill the discard box is shuffled into a fresh
    bag. If both are empty the remaining displays are left short.
    """
    rng = rng or default_random_source()
    bag = list(state.bag)
    discard_box = list(state.discard_box)
    factories = []

    for display in state.factories:
        display = list(display)
        while len(display) < TILES_PER_FACTORY:
            if not bag:
                if not discard_box:
                    break
                bag = list(_shuffled(discard_box, rng))
                discard_box = []
                logger.debug("bag_recycled", tiles=len(bag))
            display.append(bag.pop())
        factories.append(tuple(display))

    logger.debug(
        "factories_refilled",
        dealt=sum(len(f) for f in factories) - sum(len(f) for f in state.factories),
        bag=len(bag),
    )
    return replace(state, factories=tuple(factories), bag=tuple(bag), discard_box=tuple(discard_box))


# ---------------------------------------------------------------------------
# Move application
# ---------------------------------------------------------------------------

def apply_move(
    state: GameState,
    player_index: int,
    move: MovePayload,
    rng: Optional[random.Random] = None,
) -> MoveResult:
    """
    Validate and apply one drafting move.

    Rule violations come back as MoveResult(success=False) with a readable
    error and no state. When the move empties every factory and the center
    the round is resolved before returning, so the result may already be the
    next round's opening state or a finished game.
    """
    try:
        new_state = _handle_draft(state, player_index, move)
    except InvalidMoveError as e:
        logger.debug("move_rejected", player_index=player_index, error=str(e))
        return MoveResult(success=False, error=str(e))

    logger.debug(
        "move_applied",
        player_index=player_index,
        source=move.source.value,
        factory_index=move.factory_index,
        color=move.color.value,
        pattern_line_index=move.pattern_line_index,
    )

    if not new_state.has_tiles_to_draft():
        resolved, report = resolve_round(replace(new_state, phase=Phase.WALL_TILING), rng)
        game_over = resolved.phase is Phase.FINISHED
        return MoveResult(
            success=True,
            new_state=resolved,
            game_over=game_over,
            winner_index=get_winner_index(resolved) if game_over else None,
            round_report=report,
        )

    next_turn = (new_state.turn_index + 1) % len(new_state.players)
    return MoveResult(success=True, new_state=replace(new_state, turn_index=next_turn))


def _handle_draft(state: GameState, player_index: int, move: MovePayload) -> GameState:
    """Take the chosen tiles and stage them on the player's board. Raises InvalidMoveError."""
    if state.phase is not Phase.OFFER:
        raise InvalidMoveError("Moves are only accepted during the offer phase")
    if player_index != state.turn_index:
        raise InvalidMoveError(f"It's not player {player_index}'s turn. Current player: {state.turn_index}")
    if not isinstance(move.color, TileColor):
        raise InvalidMoveError(f"Unknown tile color: {move.color!r}")

    if move.source is MoveSource.FACTORY:
        factories, center, taken = _take_from_factory(state, move)
        marker_taken = False
    elif move.source is MoveSource.CENTER:
        center, taken = _take_from_center(state, move)
        factories = state.factories
        marker_taken = state.first_player_marker_in_center
    else:
        raise InvalidMoveError(f"Unknown move source: {move.source!r}")

    player, discarded = _place_tiles(state.players[player_index], move, len(taken), marker_taken)

    players = list(state.players)
    players[player_index] = player
    return replace(
        state,
        factories=factories,
        center=center,
        first_player_marker_in_center=state.first_player_marker_in_center and not marker_taken,
        players=tuple(players),
        discard_box=state.discard_box + discarded,
    )


def _take_from_factory(state: GameState, move: MovePayload):
    """All tiles of the color leave the display; the rest slide to the center."""
    index = move.factory_index
    if not isinstance(index, int) or not 0 <= index < len(state.factories):
        raise InvalidMoveError(f"Invalid factory index: {index!r}")

    display = state.factories[index]
    if not display:
        raise InvalidMoveError(f"Factory {index} is empty")

    taken = tuple(tile for tile in display if tile is move.color)
    if not taken:
        raise InvalidMoveError(f"No {move.color.value} tiles in factory {index}")

    leftovers = tuple(tile for tile in display if tile is not move.color)
    factories = state.factories[:index] + ((),) + state.factories[index + 1:]
    return factories, state.center + leftovers, taken


def _take_from_center(state: GameState, move: MovePayload):
    taken = tuple(tile for tile in state.center if tile is move.color)
    if not taken:
        raise InvalidMoveError(f"No {move.color.value} tiles in the center")
    return tuple(tile for tile in state.center if tile is not move.color), taken


def _place_tiles(player: PlayerState, move: MovePayload, count: int, marker_taken: bool):
    """
    Stage `count` drafted tiles on the target pattern line, spilling the
    excess onto the floor. Returns the new player and any tiles that did not
    fit on the floor (they go to the discard box).
    """
    row = move.pattern_line_index
    if not isinstance(row, int) or not FLOOR_LINE_INDEX <= row < PATTERN_LINE_COUNT:
        raise InvalidMoveError(f"Pattern line index must be between {FLOOR_LINE_INDEX} and {PATTERN_LINE_COUNT - 1}, got {row!r}")

    pattern_lines = player.pattern_lines
    if row == FLOOR_LINE_INDEX:
        overflow = count
    else:
        staged = player.pattern_line_color(row)
        if staged is not None and staged is not move.color:
            raise InvalidMoveError(f"Pattern line {row} already holds {staged.value} tiles")
        if not player.can_place_on_pattern_line(row, move.color):
            raise InvalidMoveError(f"{move.color.value} is already on the wall in row {row}")

        filled = player.pattern_line_fill(row)
        capacity = len(pattern_lines[row])
        placed = min(capacity - filled, count)
        line = tuple(move.color if i < filled + placed else None for i in range(capacity))
        pattern_lines = pattern_lines[:row] + (line,) + pattern_lines[row + 1:]
        overflow = count - placed

    floor = list(player.floor)
    discarded = []
    has_marker = player.has_first_player_marker or marker_taken
    # The marker claims a floor slot; on a full floor it bumps the last tile
    if marker_taken and len(floor) >= FLOOR_CAPACITY:
        discarded.append(floor.pop())
    tile_slots = FLOOR_CAPACITY - (1 if has_marker else 0)
    for _ in range(overflow):
        if len(floor) < tile_slots:
            floor.append(move.color)
        else:
            discarded.append(move.color)

    new_player = replace(
        player,
        pattern_lines=pattern_lines,
        floor=tuple(floor),
        has_first_player_marker=has_marker,
    )
    return new_player, tuple(discarded)


# ---------------------------------------------------------------------------
# Round resolution (wall-tiling phase)
# ---------------------------------------------------------------------------

def resolve_round(state: GameState, rng: Optional[random.Random] = None) -> Tuple[GameState, RoundReport]:
    """
    Run the wall-tiling phase for every player and either deal the next
    round or finish the game.

    Full pattern lines move one tile onto the wall and score it; the rest of
    the line and the whole floor go to the discard box. The game ends as soon
    as any wall has a complete row.
    """
    marker_holder = next(
        (i for i, p in enumerate(state.players) if p.has_first_player_marker),
        None,
    )
    discard_box = list(state.discard_box)
    players = []
    placements: List[WallPlacement] = []
    floor_penalties = []

    for index, player in enumerate(state.players):
        pattern_lines = list(player.pattern_lines)
        wall = [list(row) for row in player.wall]
        score = player.score

        for row in range(PATTERN_LINE_COUNT):
            line = pattern_lines[row]
            if any(cell is None for cell in line):
                continue
            color = line[0]
            col = wall_column_for_color(row, color)
            wall[row][col] = color
            points = score_adjacency(wall, row, col)
            score = max(0, score + points)
            placements.append(WallPlacement(index, row, col, color, points))
            discard_box.extend(line[1:])
            pattern_lines[row] = (None,) * len(line)

        penalty = calculate_floor_penalty(player.floor, player.has_first_player_marker)
        score = max(0, score + penalty)
        floor_penalties.append(penalty)
        discard_box.extend(player.floor)

        players.append(replace(
            player,
            pattern_lines=tuple(pattern_lines),
            wall=tuple(tuple(row) for row in wall),
            floor=(),
            has_first_player_marker=False,
            score=score,
        ))

    resolved = replace(
        state,
        players=tuple(players),
        discard_box=tuple(discard_box),
        first_player_marker_in_center=True,
    )
    report = RoundReport(round=state.round, placements=tuple(placements), floor_penalties=tuple(floor_penalties))

    if any(has_complete_row(p.wall) for p in resolved.players):
        return _finish_game(resolved, report)

    if marker_holder is None:
        next_start = (state.round_start_player_index + 1) % len(state.players)
    else:
        next_start = marker_holder

    next_round = fill_factories(
        replace(
            resolved,
            phase=Phase.OFFER,
            round=state.round + 1,
            round_start_player_index=next_start,
            turn_index=next_start,
        ),
        rng,
    )
    if not next_round.has_tiles_to_draft():
        logger.warning("tile_supply_exhausted", round=state.round)
        return _finish_game(resolved, report)

    logger.info(
        "round_resolved",
        round=state.round,
        placements=len(placements),
        scores=[p.score for p in next_round.players],
        next_start=next_start,
    )
    return next_round, report


def _finish_game(state: GameState, report: RoundReport) -> Tuple[GameState, RoundReport]:
    bonuses = tuple(calculate_end_game_bonus(p.wall) for p in state.players)
    players = tuple(
        replace(player, score=player.score + bonus)
        for player, bonus in zip(state.players, bonuses)
    )
    finished = replace(state, players=players, phase=Phase.FINISHED)
    logger.info(
        "game_finished",
        round=state.round,
        scores=[p.score for p in players],
        winner_index=get_winner_index(finished),
    )
    return finished, replace(report, end_game_bonuses=bonuses)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def is_game_over(state: GameState) -> bool:
    return state.phase is Phase.FINISHED


def get_winner_index(state: GameState) -> int:
    """
    Index of the winning player, or -1 for a draw.

    Highest score wins; among tied leaders the most complete wall rows wins.
    """
    scores = [p.score for p in state.players]
    best = max(scores)
    leaders = [i for i, score in enumerate(scores) if score == best]
    if len(leaders) == 1:
        return leaders[0]

    rows = {i: complete_row_count(state.players[i].wall) for i in leaders}
    most_rows = max(rows.values())
    row_leaders = [i for i in leaders if rows[i] == most_rows]
    if len(row_leaders) == 1:
        return row_leaders[0]
    return -1


def count_tiles(state: GameState) -> int:
    """Tiles accounted for anywhere in the state; constant for a whole match."""
    return (
        len(state.bag)
        + len(state.discard_box)
        + len(state.center)
        + sum(len(display) for display in state.factories)
        + sum(p.tile_count() for p in state.players)
    )
