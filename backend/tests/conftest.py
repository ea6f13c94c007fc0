"""
Pytest configuration and shared builders for engine tests.
"""
import random
import pytest

from azul_engine import GameState, PlayerState, TileColor, wall_pattern_color
from azul_engine.config import SHUFFLE_SEED_ENV
from azul_engine.logging_config import configure_logging, clear_match_context


@pytest.fixture(scope="session", autouse=True)
def setup_logging():
    """Configure structured logging once for the whole test session."""
    configure_logging("development")
    yield


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """Keep shuffles ambient and log context clean unless a test opts in."""
    monkeypatch.delenv(SHUFFLE_SEED_ENV, raising=False)
    yield
    clear_match_context()


@pytest.fixture
def rng():
    return random.Random(1234)


def wall_with(*cells):
    """Build a wall with the given (row, col) cells filled by their pattern color."""
    return tuple(
        tuple(wall_pattern_color(row, col) if (row, col) in cells else None for col in range(5))
        for row in range(5)
    )


def make_state(factories, center=(), marker_in_center=True, players=None, turn_index=0,
               bag=(), discard_box=(), round_start_player_index=0):
    """Build a hand-made offer-phase state for two players unless players are given."""
    if players is None:
        players = (PlayerState(id="player_0"), PlayerState(id="player_1"))
    return GameState(
        players=tuple(players),
        factories=tuple(tuple(f) for f in factories),
        center=tuple(center),
        first_player_marker_in_center=marker_in_center,
        bag=tuple(bag),
        discard_box=tuple(discard_box),
        turn_index=turn_index,
        round_start_player_index=round_start_player_index,
    )


B = TileColor.BLUE
Y = TileColor.YELLOW
R = TileColor.RED
K = TileColor.BLACK
T = TileColor.TEAL
