"""
Shared pytest fixtures for efgliap tests.

Wraps the reference games of efgliap.engine.example_games as fixtures and
adds a game with three levels of subgames and a game whose infosets have
3, 1, 2 and 2 actions, for checking the free-vector layout across uneven
infosets.
"""

from __future__ import annotations

from typing import Sequence

import pytest

from efgliap.engine import example_games
from efgliap.engine.game_tree import Game
from efgliap.engine.profile import BehaviorProfile
from efgliap.engine.support import Support


def profile_of(game: Game, values: Sequence[float]) -> BehaviorProfile:
    """Full-support profile of ``game`` with the given flat values."""
    return BehaviorProfile(Support(game), values)


def nested_game() -> Game:
    """Three levels of subgames: Row enters, Column stays, then matching pennies.

    Out pays (-0.5, 0.5) and Leave pays (1, -1); the subgame-perfect play is
    In, Stay and 50/50 pennies. Infoset order: Row = [root, pennies],
    Column = [stay, pennies].
    """
    g = Game(["Row", "Column"], title="Nested")
    row, col = g.players
    g.append_move(g.root, row, ["Out", "In"])
    out, enter = g.root.children
    g.set_outcome(out, [-0.5, 0.5])
    g.append_move(enter, col, ["Leave", "Stay"])
    leave, stay = enter.children
    g.set_outcome(leave, [1.0, -1.0])
    g.append_move(stay, row, ["H", "T"])
    guess = g.append_move(stay.children[0], col, ["H", "T"])
    g.append_to_infoset(stay.children[1], guess)
    for r, mid in enumerate(stay.children):
        for c, leaf in enumerate(mid.children):
            sign = 1.0 if r == c else -1.0
            g.set_outcome(leaf, [sign, -sign])
    g.mark_subgame(enter)
    g.mark_subgame(stay)
    return g


def mixed_width_game() -> Game:
    """Player 1 picks a/b/c; after a or b player 2 moves; after c player 1 has one move.

    Flat infoset order: P1 root (3), P1 'only' (1), P2 X (2), P2 Y (2).
    """
    g = Game(["P1", "P2"], title="Mixed widths")
    p1, p2 = g.players
    g.append_move(g.root, p1, ["a", "b", "c"])
    a, b, c = g.root.children
    g.append_move(a, p2, ["x1", "x2"])
    g.append_move(b, p2, ["y1", "y2"])
    g.append_move(c, p1, ["only"])
    g.set_outcome(a.children[0], [3.0, 1.0])
    g.set_outcome(a.children[1], [0.0, 0.0])
    g.set_outcome(b.children[0], [1.0, 2.0])
    g.set_outcome(b.children[1], [2.0, 1.0])
    g.set_outcome(c.children[0], [1.5, 1.5])
    return g


@pytest.fixture
def pennies() -> Game:
    return example_games.matching_pennies()


@pytest.fixture
def weighted() -> Game:
    return example_games.weighted_pennies()


@pytest.fixture
def dominant() -> Game:
    return example_games.one_player_dominant()


@pytest.fixture
def constant() -> Game:
    return example_games.one_player_constant()


@pytest.fixture
def two_pennies() -> Game:
    return example_games.two_pennies_subgames()


@pytest.fixture
def entry() -> Game:
    return example_games.entry_game()


@pytest.fixture
def mixed() -> Game:
    return mixed_width_game()


@pytest.fixture
def nested() -> Game:
    return nested_game()
