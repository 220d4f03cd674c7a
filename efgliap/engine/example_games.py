"""
Small reference games.

    one_player_constant()   — one decision, every outcome pays the same
    one_player_dominant()   — one decision, action 1 strictly dominates
    matching_pennies()      — simultaneous pennies, unique mixed equilibrium
    weighted_pennies()      — zero-sum pennies, equilibrium at (0.4, 0.4)
    two_pennies_subgames()  — chance picks one of the two pennies games;
                              both are marked subgames
    entry_game()            — perfect-information entry deterrence
"""

from __future__ import annotations

from typing import Sequence

from .game_tree import Game, Node


def one_player_constant() -> Game:
    g = Game(["Solo"], title="Constant payoff")
    g.append_move(g.root, g.players[0], ["A", "B"])
    for child in g.root.children:
        g.set_outcome(child, [1.0])
    return g


def one_player_dominant() -> Game:
    g = Game(["Solo"], title="Dominant action")
    g.append_move(g.root, g.players[0], ["Good", "Bad"])
    g.set_outcome(g.root.children[0], [1.0])
    g.set_outcome(g.root.children[1], [0.0])
    return g


def _pennies(g: Game, node: Node, matrix: Sequence[Sequence[float]]) -> None:
    """Row player moves at ``node``; column player moves without seeing it.

    ``matrix[r][c]`` is the row player's payoff; the game is zero-sum.
    """
    row, col = g.players
    g.append_move(node, row, ["H", "T"])
    infoset = g.append_move(node.children[0], col, ["H", "T"])
    g.append_to_infoset(node.children[1], infoset)
    for r, mid in enumerate(node.children):
        for c, leaf in enumerate(mid.children):
            g.set_outcome(leaf, [matrix[r][c], -matrix[r][c]])


def matching_pennies() -> Game:
    g = Game(["Row", "Column"], title="Matching pennies")
    _pennies(g, g.root, [[1.0, -1.0], [-1.0, 1.0]])
    return g


# Row and column both put probability 0.4 on H at the equilibrium.
_WEIGHTED: tuple[tuple[float, float], tuple[float, float]] = ((2.0, -1.0), (-1.0, 1.0))


def weighted_pennies() -> Game:
    g = Game(["Row", "Column"], title="Weighted pennies")
    _pennies(g, g.root, _WEIGHTED)
    return g


def two_pennies_subgames() -> Game:
    """Chance picks matching pennies or weighted pennies with equal odds.

    Infoset order: Row = [left, right], Column = [left, right].
    """
    g = Game(["Row", "Column"], title="Two pennies")
    g.append_chance(g.root, [0.5, 0.5], ["left", "right"])
    left, right = g.root.children
    _pennies(g, left, [[1.0, -1.0], [-1.0, 1.0]])
    _pennies(g, right, _WEIGHTED)
    g.mark_subgame(left)
    g.mark_subgame(right)
    return g


def entry_game() -> Game:
    """Entrant stays out (0, 2) or enters; incumbent fights (-1, -1) or accommodates (1, 1)."""
    g = Game(["Entrant", "Incumbent"], title="Entry deterrence")
    entrant, incumbent = g.players
    g.append_move(g.root, entrant, ["Out", "In"])
    out, enter = g.root.children
    g.set_outcome(out, [0.0, 2.0])
    g.append_move(enter, incumbent, ["Fight", "Accommodate"])
    g.set_outcome(enter.children[0], [-1.0, -1.0])
    g.set_outcome(enter.children[1], [1.0, 1.0])
    g.mark_all_subgames()
    return g
