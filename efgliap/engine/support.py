"""
Action supports.

A Support restricts every personal infoset of a game to a non-empty subset of
its actions (the *live* actions). Supports fix the index space of behavior
profiles: only live actions get a coordinate. Chance infosets are never
restricted.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from .game_tree import Game, Infoset


class Support:
    """Live actions per personal infoset, stored as sorted action indices.

    Examples:
        >>> from efgliap.engine.example_games import one_player_dominant
        >>> g = one_player_dominant()
        >>> s = Support(g)
        >>> s.num_actions(0, 0)
        2
        >>> s.remove_action(g.players[0].infosets[0], 1).num_actions(0, 0)
        1
    """

    def __init__(self, game: Game, actions: Mapping[Infoset, Sequence[int]] | None = None) -> None:
        self.game = game
        actions = dict(actions or {})
        self._actions: dict[Infoset, tuple[int, ...]] = {}
        for infoset in game.infosets():
            live = actions.pop(infoset, range(infoset.num_actions))
            live = tuple(sorted(set(int(a) for a in live)))
            if not live:
                raise ValueError(f"Support leaves no action at {infoset.label}.")
            if live[0] < 0 or live[-1] >= infoset.num_actions:
                raise ValueError(f"Action index out of range at {infoset.label}: {live}")
            self._actions[infoset] = live
        if actions:
            raise ValueError(f"Infosets not in this game: {list(actions)}")

    @classmethod
    def full(cls, game: Game) -> Support:
        return cls(game)

    def actions(self, infoset: Infoset) -> tuple[int, ...]:
        """Live action indices of ``infoset`` (all actions for chance)."""
        if infoset.is_chance:
            return tuple(range(infoset.num_actions))
        return self._actions[infoset]

    def num_actions(self, pl: int, iset: int) -> int:
        return len(self._actions[self.game.players[pl].infosets[iset]])

    def is_live(self, infoset: Infoset, action: int) -> bool:
        return action in self.actions(infoset)

    def remove_action(self, infoset: Infoset, action: int) -> Support:
        """Return a copy of this support without ``action`` at ``infoset``."""
        actions = dict(self._actions)
        actions[infoset] = tuple(a for a in actions[infoset] if a != action)
        return Support(self.game, actions)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Support):
            return NotImplemented
        return self.game is other.game and self._actions == other._actions

    def __hash__(self) -> int:
        return hash((id(self.game), tuple(self._actions.values())))

    def __repr__(self) -> str:
        body = ", ".join(
            f"{h.label}: {[h.actions[a] for a in live]}" for h, live in self._actions.items()
        )
        return f"Support({body})"
