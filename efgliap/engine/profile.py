"""
Behavior strategy profiles over a support.

A BehaviorProfile stores one probability per live action as a flat numpy
vector, ordered player-major, then infoset (declaration order), then live
action. Structured access uses 0-based ``(player, infoset, action)`` triples
where ``action`` counts live actions only.

Free-vector encoding
~~~~~~~~~~~~~~~~~~~~
The optimizer works on the *free vector*: the flat vector with the last live
action of every infoset removed. ``free_to_full`` and ``full_to_free`` are the
only conversions between the two; the dropped coordinate is always restored
as ``1 - sum(others)`` so every decoded profile satisfies the simplex sum.

Liapunov value
~~~~~~~~~~~~~~
For player i, infoset h and live action a, the counterfactual action value is

    v(h, a) = sum over members n of h:  r_-i(n) * u_i(child(n, a))

where r_-i(n) is the probability that chance and the other players reach n
and u_i is player i's expected payoff from the child onward (outcomes on the
child included). With v(h) = sum_a p(a) v(h, a), the Liapunov value is

    L = sum_h sum_a max(0, v(h, a) - v(h))^2  +  penalties

with quadratic penalties on negative probabilities and on infoset sums that
differ from 1. L >= 0, and L == 0 means no player gains by deviating at any
infoset.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .game_tree import Infoset, Node
from .support import Support

# Weight of the simplex penalties in liap_value().
_BIG_PENALTY: float = 10000.0


# ─── Free-vector encoding ─────────────────────────────────────────────────────

def free_to_full(x: Sequence[float], lengths: Sequence[int], total: float = 1.0) -> np.ndarray:
    """Expand a free vector, restoring the last coordinate of every infoset.

    Args:
        x:       Free coordinates (``sum(lengths) - len(lengths)`` values).
        lengths: Live-action count of each infoset, in flat order.
        total:   Sum each infoset block must reach: 1.0 for points, 0.0 for
                 directions.

    Examples:
        >>> free_to_full([0.2, 0.5, 0.1], [3, 2])
        array([0.2, 0.5, 0.3, 0.1, 0.9])
    """
    x = np.asarray(x, dtype=float)
    lengths = np.asarray(lengths, dtype=int)
    n_free = int(np.sum(lengths - 1))
    if x.shape != (n_free,):
        raise ValueError(f"Free vector must have {n_free} entries, got shape {x.shape}.")
    full = np.empty(int(lengths.sum()))
    src = dst = 0
    for n in lengths:
        block = x[src:src + n - 1]
        full[dst:dst + n - 1] = block
        full[dst + n - 1] = total - block.sum()
        src += n - 1
        dst += n
    return full


def full_to_free(values: Sequence[float], lengths: Sequence[int]) -> np.ndarray:
    """Drop the last coordinate of every infoset block.

    Examples:
        >>> full_to_free([0.2, 0.5, 0.3, 0.1, 0.9], [3, 2])
        array([0.2, 0.5, 0.1])
    """
    values = np.asarray(values, dtype=float)
    lengths = np.asarray(lengths, dtype=int)
    if values.shape != (int(lengths.sum()),):
        raise ValueError(
            f"Profile vector must have {int(lengths.sum())} entries, got shape {values.shape}."
        )
    keep = np.ones(values.size, dtype=bool)
    keep[np.cumsum(lengths) - 1] = False
    return values[keep]


def is_interior_point(x: Sequence[float], lengths: Sequence[int]) -> bool:
    """True if the free vector decodes to a profile with no coordinate at 0 or 1.

    Infosets with a single live action are ignored: their only coordinate is
    pinned to 1.
    """
    lengths = np.asarray(lengths, dtype=int)
    full = free_to_full(x, lengths)
    multi = np.repeat(lengths > 1, lengths)
    return bool(np.all(full[multi] > 0.0) and np.all(full[multi] < 1.0))


# ─── Profile ──────────────────────────────────────────────────────────────────

class BehaviorProfile:
    """A behavior strategy profile restricted to a support.

    Constructed without values it is the centroid of the support: every live
    action of an infoset gets the same probability.

    Examples:
        >>> from efgliap.engine.example_games import matching_pennies
        >>> p = BehaviorProfile(Support(matching_pennies()))
        >>> p[0, 0, 0], len(p), p.free_vector()
        (0.5, 4, array([0.5, 0.5]))
    """

    def __init__(self, support: Support, values: Sequence[float] | None = None) -> None:
        self.support = support
        self.game = support.game
        self._infosets: list[Infoset] = list(self.game.infosets())
        self._lengths = np.array([len(support.actions(h)) for h in self._infosets], dtype=int)
        self._offsets = np.concatenate(([0], np.cumsum(self._lengths)[:-1])).astype(int)
        self._flat_index = {h: i for i, h in enumerate(self._infosets)}
        if values is None:
            self._values = np.repeat(1.0 / self._lengths, self._lengths) if self._infosets else np.zeros(0)
        else:
            self._values = np.array(values, dtype=float)
            if self._values.shape != (int(self._lengths.sum()),):
                raise ValueError(
                    f"Profile needs {int(self._lengths.sum())} values for this support, "
                    f"got shape {self._values.shape}."
                )

    def copy(self) -> BehaviorProfile:
        return BehaviorProfile(self.support, self._values)

    # ─── Flat and structured access ───────────────────────────────────────────

    def __len__(self) -> int:
        return self._values.size

    def _index(self, key: int | tuple[int, int, int]) -> int:
        if isinstance(key, tuple):
            pl, iset, act = key
            infoset = self.game.players[pl].infosets[iset]
            h = self._flat_index[infoset]
            if not 0 <= act < self._lengths[h]:
                raise IndexError(f"{infoset.label} has {self._lengths[h]} live actions, not {act + 1}.")
            return int(self._offsets[h] + act)
        return int(key)

    def __getitem__(self, key: int | tuple[int, int, int]) -> float:
        return float(self._values[self._index(key)])

    def __setitem__(self, key: int | tuple[int, int, int], value: float) -> None:
        self._values[self._index(key)] = value

    def as_array(self) -> np.ndarray:
        return self._values.copy()

    def set_array(self, values: Sequence[float]) -> None:
        values = np.asarray(values, dtype=float)
        if values.shape != self._values.shape:
            raise ValueError(f"Expected shape {self._values.shape}, got {values.shape}.")
        self._values[:] = values

    def infoset_lengths(self) -> np.ndarray:
        """Live-action counts per infoset, in flat order."""
        return self._lengths.copy()

    @property
    def free_length(self) -> int:
        return int(np.sum(self._lengths - 1))

    def free_vector(self) -> np.ndarray:
        return full_to_free(self._values, self._lengths)

    def set_free_vector(self, x: Sequence[float]) -> None:
        """Overwrite the free coordinates and re-impose every infoset's sum."""
        self._values[:] = free_to_full(x, self._lengths)

    def action_probs(self, infoset: Infoset) -> np.ndarray:
        h = self._flat_index[infoset]
        start = self._offsets[h]
        return self._values[start:start + self._lengths[h]].copy()

    def set_action_probs(self, infoset: Infoset, probs: Sequence[float]) -> None:
        h = self._flat_index[infoset]
        start = self._offsets[h]
        probs = np.asarray(probs, dtype=float)
        if probs.shape != (self._lengths[h],):
            raise ValueError(f"{infoset.label} has {self._lengths[h]} live actions, got {probs.shape}.")
        self._values[start:start + self._lengths[h]] = probs

    def infoset_sums(self) -> np.ndarray:
        if not self._infosets:
            return np.zeros(0)
        return np.add.reduceat(self._values, self._offsets)

    def is_interior(self, eps: float = 0.0) -> bool:
        multi = np.repeat(self._lengths > 1, self._lengths)
        return bool(np.all(self._values[multi] > eps))

    def equals(self, other: BehaviorProfile, tol: float = 0.0) -> bool:
        """Same support and every coordinate within ``tol``."""
        if self.support != other.support:
            return False
        if not len(self):
            return True
        return bool(np.max(np.abs(self._values - other._values)) <= tol)

    def __str__(self) -> str:
        return "(" + ", ".join(f"{v:.6g}" for v in self._values) + ")"

    def __repr__(self) -> str:
        return f"BehaviorProfile{self}"

    # ─── Payoffs ──────────────────────────────────────────────────────────────

    def _behavior(self) -> dict[Infoset, np.ndarray]:
        """Probability of every action (live or not) at every infoset."""
        dist: dict[Infoset, np.ndarray] = {}
        for h in self._infosets:
            full = np.zeros(h.num_actions)
            full[list(self.support.actions(h))] = self.action_probs(h)
            dist[h] = full
        for h in self.game.chance.infosets:
            dist[h] = np.asarray(h.probs, dtype=float)
        return dist

    def _node_values(self, dist: dict[Infoset, np.ndarray]) -> dict[Node, np.ndarray]:
        values: dict[Node, np.ndarray] = {}
        n = self.game.num_players

        def visit(node: Node) -> np.ndarray:
            total = np.zeros(n) if node.outcome is None else node.outcome.copy()
            if node.infoset is not None:
                probs = dist[node.infoset]
                for k, child in enumerate(node.children):
                    total += probs[k] * visit(child)
            values[node] = total
            return total

        visit(self.game.root)
        return values

    def payoffs(self) -> np.ndarray:
        """Expected payoff of every player from the root."""
        return self._node_values(self._behavior())[self.game.root].copy()

    def payoff(self, pl: int) -> float:
        return float(self.payoffs()[pl])

    def action_values(self) -> dict[Infoset, np.ndarray]:
        """Counterfactual value of every live action, keyed by infoset."""
        dist = self._behavior()
        node_values = self._node_values(dist)
        cf = {h: np.zeros(self._lengths[i]) for i, h in enumerate(self._infosets)}

        stack = [(self.game.root, 1.0, np.ones(self.game.num_players))]
        while stack:
            node, chance_reach, reach = stack.pop()
            infoset = node.infoset
            if infoset is None:
                continue
            probs = dist[infoset]
            if infoset.is_chance:
                for k, child in enumerate(node.children):
                    stack.append((child, chance_reach * probs[k], reach))
                continue
            i = infoset.player.number
            others = chance_reach * np.prod(np.delete(reach, i))
            live = self.support.actions(infoset)
            cf[infoset] += others * np.array([node_values[node.children[a]][i] for a in live])
            for k, child in enumerate(node.children):
                child_reach = reach.copy()
                child_reach[i] *= probs[k]
                stack.append((child, chance_reach, child_reach))
        return cf

    def liap_value(self) -> float:
        """Non-negative distance from equilibrium; zero at Nash equilibria."""
        if not self._infosets:
            return 0.0
        cf = self.action_values()
        result = 0.0
        for h in self._infosets:
            v = cf[h]
            avg = float(self.action_probs(h) @ v)
            gain = np.maximum(v - avg, 0.0)
            result += float(gain @ gain)
        negative = np.minimum(self._values, 0.0)
        result += _BIG_PENALTY * float(negative @ negative)
        excess = self.infoset_sums() - 1.0
        result += _BIG_PENALTY * float(excess @ excess)
        return result
