"""
Extensive-form game trees.

A Game is a rooted tree of Nodes. Decision nodes belong to information sets
(Infoset); every infoset belongs to one Player, or to the chance player, whose
infosets carry fixed action probabilities. Payoff vectors may be attached to
any node and accumulate along the path from the root.

Subgames
~~~~~~~~
A node is a legal subgame root when every infoset met in its subtree has all
of its members inside that subtree. Legal roots can be *marked*; the root of
the game is always marked. Each node's ``subgame_root`` is the nearest marked
ancestor (or the node itself), which partitions the tree into subgames.

``subgame_tree`` copies the part of the tree owned by one marked root into a
standalone Game, replacing nested marked roots by terminal payoff nodes.

The solvers only read games; the builder methods exist for construction.
"""

from __future__ import annotations

from typing import Iterator, Mapping, Sequence

import numpy as np


class Player:
    """A player of the game (``number == -1`` for chance).

    Attributes:
        number:   0-based index into ``Game.players``; -1 for chance.
        name:     Display label.
        infosets: Infosets in declaration order.
    """

    def __init__(self, game: Game, number: int, name: str) -> None:
        self.game = game
        self.number = number
        self.name = name
        self.infosets: list[Infoset] = []

    @property
    def is_chance(self) -> bool:
        return self.number < 0

    def __repr__(self) -> str:
        return f"Player({self.number}, {self.name!r})"


class Infoset:
    """An information set: decision nodes its player cannot tell apart.

    Attributes:
        player:  Owning Player.
        number:  0-based position in ``player.infosets``.
        actions: Action labels; every member has one child per action.
        members: Member nodes, in the order they joined.
        probs:   Fixed action probabilities (chance infosets only).
    """

    def __init__(
        self,
        player: Player,
        number: int,
        actions: Sequence[str],
        probs: Sequence[float] | None = None,
        label: str = "",
    ) -> None:
        self.player = player
        self.number = number
        self.actions = tuple(actions)
        self.members: list[Node] = []
        self.probs = None if probs is None else tuple(float(p) for p in probs)
        self.label = label or f"{player.name}:{number + 1}"

    @property
    def num_actions(self) -> int:
        return len(self.actions)

    @property
    def is_chance(self) -> bool:
        return self.player.is_chance

    def __repr__(self) -> str:
        return f"Infoset({self.label!r}, actions={self.actions})"


class Node:
    """A node of the game tree.

    Attributes:
        parent:       Parent node (None at the root).
        prior_action: Index of the parent's action leading here.
        children:     One child per action of ``infoset`` (empty if terminal).
        infoset:      Infoset this node belongs to (None if terminal).
        outcome:      Payoff vector attached to this node, or None.
    """

    def __init__(self, game: Game, parent: Node | None = None, prior_action: int | None = None) -> None:
        self.game = game
        self.parent = parent
        self.prior_action = prior_action
        self.children: list[Node] = []
        self.infoset: Infoset | None = None
        self.outcome: np.ndarray | None = None
        self.label = ""

    @property
    def is_terminal(self) -> bool:
        return not self.children

    @property
    def player(self) -> Player | None:
        return None if self.infoset is None else self.infoset.player

    @property
    def subgame_root(self) -> Node:
        """Nearest marked subgame root at or above this node."""
        node = self
        while node not in self.game._marked:
            node = node.parent
        return node

    def walk(self) -> Iterator[Node]:
        """Yield the subtree rooted here in pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def __repr__(self) -> str:
        where = self.infoset.label if self.infoset is not None else "terminal"
        return f"Node({self.label!r}, {where})"


class Game:
    """An extensive-form game with a fixed list of personal players.

    Examples:
        >>> g = Game(["Alice"])
        >>> h = g.append_move(g.root, g.players[0], ["L", "R"])
        >>> g.set_outcome(g.root.children[0], [1.0])
        >>> g.set_outcome(g.root.children[1], [0.0])
        >>> [len(p.infosets) for p in g.players]
        [1]
    """

    def __init__(self, players: Sequence[str], title: str = "") -> None:
        if not players:
            raise ValueError("A game needs at least one player.")
        self.title = title
        self.players = [Player(self, i, name) for i, name in enumerate(players)]
        self.chance = Player(self, -1, "chance")
        self.root = Node(self)
        self._marked: set[Node] = {self.root}

    @property
    def num_players(self) -> int:
        return len(self.players)

    # ─── Construction ─────────────────────────────────────────────────────────

    def append_move(self, node: Node, player: Player, actions: Sequence[str]) -> Infoset:
        """Turn terminal ``node`` into a decision node in a new infoset of ``player``."""
        if player.game is not self or player.is_chance:
            raise ValueError("append_move needs a personal player of this game.")
        if not actions:
            raise ValueError("An infoset needs at least one action.")
        infoset = self._new_infoset(player, actions)
        self.append_to_infoset(node, infoset)
        return infoset

    def append_chance(
        self, node: Node, probs: Sequence[float], actions: Sequence[str] | None = None
    ) -> Infoset:
        """Turn terminal ``node`` into a chance node with fixed probabilities."""
        probs = [float(p) for p in probs]
        if not probs or any(p < 0 for p in probs) or abs(sum(probs) - 1.0) > 1e-9:
            raise ValueError(f"Chance probabilities must be non-negative and sum to 1: {probs}")
        if actions is None:
            actions = [str(i + 1) for i in range(len(probs))]
        if len(actions) != len(probs):
            raise ValueError("Chance move needs one probability per action.")
        infoset = self._new_infoset(self.chance, actions, probs)
        self.append_to_infoset(node, infoset)
        return infoset

    def append_to_infoset(self, node: Node, infoset: Infoset) -> None:
        """Add terminal ``node`` to an existing ``infoset`` and grow its children."""
        if node.game is not self or infoset.player.game is not self:
            raise ValueError("Node and infoset must belong to this game.")
        if not node.is_terminal:
            raise ValueError(f"{node!r} already has a move.")
        node.infoset = infoset
        infoset.members.append(node)
        node.children = [Node(self, node, k) for k in range(infoset.num_actions)]

    def set_outcome(self, node: Node, payoffs: Sequence[float] | None) -> None:
        if payoffs is None:
            node.outcome = None
            return
        vec = np.asarray(payoffs, dtype=float)
        if vec.shape != (self.num_players,):
            raise ValueError(
                f"Outcome needs {self.num_players} payoffs, got shape {vec.shape}."
            )
        node.outcome = vec

    def _new_infoset(
        self, player: Player, actions: Sequence[str], probs: Sequence[float] | None = None, label: str = ""
    ) -> Infoset:
        infoset = Infoset(player, len(player.infosets), actions, probs, label)
        player.infosets.append(infoset)
        return infoset

    # ─── Queries ──────────────────────────────────────────────────────────────

    def nodes(self) -> Iterator[Node]:
        return self.root.walk()

    def infosets(self) -> Iterator[Infoset]:
        """Personal infosets in player-major, declaration order."""
        for player in self.players:
            yield from player.infosets

    # ─── Subgames ─────────────────────────────────────────────────────────────

    def is_subgame_root(self, node: Node) -> bool:
        """True if no infoset straddles the boundary of ``node``'s subtree."""
        inside = set(node.walk())
        return all(
            member in inside
            for n in inside
            if n.infoset is not None
            for member in n.infoset.members
        )

    def mark_subgame(self, node: Node) -> None:
        if node.game is not self:
            raise ValueError("Node belongs to a different game.")
        if not self.is_subgame_root(node):
            raise ValueError(f"{node!r} is not a legal subgame root.")
        self._marked.add(node)

    def unmark_subgame(self, node: Node) -> None:
        if node is not self.root:
            self._marked.discard(node)

    def mark_all_subgames(self) -> None:
        """Mark every legal subgame root at a decision node."""
        for node in self.nodes():
            if not node.is_terminal and self.is_subgame_root(node):
                self._marked.add(node)

    def marked_subgame_roots(self) -> list[Node]:
        """Marked roots in pre-order; the game root comes first."""
        return [node for node in self.nodes() if node in self._marked]

    def subgame_tree(
        self, root: Node, replacements: Mapping[Node, Sequence[float]] | None = None
    ) -> tuple[Game, dict[Infoset, Infoset]]:
        """Copy the subtree at ``root`` into a standalone game.

        Args:
            root:         A marked subgame root of this game.
            replacements: Marked roots strictly below ``root`` mapped to the
                          payoff vector that replaces their whole subtree.

        Returns:
            (subgame, origin) where ``origin`` maps every personal infoset of
            the copy to the infoset of this game it was copied from. Copied
            infosets keep their owners' declaration order.
        """
        if root not in self._marked:
            raise ValueError(f"{root!r} is not a marked subgame root.")
        replacements = dict(replacements or {})
        replacements.pop(root, None)

        kept: list[Node] = []
        stack = [root]
        while stack:
            node = stack.pop()
            kept.append(node)
            if node not in replacements:
                stack.extend(node.children)
        used = {node.infoset for node in kept if node.infoset is not None and node not in replacements}

        sub = Game([p.name for p in self.players], title=self.title)
        copies: dict[Infoset, Infoset] = {}
        for player, sub_player in zip([self.chance, *self.players], [sub.chance, *sub.players]):
            for infoset in player.infosets:
                if infoset in used:
                    copies[infoset] = sub._new_infoset(
                        sub_player, infoset.actions, infoset.probs, infoset.label
                    )

        pairs = [(root, sub.root)]
        while pairs:
            node, copy = pairs.pop()
            copy.label = node.label
            if node in replacements:
                sub.set_outcome(copy, replacements[node])
                continue
            if node.outcome is not None:
                copy.outcome = node.outcome.copy()
            if node.infoset is not None:
                sub.append_to_infoset(copy, copies[node.infoset])
                pairs.extend(zip(node.children, copy.children))

        origin = {copy: orig for orig, copy in copies.items() if not orig.is_chance}
        return sub, origin
