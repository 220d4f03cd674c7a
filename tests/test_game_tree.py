"""Tests for efgliap/engine/game_tree.py and efgliap/engine/support.py.

    TestConstruction   — players, infosets, members, outcomes, chance moves
    TestSubgameRoots   — legality, marking, subgame_root ownership
    TestSubgameTree    — copying a subgame out, with and without replacements
    TestSupport        — live actions, restriction, validation
"""

from __future__ import annotations

import numpy as np
import pytest

from efgliap.engine.game_tree import Game
from efgliap.engine.support import Support


# ─── TestConstruction ─────────────────────────────────────────────────────────

class TestConstruction:

    def test_infosets_in_declaration_order(self, mixed):
        p1, p2 = mixed.players
        assert [h.actions for h in p1.infosets] == [("a", "b", "c"), ("only",)]
        assert [h.actions for h in p2.infosets] == [("x1", "x2"), ("y1", "y2")]
        assert [h.number for h in p2.infosets] == [0, 1]

    def test_infosets_iterate_player_major(self, two_pennies):
        labels = [h.label for h in two_pennies.infosets()]
        assert labels == ["Row:1", "Row:2", "Column:1", "Column:2"]

    def test_shared_infoset_members(self, pennies):
        column = pennies.players[1].infosets[0]
        assert len(column.members) == 2
        assert all(len(node.children) == 2 for node in column.members)

    def test_outcome_length_checked(self, pennies):
        with pytest.raises(ValueError):
            pennies.set_outcome(pennies.root, [1.0])

    def test_cannot_move_twice_at_a_node(self, dominant):
        with pytest.raises(ValueError):
            dominant.append_move(dominant.root, dominant.players[0], ["X"])

    def test_chance_probs_must_sum_to_one(self):
        g = Game(["A"])
        with pytest.raises(ValueError):
            g.append_chance(g.root, [0.3, 0.3])

    def test_chance_infoset_not_personal(self, two_pennies):
        assert len(two_pennies.chance.infosets) == 1
        assert two_pennies.chance.infosets[0].probs == (0.5, 0.5)
        assert all(not h.is_chance for h in two_pennies.infosets())

    def test_terminal_and_walk(self, dominant):
        nodes = list(dominant.nodes())
        assert len(nodes) == 3
        assert nodes[0] is dominant.root
        assert all(n.is_terminal for n in nodes[1:])


# ─── TestSubgameRoots ─────────────────────────────────────────────────────────

class TestSubgameRoots:

    def test_root_always_marked(self, pennies):
        assert pennies.marked_subgame_roots() == [pennies.root]

    def test_straddling_infoset_is_not_a_root(self, pennies):
        node = pennies.root.children[0]
        assert not pennies.is_subgame_root(node)
        with pytest.raises(ValueError):
            pennies.mark_subgame(node)

    def test_marked_roots_in_preorder(self, two_pennies):
        left, right = two_pennies.root.children
        assert two_pennies.marked_subgame_roots() == [two_pennies.root, left, right]

    def test_subgame_root_ownership(self, two_pennies):
        left, right = two_pennies.root.children
        leaf = left.children[1].children[0]
        assert leaf.subgame_root is left
        assert right.subgame_root is right
        assert two_pennies.root.subgame_root is two_pennies.root

    def test_mark_all_subgames(self, entry):
        enter = entry.root.children[1]
        assert entry.marked_subgame_roots() == [entry.root, enter]

    def test_unmark(self, two_pennies):
        left = two_pennies.root.children[0]
        two_pennies.unmark_subgame(left)
        assert left not in two_pennies.marked_subgame_roots()
        two_pennies.unmark_subgame(two_pennies.root)
        assert two_pennies.root in two_pennies.marked_subgame_roots()


# ─── TestSubgameTree ──────────────────────────────────────────────────────────

class TestSubgameTree:

    def test_copy_of_one_subgame(self, two_pennies):
        left = two_pennies.root.children[0]
        sub, origin = two_pennies.subgame_tree(left)
        assert sub.num_players == 2
        assert [len(p.infosets) for p in sub.players] == [1, 1]
        row, column = two_pennies.players
        assert origin[sub.players[0].infosets[0]] is row.infosets[0]
        assert origin[sub.players[1].infosets[0]] is column.infosets[0]
        assert len(sub.players[1].infosets[0].members) == 2

    def test_copy_keeps_outcomes(self, two_pennies):
        right = two_pennies.root.children[1]
        sub, _ = two_pennies.subgame_tree(right)
        leaf = sub.root.children[0].children[0]
        np.testing.assert_allclose(leaf.outcome, [2.0, -2.0])

    def test_nested_roots_replaced_by_payoffs(self, two_pennies):
        left, right = two_pennies.root.children
        sub, origin = two_pennies.subgame_tree(two_pennies.root, {left: [1.0, -1.0], right: [0.5, -0.5]})
        assert origin == {}
        assert list(sub.infosets()) == []
        assert len(sub.chance.infosets) == 1
        np.testing.assert_allclose(sub.root.children[0].outcome, [1.0, -1.0])
        np.testing.assert_allclose(sub.root.children[1].outcome, [0.5, -0.5])
        assert all(child.is_terminal for child in sub.root.children)

    def test_unmarked_root_rejected(self, pennies):
        with pytest.raises(ValueError):
            pennies.subgame_tree(pennies.root.children[0])


# ─── TestSupport ──────────────────────────────────────────────────────────────

class TestSupport:

    def test_full_support(self, mixed):
        s = Support.full(mixed)
        assert [s.num_actions(0, 0), s.num_actions(0, 1), s.num_actions(1, 0)] == [3, 1, 2]

    def test_remove_action(self, mixed):
        root = mixed.players[0].infosets[0]
        s = Support(mixed).remove_action(root, 1)
        assert s.actions(root) == (0, 2)
        assert not s.is_live(root, 1)
        assert s != Support(mixed)

    def test_empty_infoset_rejected(self, dominant):
        infoset = dominant.players[0].infosets[0]
        with pytest.raises(ValueError):
            Support(dominant, {infoset: []})

    def test_foreign_infoset_rejected(self, dominant, constant):
        with pytest.raises(ValueError):
            Support(dominant, {constant.players[0].infosets[0]: [0]})

    def test_chance_actions_always_live(self, two_pennies):
        chance = two_pennies.chance.infosets[0]
        assert Support(two_pennies).actions(chance) == (0, 1)
