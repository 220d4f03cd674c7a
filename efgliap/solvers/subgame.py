"""Solving games subgame by subgame.

SubgameSolver walks the marked subgame roots of a game from the innermost
outward. Each subgame is copied into a standalone game in which every nested
subgame is replaced by a terminal node paying that subgame's equilibrium
payoffs, solved by ``solve_subgame``, and its solutions are combined with
those of its nested subgames. The partial profiles of the outermost subgame
are then merged into full profiles of the original game.

EfgLiapSolver plugs the Liapunov search into ``solve_subgame``. Its starting
probabilities for a subgame are copied positionally from one full profile of
the original game, using a table of which subgame owns each infoset.
"""

from __future__ import annotations

import itertools
from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np

from efgliap.engine.game_tree import Game, Infoset, Node
from efgliap.engine.profile import BehaviorProfile
from efgliap.engine.support import Support
from efgliap.logging import get_logger

from .liapunov import LiapParams, liap_solve
from .solution import BehaviorSolution, SolverAlgorithm
from .status import SolverInterrupted, Status

logger = get_logger(__name__)


@dataclass
class Subgame:
    """One subgame, copied out of the original game.

    Attributes:
        index:   Position of ``root`` in ``marked_subgame_roots()``.
        root:    Subgame root in the original game.
        game:    Standalone copy with nested subgames replaced by payoffs.
        support: Support of ``game`` matching the original support.
        origin:  Infoset of ``game`` -> infoset of the original game.
    """

    index: int
    root: Node
    game: Game
    support: Support
    origin: dict[Infoset, Infoset]


@dataclass
class _Partial:
    """Probabilities for the infosets of one subgame and everything below it."""

    probs: dict[Infoset, np.ndarray]
    value: np.ndarray
    epsilon: float


class SubgameSolver(ABC):
    """Abstract driver; subclasses implement ``solve_subgame``.

    Args:
        max_solutions: Cap on solutions kept per subgame; 0 keeps all.
    """

    algorithm = SolverAlgorithm.LIAP_SUBGAME

    def __init__(self, max_solutions: int = 0) -> None:
        if max_solutions < 0:
            raise ValueError("max_solutions must be >= 0.")
        self.max_solutions = max_solutions
        self.completed = True

    @abstractmethod
    def solve_subgame(self, subgame: Subgame, status: Status) -> list[BehaviorSolution]:
        """Solve one subgame copy; solutions are profiles of ``subgame.game``."""

    def solve(self, game: Game, support: Support, status: Status | None = None) -> list[BehaviorSolution]:
        """Solve ``game`` restricted to ``support``; return full-game solutions.

        A cancelled search returns an empty list and sets ``completed`` to False.
        """
        if support.game is not game:
            raise ValueError("Support belongs to a different game.")
        status = status if status is not None else Status()
        self.completed = True
        roots = game.marked_subgame_roots()
        try:
            partials = self._solve_from(game, support, roots, game.root, status)
        except SolverInterrupted:
            logger.info("subgame search cancelled")
            self.completed = False
            return []

        solutions = []
        for partial in partials:
            profile = BehaviorProfile(support)
            for infoset, probs in partial.probs.items():
                profile.set_action_probs(infoset, probs)
            solutions.append(
                BehaviorSolution(
                    profile=profile,
                    algorithm=self.algorithm,
                    epsilon=partial.epsilon,
                    liap_value=profile.liap_value(),
                )
            )
        return solutions

    def _solve_from(
        self, game: Game, support: Support, roots: list[Node], root: Node, status: Status
    ) -> list[_Partial]:
        children = [r for r in roots if r.parent is not None and r.parent.subgame_root is root]
        child_partials = [self._solve_from(game, support, roots, child, status) for child in children]

        results: list[_Partial] = []
        for combo in itertools.product(*child_partials):
            replacements = {child: part.value for child, part in zip(children, combo)}
            sub_game, origin = game.subgame_tree(root, replacements)
            sub_support = Support(sub_game, {h: support.actions(origin[h]) for h in sub_game.infosets()})
            subgame = Subgame(roots.index(root), root, sub_game, sub_support, origin)
            logger.debug("solving subgame %d (%d infosets)", subgame.index, len(origin))

            for solution in self.solve_subgame(subgame, status):
                probs: dict[Infoset, np.ndarray] = {}
                for part in combo:
                    probs.update(part.probs)
                for h, orig in origin.items():
                    probs[orig] = solution.profile.action_probs(h)
                epsilon = max([solution.epsilon, *(part.epsilon for part in combo)])
                results.append(_Partial(probs, solution.profile.payoffs(), epsilon))
                if self.max_solutions and len(results) >= self.max_solutions:
                    return results
        return results


class EfgLiapSolver(SubgameSolver):
    """Liapunov search applied subgame by subgame.

    Args:
        game:          The original game.
        params:        Liapunov parameters used for every subgame.
        start:         Full starting profile of ``game``.
        max_solutions: Cap on solutions kept per subgame; 0 keeps all.

    Attributes:
        infoset_subgames: ``infoset_subgames[pl][iset]`` is the index, in
                          ``marked_subgame_roots()``, of the subgame owning
                          that infoset.
        n_evals, n_iters: Work summed over all subgame solves.
        subgame_number:   Number of subgame solves so far.
    """

    def __init__(self, game: Game, params: LiapParams, start: BehaviorProfile, max_solutions: int = 0) -> None:
        super().__init__(max_solutions)
        if start.game is not game:
            raise ValueError("Start profile belongs to a different game.")
        self.game = game
        self.params = params
        self.start = start
        self.n_evals = 0
        self.n_iters = 0
        self.subgame_number = 0

        roots = game.marked_subgame_roots()
        self.infoset_subgames: list[list[int]] = [
            [roots.index(infoset.members[0].subgame_root) for infoset in player.infosets]
            for player in game.players
        ]

    def solve(self, support: Support | None = None, status: Status | None = None) -> list[BehaviorSolution]:
        return super().solve(self.game, support if support is not None else self.start.support, status)

    def _subgame_infosets(self, pl: int, index: int) -> list[Infoset]:
        player = self.game.players[pl]
        return [h for iset, h in enumerate(player.infosets) if self.infoset_subgames[pl][iset] == index]

    def solve_subgame(self, subgame: Subgame, status: Status) -> list[BehaviorSolution]:
        self.subgame_number += 1
        bp = BehaviorProfile(subgame.support)

        for pl in range(self.game.num_players):
            originals = self._subgame_infosets(pl, subgame.index)
            copies = subgame.game.players[pl].infosets
            _check_positional_mapping(subgame, originals, copies, self.start.support)
            for niset, orig in enumerate(originals):
                for act in range(bp.support.num_actions(pl, niset)):
                    bp[pl, niset, act] = self.start[pl, orig.number, act]

        result = liap_solve(subgame.game, self.params, bp, status)
        self.n_evals += result.n_evals
        self.n_iters += result.n_iters
        logger.info(
            "subgame %d: %d solution(s), %d evaluations",
            subgame.index, len(result.solutions), result.n_evals,
        )
        if not result.completed:
            raise SolverInterrupted(f"cancelled while solving subgame {subgame.index}")
        return result.solutions


def _check_positional_mapping(
    subgame: Subgame, originals: list[Infoset], copies: list[Infoset], start_support: Support
) -> None:
    """Raise ValueError unless copies[k] corresponds action-for-action to originals[k]."""
    if len(originals) != len(copies):
        raise ValueError(
            f"Subgame {subgame.index} has {len(copies)} infosets for a player who owns "
            f"{len(originals)} there."
        )
    for orig, copy in zip(originals, copies):
        if subgame.origin.get(copy) is not orig:
            raise ValueError(f"Subgame infoset {copy.label} does not line up with {orig.label}.")
        live_copy = [copy.actions[a] for a in subgame.support.actions(copy)]
        live_orig = [orig.actions[a] for a in start_support.actions(orig)]
        if live_copy != live_orig:
            raise ValueError(
                f"Live actions of {copy.label} {live_copy} do not match the start profile's {live_orig}."
            )
