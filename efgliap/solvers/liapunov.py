"""Liapunov-function equilibrium search for extensive-form games.

Searches for Nash equilibria by minimizing the Liapunov value of a behavior
profile (zero exactly when no player gains by deviating) with the
direction-set minimizer in ``powell``.

Search loop
~~~~~~~~~~~
  Try 1      starts from the caller's profile, pulled slightly toward the
             support's centroid if any probability is (nearly) zero.
  Tries 2..N start from random profiles drawn per infoset.
  Every try  polls the Status, resets the direction set to the projected
             identity basis and runs the minimizer. A converged point that
             differs from every accepted solution by more than
             ``sqrt(tol_n)`` is accepted.

The loop ends when ``n_tries`` tries have run or ``stop_after`` solutions
are accepted (0 disables either limit). Cancellation ends it early with
``completed=False``; accepted solutions are kept.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TextIO

import numpy as np

from efgliap.engine.game_tree import Game
from efgliap.engine.profile import BehaviorProfile
from efgliap.engine.support import Support
from efgliap.logging import get_logger

from .powell import powell_minimize
from .solution import BehaviorSolution, SolverAlgorithm
from .status import SolverInterrupted, Status

logger = get_logger(__name__)

# Start profiles with a coordinate at or below this are blended toward the
# centroid with this weight.
_INTERIOR_ALPHA: float = 1.0e-8


# ─── Configuration and results ────────────────────────────────────────────────

@dataclass(frozen=True)
class LiapParams:
    """Run configuration.

    Attributes:
        n_tries:    Restart tries; 0 means no limit.
        stop_after: Stop once this many solutions are accepted; 0 means no limit.
        maxits_n:   Outer minimizer iterations per try.
        tol_n:      Outer tolerance; a try converges when the value is <= tol_n.
        maxits1:    Iterations per line search.
        tol1:       Line-search step tolerance.
        trace:      Trace verbosity; nothing is written at 0.
        trace_file: Text sink for trace output.
        seed:       Seed for random restart profiles.
    """

    n_tries: int = 10
    stop_after: int = 0
    maxits_n: int = 20
    tol_n: float = 1.0e-10
    maxits1: int = 100
    tol1: float = 2.0e-10
    trace: int = 0
    trace_file: TextIO | None = None
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.n_tries < 0 or self.stop_after < 0:
            raise ValueError("n_tries and stop_after must be >= 0.")
        if self.maxits_n < 1 or self.maxits1 < 1:
            raise ValueError("maxits_n and maxits1 must be >= 1.")
        if not (self.tol_n > 0.0 and self.tol1 > 0.0):
            raise ValueError("tol_n and tol1 must be positive.")
        if self.trace < 0:
            raise ValueError("trace must be >= 0.")


@dataclass
class LiapResult:
    """Solutions and work counters of one search.

    Attributes:
        solutions: Accepted solutions, in acceptance order.
        n_evals:   Objective evaluations over all tries.
        n_iters:   Outer minimizer iterations over all tries.
        n_tries:   Tries started.
        completed: False if the search was cancelled.
    """

    solutions: list[BehaviorSolution] = field(default_factory=list)
    n_evals: int = 0
    n_iters: int = 0
    n_tries: int = 0
    completed: bool = True

    @property
    def found(self) -> bool:
        return bool(self.solutions)


# ─── Objective ────────────────────────────────────────────────────────────────

class LiapunovObjective:
    """Liapunov value as a function of a free vector.

    Every evaluation writes the vector into a private copy of the start
    profile (re-imposing each infoset's sum) and counts itself in ``n_evals``.
    """

    def __init__(self, start: BehaviorProfile) -> None:
        self._profile = start.copy()
        self.n_evals = 0

    @property
    def profile(self) -> BehaviorProfile:
        """Profile at the most recent evaluation."""
        return self._profile

    def evaluate(self, x: np.ndarray) -> float:
        self._profile.set_free_vector(x)
        self.n_evals += 1
        return self._profile.liap_value()

    __call__ = evaluate


# ─── Start profiles and direction sets ────────────────────────────────────────

def nudge_interior(profile: BehaviorProfile) -> BehaviorProfile:
    """Blend ``profile`` toward the centroid if any coordinate is <= alpha.

    Returns a new profile; strictly interior profiles come back unchanged.
    """
    nudged = profile.copy()
    values = nudged.as_array()
    if values.size and np.any(values <= _INTERIOR_ALPHA):
        centroid = BehaviorProfile(profile.support).as_array()
        nudged.set_array(centroid * _INTERIOR_ALPHA + values * (1.0 - _INTERIOR_ALPHA))
    return nudged


def pick_random_profile(profile: BehaviorProfile, rng: np.random.Generator) -> None:
    """Overwrite ``profile`` with a random point of the simplex product.

    At each infoset every live action but the last draws a uniform share,
    redrawn until the running sum stays within 1; the last action takes the
    remaining mass.
    """
    game = profile.game
    for pl, player in enumerate(game.players):
        for iset in range(len(player.infosets)):
            total = 0.0
            n_actions = profile.support.num_actions(pl, iset)
            for act in range(n_actions - 1):
                share = rng.uniform()
                while share + total > 1.0:
                    share = rng.uniform()
                profile[pl, iset, act] = share
                total += share
            profile[pl, iset, n_actions - 1] = 1.0 - total


def init_direction_set(lengths: np.ndarray) -> np.ndarray:
    """Identity basis projected onto each infoset's sum-zero plane.

    Row k moves free coordinate k up by ``1 - 1/n`` and every other action
    of its infoset (the implied last one included) down by ``1/n``; rows are
    scaled to unit length.

    Examples:
        >>> init_direction_set(np.array([2]))
        array([[1.]])
    """
    lengths = np.asarray(lengths, dtype=int)
    n_free = int(np.sum(lengths - 1))
    xi = np.zeros((n_free, n_free))
    start = 0
    for n in lengths:
        for k in range(n - 1):
            row = np.full(n - 1, -1.0 / n)
            row[k] += 1.0
            xi[start + k, start:start + n - 1] = row / np.linalg.norm(row)
        start += n - 1
    return xi


# ─── Search ───────────────────────────────────────────────────────────────────

def liap_solve(
    game: Game,
    params: LiapParams | None = None,
    start: BehaviorProfile | None = None,
    status: Status | None = None,
) -> LiapResult:
    """Search ``game`` for equilibria by multi-start Liapunov minimization.

    Args:
        game:   Game to solve.
        params: Run configuration (defaults to ``LiapParams()``).
        start:  Profile for the first try; the full-support centroid if None.
        status: Polled once per try and once per outer minimizer iteration.

    Returns:
        LiapResult; ``solutions`` may be empty.

    Raises:
        ValueError: ``start`` belongs to another game.

    Examples:
        >>> from efgliap.engine.example_games import matching_pennies
        >>> result = liap_solve(matching_pennies(), LiapParams(n_tries=1))
        >>> result.found, result.solutions[0].profile[0, 0, 0]
        (True, 0.5)
    """
    params = params if params is not None else LiapParams()
    status = status if status is not None else Status()
    if start is None:
        start = BehaviorProfile(Support(game))
    if start.game is not game:
        raise ValueError("Start profile belongs to a different game.")

    rng = np.random.default_rng(params.seed)
    objective = LiapunovObjective(start)
    p = nudge_interior(start)
    epsilon = math.sqrt(params.tol_n)
    trace_file = params.trace_file if params.trace > 0 else None
    result = LiapResult()

    i = 0
    while (params.n_tries == 0 or i < params.n_tries) and (
        params.stop_after == 0 or len(result.solutions) < params.stop_after
    ):
        i += 1
        try:
            status.poll()
        except SolverInterrupted:
            logger.info("Liapunov search cancelled before try %d", i)
            result.completed = False
            break
        result.n_tries = i
        if i > 1:
            pick_random_profile(p, rng)
        xi = init_direction_set(p.infoset_lengths())

        if trace_file is not None:
            print(f"\nTry #: {i} p: {p}", file=trace_file)

        outcome = powell_minimize(
            p,
            xi,
            objective,
            maxits_n=params.maxits_n,
            tol_n=params.tol_n,
            maxits1=params.maxits1,
            tol1=params.tol1,
            trace_file=trace_file,
            trace=params.trace - 1,
            interior=True,
            status=status,
        )
        result.n_iters += outcome.n_iters

        if outcome.interrupted:
            logger.info("Liapunov search cancelled during try %d", i)
            result.completed = False
            break
        if not outcome.converged:
            logger.debug("try %d stopped at value %.3g without converging", i, outcome.value)
            continue
        if any(solution.equals(p) for solution in result.solutions):
            logger.debug("try %d converged to a known solution", i)
            continue

        if trace_file is not None:
            print(f"{p}", file=trace_file)
        result.solutions.append(
            BehaviorSolution(
                profile=p.copy(),
                algorithm=SolverAlgorithm.LIAP,
                epsilon=epsilon,
                liap_value=outcome.value,
            )
        )
        logger.debug("try %d accepted solution %d: %s", i, len(result.solutions), p)

    result.n_evals = objective.n_evals
    return result
