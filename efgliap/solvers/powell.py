"""Direction-set (Powell) minimization over behavior profiles.

Minimizes an objective over the free vector of a BehaviorProfile without
derivatives.

Algorithm
~~~~~~~~~
  1. Outer iterations, at most ``maxits_n``. Each one polls the Status and
     then line-minimizes along every row of the direction set in turn.
  2. After the pass, the net displacement ``p - p_start`` is tried as a new
     direction (classic Powell test). When it passes, the point is moved
     along it and it replaces the direction that gave the largest decrease.
     A zero displacement leaves the basis unchanged.
  3. The search stops as converged once the value is at most ``tol_n``, and
     stops unconverged once an outer iteration no longer improves the value
     by a relative ``tol_n``, or the iteration budget runs out.

Line searches use ``scipy.optimize.minimize_scalar``: bounded Brent on the
open step interval that keeps every coordinate strictly inside the simplex
(``interior=True``), or plain Brent otherwise. A step is only taken when it
strictly lowers the value, so the value never increases.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, TextIO

import numpy as np
from scipy.optimize import minimize_scalar

from efgliap.engine.profile import BehaviorProfile, free_to_full, is_interior_point
from efgliap.logging import get_logger

from .status import SolverInterrupted, Status

logger = get_logger(__name__)

# Guards the relative-improvement test when values reach zero.
_TINY: float = 1.0e-25


class Objective(Protocol):
    """Any scalar function of a free vector that counts its evaluations."""

    n_evals: int

    def evaluate(self, x: np.ndarray) -> float:
        ...


@dataclass
class PowellResult:
    """Outcome of one minimization.

    Attributes:
        converged:   True if the value reached ``tol_n``.
        value:       Objective value at the returned point.
        n_iters:     Outer iterations started.
        history:     Value at the start and after every outer iteration.
        interrupted: True if a Status poll cancelled the search.
    """

    converged: bool
    value: float
    n_iters: int
    history: list[float] = field(default_factory=list)
    interrupted: bool = False


# ─── Line search ──────────────────────────────────────────────────────────────

def _step_bounds(p: np.ndarray, direction: np.ndarray, lengths: np.ndarray) -> tuple[float, float]:
    """Open interval of steps t keeping every coordinate of p + t*d in (0, 1)."""
    x = free_to_full(p, lengths)
    d = free_to_full(direction, lengths, total=0.0)
    moving = d != 0.0
    x, d = x[moving], d[moving]
    if not x.size:
        return 0.0, 0.0
    to_zero = -x / d
    to_one = (1.0 - x) / d
    lo = float(np.max(np.where(d > 0, to_zero, to_one)))
    hi = float(np.min(np.where(d > 0, to_one, to_zero)))
    return lo, hi


def line_minimize(
    p: np.ndarray,
    direction: np.ndarray,
    value: float,
    objective: Objective,
    lengths: np.ndarray,
    maxits1: int,
    tol1: float,
    interior: bool,
) -> tuple[np.ndarray, float]:
    """Minimize along ``p + t * direction``; return the new point and value.

    Returns ``(p, value)`` unchanged when no step lowers the value.
    """
    if not np.any(direction):
        return p, value

    def along(t: float) -> float:
        return objective.evaluate(p + t * direction)

    if interior:
        lo, hi = _step_bounds(p, direction, lengths)
        if not lo < hi:
            return p, value
        res = minimize_scalar(
            along, bounds=(lo, hi), method="bounded", options={"xatol": tol1, "maxiter": maxits1}
        )
    else:
        try:
            res = minimize_scalar(along, method="brent", options={"xtol": tol1, "maxiter": maxits1})
        except RuntimeError as exc:
            logger.debug("line search could not bracket a minimum: %s", exc)
            return p, value

    if not np.isfinite(res.fun) or res.fun >= value:
        return p, value
    candidate = p + res.x * direction
    if interior and not is_interior_point(candidate, lengths):
        return p, value
    return candidate, float(res.fun)


# ─── Direction-set minimization ───────────────────────────────────────────────

def powell_minimize(
    profile: BehaviorProfile,
    directions: np.ndarray,
    objective: Objective,
    maxits_n: int = 20,
    tol_n: float = 1.0e-10,
    maxits1: int = 100,
    tol1: float = 2.0e-10,
    trace_file: TextIO | None = None,
    trace: int = 0,
    interior: bool = True,
    status: Status | None = None,
) -> PowellResult:
    """Minimize ``objective`` starting from ``profile``'s free vector.

    Args:
        profile:    Start point; overwritten with the final point.
        directions: Square matrix of search directions (rows), one per free
                    coordinate. Owned by this call and modified in place.
        objective:  Function of the free vector.
        maxits_n:   Maximum outer iterations.
        tol_n:      Target value and relative-improvement tolerance.
        maxits1:    Maximum iterations per line search.
        tol1:       Step tolerance of each line search.
        trace_file: Text sink for progress lines, used when ``trace > 0``.
        trace:      Verbosity; 1 prints values, 2 also prints points.
        interior:   Keep every probability strictly between 0 and 1.
        status:     Polled at the top of every outer iteration.

    Returns:
        PowellResult. The value in ``history`` never increases.

    Examples:
        >>> from efgliap.engine.example_games import one_player_dominant
        >>> from efgliap.engine.profile import BehaviorProfile
        >>> from efgliap.engine.support import Support
        >>> from efgliap.solvers.liapunov import LiapunovObjective
        >>> p = BehaviorProfile(Support(one_player_dominant()))
        >>> result = powell_minimize(p, np.eye(1), LiapunovObjective(p))
        >>> result.converged, p[0, 0, 0] > 0.9999
        (True, True)
    """
    status = status if status is not None else Status()
    lengths = profile.infoset_lengths()
    n = profile.free_length
    if directions.shape != (n, n):
        raise ValueError(f"Direction set must be {n}x{n}, got {directions.shape}.")

    p = profile.free_vector()
    fret = objective.evaluate(p)
    history = [fret]
    converged = fret <= tol_n if n == 0 else False
    interrupted = False
    n_iters = 0
    pt = p.copy()

    budget = maxits_n if n else 0
    for it in range(1, budget + 1):
        try:
            status.poll()
        except SolverInterrupted:
            interrupted = True
            break
        n_iters = it

        fp = fret
        ibig = 0
        biggest = 0.0
        for i in range(n):
            before = fret
            p, fret = line_minimize(p, directions[i], fret, objective, lengths, maxits1, tol1, interior)
            if before - fret > biggest:
                biggest = before - fret
                ibig = i

        stalled = 2.0 * (fp - fret) <= tol_n * (abs(fp) + abs(fret)) + _TINY
        if fret > tol_n and not stalled:
            extrapolated = 2.0 * p - pt
            displacement = p - pt
            norm = float(np.linalg.norm(displacement))
            if norm > 0.0 and (not interior or is_interior_point(extrapolated, lengths)):
                fptt = objective.evaluate(extrapolated)
                if fptt < fp:
                    t = 2.0 * (fp - 2.0 * fret + fptt) * (fp - fret - biggest) ** 2 - biggest * (fp - fptt) ** 2
                    if t < 0.0:
                        displacement = displacement / norm
                        p, fret = line_minimize(
                            p, displacement, fret, objective, lengths, maxits1, tol1, interior
                        )
                        directions[ibig] = directions[n - 1]
                        directions[n - 1] = displacement
        pt = p.copy()

        history.append(fret)
        if trace > 0 and trace_file is not None:
            print(f"\nIter #: {it} value: {fret:.10g}", file=trace_file)
            if trace > 1:
                print(f"  p: {free_to_full(p, lengths)}", file=trace_file)

        if fret <= tol_n:
            converged = True
            break
        if stalled:
            break

    profile.set_free_vector(p)
    return PowellResult(
        converged=converged,
        value=fret,
        n_iters=n_iters,
        history=history,
        interrupted=interrupted,
    )
