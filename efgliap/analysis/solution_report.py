"""Plain-text reports for Liapunov equilibrium searches.

    print_run_summary(result)       — tries, evaluations, iterations, status
    print_solutions(solutions)      — one probability table per solution
    print_subgame_summary(solver)   — work done by an EfgLiapSolver

Run ``python -m efgliap.analysis.solution_report`` for a demo on the
reference games.
"""

from __future__ import annotations

from typing import Sequence

from efgliap.solvers.liapunov import LiapResult
from efgliap.solvers.solution import BehaviorSolution
from efgliap.solvers.subgame import EfgLiapSolver


def print_run_summary(result: LiapResult) -> None:
    """Print the counters of one ``liap_solve`` run."""
    print("=" * 56)
    print("Liapunov Search Summary")
    print("=" * 56)
    print(f"  Tries:        {result.n_tries}")
    print(f"  Evaluations:  {result.n_evals}")
    print(f"  Iterations:   {result.n_iters}")
    print(f"  Solutions:    {len(result.solutions)}")
    print(f"  Completed:    {'yes' if result.completed else 'no (cancelled)'}")
    print()


def print_solutions(solutions: Sequence[BehaviorSolution]) -> None:
    """Print every solution as an (infoset, action, probability) table.

    Only live actions are listed.
    """
    if not solutions:
        print("  (no solutions)")
        print()
        return

    for number, solution in enumerate(solutions, start=1):
        profile = solution.profile
        payoffs = ", ".join(f"{v:+.4f}" for v in profile.payoffs())
        print(f"Solution {number}  [{solution.algorithm.value}]")
        print(f"  Liapunov value: {solution.liap_value:.3e}   epsilon: {solution.epsilon:.1e}")
        print(f"  Payoffs:        ({payoffs})")
        print(f"  {'Infoset':<16}  {'Action':<12}  {'Prob':>8}")
        print(f"  {'-' * 16}  {'-' * 12}  {'-' * 8}")
        for infoset in profile.game.infosets():
            live = profile.support.actions(infoset)
            for action, prob in zip(live, profile.action_probs(infoset)):
                print(f"  {infoset.label:<16}  {infoset.actions[action]:<12}  {prob:>8.4f}")
        print()


def print_subgame_summary(solver: EfgLiapSolver) -> None:
    print("=" * 56)
    print("Subgame Decomposition Summary")
    print("=" * 56)
    print(f"  Subgame solves: {solver.subgame_number}")
    print(f"  Evaluations:    {solver.n_evals}")
    print(f"  Iterations:     {solver.n_iters}")
    print(f"  Completed:      {'yes' if solver.completed else 'no (cancelled)'}")
    print()


# ─── Entry point ──────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import sys

    from efgliap.engine.example_games import entry_game, two_pennies_subgames, weighted_pennies
    from efgliap.engine.profile import BehaviorProfile
    from efgliap.engine.support import Support
    from efgliap.logging import setup_logging
    from efgliap.solvers.liapunov import LiapParams, liap_solve

    setup_logging(sys.argv[1] if len(sys.argv) > 1 else "INFO")
    params = LiapParams(n_tries=5, seed=0)

    for build in (weighted_pennies, entry_game):
        game = build()
        print(f"\n### {game.title}\n")
        result = liap_solve(game, params)
        print_run_summary(result)
        print_solutions(result.solutions)

    game = two_pennies_subgames()
    print(f"\n### {game.title} (by subgame)\n")
    solver = EfgLiapSolver(game, params, BehaviorProfile(Support(game)), max_solutions=1)
    solutions = solver.solve()
    print_subgame_summary(solver)
    print_solutions(solutions)
