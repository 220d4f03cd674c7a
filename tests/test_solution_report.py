"""Tests for efgliap/analysis/solution_report.py."""

from __future__ import annotations

from efgliap.analysis.solution_report import print_run_summary, print_solutions, print_subgame_summary
from efgliap.engine.profile import BehaviorProfile
from efgliap.engine.support import Support
from efgliap.solvers.liapunov import LiapParams, LiapResult, liap_solve
from efgliap.solvers.solution import BehaviorSolution, SolverAlgorithm
from efgliap.solvers.subgame import EfgLiapSolver
from tests.conftest import profile_of


class TestRunSummary:

    def test_counters_printed(self, capsys):
        print_run_summary(LiapResult(n_evals=42, n_iters=7, n_tries=3))
        out = capsys.readouterr().out
        assert "Liapunov Search Summary" in out
        assert "Tries:        3" in out
        assert "Evaluations:  42" in out
        assert "Completed:    yes" in out

    def test_cancelled_run(self, capsys):
        print_run_summary(LiapResult(completed=False))
        assert "no (cancelled)" in capsys.readouterr().out


class TestSolutions:

    def test_empty(self, capsys):
        print_solutions([])
        assert "(no solutions)" in capsys.readouterr().out

    def test_table_lists_live_actions(self, capsys, entry):
        infoset = entry.players[1].infosets[0]
        support = Support(entry).remove_action(infoset, 0)
        profile = BehaviorProfile(support, [0.0, 1.0, 1.0])
        print_solutions([BehaviorSolution(profile, SolverAlgorithm.LIAP, 1e-5, profile.liap_value())])
        out = capsys.readouterr().out
        assert "Solution 1  [liap]" in out
        assert "Accommodate" in out
        assert "Fight" not in out
        assert "(+1.0000, +1.0000)" in out

    def test_numbers_each_solution(self, capsys, pennies):
        profile = profile_of(pennies, [0.5, 0.5, 0.5, 0.5])
        solution = BehaviorSolution(profile, SolverAlgorithm.LIAP_SUBGAME, 1e-5, 0.0)
        print_solutions([solution, solution])
        out = capsys.readouterr().out
        assert "Solution 2  [liap-subgame]" in out
        assert out.count("Solution ") == 2
        assert out.count("Row:1") == 4


class TestSubgameSummary:

    def test_counters_printed(self, capsys, entry):
        solver = EfgLiapSolver(entry, LiapParams(n_tries=2, seed=0), BehaviorProfile(Support(entry)))
        solver.solve()
        print_subgame_summary(solver)
        out = capsys.readouterr().out
        assert "Subgame solves: 2" in out
        assert "Completed:      yes" in out


def test_demo_search_prints_tables(capsys, weighted):
    result = liap_solve(weighted, LiapParams(n_tries=2, seed=0))
    print_run_summary(result)
    print_solutions(result.solutions)
    out = capsys.readouterr().out
    assert "Tries:        2" in out
    assert "Iterations:" in out
