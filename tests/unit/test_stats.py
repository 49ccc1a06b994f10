# tests/unit/test_stats.py
import math

from odeity.integrators.stats import ChebyshevStats, IntegratorStats


def test_stepsize_extrema():
    s = IntegratorStats()
    assert s.max_stepsize == 0.0 and math.isinf(s.min_stepsize)
    for h in (0.1, 0.5, 0.01, 0.2):
        s.update_stepsize(h)
    assert s.max_stepsize == 0.5
    assert s.min_stepsize == 0.01


def test_reset_restores_defaults():
    s = ChebyshevStats()
    s.rhs_evaluations = 10
    s.accepted_steps = 3
    s.update_stage(7)
    s.update_stepsize(0.1)
    s.reset()
    assert s.as_dict() == ChebyshevStats().as_dict()


def test_max_stage_only_grows():
    s = ChebyshevStats()
    s.update_stage(5)
    s.update_stage(3)
    assert s.max_stage == 5


def test_report_lists_counters():
    s = IntegratorStats(rhs_evaluations=42, accepted_steps=10, rejected_steps=2)
    s.update_stepsize(0.25)
    text = s.report()
    assert text.splitlines()[0] == "Runge-Kutta statistics"
    assert "RHS evaluations" in text and "42" in text
    assert "Rejected steps" in text
    assert "Maximum stepsize" in text
    assert "Jacobian" not in text


def test_chebyshev_report_has_stage_rows():
    s = ChebyshevStats(spectral_radius_estimates=2, spectral_radius_iterations=6)
    s.update_stage(12)
    text = s.report()
    assert text.startswith("Runge-Kutta-Chebyshev statistics")
    assert "Maximum stage used" in text
    assert "Spect. rad. iters" in text


def test_as_dict_keys():
    d = ChebyshevStats().as_dict()
    for key in ("rhs_evaluations", "accepted_steps", "rejected_steps", "jacobian_evaluations",
                "max_stepsize", "min_stepsize", "spectral_radius_estimates", "max_stage",
                "last_spectral_radius"):
        assert key in d
