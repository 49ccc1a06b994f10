# tests/integrators/test_chebyshev.py
import numpy as np
import pytest

from odeity import create_integrator
from odeity.errors import MaxSpectralRadiusIterationsExceeded, StepTooSmall
from odeity.integrators.controller import EPSILON
from odeity.integrators.rkc import (
    default_max_stage,
    jacobian_power_iteration,
    nonlinear_power_iteration,
    stage_count,
)
from odeity.problems import FunctionOde, HeatEquation, LinearDecay


def _linear_rhs(A):
    def rhs(t, y, out):
        np.dot(A, y, out=out)
        return out
    return rhs


def _linear_jvp(A):
    def jvp(v, out, t, y, fy):
        np.dot(A, v, out=out)
        return out
    return jvp


# ---- spectral radius --------------------------------------------------------

def test_nonlinear_power_iteration_linear_problem():
    A = np.diag([-10.0, -100.0])
    rhs = _linear_rhs(A)
    y = np.array([1.0, 2.0])
    fn = rhs(0.0, y, np.empty(2))
    ev = fn.copy()
    sigma, rho, iters = nonlinear_power_iteration(rhs, 0.0, y, fn, ev, np.empty(2), small=1.0)
    assert sigma == pytest.approx(100.0, rel=0.02)
    assert rho == pytest.approx(1.2 * sigma)
    assert 2 <= iters <= 50
    # eigenvector is returned relative to y and points along the dominant mode
    assert abs(ev[1]) > 10.0 * abs(ev[0])


def test_jacobian_power_iteration_linear_problem():
    A = np.diag([-10.0, -100.0])
    y = np.array([1.0, 2.0])
    ev = np.zeros(2)
    sigma, rho, iters = jacobian_power_iteration(
        _linear_jvp(A), 0.0, y, A @ y, ev, np.empty(2), small=1.0, safety=1.5
    )
    assert sigma == pytest.approx(100.0, rel=0.02)
    assert rho == pytest.approx(1.5 * sigma)
    assert np.linalg.norm(ev) == pytest.approx(1.0)


def test_power_iteration_degenerate_difference():
    # constant f: every difference vector is zero
    def rhs(t, y, out):
        out[:] = 2.0
        return out

    y = np.zeros(3)
    fn = rhs(0.0, y, np.empty(3))
    sigma, rho, iters = nonlinear_power_iteration(rhs, 0.0, y, fn, np.zeros(3), np.empty(3), small=1.0)
    assert (sigma, rho, iters) == (0.0, 0.0, 2)

    def jvp(v, out, t, y, fy):
        out[:] = 0.0
        return out

    sigma, rho, iters = jacobian_power_iteration(jvp, 0.0, y, fn, np.ones(3), np.empty(3), small=1.0)
    assert (sigma, iters) == (0.0, 2)


def test_power_iteration_limit():
    # eigenvalues +-2: the iterate alternates between norms 4 and 1
    A = np.array([[0.0, 4.0], [1.0, 0.0]])
    ev = np.array([0.0, 1.0])
    with pytest.raises(MaxSpectralRadiusIterationsExceeded) as excinfo:
        jacobian_power_iteration(
            _linear_jvp(A), 0.0, np.zeros(2), np.zeros(2), ev, np.empty(2),
            small=1.0, max_iterations=10,
        )
    assert excinfo.value.max_iterations == 10


def test_power_iteration_limit_surfaces_from_integrate():
    A = np.array([[0.0, 4.0], [1.0, 0.0]])
    p = FunctionOde(lambda t, y: A @ y, 2, jvp=lambda v, t, y, fy: A @ v)
    ctrl = create_integrator("rkc", max_iterations=20)
    ctrl.assign(p, 0.0, [0.0, 1.0])
    with pytest.raises(MaxSpectralRadiusIterationsExceeded):
        ctrl.integrate_to(1.0)
    assert ctrl.stats.accepted_steps == 0


# ---- stage count ------------------------------------------------------------

def test_stage_count_values():
    assert stage_count(0.001, 1000.0, 100) == (2, 0.001, False)
    stages, h, capped = stage_count(1.0, 1.0e6, 10)
    assert (stages, capped) == (10, True)
    assert h == pytest.approx(99.0 / 1.54e6)


def test_stage_count_grows_with_stiffness_until_cap():
    rho = 1000.0
    hs = np.geomspace(1e-4, 1.0, 40)
    counts = [stage_count(h, rho, 30) for h in hs]
    stages = [c[0] for c in counts]
    assert stages == sorted(stages)
    assert stages[0] == 2 and stages[-1] == 30
    for h, (s, h_used, capped) in zip(hs, counts):
        if capped:
            assert h_used < h
            assert h_used == pytest.approx((30 * 30 - 1) / (1.54 * rho))
        else:
            assert h_used == h


def test_default_max_stage():
    assert default_max_stage(10.0 * EPSILON) == 2
    assert default_max_stage(1e-4) == int(np.sqrt(1e-4 / (10.0 * EPSILON)))


# ---- integration ------------------------------------------------------------

def test_stiff_decay_with_jacobian(sink):
    ctrl = create_integrator("rkc", rtol=1e-4, atol=1e-6, diagnostics=sink)
    ctrl.assign(LinearDecay(lam=1000.0), 0.0, [1.0])
    ctrl.set_save_history(True)
    ctrl.integrate_to(1.0)

    s = ctrl.stats
    sp = ctrl.stage.spectral
    assert ctrl.current_time == 1.0
    assert abs(ctrl.current_state[0]) < 1e-5
    assert sp.sigma == pytest.approx(1000.0, rel=0.2)
    assert s.last_spectral_radius <= 1.2 * 1000.0 * (1.0 + 1e-9)
    assert s.jacobian_evaluations > 0
    assert s.spectral_radius_estimates >= 1 + (s.accepted_steps - 1) // 25
    assert s.max_stage == ctrl.history.extra.max()
    assert ctrl.history.extra.min() >= 2
    assert s.max_stage > 2
    assert len(ctrl.history) == s.accepted_steps
    assert any("spectral radius" in m for m in sink.text("debug"))


def test_stiff_decay_finite_difference_estimate():
    ctrl = create_integrator("rkc", rtol=1e-4, atol=1e-6, use_jacobian=False)
    ctrl.assign(LinearDecay(lam=1000.0), 0.0, [1.0])
    ctrl.integrate_to(0.5)
    assert ctrl.stats.jacobian_evaluations == 0
    assert ctrl.stage.spectral.sigma == pytest.approx(1000.0, rel=0.2)
    assert abs(ctrl.current_state[0]) < 1e-5


def test_constant_rhs_is_integrated_exactly():
    p = FunctionOde(lambda t, y: np.full_like(y, 2.0), 2)
    ctrl = create_integrator("rkc")
    ctrl.assign(p, 0.0, [1.0, 1.0])
    ctrl.integrate_to(1.0)
    assert ctrl.stage.spectral.spectral_radius == 0.0
    assert ctrl.stage.stages == 2
    np.testing.assert_allclose(ctrl.current_state, [3.0, 3.0], rtol=1e-12)


def test_max_stages_option_caps_stage_count():
    ctrl = create_integrator("rkc", max_stages=3)
    ctrl.assign(LinearDecay(lam=1000.0), 0.0, [1.0])
    ctrl.set_save_history(True)
    ctrl.integrate_to(0.2)
    assert ctrl.stage.max_stage == 3
    assert ctrl.stats.max_stage <= 3
    assert ctrl.history.extra.max() <= 3
    assert ctrl.history.times[-1] == 0.2


def test_heat_equation_agrees_with_dp45():
    p = HeatEquation(n=41, diffusion=0.1)
    y0 = p.default_initial_state()

    rkc = create_integrator("rkc", rtol=1e-4, atol=1e-6, max_iterations=80)
    rkc.assign(p, 0.0, y0)
    rkc.integrate_to(0.2)

    ref = create_integrator("dp45", rtol=1e-8, atol=1e-8)
    ref.assign(p, 0.0, y0)
    ref.integrate_to(0.2)

    np.testing.assert_allclose(rkc.current_state, ref.current_state, atol=1e-2)
    assert rkc.stats.spectral_radius_estimates >= 1
    assert rkc.stats.jacobian_evaluations == 0


def test_after_reject_requests_new_estimate_only_when_stale():
    ctrl = create_integrator("rkc")
    ctrl.assign(LinearDecay(lam=10.0), 0.0, [1.0])
    ctrl.integrate_to(0.1)
    stage = ctrl.stage
    stage.spectral.jacobian_at_t = True
    stage.after_reject(ctrl)
    assert stage.spectral.needs_recompute is False
    stage.spectral.jacobian_at_t = False
    stage.after_reject(ctrl)
    assert stage.spectral.needs_recompute is True


def test_rkc_describe_lists_stage_settings(sink):
    ctrl = create_integrator("rkc", diagnostics=sink, recompute_every=10)
    ctrl.assign(LinearDecay(), 0.0, [1.0])
    ctrl.integrate_to(0.5)
    ctrl.print_info()
    info = sink.text("info")
    assert any(line.startswith("Spectral radius recompute interval:") and line.endswith("10") for line in info)
    assert any(line.startswith("Maximum number of stages:") for line in info)


def test_capped_step_below_floor_raises():
    ctrl = create_integrator("rkc", max_stages=2)
    ctrl.assign(LinearDecay(lam=1000.0), 0.0, [1.0])
    st = ctrl.state
    st.end_time = 1.0
    st.stepsize = 0.5
    st.min_stepsize = 1e-3
    ctrl.stage.max_stage = 2
    ctrl.stage.spectral.spectral_radius = 1.0e6
    ctrl.stage.spectral.needs_recompute = False
    with pytest.raises(StepTooSmall) as ei:
        ctrl.stage.start_step(ctrl)
    assert ei.value.stepsize == pytest.approx(3.0 / 1.54e6)
    assert ei.value.min_stepsize == 1e-3
