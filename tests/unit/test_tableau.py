# tests/unit/test_tableau.py
import numpy as np
import pytest

from odeity.integrators.erk import ButcherTableau, RK23, RKM45, DP45, CK45, TABLEAUS


@pytest.mark.parametrize("tab", [RK23, RKM45, DP45, CK45], ids=lambda t: t.name)
def test_tableau_consistency(tab):
    # row sums of a reproduce the abscissae
    np.testing.assert_allclose(tab.a.sum(axis=1), tab.c, atol=1e-14)
    # propagated and embedded weights are both consistent
    assert tab.b.sum() == pytest.approx(1.0, abs=1e-14)
    assert (tab.b + tab.e).sum() == pytest.approx(1.0, abs=1e-14)
    assert tab.e.sum() == pytest.approx(0.0, abs=1e-14)


def test_stage_counts_and_flags():
    assert (RK23.stages, RK23.fsal, RK23.error_order) == (4, True, 2)
    assert (RKM45.stages, RKM45.fsal, RKM45.error_order) == (5, False, 4)
    assert (DP45.stages, DP45.fsal, DP45.error_order) == (7, True, 4)
    assert (CK45.stages, CK45.fsal, CK45.error_order) == (6, False, 4)
    assert set(TABLEAUS) == {"rk23", "rkm45", "dp45", "ck45"}


def test_dp45_error_weights_from_pair():
    assert DP45.e[-1] == pytest.approx(1.0 / 40.0)
    assert DP45.e[0] == pytest.approx(5179.0 / 57600.0 - 35.0 / 384.0)


def test_arrays_are_read_only():
    with pytest.raises(ValueError):
        RK23.b[0] = 1.0
    with pytest.raises(ValueError):
        RK23.a[1, 0] = 0.0


def test_too_small_uses_smallest_positive_gap():
    eps = np.finfo(np.float64).eps
    # RK23 abscissae 0, 1/2, 3/4, 1 -> smallest gap 1/4
    assert RK23.too_small == pytest.approx(10.0 * eps / 0.25)
    # RKM45 repeats 1/3; the zero gap is ignored, smallest positive is 1/6
    assert RKM45.too_small == pytest.approx(10.0 * eps / (1.0 / 6.0))


def test_rejects_implicit_coupling():
    with pytest.raises(ValueError, match="strictly lower triangular"):
        ButcherTableau(
            name="bad",
            a=[[0.0, 0.5], [0.5, 0.0]],
            b=[0.5, 0.5],
            c=[0.0, 0.5],
            e=[0.0, 0.0],
            error_order=1,
        )


def test_rejects_mismatched_lengths():
    with pytest.raises(ValueError, match="length"):
        ButcherTableau(
            name="bad",
            a=[[0.0, 0.0], [1.0, 0.0]],
            b=[0.5, 0.5, 0.0],
            c=[0.0, 1.0],
            e=[0.0, 0.0],
            error_order=1,
        )


def test_fsal_requires_last_row_equal_to_b():
    with pytest.raises(ValueError, match="FSAL"):
        ButcherTableau(
            name="bad",
            a=[[0.0, 0.0], [1.0, 0.0]],
            b=[0.5, 0.5],
            c=[0.0, 1.0],
            e=[0.5, -0.5],
            error_order=1,
            fsal=True,
        )
