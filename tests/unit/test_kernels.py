# tests/unit/test_kernels.py
import math

import numpy as np

from odeity.runtime.kernels import get_kernels, wrms_norm, inverse_weights, allfinite1d


def test_wrms_norm_matches_numpy():
    v = np.array([1.0, -2.0, 3.0, 0.5])
    w = np.array([2.0, 0.5, 1.0, 4.0])
    expected = math.sqrt(np.mean((v * w) ** 2))
    assert math.isclose(wrms_norm(v, w), expected, rel_tol=1e-14)


def test_inverse_weights_from_tolerances():
    y = np.array([0.0, -2.0, 10.0])
    out = np.empty(3)
    inverse_weights(out, y, 1e-3, 1e-6)
    np.testing.assert_allclose(out, 1.0 / (1e-3 * np.abs(y) + 1e-6))
    assert np.all(out > 0.0)


def test_allfinite_detects_nan_and_inf():
    assert allfinite1d(np.array([0.0, 1.0, -3.0]))
    assert not allfinite1d(np.array([0.0, np.nan]))
    assert not allfinite1d(np.array([np.inf, 1.0]))


def test_python_kernel_set_is_default():
    ks = get_kernels()
    assert ks.jit is False
    assert get_kernels(False) is ks


def test_jit_kernels_agree_with_python():
    py = get_kernels(False)
    jk = get_kernels(True)
    assert jk.jit is True
    assert get_kernels(True) is jk  # compiled once

    rng = np.random.default_rng(3)
    y = rng.normal(size=17)
    v = rng.normal(size=17)

    w_py = np.empty_like(y)
    w_jit = np.empty_like(y)
    py.inverse_weights(w_py, y, 1e-4, 1e-8)
    jk.inverse_weights(w_jit, y, 1e-4, 1e-8)
    np.testing.assert_allclose(w_jit, w_py, rtol=1e-15)
    assert math.isclose(jk.wrms_norm(v, w_py), py.wrms_norm(v, w_py), rel_tol=1e-13)
    assert jk.allfinite1d(y)
    assert not jk.allfinite1d(np.array([1.0, np.nan]))
