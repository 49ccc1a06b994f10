# src/odeity/integrators/erk/tableaus.py
"""
Coefficient data for the embedded explicit Runge-Kutta pairs.

Pure data: every method shares one stage implementation (EmbeddedRkStage).
"""
from __future__ import annotations

from .tableau import ButcherTableau

__all__ = ["RK23", "RKM45", "DP45", "CK45", "TABLEAUS"]


# Bogacki-Shampine 3(2), FSAL. Same pair as MATLAB's ode23.
RK23 = ButcherTableau(
    name="rk23",
    c=[0.0, 1.0/2.0, 3.0/4.0, 1.0],
    a=[
        [0.0,     0.0,     0.0,     0.0],
        [1.0/2.0, 0.0,     0.0,     0.0],
        [0.0,     3.0/4.0, 0.0,     0.0],
        [2.0/9.0, 1.0/3.0, 4.0/9.0, 0.0],
    ],
    b=[2.0/9.0, 1.0/3.0, 4.0/9.0, 0.0],
    e=[-5.0/72.0, 1.0/12.0, 1.0/9.0, -1.0/8.0],
    error_order=2,
    fsal=True,
)


# Runge-Kutta-Merson 4(5), 5 stages.
RKM45 = ButcherTableau(
    name="rkm45",
    c=[0.0, 1.0/3.0, 1.0/3.0, 1.0/2.0, 1.0],
    a=[
        [0.0,     0.0,     0.0,   0.0, 0.0],
        [1.0/3.0, 0.0,     0.0,   0.0, 0.0],
        [1.0/6.0, 1.0/6.0, 0.0,   0.0, 0.0],
        [0.125,   0.0,     0.375, 0.0, 0.0],
        [0.5,     0.0,    -1.5,   2.0, 0.0],
    ],
    b=[1.0/6.0, 0.0, 0.0, 2.0/3.0, 1.0/6.0],
    e=[1.0/15.0, 0.0, -3.0/10.0, 4.0/15.0, -1.0/30.0],
    error_order=4,
    fsal=False,
)


# Dormand-Prince 5(4), FSAL: the 7th stage is f(t + h, y_new).
_DP_B = [35.0/384.0, 0.0, 500.0/1113.0, 125.0/192.0, -2187.0/6784.0, 11.0/84.0, 0.0]

DP45 = ButcherTableau.embedded(
    name="dp45",
    c=[0.0, 1.0/5.0, 3.0/10.0, 4.0/5.0, 8.0/9.0, 1.0, 1.0],
    a=[
        [0.0,             0.0,              0.0,             0.0,          0.0,             0.0,       0.0],
        [1.0/5.0,         0.0,              0.0,             0.0,          0.0,             0.0,       0.0],
        [3.0/40.0,        9.0/40.0,         0.0,             0.0,          0.0,             0.0,       0.0],
        [44.0/45.0,      -56.0/15.0,        32.0/9.0,        0.0,          0.0,             0.0,       0.0],
        [19372.0/6561.0, -25360.0/2187.0,   64448.0/6561.0, -212.0/729.0,  0.0,             0.0,       0.0],
        [9017.0/3168.0,  -355.0/33.0,       46732.0/5247.0,  49.0/176.0,  -5103.0/18656.0,  0.0,       0.0],
        _DP_B,
    ],
    b=_DP_B,
    b_hat=[5179.0/57600.0, 0.0, 7571.0/16695.0, 393.0/640.0, -92097.0/339200.0, 187.0/2100.0, 1.0/40.0],
    error_order=4,
    fsal=True,
)


# Cash-Karp 5(4), 6 stages, no FSAL.
CK45 = ButcherTableau.embedded(
    name="ck45",
    c=[0.0, 1.0/5.0, 3.0/10.0, 3.0/5.0, 1.0, 7.0/8.0],
    a=[
        [0.0,             0.0,          0.0,            0.0,              0.0,          0.0],
        [1.0/5.0,         0.0,          0.0,            0.0,              0.0,          0.0],
        [3.0/40.0,        9.0/40.0,     0.0,            0.0,              0.0,          0.0],
        [3.0/10.0,       -9.0/10.0,     6.0/5.0,        0.0,              0.0,          0.0],
        [-11.0/54.0,      5.0/2.0,     -70.0/27.0,      35.0/27.0,        0.0,          0.0],
        [1631.0/55296.0,  175.0/512.0,  575.0/13824.0,  44275.0/110592.0, 253.0/4096.0, 0.0],
    ],
    b=[37.0/378.0, 0.0, 250.0/621.0, 125.0/594.0, 0.0, 512.0/1771.0],
    b_hat=[2825.0/27648.0, 0.0, 18575.0/48384.0, 13525.0/55296.0, 277.0/14336.0, 1.0/4.0],
    error_order=4,
    fsal=False,
)


TABLEAUS = {t.name: t for t in (RK23, RKM45, DP45, CK45)}
