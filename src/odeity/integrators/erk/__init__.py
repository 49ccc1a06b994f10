# src/odeity/integrators/erk/__init__.py
from __future__ import annotations

from ..base import IntegratorMeta
from ..registry import register
from .stage import EmbeddedRkSpec, EmbeddedRkStage
from .tableau import ButcherTableau
from .tableaus import CK45, DP45, RK23, RKM45, TABLEAUS

__all__ = [
    "ButcherTableau", "EmbeddedRkStage", "EmbeddedRkSpec",
    "RK23", "RKM45", "DP45", "CK45", "TABLEAUS",
]


# Auto-register on package import
def _auto_register():
    register(EmbeddedRkSpec(
        IntegratorMeta(
            name="rk23",
            family="erk",
            order=3,
            error_order=RK23.error_order,
            stages=RK23.stages,
            fsal=True,
            description="Runge-Kutta 3(2) (Bogacki-Shampine, also known as ode23)",
            aliases=("bogacki_shampine", "ode23"),
        ),
        RK23,
    ))
    register(EmbeddedRkSpec(
        IntegratorMeta(
            name="rkm45",
            family="erk",
            order=4,
            error_order=RKM45.error_order,
            stages=RKM45.stages,
            fsal=False,
            description="Runge-Kutta-Merson 4(5)",
            aliases=("merson",),
        ),
        RKM45,
    ))
    register(EmbeddedRkSpec(
        IntegratorMeta(
            name="dp45",
            family="erk",
            order=5,
            error_order=DP45.error_order,
            stages=DP45.stages,
            fsal=True,
            description="Dormand-Prince 5(4)",
            aliases=("dopri5", "dormand_prince"),
        ),
        DP45,
    ))
    register(EmbeddedRkSpec(
        IntegratorMeta(
            name="ck45",
            family="erk",
            order=5,
            error_order=CK45.error_order,
            stages=CK45.stages,
            fsal=False,
            description="Cash-Karp 5(4)",
            aliases=("cash_karp",),
        ),
        CK45,
    ))


_auto_register()
