"""Accuracy and cost of the adaptive integrators as the tolerance tightens"""

import math
import os

from odeity import create_integrator, list_integrators
from odeity.errors import OdeityError
from odeity.problems import LinearDecay, TimeDependentLinear

tols = [1e-2, 1e-3, 1e-4, 1e-5, 1e-6, 1e-7, 1e-8]
T = 2.0

# (label, problem factory, t0, y0, exact solution at T)
# tdl starts at t0 = 0.5: from y(0) = 0 the first derivative vanishes and
# the first RK23 step has an embedded error of exactly zero.
cases = [
    ("decay lam=1", lambda: LinearDecay(lam=1.0), 0.0, [1.0], math.exp(-T)),
    ("decay lam=200", lambda: LinearDecay(lam=200.0), 0.0, [1.0], math.exp(-200.0 * T)),
    ("tdl", TimeDependentLinear, 0.5, [2.0 - 2.0 * math.exp(-0.25)], 2.0 - 2.0 * math.exp(-T * T)),
]


def run_case(name, make_problem, t0, y0, exact):
    rows, failed = [], []
    for tol in tols:
        ctrl = create_integrator(name, rtol=tol, atol=tol * 1e-3)
        ctrl.assign(make_problem(), t0, y0)
        try:
            ctrl.integrate_to(T)
        except OdeityError as e:
            failed.append((tol, str(e)))
            continue
        s = ctrl.stats
        rows.append((tol, abs(ctrl.current_state[0] - exact), s.accepted_steps, s.rejected_steps, s.rhs_evaluations))
    return rows, failed


def write_case(f, label, results):
    f.write(f"{label}\n")
    f.write("=" * len(label) + "\n\n")
    for name, (rows, failed) in results.items():
        f.write(f"Integrator: {name}\n")
        f.write(f"{'tol':>10} {'error':>12} {'accepted':>9} {'rejected':>9} {'rhs':>9}\n")
        f.write("-" * 53 + "\n")
        for tol, err, acc, rej, nfe in rows:
            f.write(f"{tol:>10.1e} {err:>12.4e} {acc:>9d} {rej:>9d} {nfe:>9d}\n")
        for tol, msg in failed:
            f.write(f"  tol={tol:.1e} failed: {msg}\n")
        f.write("\n")

    # cheapest integrator per tolerance among those meeting 10*tol
    for tol in tols:
        ok = []
        for name, (rows, _) in results.items():
            hit = [r for r in rows if r[0] == tol]
            if hit and hit[0][1] <= 10.0 * tol:
                ok.append((hit[0][4], name))
        ok.sort()
        winners = ", ".join(f"{n} ({nfe})" for nfe, n in ok) or "none"
        f.write(f"tol={tol:.1e}: {winners}\n")
    f.write("\n")


if __name__ == "__main__":
    names = [m.name for m in list_integrators()]
    out_path = os.path.join(os.path.dirname(__file__), "adaptive_integrators_tol_sweep.txt")
    with open(out_path, "w", encoding="utf-8") as f:
        for label, make_problem, t0, y0, exact in cases:
            results = {name: run_case(name, make_problem, t0, y0, exact) for name in names}
            write_case(f, label, results)
    print(f"Results written to {out_path}")
