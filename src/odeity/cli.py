# src/odeity/cli.py
"""
Command line entry point (``odeity``).

    odeity integrators list [--family erk|rkc] [--stiff]
    odeity problems list
    odeity run CONFIG [--history PATH] [--plot PATH] [--verbose]
"""
from __future__ import annotations

import argparse
from dataclasses import replace
import logging
import sys
from typing import Optional, Sequence

from odeity.errors import OdeityError
from odeity.utils.logger import get_logger, setup

__all__ = ["main", "build_parser"]

log = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="odeity",
        description="Adaptive explicit Runge-Kutta and Runge-Kutta-Chebyshev integrators.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_int = sub.add_parser("integrators", help="inspect registered integrators")
    int_sub = p_int.add_subparsers(dest="action", required=True)
    p_list = int_sub.add_parser("list", help="list integrators")
    p_list.add_argument("--family", choices=("erk", "rkc"), default=None)
    p_list.add_argument("--stiff", action="store_true", help="only methods suited to stiff problems")

    p_prob = sub.add_parser("problems", help="inspect built-in problems")
    prob_sub = p_prob.add_subparsers(dest="action", required=True)
    prob_sub.add_parser("list", help="list built-in problems")

    p_run = sub.add_parser("run", help="integrate a TOML run configuration")
    p_run.add_argument("config", help="path to a TOML run file")
    p_run.add_argument("--history", metavar="PATH", default=None,
                       help="write accepted-step history (time, step size[, stages]) to PATH")
    p_run.add_argument("--plot", metavar="PATH", default=None,
                       help="save a step-size history plot to PATH (format from the extension)")
    p_run.add_argument("--verbose", "-v", action="store_true", help="debug diagnostics on stderr")
    return parser


def _cmd_integrators_list(args) -> int:
    from odeity.integrators import list_integrators

    metas = list_integrators(family=args.family, stiff_ok=True if args.stiff else None)
    for m in metas:
        aliases = f"  (aliases: {', '.join(m.aliases)})" if m.aliases else ""
        stages = m.stages if m.stages is not None else "var"
        print(f"{m.name:<6} {m.family:<4} order={m.order} stages={stages}  {m.description}{aliases}")
    return 0


def _cmd_problems_list(args) -> int:
    from odeity.problems import BUILTIN_PROBLEMS

    for name in sorted(BUILTIN_PROBLEMS):
        doc = (BUILTIN_PROBLEMS[name].__doc__ or "").strip().splitlines()
        print(f"{name:<10} {doc[0] if doc else ''}")
    return 0


def _cmd_run(args) -> int:
    from odeity.config import load_config
    from odeity.runtime.diagnostics import LoggingSink, TextHistoryWriter
    from odeity.runtime.results import run_config

    setup(logging.DEBUG if args.verbose else logging.INFO)
    cfg = load_config(args.config)
    need_history = args.history is not None or args.plot is not None

    if args.history is not None:
        with open(args.history, "w", encoding="utf-8") as stream:
            res = run_config(cfg, diagnostics=LoggingSink(), history_sink=TextHistoryWriter(stream))
    else:
        if need_history and not cfg.integrator.save_history:
            cfg = replace(cfg, integrator=replace(cfg.integrator, save_history=True))
        res = run_config(cfg, diagnostics=LoggingSink())

    ctrl = res.integrator
    if args.verbose:
        ctrl.print_info()
    print(f"integrator: {ctrl.name}")
    print(f"t = {res.final_time:.12g}")
    print("y = " + " ".join(f"{v:.12g}" for v in res.final_state))
    print(res.stats.report())

    if args.plot is not None:
        from odeity.plot import plot_stepsize_history, savefig

        ax = plot_stepsize_history(res.history, title=f"{ctrl.name}: {cfg.problem.name}")
        for path in savefig(ax, args.plot):
            log.info("wrote %s", path)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        if args.command == "integrators":
            return _cmd_integrators_list(args)
        if args.command == "problems":
            return _cmd_problems_list(args)
        return _cmd_run(args)
    except OdeityError as e:
        print(f"odeity: error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
