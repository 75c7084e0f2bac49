from __future__ import annotations

import argparse
import logging
import os
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import numpy as np

# Non-interactive backend for batch runs
import matplotlib
matplotlib.use("Agg")  # noqa: E402
import matplotlib.pyplot as plt  # noqa: E402

from ..core.errors import NewtonError
from ..core.jacobian import make_jacobian
from ..core.newton import FSOLVE_PRESET, NEWTONS_METHOD_PRESET, NewtonResult, newton_solve


@dataclass
class Problem:
    f: Callable[[np.ndarray], np.ndarray]
    jac: Callable[[np.ndarray], np.ndarray]
    x0: np.ndarray
    note: str


# Residuals avoid float casts so the complex-step Jacobian works on them.
_C = np.array([1.0, 2.0, 3.0])

PROBLEMS: Dict[str, Problem] = {
    "linear": Problem(
        f=lambda x: x - _C,
        jac=lambda x: np.eye(3),
        x0=np.zeros(3),
        note="f(x) = x - (1,2,3); one iteration from any x0",
    ),
    "sqrt2": Problem(
        f=lambda x: x**2 - 2.0,
        jac=lambda x: np.array([[2.0 * x[0]]]),
        x0=np.array([1.0]),
        note="f(x) = x^2 - 2; root sqrt(2)",
    ),
    "quadratic2d": Problem(
        f=lambda x: np.array([x[0] ** 2 + x[1] - 37.0, x[0] - x[1] ** 2 - 5.0]),
        jac=lambda x: np.array([[2.0 * x[0], 1.0], [1.0, -2.0 * x[1]]]),
        x0=np.array([5.0, 2.0]),
        note="x^2 + y = 37, x - y^2 = 5; root (6, 1)",
    ),
    "exp": Problem(
        f=lambda x: np.exp(x),
        jac=lambda x: np.array([[np.exp(x[0])]]),
        x0=np.array([0.0]),
        note="f(x) = e^x; no real root (never converges)",
    ),
}


def write_trajectory_dat(filename: str, res: NewtonResult, residuals: np.ndarray) -> None:
    """Write the trajectory:
      - first row: n, iterations, converged
      - subsequent rows: k, x_1..x_n, ||f(x_k)||
    """
    traj = res.trajectory
    lines = [f"{traj.shape[1]}, {res.iterations}, {int(res.converged)}\n"]
    for k, (row, rn) in enumerate(zip(traj, residuals)):
        vals = ", ".join(f"{float(v)!r}" for v in row)
        lines.append(f"{k}, {vals}, {float(rn)!r}\n")

    with open(filename, "w", encoding="utf-8") as fh:
        fh.writelines(lines)


def _parse_x0(text: Optional[str], default: np.ndarray) -> np.ndarray:
    if text is None:
        return default.copy()
    return np.array([float(s) for s in text.split(",") if s.strip()], dtype=float)


def main(argv: Optional[List[str]] = None) -> None:
    ap = argparse.ArgumentParser(description="newton_lite runner: Newton-Raphson on built-in test problems.")
    ap.add_argument("--problem", choices=sorted(PROBLEMS), default="quadratic2d")
    ap.add_argument("--variant", choices=["fsolve", "newton"], default="newton",
                    help="fsolve: successive-difference preset (tol 1e-12, cap 1e6); newton: step-norm preset (tol 1e-10, cap 200).")
    ap.add_argument("--x0", type=str, default=None, help="Comma separated initial guess.")
    ap.add_argument("--tol", type=float, default=None)
    ap.add_argument("--max-iter", type=int, default=None)
    ap.add_argument("--jacobian", choices=["analytic", "complex-step", "central", "scipy"], default="analytic")
    ap.add_argument("--outdir", type=str, default=".")
    ap.add_argument("--no-warnings", action="store_true", help="Suppress the non-convergence warning.")
    ap.add_argument("--verbose", action="store_true", help="Log every Newton pass.")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    prob = PROBLEMS[args.problem]
    x0 = _parse_x0(args.x0, prob.x0)

    cfg = FSOLVE_PRESET if args.variant == "fsolve" else NEWTONS_METHOD_PRESET
    overrides = {"record_all_iterates": True, "emit_warnings": not args.no_warnings}
    if args.tol is not None:
        overrides["tolerance"] = args.tol
    if args.max_iter is not None:
        overrides["max_iterations"] = args.max_iter
    cfg = cfg.with_options(**overrides)

    if args.jacobian == "analytic":
        J = make_jacobian(prob.f, prob.jac)
    else:
        J = make_jacobian(prob.f, method=args.jacobian)

    print(f"[problem] {args.problem}: {prob.note}")
    try:
        res = newton_solve(prob.f, J, x0, cfg)
    except NewtonError as e:
        raise SystemExit(f"[error] {type(e).__name__}: {e}")

    print(f"[result] converged={res.converged} iterations={res.iterations} nfev={res.nfev}")
    print(f"[result] x = {np.array2string(res.x, precision=15)}")
    print(f"[result] {res.message}")

    os.makedirs(args.outdir, exist_ok=True)
    residuals = np.array([np.linalg.norm(np.asarray(prob.f(row), dtype=float)) for row in res.trajectory])

    fn = os.path.join(args.outdir, f"{args.problem}_trajectory.dat")
    write_trajectory_dat(fn, res, residuals)
    print(f"  saved: {fn}")

    # Residual history (zero residuals are clipped for the log axis)
    plt.figure()
    plt.semilogy(np.arange(residuals.size), np.maximum(residuals, np.finfo(float).tiny), "o-")
    plt.xlabel("iteration k")
    plt.ylabel(r"$\|f(x_k)\|_2$")
    plt.title(f"Newton residual history: {args.problem}")
    plt.tight_layout()
    figpath = os.path.join(args.outdir, f"{args.problem}_residuals.png")
    plt.savefig(figpath, dpi=200)
    plt.close()
    print(f"  saved: {figpath}")


if __name__ == "__main__":
    main()
