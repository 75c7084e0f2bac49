"""
Example: intersection of a circle and a hyperbola with 2D Newton.

    x^2 + y^2 = 4
    x * y     = 1

Roots in the first quadrant: (1.9318..., 0.5176...) and its mirror
(0.5176..., 1.9318...). The example solves once with the analytic Jacobian
(step-norm preset, trajectory recorded) and once with the complex-step
Jacobian (fsolve preset), then prints both.

Run:
  python -m newton_lite.examples.example_intersection_2d
"""
from __future__ import annotations

import numpy as np

from newton_lite.core.newton import fsolve_newton, newton_system


def F(x: np.ndarray) -> np.ndarray:
    return np.array([x[0] ** 2 + x[1] ** 2 - 4.0, x[0] * x[1] - 1.0])


def J(x: np.ndarray) -> np.ndarray:
    return np.array([[2.0 * x[0], 2.0 * x[1]], [x[1], x[0]]])


def main() -> None:
    x0 = np.array([2.0, 0.0])

    res = newton_system(F, J, x0, record_all_iterates=True)
    print(f"[analytic]     x = {res.x}  iterations={res.iterations}  converged={res.converged}")
    for k, xk in enumerate(res.trajectory):
        print(f"    k={k:2d}  x_k = {xk}  |F| = {np.linalg.norm(F(xk)):.3e}")

    x = fsolve_newton(F, x0)
    print(f"[complex-step] x = {x}")

    # closed form: x^2 = 2 + sqrt(3)
    x_exact = np.sqrt(2.0 + np.sqrt(3.0))
    print(f"[exact]        x = [{x_exact} {1.0 / x_exact}]")


if __name__ == "__main__":
    main()
