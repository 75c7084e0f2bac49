import numpy as np
import pytest

from newton_lite.core.newton import fsolve_newton, newton_system


def F_system(x: np.ndarray) -> np.ndarray:
    # A simple nonlinear 2D system with a known root at (6, 1):
    #   x^2 + y - 37 = 0
    #   x - y^2 - 5 = 0
    # (no dtype=float so complex-step differentiation goes through)
    return np.array([x[0] ** 2 + x[1] - 37.0, x[0] - x[1] ** 2 - 5.0])


def J_system(x: np.ndarray) -> np.ndarray:
    # Analytic Jacobian:
    # dF1/dx = 2x, dF1/dy = 1
    # dF2/dx = 1,  dF2/dy = -2y
    return np.array([[2.0 * x[0], 1.0], [1.0, -2.0 * x[1]]], dtype=float)


def test_newton_2d_analytic_jacobian() -> None:
    x0 = np.array([5.0, 2.0], dtype=float)
    res = newton_system(F_system, J_system, x0, tolerance=1e-12, max_iterations=20)

    assert res.converged is True
    assert np.allclose(res.x, np.array([6.0, 1.0]), rtol=0.0, atol=1e-12)
    assert res.nfev == res.njev
    assert res.trajectory is None


@pytest.mark.parametrize("method", ["complex-step", "central", "scipy"])
def test_newton_2d_numerical_jacobian(method: str) -> None:
    x0 = np.array([5.0, 2.0], dtype=float)
    x = fsolve_newton(F_system, x0, jacobian_method=method, max_iterations=50, tolerance=1e-12)

    assert np.allclose(x, np.array([6.0, 1.0]), rtol=0.0, atol=1e-10)
    assert np.max(np.abs(F_system(x))) < 1e-10


def test_fsolve_analytic_matches_complex_step() -> None:
    x0 = np.array([5.0, 2.0], dtype=float)
    x_cs = fsolve_newton(F_system, x0)
    x_an = fsolve_newton(F_system, x0, jacobian=J_system)

    assert np.allclose(x_cs, x_an, rtol=0.0, atol=1e-14)


def test_fsolve_return_all_trajectory() -> None:
    x0 = np.array([5.0, 2.0], dtype=float)
    traj = fsolve_newton(F_system, x0, jacobian=J_system, record_all_iterates=True)

    assert traj.ndim == 2 and traj.shape[1] == 2
    assert np.array_equal(traj[0], x0)
    assert np.allclose(traj[-1], [6.0, 1.0], rtol=0.0, atol=1e-12)
