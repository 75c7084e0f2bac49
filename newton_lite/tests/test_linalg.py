import numpy as np
import pytest
import scipy.linalg

from newton_lite.core.errors import DimensionMismatchError, SingularJacobianError
from newton_lite.core.linalg import newton_step, solve_dense


def test_solve_dense_well_conditioned() -> None:
    A = np.array([[4.0, 1.0], [2.0, 3.0]])
    b = np.array([1.0, 2.0])
    x = solve_dense(A, b)
    assert np.allclose(A @ x, b, rtol=0.0, atol=1e-14)


def test_solve_dense_singular() -> None:
    with pytest.raises(SingularJacobianError, match="singular"):
        solve_dense(np.zeros((2, 2)), np.ones(2))


def test_solve_dense_ill_conditioned() -> None:
    H = scipy.linalg.hilbert(16)
    with pytest.raises(SingularJacobianError):
        solve_dense(H, np.ones(16))


def test_solve_dense_non_finite_input() -> None:
    with pytest.raises(SingularJacobianError, match="non-finite"):
        solve_dense(np.array([[1.0, np.inf], [0.0, 1.0]]), np.ones(2))


def test_newton_step_sign() -> None:
    J = np.array([[2.0, 0.0], [0.0, 4.0]])
    r = np.array([2.0, -8.0])
    assert np.allclose(newton_step(J, r), [-1.0, 2.0])


def test_newton_step_custom_solver_failures() -> None:
    J = np.eye(2)
    r = np.ones(2)

    def nan_solver(A, b):
        return np.full_like(b, np.nan)

    def raising_solver(A, b):
        raise np.linalg.LinAlgError("Singular matrix")

    def short_solver(A, b):
        return b[:1]

    with pytest.raises(SingularJacobianError):
        newton_step(J, r, nan_solver)
    with pytest.raises(SingularJacobianError):
        newton_step(J, r, raising_solver)
    with pytest.raises(DimensionMismatchError):
        newton_step(J, r, short_solver)


def test_newton_step_numpy_solver() -> None:
    J = np.array([[3.0, 1.0], [1.0, 2.0]])
    r = np.array([1.0, 1.0])
    assert np.allclose(newton_step(J, r, np.linalg.solve), newton_step(J, r))


def test_solve_dense_shape_errors_are_not_reported_as_non_finite() -> None:
    with pytest.raises(DimensionMismatchError):
        solve_dense(np.ones((2, 3)), np.ones(2))
    with pytest.raises(DimensionMismatchError):
        solve_dense(np.eye(2), np.ones(3))


def test_solve_dense_nan_rhs() -> None:
    with pytest.raises(SingularJacobianError, match="non-finite"):
        solve_dense(np.eye(2), np.array([1.0, np.nan]))
