from __future__ import annotations

import warnings
from typing import Callable, Optional

import numpy as np
import scipy.linalg

from .errors import DimensionMismatchError, SingularJacobianError

__all__ = ["LinearSolver", "solve_dense", "newton_step"]


LinearSolver = Callable[[np.ndarray, np.ndarray], np.ndarray]


def solve_dense(A: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Solve the dense system A x = b with LU factorization (scipy.linalg.solve).

    Singular matrices, ill-conditioning reported by LAPACK (LinAlgWarning),
    non-finite inputs and non-finite results all raise SingularJacobianError.
    A non-square A or a b of the wrong length raises DimensionMismatchError.
    """
    A = np.asarray(A, dtype=float)
    b = np.asarray(b, dtype=float)
    if A.ndim != 2 or A.shape[0] != A.shape[1] or b.shape[:1] != A.shape[:1]:
        raise DimensionMismatchError(f"Expected square A (n,n) and b (n,...), got {A.shape} and {b.shape}.")
    if not (np.all(np.isfinite(A)) and np.all(np.isfinite(b))):
        raise SingularJacobianError("Linear system has non-finite entries.")

    with warnings.catch_warnings():
        warnings.simplefilter("error", scipy.linalg.LinAlgWarning)
        try:
            x = scipy.linalg.solve(A, b, check_finite=False)
        except scipy.linalg.LinAlgWarning as e:
            raise SingularJacobianError(f"Jacobian is ill-conditioned: {e}") from e
        except np.linalg.LinAlgError as e:
            raise SingularJacobianError(f"Jacobian is singular: {e}") from e

    if not np.all(np.isfinite(x)):
        raise SingularJacobianError("Linear solve returned non-finite values.")
    return x


def newton_step(J: np.ndarray, r: np.ndarray, solver: Optional[LinearSolver] = None) -> np.ndarray:
    """Newton step y solving J y = -r."""
    if solver is None:
        solver = solve_dense

    try:
        y = solver(J, -r)
    except SingularJacobianError:
        raise
    except np.linalg.LinAlgError as e:
        raise SingularJacobianError(f"Linear solver failed: {e}") from e

    y = np.asarray(y, dtype=float).reshape(-1)
    if y.shape != r.shape:
        raise DimensionMismatchError(f"Linear solver returned shape {y.shape}, expected {r.shape}.")
    if not np.all(np.isfinite(y)):
        raise SingularJacobianError("Newton step contains non-finite values.")
    return y
