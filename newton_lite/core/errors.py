from __future__ import annotations

import numpy as np

__all__ = [
    "NewtonError",
    "DimensionMismatchError",
    "SingularJacobianError",
    "NonConvergenceWarning",
]


class NewtonError(Exception):
    """Base class for fatal Newton solver failures."""


class DimensionMismatchError(NewtonError, ValueError):
    """x0, f(x) or J(x) have inconsistent shapes (or n == 0)."""


class SingularJacobianError(NewtonError, np.linalg.LinAlgError):
    """The Newton step J(x) y = -f(x) cannot be computed.

    Raised for singular or numerically near-singular Jacobians and for solves
    that produce non-finite values.
    """


class NonConvergenceWarning(RuntimeWarning):
    """Iteration cap reached before the convergence test was satisfied."""
