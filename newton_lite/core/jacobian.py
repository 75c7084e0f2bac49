from __future__ import annotations

from typing import Any, Callable, Optional

import numpy as np
from scipy.differentiate import jacobian as _scipy_jacobian

from .errors import DimensionMismatchError

__all__ = [
    "JacobianProvider",
    "AnalyticJacobian",
    "ComplexStepJacobian",
    "CentralDifferenceJacobian",
    "ScipyJacobian",
    "make_jacobian",
]


VectorFunction = Callable[[np.ndarray], Any]


def _fd_step(x: float, dx_rel: float) -> float:
    """Relative finite-difference step with a floor."""
    dx = float(dx_rel) * (abs(float(x)) + 1.0)
    # avoid pathological zero/denorm steps
    if dx == 0.0:
        dx = float(dx_rel) if dx_rel != 0.0 else 1e-12
    return dx


def _column(fx: Any, n: int) -> np.ndarray:
    col = np.atleast_1d(np.asarray(fx))
    if col.ndim != 1 or col.shape[0] != n:
        raise DimensionMismatchError(f"f(x) must return shape ({n},), got {col.shape}.")
    return col


class JacobianProvider:
    """Interface for J(x) evaluators.

    A provider is any callable ``provider(x) -> (n, n)`` array of partial
    derivatives df_i/dx_j evaluated at x. Subclasses implement ``__call__``.
    """

    def __call__(self, x: np.ndarray) -> np.ndarray:
        raise NotImplementedError


class AnalyticJacobian(JacobianProvider):
    """Closed-form Jacobian supplied by the caller."""

    def __init__(self, fun: Callable[[np.ndarray], Any]) -> None:
        self.fun = fun

    def __call__(self, x: np.ndarray) -> np.ndarray:
        return np.asarray(self.fun(x), dtype=float)


class ComplexStepJacobian(JacobianProvider):
    """Complex-step approximation J[:, j] = Im f(x + i h e_j) / h.

    No subtractive cancellation, so h can be tiny and the result is accurate
    to machine precision. f must propagate complex input through its
    arithmetic (no float casts, no abs()).
    """

    def __init__(self, f: VectorFunction, h: float = 1e-20) -> None:
        if not h > 0.0:
            raise ValueError("h must be positive.")
        self.f = f
        self.h = float(h)

    def __call__(self, x: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        n = x.size
        J = np.empty((n, n), dtype=float)
        for j in range(n):
            xc = x.astype(complex)
            xc[j] += 1j * self.h
            J[:, j] = np.imag(_column(self.f(xc), n)) / self.h
        return J


class CentralDifferenceJacobian(JacobianProvider):
    """Central differences, dx_j = dx_rel * (|x_j| + 1)."""

    def __init__(self, f: VectorFunction, dx_rel: float = 1e-6) -> None:
        self.f = f
        self.dx_rel = float(dx_rel)

    def __call__(self, x: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        n = x.size
        J = np.empty((n, n), dtype=float)
        for j in range(n):
            dxj = _fd_step(float(x[j]), self.dx_rel)
            xp = x.copy(); xm = x.copy()
            xp[j] += dxj
            xm[j] -= dxj
            Fp = _column(self.f(xp), n).astype(float)
            Fm = _column(self.f(xm), n).astype(float)
            J[:, j] = (Fp - Fm) / (2.0 * dxj)
        return J


class ScipyJacobian(JacobianProvider):
    """Adaptive finite-difference Jacobian from ``scipy.differentiate.jacobian``.

    scipy evaluates f on batches of points (shape (n, ...)); f itself only
    needs to handle a single (n,) vector, it is applied column by column.
    Extra keyword arguments (order, initial_step, tolerances, ...) are passed
    through to scipy.
    """

    def __init__(self, f: VectorFunction, **kwargs: Any) -> None:
        self.f = f
        self.kwargs = kwargs

    def _batched(self, xs: np.ndarray) -> np.ndarray:
        n = xs.shape[0]
        return np.apply_along_axis(lambda xi: _column(self.f(xi), n).astype(float), 0, xs)

    def __call__(self, x: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        res = _scipy_jacobian(self._batched, x, **self.kwargs)
        return np.asarray(res.df, dtype=float)


_METHODS = {
    "complex-step": ComplexStepJacobian,
    "central": CentralDifferenceJacobian,
    "scipy": ScipyJacobian,
}


def make_jacobian(
    f: VectorFunction,
    jac: Optional[Callable[[np.ndarray], Any]] = None,
    method: str = "complex-step",
) -> Callable[[np.ndarray], np.ndarray]:
    """Pick a Jacobian provider: the analytic ``jac`` if given, else a numerical one."""
    if jac is not None:
        if isinstance(jac, JacobianProvider):
            return jac
        return AnalyticJacobian(jac)
    try:
        cls = _METHODS[method]
    except KeyError:
        raise ValueError(f"Unknown Jacobian method {method!r}; expected one of {sorted(_METHODS)}.") from None
    return cls(f)
