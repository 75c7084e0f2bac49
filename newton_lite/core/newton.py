from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import numpy as np

from .errors import DimensionMismatchError, NonConvergenceWarning, SingularJacobianError
from .jacobian import make_jacobian
from .linalg import LinearSolver, newton_step

__all__ = [
    "NewtonConfig",
    "NewtonResult",
    "FSOLVE_PRESET",
    "NEWTONS_METHOD_PRESET",
    "CRITERIA",
    "successive_difference",
    "step_norm",
    "newton_solve",
    "newton_system",
    "fsolve_newton",
]

logger = logging.getLogger(__name__)


Criterion = Callable[[np.ndarray, np.ndarray, np.ndarray], float]
Callback = Callable[[int, np.ndarray], bool]

STATUS_CONVERGED = 0
STATUS_MAX_ITER = 1
STATUS_CANCELLED = 2


def successive_difference(x_curr: np.ndarray, x_next: np.ndarray, y: np.ndarray) -> float:
    """||x_{k+1} - x_k||_2"""
    return float(np.linalg.norm(x_next - x_curr))


def step_norm(x_curr: np.ndarray, x_next: np.ndarray, y: np.ndarray) -> float:
    """||y||_2 of the raw Newton step."""
    return float(np.linalg.norm(y))


CRITERIA: Dict[str, Criterion] = {
    "successive_difference": successive_difference,
    "step_norm": step_norm,
}


@dataclass(frozen=True)
class NewtonConfig:
    """Solver options.

    max_iterations
        Iteration cap (>= 1). Integral floats such as 1e6 are accepted.
    tolerance
        Convergence tolerance (>= 0) on the criterion measure.
    criterion
        "successive_difference", "step_norm" or a callable
        c(x_curr, x_next, y) -> float. Converged when c(...) <= tolerance.
    record_all_iterates
        Keep every estimate (trajectory) in the result.
    emit_warnings
        Emit NonConvergenceWarning when the cap is hit.
    """
    max_iterations: int = 200
    tolerance: float = 1e-10
    criterion: Union[str, Criterion] = "step_norm"
    record_all_iterates: bool = False
    emit_warnings: bool = True

    def __post_init__(self) -> None:
        mi = self.max_iterations
        if isinstance(mi, bool) or not isinstance(mi, (int, float, np.integer, np.floating)):
            raise TypeError(f"max_iterations must be an integer, got {mi!r}.")
        if not np.isfinite(mi) or int(mi) != mi or mi < 1:
            raise ValueError(f"max_iterations must be a positive integer, got {mi!r}.")
        object.__setattr__(self, "max_iterations", int(mi))

        t = self.tolerance
        if isinstance(t, bool) or not isinstance(t, (int, float, np.integer, np.floating)):
            raise TypeError(f"tolerance must be a real number, got {t!r}.")
        tol = float(t)
        if not tol >= 0.0:
            raise ValueError(f"tolerance must be non-negative, got {self.tolerance!r}.")
        object.__setattr__(self, "tolerance", tol)

        if isinstance(self.criterion, str):
            if self.criterion not in CRITERIA:
                raise ValueError(f"Unknown criterion {self.criterion!r}; expected one of {sorted(CRITERIA)}.")
        elif not callable(self.criterion):
            raise TypeError("criterion must be a name or a callable.")

    def criterion_fn(self) -> Criterion:
        if isinstance(self.criterion, str):
            return CRITERIA[self.criterion]
        return self.criterion

    def with_options(self, **options: Any) -> "NewtonConfig":
        """Copy with the given fields replaced. Unknown option names raise TypeError."""
        known = {f.name for f in fields(self)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise TypeError(f"Unknown solver option(s): {', '.join(unknown)}.")
        return replace(self, **options)


# "fsolve" variant: successive-difference test, tight tolerance, huge cap.
FSOLVE_PRESET = NewtonConfig(
    max_iterations=1_000_000,
    tolerance=1e-12,
    criterion="successive_difference",
)

# "newtons_method_n" variant: step-norm test.
NEWTONS_METHOD_PRESET = NewtonConfig(
    max_iterations=200,
    tolerance=1e-10,
    criterion="step_norm",
)


@dataclass
class NewtonResult:
    """Outcome of one solve.

    - x:          root estimate, shape (n,)
    - iterations: Newton updates applied
    - converged:  criterion satisfied before the cap / cancellation
    - status:     0 converged, 1 iteration cap reached, 2 cancelled by callback
    - step_norm:  last criterion measure (inf if no pass ran)
    - trajectory: (iterations+1, n) estimates, row 0 is x0, last row is x;
                  None unless record_all_iterates was set
    """
    x: np.ndarray
    iterations: int
    converged: bool
    status: int
    message: str
    step_norm: float
    nfev: int
    njev: int
    trajectory: Optional[np.ndarray] = None

    def outputs(self, nout: int = 1) -> Union[np.ndarray, Tuple[Any, ...]]:
        """x, (x, k) or (x, k, trajectory)."""
        if nout == 1:
            return self.x
        if nout == 2:
            return self.x, self.iterations
        if nout == 3:
            if self.trajectory is None:
                raise ValueError("trajectory was not recorded; solve with record_all_iterates=True.")
            return self.x, self.iterations, self.trajectory
        raise ValueError(f"nout must be 1, 2 or 3, got {nout}.")


def _as_vec(x: Any) -> np.ndarray:
    x = np.asarray(x, dtype=float)
    if x.ndim == 0:
        x = x.reshape(1)
    if x.ndim != 1:
        raise DimensionMismatchError(f"x0 must be a 1D array-like of shape (n,), got {x.shape}.")
    if x.size == 0:
        raise DimensionMismatchError("x0 must have at least one component.")
    if not np.all(np.isfinite(x)):
        raise ValueError("x0 contains non-finite values.")
    return x


def _as_F(F: Any, n: int) -> np.ndarray:
    Fv = np.asarray(F, dtype=float)
    if Fv.ndim == 0 and n == 1:
        Fv = Fv.reshape(1)
    if Fv.shape != (n,):
        raise DimensionMismatchError(f"f(x) must return shape ({n},), got {Fv.shape}.")
    return Fv


def _as_J(J: Any, n: int) -> np.ndarray:
    Jm = np.asarray(J, dtype=float)
    if n == 1 and Jm.size == 1 and Jm.ndim < 2:
        Jm = Jm.reshape(1, 1)
    if Jm.shape != (n, n):
        raise DimensionMismatchError(f"J(x) must return shape ({n},{n}), got {Jm.shape}.")
    return Jm


def newton_solve(
    f: Callable[[np.ndarray], Any],
    jac: Callable[[np.ndarray], Any],
    x0: Any,
    config: Optional[NewtonConfig] = None,
    *,
    callback: Optional[Callback] = None,
    linear_solver: Optional[LinearSolver] = None,
) -> NewtonResult:
    """Multi-dimensional Newton-Raphson iteration.

    Each pass evaluates r = f(x) and J = jac(x), solves J y = -r and forms
    x_next = x + y. The pass is then tested with the configured criterion:

    - not converged: x_next becomes the next iterate (one more iteration);
    - converged: y is within tolerance, so it refines the current iterate in
      place instead of producing a new one. On the very first pass there is
      no iterate besides x0 to refine, so x_next is kept as iteration 1.

    A linear f therefore converges in exactly one iteration, and a recorded
    trajectory always has iterations + 1 rows.

    Parameters
    ----------
    f
        Vector function f(x) -> (n,) residual.
    jac
        Jacobian evaluator jac(x) -> (n,n).
    x0
        Initial guess, shape (n,) (a scalar is taken as n = 1).
    config
        NewtonConfig; defaults to NEWTONS_METHOD_PRESET.
    callback
        Optional callback(k, x) -> bool checked before every pass; returning
        True stops the solve (status 2, not converged).
    linear_solver
        Optional solve(A, b) -> x replacing the default LU solver.

    Returns
    -------
    NewtonResult

    Raises
    ------
    DimensionMismatchError
        x0 is empty/not 1D, or f/jac return the wrong shape.
    SingularJacobianError
        J is singular or near-singular, or the step or updated estimate is
        non-finite.
    """
    cfg = NEWTONS_METHOD_PRESET if config is None else config
    criterion = cfg.criterion_fn()
    tol = cfg.tolerance

    x = _as_vec(x0).astype(float, copy=True)
    n = int(x.size)

    trajectory: Optional[List[np.ndarray]] = [x.copy()] if cfg.record_all_iterates else None
    nfev = 0
    njev = 0
    k = 0
    measure = np.inf
    status = STATUS_MAX_ITER

    for p in range(1, cfg.max_iterations + 1):
        if callback is not None and callback(k, x.copy()):
            status = STATUS_CANCELLED
            break

        r = _as_F(f(x), n)
        nfev += 1
        J = _as_J(jac(x), n)
        njev += 1

        # Solve J * y = -f(x)
        y = newton_step(J, r, linear_solver)
        x_next = x + y
        if not np.all(np.isfinite(x_next)):
            raise SingularJacobianError(f"Newton update overflowed to non-finite values at pass {p}.")
        measure = float(criterion(x, x_next, y))
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("newton pass %d: |f|=%.3e |y|=%.3e measure=%.3e", p, np.linalg.norm(r), np.linalg.norm(y), measure)

        if measure <= tol:
            status = STATUS_CONVERGED
            if k == 0:
                k = 1
                if trajectory is not None:
                    trajectory.append(x_next.copy())
            elif trajectory is not None:
                trajectory[-1] = x_next.copy()
            x = x_next
            break

        x = x_next
        k += 1
        if trajectory is not None:
            trajectory.append(x.copy())

    if status == STATUS_CONVERGED:
        message = f"Converged in {k} iterations (measure {measure:.3e} <= {tol:.3e})."
    elif status == STATUS_CANCELLED:
        message = f"Cancelled by callback after {k} iterations."
    else:
        message = f"The method failed after {k} iterations (last measure {measure:.3e} > tol {tol:.3e})."
        if cfg.emit_warnings:
            warnings.warn(message, NonConvergenceWarning, stacklevel=2)
    logger.info(message)

    return NewtonResult(
        x=x.copy(),
        iterations=k,
        converged=status == STATUS_CONVERGED,
        status=status,
        message=message,
        step_norm=measure,
        nfev=nfev,
        njev=njev,
        trajectory=None if trajectory is None else np.vstack(trajectory),
    )


def _resolve_config(preset: NewtonConfig, config: Optional[NewtonConfig], options: Dict[str, Any]) -> NewtonConfig:
    base = preset if config is None else config
    return base.with_options(**options) if options else base


def newton_system(
    f: Callable[[np.ndarray], Any],
    jac: Optional[Callable[[np.ndarray], Any]],
    x0: Any,
    *,
    config: Optional[NewtonConfig] = None,
    callback: Optional[Callback] = None,
    linear_solver: Optional[LinearSolver] = None,
    **options: Any,
) -> NewtonResult:
    """Newton's method with a caller-supplied Jacobian (step-norm preset).

    Defaults: max_iterations=200, tolerance=1e-10, criterion="step_norm".
    Keyword ``options`` override fields of ``config`` (or of the preset).
    If ``jac`` is None a complex-step Jacobian of f is used.
    """
    cfg = _resolve_config(NEWTONS_METHOD_PRESET, config, options)
    return newton_solve(f, make_jacobian(f, jac), x0, cfg, callback=callback, linear_solver=linear_solver)


def fsolve_newton(
    f: Callable[[np.ndarray], Any],
    x0: Any,
    *,
    jacobian: Optional[Callable[[np.ndarray], Any]] = None,
    jacobian_method: str = "complex-step",
    config: Optional[NewtonConfig] = None,
    callback: Optional[Callback] = None,
    linear_solver: Optional[LinearSolver] = None,
    **options: Any,
) -> np.ndarray:
    """Solve f(x) = 0, approximating the Jacobian when none is given.

    Defaults: max_iterations=1e6, tolerance=1e-12,
    criterion="successive_difference", complex-step Jacobian.

    Returns
    -------
    x : np.ndarray
        Root, shape (n,). With record_all_iterates=True, the whole trajectory
        instead, shape (iterations+1, n): first row x0, last row the root.
    """
    cfg = _resolve_config(FSOLVE_PRESET, config, options)
    J = make_jacobian(f, jacobian, method=jacobian_method)
    res = newton_solve(f, J, x0, cfg, callback=callback, linear_solver=linear_solver)
    if cfg.record_all_iterates:
        return res.trajectory
    return res.x
