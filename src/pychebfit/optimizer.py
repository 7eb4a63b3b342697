"""Constrained least squares over Chebyshev coefficients.

The objective is the sum of squared residuals at the fitting nodes,

.. math::

    S(c) = \\sum_k (y_k - (B c)_k)^2, \\qquad \\nabla S(c) = -2 B^T (y - B c),

where ``B`` is the basis matrix at the reference nodes.  The shape
constraints ``g_j(c) >= 0`` come from :func:`pychebfit.shape.build_constraints`.
The nonlinear program itself is handed to a solver backend looked up by
name; the built-in backends wrap :func:`scipy.optimize.minimize`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence

import numpy as np
from scipy.optimize import OptimizeResult, minimize

from pychebfit.basis import basis_matrix
from pychebfit.exceptions import ShapeFitNonConvergence
from pychebfit.shape import ShapeConstraint


@dataclass(frozen=True)
class SolverConfig:
    """Settings for the constrained solve.

    Parameters
    ----------
    method : str
        Name of a registered backend (see :func:`available_solvers`).
    maxiter : int
        Iteration budget handed to the backend.
    ftol : float
        Convergence tolerance handed to the backend.
    constraint_tol : float
        Largest constraint violation accepted in the returned point.
    disp : bool
        Let the backend print its own convergence messages.
    """

    method: str = "SLSQP"
    maxiter: int = 500
    ftol: float = 1e-10
    constraint_tol: float = 1e-8
    disp: bool = False


SolverBackend = Callable[
    [Callable, Callable, Sequence[ShapeConstraint], np.ndarray, SolverConfig],
    OptimizeResult,
]

_SOLVERS: Dict[str, SolverBackend] = {}


def register_solver(name: str, backend: SolverBackend) -> None:
    """Register *backend* under *name* (replacing any previous entry).

    A backend is called as ``backend(objective, gradient, constraints, x0,
    config)`` and must return a :class:`scipy.optimize.OptimizeResult` with
    at least ``x``, ``success`` and ``message``.
    """
    if not callable(backend):
        raise TypeError(f"solver backend must be callable, got {type(backend).__name__}")
    _SOLVERS[name] = backend


def available_solvers() -> List[str]:
    return sorted(_SOLVERS)


def get_solver(name: str) -> SolverBackend:
    try:
        return _SOLVERS[name]
    except KeyError:
        raise ValueError(
            f"Unknown solver {name!r}; available: {available_solvers()}"
        ) from None


def _slsqp(objective, gradient, constraints, x0, config):
    return minimize(
        objective, x0, jac=gradient, method="SLSQP",
        constraints=[c.as_scipy() for c in constraints],
        options={"maxiter": config.maxiter, "ftol": config.ftol, "disp": config.disp},
    )


def _trust_constr(objective, gradient, constraints, x0, config):
    return minimize(
        objective, x0, jac=gradient, method="trust-constr",
        constraints=[c.as_scipy() for c in constraints],
        options={"maxiter": config.maxiter, "gtol": config.ftol, "xtol": config.ftol,
                 "verbose": 2 if config.disp else 0},
    )


def _cobyla(objective, gradient, constraints, x0, config):
    # derivative-free; the gradients are not used
    return minimize(
        objective, x0, method="COBYLA",
        constraints=[c.as_scipy(with_jac=False) for c in constraints],
        options={"maxiter": config.maxiter, "tol": config.ftol,
                 "catol": config.constraint_tol, "disp": config.disp},
    )


register_solver("SLSQP", _slsqp)
register_solver("trust-constr", _trust_constr)
register_solver("COBYLA", _cobyla)


def max_violation(constraints: Sequence[ShapeConstraint], coeffs) -> float:
    """Largest amount by which *coeffs* violates any constraint (0 if feasible).

    Returns ``inf`` if any constraint value is not finite.
    """
    if not constraints:
        return 0.0
    values = np.array([c(coeffs) for c in constraints], dtype=float)
    if not np.isfinite(values).all():
        return math.inf
    return float(max(0.0, -values.min()))


def solve(
    z_nodes,
    samples,
    order: int,
    constraints: Sequence[ShapeConstraint],
    initial_guess,
    config: SolverConfig | None = None,
) -> OptimizeResult:
    """Minimize the squared residuals subject to *constraints*.

    Parameters
    ----------
    z_nodes : array_like
        Fitting nodes in reference coordinates.
    samples : array_like
        Sample values aligned with *z_nodes*.
    order : int
        Approximation order ``n``; the coefficient vector has ``n + 1``
        entries.
    constraints : sequence of ShapeConstraint
        Inequalities ``g(c) >= 0``.
    initial_guess : array_like
        Starting coefficients, normally the unconstrained least-squares
        solution.
    config : SolverConfig, optional
        Solver settings; defaults to ``SolverConfig()``.

    Returns
    -------
    scipy.optimize.OptimizeResult
        ``x`` holds the optimal coefficients.  With no constraints the
        initial guess is returned unchanged with ``nit = 0``.

    Raises
    ------
    ShapeFitNonConvergence
        If the backend reports failure or its result violates a
        constraint by more than ``config.constraint_tol``.
    ValueError
        If the backend name is unknown or the inputs are misaligned.
    """
    config = SolverConfig() if config is None else config
    backend = get_solver(config.method)

    y = np.asarray(samples, dtype=float)
    B = basis_matrix(z_nodes, order)
    if B.shape[0] != y.shape[0]:
        raise ValueError(
            f"{B.shape[0]} nodes but {y.shape[0]} samples; they must be aligned"
        )
    x0 = np.array(initial_guess, dtype=float)
    if x0.shape != (order + 1,):
        raise ValueError(
            f"initial_guess has shape {x0.shape}, expected ({order + 1},)"
        )

    def objective(c):
        r = y - B @ c
        return float(r @ r)

    def gradient(c):
        return -2.0 * (B.T @ (y - B @ c))

    if len(constraints) == 0:
        return OptimizeResult(
            x=x0, fun=objective(x0), success=True, status=0, nit=0,
            message="No constraints; unconstrained solution returned",
        )

    result = backend(objective, gradient, constraints, x0, config)
    x = np.asarray(result.x, dtype=float)
    violation = max_violation(constraints, x)
    n_iterations = int(getattr(result, "nit", -1))
    if not result.success:
        raise ShapeFitNonConvergence(str(result.message), x, violation, n_iterations)
    if not np.isfinite(x).all() or not math.isfinite(violation):
        raise ShapeFitNonConvergence(
            f"solver returned non-finite coefficients ({result.message})",
            x, violation, n_iterations,
        )
    if violation > config.constraint_tol:
        raise ShapeFitNonConvergence(
            f"solver reported success but the result is infeasible ({result.message})",
            x, violation, n_iterations,
        )
    result.x = x
    return result
