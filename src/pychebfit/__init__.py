"""PyChebFit: Chebyshev regression with shape-preserving constraints.

Provides :func:`fit` and :func:`fit_from_values` for least-squares
Chebyshev approximation of a scalar function on an interval, and
:func:`fit_shape_preserving` for fits whose derivatives are constrained
to keep a given sign (monotone, convex, concave, ...).  Every fit returns
an immutable :class:`ChebyshevModel` with exact derivatives.

Example
-------
>>> import math
>>> from pychebfit import fit
>>> model = fit(lambda x, _: math.exp(x), (0.0, 1.0), 10, 15, verbose=False)
>>> round(model.evaluate(0.5), 4)
1.6487
"""

from pychebfit._nodes import generate_nodes
from pychebfit._version import __version__
from pychebfit.basis import evaluate_basis, evaluate_derivative_basis
from pychebfit.exceptions import (
    ChebFitError,
    InvalidDomain,
    ShapeFitNonConvergence,
    ShapeSpecMismatch,
    TargetEvaluationFailure,
    UnderdeterminedFit,
)
from pychebfit.fitting import (
    CallableTarget,
    FitOptions,
    Precomputed,
    fit,
    fit_from_values,
    fit_shape_preserving,
)
from pychebfit.model import ChebyshevModel
from pychebfit.optimizer import SolverConfig, available_solvers, register_solver
from pychebfit.shape import ShapeSpec, ShapeTerm

__all__ = [
    "CallableTarget",
    "ChebFitError",
    "ChebyshevModel",
    "FitOptions",
    "InvalidDomain",
    "Precomputed",
    "ShapeFitNonConvergence",
    "ShapeSpec",
    "ShapeSpecMismatch",
    "ShapeTerm",
    "SolverConfig",
    "TargetEvaluationFailure",
    "UnderdeterminedFit",
    "__version__",
    "available_solvers",
    "evaluate_basis",
    "evaluate_derivative_basis",
    "fit",
    "fit_from_values",
    "fit_shape_preserving",
    "generate_nodes",
    "register_solver",
]
