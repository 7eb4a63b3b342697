"""Fitting entry points: unconstrained and shape-preserving Chebyshev fits.

Two ways of supplying the target share one internal routine:

- a callable ``f(x, params) -> float`` that is sampled at the Chebyshev
  nodes (:func:`fit`, or :class:`CallableTarget`), and
- pre-computed samples aligned with a node sequence
  (:func:`fit_from_values`, or :class:`Precomputed`), e.g. values produced
  externally at the points returned by :func:`generate_nodes`.

References
----------
- Judd (1998), "Numerical Methods in Economics", MIT Press, Section 6.7
  (Chebyshev regression) and Section 6.11 (shape-preserving approximation).
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

import numpy as np

from pychebfit._nodes import generate_nodes, to_reference, validate_domain
from pychebfit.basis import basis_matrix
from pychebfit.exceptions import (
    InvalidDomain,
    TargetEvaluationFailure,
    UnderdeterminedFit,
)
from pychebfit.model import ChebyshevModel
from pychebfit.optimizer import SolverConfig, solve
from pychebfit.shape import as_shape_spec, build_constraints


# ----------------------------------------------------------------------
# Inputs
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class FitOptions:
    """Auxiliary inputs for callable targets.

    Parameters
    ----------
    params : any, optional
        Passed unchanged as the second argument of the target function.
    custom_grid : array_like, optional
        Sample the target here instead of at the Chebyshev nodes.  Must be
        strictly increasing and hold more points than the approximation
        order; the usual Chebyshev accuracy guarantees no longer apply.
    """

    params: Any = None
    custom_grid: Optional[Any] = None


@dataclass(frozen=True)
class CallableTarget:
    """Target given as a function ``f(x, params) -> float``."""

    function: Callable
    params: Any = None


@dataclass(frozen=True)
class Precomputed:
    """Target given as samples aligned with *nodes*."""

    nodes: Any
    samples: Any


def _check_order(order) -> int:
    if isinstance(order, bool) or not isinstance(order, (int, np.integer)) or order < 0:
        raise ValueError(f"order must be an int >= 0, got {order!r}")
    return int(order)


def _check_grid(nodes) -> np.ndarray:
    nodes = np.asarray(nodes, dtype=float)
    if nodes.ndim != 1 or nodes.size == 0:
        raise InvalidDomain(f"nodes must be a non-empty 1-D sequence, got shape {nodes.shape}")
    if not np.isfinite(nodes).all():
        raise ValueError("nodes contain NaN or Inf")
    if nodes.size > 1 and not (np.diff(nodes) > 0).all():
        raise ValueError("nodes must be strictly increasing")
    return nodes


def _sample(function, nodes, params) -> np.ndarray:
    """Evaluate *function* at every node, in order."""
    samples = np.empty(nodes.shape[0])
    for k, x in enumerate(nodes):
        try:
            value = float(function(float(x), params))
        except Exception as exc:
            raise TargetEvaluationFailure(x, f"{type(exc).__name__}: {exc}") from exc
        if not math.isfinite(value):
            raise TargetEvaluationFailure(x, f"non-finite value {value}")
        samples[k] = value
    return samples


def _resolve_target(target, domain, order, n_nodes, options):
    """Validate everything that can be checked up front, then sample.

    Returns ``(nodes, samples, n_evaluations)``.
    """
    options = FitOptions() if options is None else options
    if isinstance(target, Precomputed):
        nodes = _check_grid(target.nodes)
        samples = np.asarray(target.samples, dtype=float)
        if samples.shape != nodes.shape:
            raise ValueError(
                f"samples shape {samples.shape} does not match nodes shape {nodes.shape}"
            )
        if not np.isfinite(samples).all():
            raise ValueError("samples contain NaN or Inf")
        if order >= nodes.size:
            raise UnderdeterminedFit(
                f"order {order} needs at least {order + 1} nodes, got {nodes.size}"
            )
        return nodes, samples, 0

    if isinstance(target, CallableTarget):
        function, params = target.function, target.params
    elif callable(target):
        function, params = target, options.params
    else:
        raise TypeError(
            f"target must be callable, CallableTarget or Precomputed, "
            f"got {type(target).__name__}"
        )

    if options.custom_grid is not None:
        nodes = _check_grid(options.custom_grid)
    else:
        nodes = generate_nodes(domain, n_nodes)
    if order >= nodes.size:
        raise UnderdeterminedFit(
            f"order {order} needs at least {order + 1} nodes, got {nodes.size}"
        )
    return nodes, _sample(function, nodes, params), nodes.size


# ----------------------------------------------------------------------
# Least squares
# ----------------------------------------------------------------------

def least_squares_coefficients(z_nodes, samples, order: int) -> np.ndarray:
    """Chebyshev regression coefficients by discrete orthogonal projection.

    .. math::

        a_i = \\frac{\\sum_k y_k T_i(z_k)}{\\sum_k T_i(z_k)^2}, \\qquad i = 0..n

    At Chebyshev nodes the ``T_i`` with ``i < m`` are orthogonal under
    the node-sampling inner product, so this is the exact least-squares
    solution.

    Parameters
    ----------
    z_nodes : array_like
        Nodes in reference coordinates.
    samples : array_like
        Values aligned with *z_nodes*.
    order : int
        Approximation order ``n``.

    Returns
    -------
    ndarray of shape (order + 1,)

    Raises
    ------
    UnderdeterminedFit
        If ``order >= len(z_nodes)``.
    """
    order = _check_order(order)
    y = np.asarray(samples, dtype=float)
    z = np.asarray(z_nodes, dtype=float)
    if z.shape != y.shape or z.ndim != 1:
        raise ValueError(
            f"z_nodes shape {z.shape} and samples shape {y.shape} must be equal 1-D shapes"
        )
    m = z.size
    if order >= m:
        raise UnderdeterminedFit(
            f"order {order} must be strictly less than the number of nodes {m}"
        )
    T = basis_matrix(z, order)
    numerator = T.T @ y
    denominator = np.einsum("ki,ki->i", T, T)
    denominator[0] = m
    return numerator / denominator


def _fit_samples(nodes, samples, domain, order) -> ChebyshevModel:
    coeffs = least_squares_coefficients(to_reference(nodes, domain), samples, order)
    return ChebyshevModel(coeffs, domain, nodes=nodes, samples=samples)


# ----------------------------------------------------------------------
# Entry points
# ----------------------------------------------------------------------

def fit(
    function: Callable,
    domain,
    order: int,
    n_nodes: int,
    options: FitOptions | None = None,
    verbose: bool = True,
) -> ChebyshevModel:
    """Fit a Chebyshev expansion of degree *order* to *function*.

    Parameters
    ----------
    function : callable or CallableTarget
        ``f(x, params) -> float``.  ``params`` is ``options.params``.
    domain : (float, float)
        Interval ``(a, b)`` with ``a < b``.
    order : int
        Degree ``n`` of the expansion.
    n_nodes : int
        Number of Chebyshev nodes ``m > n``.  Ignored when
        ``options.custom_grid`` is given.
    options : FitOptions, optional
        Function parameters and an optional custom grid.
    verbose : bool, optional
        If True, print fit progress. Default is True.

    Returns
    -------
    ChebyshevModel

    Raises
    ------
    InvalidDomain
        If the domain is malformed or ``n_nodes < 1``.
    UnderdeterminedFit
        If ``order >= n_nodes``.
    TargetEvaluationFailure
        If *function* raises or returns a non-finite value.

    Examples
    --------
    >>> import math
    >>> model = fit(lambda x, _: math.exp(x), (0, 1), 8, 12, verbose=False)
    >>> abs(model.evaluate(0.5) - math.exp(0.5)) < 1e-8
    True
    """
    if isinstance(function, Precomputed):
        raise TypeError("use fit_from_values() for pre-computed samples")
    domain = validate_domain(domain)
    order = _check_order(order)
    if verbose:
        print(f"Fitting Chebyshev approximation of order {order} on "
              f"[{domain[0]}, {domain[1]}]...")

    start = time.time()
    nodes, samples, n_evals = _resolve_target(function, domain, order, n_nodes, options)
    model = _fit_samples(nodes, samples, domain, order)
    model.build_time = time.time() - start
    model.n_evaluations = n_evals

    if verbose:
        print(f"  Fitted in {model.build_time:.3f}s "
              f"({n_evals} evaluations, error est {model.error_estimate():.2e})")
    return model


def fit_from_values(
    samples,
    domain,
    order: int,
    nodes=None,
    verbose: bool = True,
) -> ChebyshevModel:
    """Fit from pre-computed samples.

    Parameters
    ----------
    samples : array_like
        Function values aligned with *nodes*.
    domain : (float, float)
        Interval ``(a, b)`` with ``a < b``.
    order : int
        Degree ``n`` of the expansion, ``n < len(samples)``.
    nodes : array_like, optional
        Points the samples were taken at.  Defaults to
        ``generate_nodes(domain, len(samples))``; any other grid is
        accepted but forfeits the Chebyshev accuracy guarantees.
    verbose : bool, optional
        If True, print fit progress. Default is True.

    Returns
    -------
    ChebyshevModel
        ``n_evaluations`` is 0.

    Raises
    ------
    UnderdeterminedFit
        If ``order >= len(samples)``.
    ValueError
        If *samples* contains NaN or Inf or is not aligned with *nodes*.

    Examples
    --------
    >>> import math
    >>> x = generate_nodes((0, 3.15), 20)
    >>> model = fit_from_values(np.sin(x), (0, 3.15), 19, verbose=False)
    >>> abs(model.evaluate(1.0) - math.sin(1.0)) < 1e-10
    True
    """
    domain = validate_domain(domain)
    order = _check_order(order)
    samples = np.asarray(samples, dtype=float)
    if nodes is None:
        nodes = generate_nodes(domain, samples.size)

    start = time.time()
    nodes, samples, _ = _resolve_target(Precomputed(nodes, samples), domain, order, None, None)
    model = _fit_samples(nodes, samples, domain, order)
    model.build_time = time.time() - start

    if verbose:
        print(f"Fitted order {order} from {samples.size} pre-computed values "
              f"in {model.build_time:.3f}s")
    return model


def fit_shape_preserving(
    target,
    domain,
    order: int,
    n_nodes: int | None,
    shape,
    solver_config: SolverConfig | None = None,
    options: FitOptions | None = None,
    verbose: bool = True,
) -> ChebyshevModel:
    """Fit a Chebyshev expansion whose derivatives keep prescribed signs.

    The unconstrained least-squares coefficients seed a constrained
    minimization of the squared residuals in which, for every term of
    *shape*, ``sign * f^(order)(x_j) >= 0`` at equally spaced interior
    points ``x_j``.

    Parameters
    ----------
    target : callable, CallableTarget or Precomputed
        The function to approximate, or pre-computed samples.
    domain : (float, float)
        Interval ``(a, b)`` with ``a < b``.
    order : int
        Degree ``n`` of the expansion.
    n_nodes : int or None
        Number of Chebyshev nodes for callable targets; ignored for
        :class:`Precomputed` targets and custom grids.
    shape : ShapeSpec or (counts, signs)
        Shape specification.  In the ``(counts, signs)`` form, position
        ``i`` refers to derivative order ``i + 1``.
    solver_config : SolverConfig, optional
        Backend name and tolerances.
    options : FitOptions, optional
        Function parameters and an optional custom grid.
    verbose : bool, optional
        If True, print fit progress. Default is True.

    Returns
    -------
    ChebyshevModel
        ``shape_constrained`` is True unless *shape* yields no constraints.

    Raises
    ------
    ShapeSpecMismatch
        If *shape* is malformed or asks for a derivative order above
        *order*.
    ShapeFitNonConvergence
        If the solver fails or returns an infeasible point.
    InvalidDomain, UnderdeterminedFit, TargetEvaluationFailure
        As for :func:`fit`.

    Examples
    --------
    >>> import math
    >>> model = fit_shape_preserving(
    ...     lambda x, _: math.log(x), (0.5, 4.0), 6, 15,
    ...     ([0, 10], [1, -1]), verbose=False)
    >>> model.shape_constrained
    True
    """
    domain = validate_domain(domain)
    order = _check_order(order)
    solver_config = SolverConfig() if solver_config is None else solver_config
    # Shape errors are raised before the target is sampled
    spec = as_shape_spec(shape)
    constraints = build_constraints(domain, order + 1, spec)

    if verbose:
        print(f"Fitting shape-preserving Chebyshev approximation of order {order} "
              f"({len(constraints)} constraints, solver {solver_config.method})...")

    start = time.time()
    nodes, samples, n_evals = _resolve_target(target, domain, order, n_nodes, options)
    z = to_reference(nodes, domain)
    seed = least_squares_coefficients(z, samples, order)
    result = solve(z, samples, order, constraints, seed, solver_config)

    model = ChebyshevModel(result.x, domain, nodes=nodes, samples=samples,
                           shape_constrained=bool(constraints))
    model.build_time = time.time() - start
    model.n_evaluations = n_evals

    if verbose:
        print(f"  Solved in {model.build_time:.3f}s "
              f"({result.get('nit', -1)} iterations, squared error {result.fun:.3e})")
    return model

