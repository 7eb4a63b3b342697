"""Chebyshev basis evaluation in the reference coordinate.

All functions here work on ``z`` in the reference interval ``[-1, 1]``
(values outside are accepted and extrapolate).  Derivatives are taken with
respect to ``z``; the chain-rule factor ``2 / (b - a)`` per order is
applied by :class:`~pychebfit.model.ChebyshevModel`.

References
----------
- Mason & Handscomb (2003), "Chebyshev Polynomials", Chapman & Hall,
  Sections 1.2 and 2.4.
"""

from __future__ import annotations

import numpy as np
from numpy.polynomial.chebyshev import chebder, chebval

from pychebfit._jit import chebyshev_basis_jit, chebyshev_basis_matrix_jit


def _check_degree(n) -> int:
    if isinstance(n, bool) or not isinstance(n, (int, np.integer)) or n < 0:
        raise ValueError(f"degree must be an int >= 0, got {n!r}")
    return int(n)


def _check_order(order) -> int:
    if isinstance(order, bool) or not isinstance(order, (int, np.integer)) or order < 0:
        raise ValueError(f"derivative order must be an int >= 0, got {order!r}")
    return int(order)


def evaluate_basis(z: float, n: int) -> np.ndarray:
    """Evaluate ``T_0(z), ..., T_n(z)``.

    Parameters
    ----------
    z : float
        Reference coordinate.
    n : int
        Highest degree (>= 0).

    Returns
    -------
    ndarray of shape (n + 1,)

    Examples
    --------
    >>> evaluate_basis(0.5, 3)
    array([ 1. ,  0.5, -0.5, -1. ])
    """
    n = _check_degree(n)
    return chebyshev_basis_jit(float(z), n)


def basis_matrix(z, n: int) -> np.ndarray:
    """Evaluate the basis at every point of *z*.

    Returns
    -------
    ndarray of shape (len(z), n + 1)
        Row ``k`` is ``evaluate_basis(z[k], n)``.
    """
    n = _check_degree(n)
    z = np.ascontiguousarray(np.atleast_1d(np.asarray(z, dtype=float)))
    return chebyshev_basis_matrix_jit(z, n)


def _derivative_coefficients(n: int, order: int) -> np.ndarray:
    """Coefficients of ``d^order T_i / dz^order`` for ``i = 0..n``.

    Column ``i`` holds the Chebyshev series of the derivative of ``T_i``,
    padded with zeros to length ``n + 1``.
    """
    derived = chebder(np.eye(n + 1), m=order, axis=0)
    out = np.zeros((n + 1, n + 1))
    out[:derived.shape[0], :] = derived
    return out


def evaluate_derivative_basis(z: float, n: int, order: int) -> np.ndarray:
    """Evaluate the *order*-th derivative of ``T_0, ..., T_n`` at *z*.

    Parameters
    ----------
    z : float
        Reference coordinate.
    n : int
        Highest degree (>= 0).
    order : int
        Derivative order (>= 0).  ``order = 0`` is :func:`evaluate_basis`.

    Returns
    -------
    ndarray of shape (n + 1,)

    Examples
    --------
    >>> evaluate_derivative_basis(0.5, 3, 1)
    array([0., 1., 2., 0.])
    """
    return derivative_basis_matrix(np.array([z], dtype=float), n, order)[0]


def derivative_basis_matrix(z, n: int, order: int) -> np.ndarray:
    """Row-wise :func:`evaluate_derivative_basis` for a vector of points.

    Returns
    -------
    ndarray of shape (len(z), n + 1)
    """
    n = _check_degree(n)
    order = _check_order(order)
    if order == 0:
        return basis_matrix(z, n)
    z = np.atleast_1d(np.asarray(z, dtype=float))
    if order > n:
        return np.zeros((z.shape[0], n + 1))
    # chebval with a 2-D coefficient array evaluates every column at every z
    return chebval(z, _derivative_coefficients(n, order)).T
