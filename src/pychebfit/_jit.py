"""Numba JIT-compiled kernels for Chebyshev basis evaluation."""

import numpy as np
from numba import njit


@njit(cache=True)
def chebyshev_basis_jit(z: float, n: int) -> np.ndarray:
    """Evaluate T_0(z), ..., T_n(z) with the three-term recurrence.

    Parameters
    ----------
    z : float
        Reference coordinate.
    n : int
        Highest degree.

    Returns
    -------
    ndarray of shape (n + 1,)
    """
    out = np.empty(n + 1)
    out[0] = 1.0
    if n >= 1:
        out[1] = z
    for i in range(2, n + 1):
        out[i] = 2.0 * z * out[i - 1] - out[i - 2]
    return out


@njit(cache=True)
def chebyshev_basis_matrix_jit(z: np.ndarray, n: int) -> np.ndarray:
    """Row-wise :func:`chebyshev_basis_jit` for a vector of points."""
    m = z.shape[0]
    out = np.empty((m, n + 1))
    for k in range(m):
        out[k, 0] = 1.0
        if n >= 1:
            out[k, 1] = z[k]
        for i in range(2, n + 1):
            out[k, i] = 2.0 * z[k] * out[k, i - 1] - out[k, i - 2]
    return out


@njit(cache=True)
def clenshaw_jit(z: float, coeffs: np.ndarray) -> float:
    """Evaluate sum_i coeffs[i] T_i(z) with Clenshaw's backward recurrence."""
    b1 = 0.0
    b2 = 0.0
    for i in range(coeffs.shape[0] - 1, 0, -1):
        b0 = 2.0 * z * b1 - b2 + coeffs[i]
        b2 = b1
        b1 = b0
    return z * b1 - b2 + coeffs[0]
