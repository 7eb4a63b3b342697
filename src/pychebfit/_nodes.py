"""Chebyshev node generation and the affine map between domain and reference coordinates."""

from __future__ import annotations

import math
from typing import Tuple

import numpy as np

from pychebfit.exceptions import InvalidDomain


def validate_domain(domain) -> Tuple[float, float]:
    """Return *domain* as a ``(a, b)`` float tuple.

    Raises
    ------
    InvalidDomain
        If *domain* is not a pair, a bound is not finite, or ``a >= b``.
    """
    try:
        a, b = domain
        a, b = float(a), float(b)
    except (TypeError, ValueError) as exc:
        raise InvalidDomain(f"domain must be a pair (a, b), got {domain!r}") from exc
    if not (math.isfinite(a) and math.isfinite(b)):
        raise InvalidDomain(f"domain bounds must be finite, got [{a}, {b}]")
    if a >= b:
        raise InvalidDomain(f"domain must satisfy a < b, got [{a}, {b}]")
    return a, b


def generate_nodes(domain, n_nodes: int) -> np.ndarray:
    """Generate *n_nodes* Chebyshev nodes strictly inside *domain*.

    The reference nodes are ``z_k = -cos((2k - 1) pi / (2m))`` for
    ``k = 1..m``, which are strictly increasing and never touch +-1, mapped
    to ``x_k = (b - a) / 2 * (z_k + 1) + a``.

    Parameters
    ----------
    domain : (float, float)
        Interval ``(a, b)`` with ``a < b``.
    n_nodes : int
        Number of nodes ``m >= 1``.

    Returns
    -------
    ndarray of shape (n_nodes,)
        Nodes in ascending order.

    Raises
    ------
    InvalidDomain
        If the domain is malformed or ``n_nodes < 1``.

    Examples
    --------
    >>> generate_nodes((0, 2), 3).round(6)
    array([0.133975, 1.      , 1.866025])
    """
    a, b = validate_domain(domain)
    if isinstance(n_nodes, bool) or not isinstance(n_nodes, (int, np.integer)) or n_nodes < 1:
        raise InvalidDomain(f"n_nodes must be an int >= 1, got {n_nodes!r}")
    k = np.arange(1, n_nodes + 1)
    z = -np.cos((2 * k - 1) / (2 * n_nodes) * np.pi)
    return 0.5 * (b - a) * (z + 1.0) + a


def to_reference(x, domain):
    """Map domain coordinates to the reference interval: ``z = 2 (x - a) / (b - a) - 1``."""
    a, b = domain
    return 2.0 * (np.asarray(x, dtype=float) - a) / (b - a) - 1.0


def from_reference(z, domain):
    """Inverse of :func:`to_reference`."""
    a, b = domain
    return 0.5 * (b - a) * (np.asarray(z, dtype=float) + 1.0) + a
