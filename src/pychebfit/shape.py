"""Shape specifications and the derivative-sign constraints they induce.

A shape specification says, for one or more derivative orders ``d``, at
how many points the ``d``-th derivative of the approximation must keep a
given sign.  The classic interface passes two parallel sequences in which
position ``i`` implicitly means derivative order ``i + 1``::

    counts = [10, 0]    # 10 points for f', none for f''
    signs  = [+1, -1]   # f' >= 0 (increasing), f'' <= 0 (concave)

:meth:`ShapeSpec.from_sequences` accepts that convention and normalizes it
at once into explicit :class:`ShapeTerm` triples.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from pychebfit._nodes import to_reference, validate_domain
from pychebfit.basis import evaluate_derivative_basis
from pychebfit.exceptions import ShapeSpecMismatch
from pychebfit.model import ChebyshevModel


@dataclass(frozen=True)
class ShapeTerm:
    """Require ``sign * f^(order)(x) >= 0`` at ``count`` points."""

    order: int
    count: int
    sign: int


@dataclass(frozen=True)
class ShapeSpec:
    """Immutable, explicit list of :class:`ShapeTerm` entries.

    Examples
    --------
    >>> spec = ShapeSpec.from_sequences([5, 3], [1, -1])
    >>> spec.terms[1]
    ShapeTerm(order=2, count=3, sign=-1)
    >>> ShapeSpec.increasing(4).terms
    (ShapeTerm(order=1, count=4, sign=1),)
    """

    terms: Tuple[ShapeTerm, ...] = ()

    def __post_init__(self):
        terms = tuple(self.terms)
        seen = set()
        for term in terms:
            if not isinstance(term, ShapeTerm):
                raise ShapeSpecMismatch(f"expected ShapeTerm entries, got {term!r}")
            if isinstance(term.order, bool) or not isinstance(term.order, (int, np.integer)) \
                    or term.order < 1:
                raise ShapeSpecMismatch(f"derivative order must be an int >= 1, got {term.order!r}")
            if isinstance(term.count, bool) or not isinstance(term.count, (int, np.integer)) \
                    or term.count < 0:
                raise ShapeSpecMismatch(f"node count must be an int >= 0, got {term.count!r}")
            if isinstance(term.sign, bool) or term.sign not in (1, -1):
                raise ShapeSpecMismatch(f"sign must be +1 or -1, got {term.sign!r}")
            if term.order in seen:
                raise ShapeSpecMismatch(f"derivative order {term.order} given more than once")
            seen.add(term.order)
        object.__setattr__(self, "terms", terms)

    @classmethod
    def from_sequences(cls, counts: Sequence[int], signs: Sequence[int]) -> "ShapeSpec":
        """Build from parallel sequences indexed by derivative order minus one.

        Raises
        ------
        ShapeSpecMismatch
            If the sequences differ in length or hold invalid entries.
        """
        counts = list(counts)
        signs = list(signs)
        if len(counts) != len(signs):
            raise ShapeSpecMismatch(
                f"node-count sequence has {len(counts)} entries but sign "
                f"sequence has {len(signs)}"
            )
        return cls(tuple(
            ShapeTerm(order=i + 1, count=c, sign=s)
            for i, (c, s) in enumerate(zip(counts, signs))
        ))

    @classmethod
    def increasing(cls, count: int) -> "ShapeSpec":
        return cls((ShapeTerm(1, count, 1),))

    @classmethod
    def decreasing(cls, count: int) -> "ShapeSpec":
        return cls((ShapeTerm(1, count, -1),))

    @classmethod
    def convex(cls, count: int) -> "ShapeSpec":
        return cls((ShapeTerm(2, count, 1),))

    @classmethod
    def concave(cls, count: int) -> "ShapeSpec":
        return cls((ShapeTerm(2, count, -1),))

    @property
    def max_order(self) -> int:
        return max((t.order for t in self.terms), default=0)

    def __len__(self) -> int:
        return len(self.terms)


def as_shape_spec(shape) -> ShapeSpec:
    """Coerce *shape* to a :class:`ShapeSpec`.

    Accepts a :class:`ShapeSpec`, ``None`` (no constraints), or a
    ``(counts, signs)`` pair in the positional convention.
    """
    if shape is None:
        return ShapeSpec()
    if isinstance(shape, ShapeSpec):
        return shape
    try:
        counts, signs = shape
    except (TypeError, ValueError) as exc:
        raise ShapeSpecMismatch(
            f"shape must be a ShapeSpec or a (counts, signs) pair, got {shape!r}"
        ) from exc
    return ShapeSpec.from_sequences(counts, signs)


def constraint_points(domain, count: int) -> np.ndarray:
    """Equally spaced interior points ``a + j (b - a) / (count + 1)``, ``j = 1..count``."""
    a, b = domain
    return a + (b - a) * np.arange(1, count + 1) / (count + 1)


class ShapeConstraint:
    """Inequality ``sign * f^(order)(x; coeffs) >= 0`` on a coefficient vector.

    The constraint is linear in the coefficients; :meth:`jac` returns its
    exact gradient.
    """

    def __init__(self, domain, n_coeffs: int, order: int, sign: int, x: float):
        self.domain = domain
        self.order = order
        self.sign = sign
        self.x = float(x)
        a, b = domain
        z = float(to_reference(self.x, domain))
        scale = (2.0 / (b - a)) ** order
        self._gradient = sign * scale * evaluate_derivative_basis(z, n_coeffs - 1, order)
        self._gradient.flags.writeable = False

    def __call__(self, coeffs) -> float:
        model = ChebyshevModel(coeffs, self.domain)
        return self.sign * model.derivative(self.order).evaluate(self.x)

    def jac(self, coeffs) -> np.ndarray:
        return self._gradient.copy()

    def as_scipy(self, with_jac: bool = True) -> dict:
        """Return the ``{"type": "ineq", ...}`` dict ``scipy.optimize.minimize`` expects."""
        cons = {"type": "ineq", "fun": self}
        if with_jac:
            cons["jac"] = self.jac
        return cons

    def __repr__(self) -> str:
        return f"ShapeConstraint(order={self.order}, sign={self.sign:+d}, x={self.x!r})"


def build_constraints(domain, n_coeffs: int, shape) -> List[ShapeConstraint]:
    """Translate *shape* into one :class:`ShapeConstraint` per constraint point.

    Parameters
    ----------
    domain : (float, float)
        Interval ``(a, b)``.
    n_coeffs : int
        Length of the coefficient vector (approximation order + 1).
    shape : ShapeSpec or (counts, signs)
        Shape specification.

    Returns
    -------
    list of ShapeConstraint
        Ordered by term, then by increasing ``x``.

    Raises
    ------
    ShapeSpecMismatch
        If *shape* is malformed or requests a derivative order greater
        than ``n_coeffs - 1``.
    """
    domain = validate_domain(domain)
    spec = as_shape_spec(shape)
    n = n_coeffs - 1
    if spec.max_order > n:
        raise ShapeSpecMismatch(
            f"derivative order {spec.max_order} exceeds approximation order {n}; "
            f"the derivative is identically zero"
        )
    constraints = []
    for term in spec.terms:
        for x in constraint_points(domain, term.count):
            constraints.append(ShapeConstraint(domain, n_coeffs, term.order, term.sign, x))
    return constraints
