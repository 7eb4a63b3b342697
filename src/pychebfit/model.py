"""One-dimensional Chebyshev expansion with exact derivatives.

A :class:`ChebyshevModel` is the finished result of a fit: a coefficient
vector ``a_0..a_n`` together with the domain ``[a, b]`` it lives on, and
(optionally) the nodes and samples it was fitted to.  It is immutable
after construction and is a pure function of that state, so a model can
be shared and evaluated from several threads.
"""

from __future__ import annotations

import os
import pickle
import warnings
from typing import Tuple

import numpy as np
from numpy.polynomial.chebyshev import chebder

from pychebfit._jit import clenshaw_jit
from pychebfit._nodes import to_reference, validate_domain


def _frozen(values) -> np.ndarray:
    arr = np.array(values, dtype=float)
    arr.flags.writeable = False
    return arr


class ChebyshevModel:
    """Chebyshev approximation ``f(x) ~ sum_i a_i T_i(z(x))`` on ``[a, b]``.

    Parameters
    ----------
    coefficients : array_like
        Chebyshev coefficients ``a_0, ..., a_n`` indexed by degree.
    domain : (float, float)
        Interval ``(a, b)`` with ``a < b``.
    nodes : array_like, optional
        Nodes the model was fitted on (domain coordinates).
    samples : array_like, optional
        Sample values aligned with *nodes*.  Required by :meth:`residuals`.
    shape_constrained : bool, optional
        Whether the coefficients come from a shape-preserving fit.

    Examples
    --------
    >>> model = ChebyshevModel([0.0, 1.0], (0.0, 2.0))
    >>> model.evaluate(1.5)
    0.5
    >>> model.derivative().evaluate(1.5)
    1.0
    """

    def __init__(
        self,
        coefficients,
        domain: Tuple[float, float],
        nodes=None,
        samples=None,
        shape_constrained: bool = False,
    ):
        coefficients = np.asarray(coefficients, dtype=float)
        if coefficients.ndim != 1 or coefficients.size == 0:
            raise ValueError(
                f"coefficients must be a non-empty 1-D sequence, got shape {coefficients.shape}"
            )
        if (nodes is None) != (samples is None):
            raise ValueError("nodes and samples must be given together")
        self._coefficients = _frozen(coefficients)
        self._domain = validate_domain(domain)
        self._nodes = None
        self._samples = None
        if nodes is not None:
            nodes = _frozen(nodes)
            samples = _frozen(samples)
            if nodes.shape != samples.shape or nodes.ndim != 1:
                raise ValueError(
                    f"nodes shape {nodes.shape} and samples shape {samples.shape} "
                    f"must be equal 1-D shapes"
                )
            self._nodes = nodes
            self._samples = samples
        self.shape_constrained = shape_constrained
        self.build_time: float = 0.0
        self.n_evaluations: int = 0

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def domain(self) -> Tuple[float, float]:
        return self._domain

    @property
    def order(self) -> int:
        """Degree ``n`` of the expansion (``len(coefficients) - 1``)."""
        return self._coefficients.size - 1

    @property
    def nodes(self):
        return self._nodes

    @property
    def samples(self):
        return self._samples

    def coefficients(self) -> np.ndarray:
        """Return a copy of the coefficient vector."""
        return self._coefficients.copy()

    # ------------------------------------------------------------------
    # Evaluation and calculus
    # ------------------------------------------------------------------

    def evaluate(self, x):
        """Evaluate the approximation at *x*.

        Points outside the domain are extrapolated; accuracy there is not
        guaranteed.

        Parameters
        ----------
        x : float or array_like
            Domain coordinate(s).

        Returns
        -------
        float or ndarray
            A float for scalar input, otherwise an array shaped like *x*.
        """
        z = to_reference(x, self._domain)
        if z.ndim == 0:
            return float(clenshaw_jit(float(z), self._coefficients))
        flat = z.ravel()
        out = np.empty(flat.shape[0])
        for k in range(flat.shape[0]):
            out[k] = clenshaw_jit(flat[k], self._coefficients)
        return out.reshape(z.shape)

    __call__ = evaluate

    def derivative(self, order: int = 1) -> "ChebyshevModel":
        """Return the exact *order*-th derivative with respect to ``x``.

        The reference-coordinate derivative is rescaled by ``2 / (b - a)``
        per order (chain rule).  The result has ``order`` fewer
        coefficients, never fewer than one, and carries no samples.

        Raises
        ------
        ValueError
            If *order* is negative or not an integer.
        """
        if isinstance(order, bool) or not isinstance(order, (int, np.integer)) or order < 0:
            raise ValueError(f"derivative order must be an int >= 0, got {order!r}")
        if order == 0:
            return ChebyshevModel(self._coefficients, self._domain)
        a, b = self._domain
        coeffs = chebder(self._coefficients, m=int(order), scl=2.0 / (b - a))
        return ChebyshevModel(coeffs, self._domain)

    def residuals(self) -> np.ndarray:
        """Signed residuals ``samples - model(nodes)`` at the fitting nodes.

        Raises
        ------
        RuntimeError
            If the model carries no samples (e.g. a derivative model).
        """
        if self._samples is None:
            raise RuntimeError(
                "This model carries no samples; residuals are only available "
                "for fitted models."
            )
        return self._samples - self.evaluate(self._nodes)

    def error_estimate(self) -> float:
        """Estimate the truncation error by the last coefficient magnitude.

        For smooth targets the Chebyshev coefficients decay geometrically,
        so ``|a_n|`` approximates the sup-norm error of the expansion.

        References
        ----------
        Ruiz & Zeron (2021), Section 3.4 — Ex Ante Error Estimation.
        """
        return float(abs(self._coefficients[-1]))

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def __getstate__(self) -> dict:
        """Return picklable state tagged with the package version."""
        from pychebfit._version import __version__

        state = self.__dict__.copy()
        state["_pychebfit_version"] = __version__
        return state

    def __setstate__(self, state: dict) -> None:
        """Restore state, re-freezing the arrays."""
        from pychebfit._version import __version__

        saved_version = state.pop("_pychebfit_version", None)
        if saved_version is not None and saved_version != __version__:
            warnings.warn(
                f"This object was saved with pychebfit {saved_version}, "
                f"but you are loading it with {__version__}. "
                f"Evaluation results may differ if internal data layout changed.",
                UserWarning,
                stacklevel=2,
            )
        self.__dict__.update(state)
        # pickle restores arrays as writeable
        self._coefficients = _frozen(self._coefficients)
        if self._nodes is not None:
            self._nodes = _frozen(self._nodes)
            self._samples = _frozen(self._samples)

    def save(self, path: str | os.PathLike) -> None:
        """Save the model to a file.

        Parameters
        ----------
        path : str or path-like
            Destination file path.
        """
        with open(os.fspath(path), "wb") as f:
            pickle.dump(self, f, protocol=pickle.HIGHEST_PROTOCOL)

    @classmethod
    def load(cls, path: str | os.PathLike) -> "ChebyshevModel":
        """Load a model previously written by :meth:`save`.

        Warns
        -----
        UserWarning
            If the file was saved with a different PyChebFit version.

        .. warning::

            This method uses :mod:`pickle` internally. Pickle can execute
            arbitrary code during deserialization. **Only load files you
            trust.**
        """
        with open(os.fspath(path), "rb") as f:
            obj = pickle.load(f)  # noqa: S301
        if not isinstance(obj, cls):
            raise TypeError(
                f"Expected a {cls.__name__} instance, got {type(obj).__name__}"
            )
        return obj

    # ------------------------------------------------------------------
    # Printing
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        a, b = self._domain
        return (
            f"ChebyshevModel("
            f"order={self.order}, "
            f"domain=[{a}, {b}], "
            f"shape_constrained={self.shape_constrained})"
        )

    def __str__(self) -> str:
        a, b = self._domain
        kind = "shape-preserving" if self.shape_constrained else "least squares"
        lines = [
            f"ChebyshevModel (order {self.order}, {kind})",
            f"  Domain:      [{a}, {b}]",
        ]
        if self._nodes is not None:
            lines.append(f"  Nodes:       {self._nodes.size}")
            lines.append(
                f"  Fit:         {self.build_time:.3f}s, "
                f"{self.n_evaluations:,} evaluations"
            )
        lines.append(f"  Error est:   {self.error_estimate():.2e}")
        return "\n".join(lines)
