"""Exception hierarchy for PyChebFit.

Every error raised by the fitting pipeline derives from
:class:`ChebFitError`.  Input-validation errors also derive from
:class:`ValueError` and solver/target failures from :class:`RuntimeError`,
so callers catching the builtin types keep working.
"""

from __future__ import annotations


class ChebFitError(Exception):
    """Base class for all PyChebFit errors."""


class InvalidDomain(ChebFitError, ValueError):
    """The interval is malformed (``a >= b``, non-finite) or ``n_nodes < 1``."""


class UnderdeterminedFit(ChebFitError, ValueError):
    """The requested order is not strictly less than the number of nodes."""


class ShapeSpecMismatch(ChebFitError, ValueError):
    """The shape specification is malformed or asks for a derivative order
    higher than the approximation order."""


class ShapeFitNonConvergence(ChebFitError, RuntimeError):
    """The constrained solver did not reach a feasible optimum.

    Attributes
    ----------
    last_iterate : ndarray
        Coefficient vector returned by the solver on its last iteration.
    violation : float
        Largest constraint violation at ``last_iterate`` (0 if feasible).
    message : str
        Solver status message.
    n_iterations : int
        Iterations performed (-1 if the backend does not report it).
    """

    def __init__(self, message, last_iterate, violation, n_iterations=-1):
        self.message = message
        self.last_iterate = last_iterate
        self.violation = float(violation)
        self.n_iterations = n_iterations
        super().__init__(
            f"Shape-preserving fit did not converge: {message} "
            f"(max constraint violation {self.violation:.3e}, "
            f"iterations {n_iterations})"
        )


class TargetEvaluationFailure(ChebFitError, RuntimeError):
    """The target function raised or returned a non-finite value at a node.

    Attributes
    ----------
    x : float
        The node at which evaluation failed.
    """

    def __init__(self, x, reason):
        self.x = float(x)
        super().__init__(f"Target function failed at x={self.x!r}: {reason}")
