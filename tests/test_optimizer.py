"""Tests for the constrained least-squares solver and backend registry."""

import numpy as np
import pytest
from scipy.optimize import OptimizeResult

from pychebfit import (
    ShapeFitNonConvergence,
    ShapeSpec,
    SolverConfig,
    available_solvers,
    fit_shape_preserving,
    generate_nodes,
)
from pychebfit import optimizer
from pychebfit._nodes import to_reference
from pychebfit.fitting import least_squares_coefficients
from pychebfit.optimizer import max_violation, register_solver, solve
from pychebfit.shape import build_constraints, constraint_points
from conftest import TANH_DOMAIN, TANH_NODES, TANH_ORDER, steep_tanh


@pytest.fixture(scope="module")
def tanh_problem():
    """Reference nodes, samples, seed and increasing constraints for the steep tanh."""
    x = generate_nodes(TANH_DOMAIN, TANH_NODES)
    z = to_reference(x, TANH_DOMAIN)
    y = np.tanh(10.0 * (x - 1.0))
    seed = least_squares_coefficients(z, y, TANH_ORDER)
    cons = build_constraints(TANH_DOMAIN, TANH_ORDER + 1, ShapeSpec.increasing(25))
    return z, y, seed, cons


class TestRegistry:
    def test_builtin_backends(self):
        assert {"SLSQP", "trust-constr", "COBYLA"} <= set(available_solvers())

    def test_unknown_method(self, tanh_problem):
        z, y, seed, cons = tanh_problem
        with pytest.raises(ValueError, match="Unknown solver"):
            solve(z, y, TANH_ORDER, cons, seed, SolverConfig(method="no-such-solver"))

    def test_register_rejects_non_callable(self):
        with pytest.raises(TypeError):
            register_solver("bad", 42)

    def test_register_custom(self, tanh_problem, monkeypatch):
        calls = []

        def backend(objective, gradient, constraints, x0, config):
            calls.append(len(constraints))
            return OptimizeResult(x=np.zeros_like(x0), fun=objective(np.zeros_like(x0)),
                                  success=True, message="ok", nit=1)

        monkeypatch.setitem(optimizer._SOLVERS, "zero", backend)
        z, y, seed, cons = tanh_problem
        result = solve(z, y, TANH_ORDER, cons, seed, SolverConfig(method="zero"))
        assert calls == [25]
        np.testing.assert_array_equal(result.x, np.zeros(TANH_ORDER + 1))


@pytest.mark.parametrize("method", ["SLSQP", "trust-constr", "COBYLA"])
class TestBuiltinBackends:
    def test_feasible_and_no_better_than_unconstrained(self, tanh_problem, method):
        z, y, seed, cons = tanh_problem
        config = SolverConfig(method=method)
        result = solve(z, y, TANH_ORDER, cons, seed, config)
        assert np.all(np.isfinite(result.x))
        assert max_violation(cons, result.x) <= config.constraint_tol
        B = np.polynomial.chebyshev.chebvander(z, TANH_ORDER)
        sse_free = np.sum((y - B @ seed) ** 2)
        sse_con = np.sum((y - B @ result.x) ** 2)
        assert sse_con >= sse_free - 1e-12

    def test_through_fit_shape_preserving(self, method):
        model = fit_shape_preserving(
            steep_tanh, TANH_DOMAIN, TANH_ORDER, TANH_NODES, ShapeSpec.increasing(25),
            solver_config=SolverConfig(method=method), verbose=False,
        )
        d = model.derivative().evaluate(constraint_points(TANH_DOMAIN, 25))
        assert np.all(d >= -1e-8)
        assert model.shape_constrained


class TestSolve:
    def test_no_constraints_returns_seed(self, tanh_problem):
        z, y, seed, _ = tanh_problem
        result = solve(z, y, TANH_ORDER, [], seed)
        np.testing.assert_array_equal(result.x, seed)
        assert result.nit == 0
        assert result.success

    def test_seed_is_infeasible(self, tanh_problem):
        """The unconstrained fit wiggles, so the problem is non-trivial."""
        _, _, seed, cons = tanh_problem
        assert max_violation(cons, seed) > 0.0

    def test_slsqp_feasible_and_no_better_than_unconstrained(self, tanh_problem):
        z, y, seed, cons = tanh_problem
        result = solve(z, y, TANH_ORDER, cons, seed, SolverConfig(method="SLSQP"))
        assert result.success
        assert max_violation(cons, result.x) <= 1e-8
        B = np.polynomial.chebyshev.chebvander(z, TANH_ORDER)
        sse_free = np.sum((y - B @ seed) ** 2)
        sse_con = np.sum((y - B @ result.x) ** 2)
        assert sse_con >= sse_free - 1e-12
        assert abs(result.fun - sse_con) < 1e-10

    def test_misaligned_samples(self, tanh_problem):
        z, y, seed, cons = tanh_problem
        with pytest.raises(ValueError):
            solve(z, y[:-1], TANH_ORDER, cons, seed)

    def test_bad_seed_shape(self, tanh_problem):
        z, y, seed, cons = tanh_problem
        with pytest.raises(ValueError):
            solve(z, y, TANH_ORDER, cons, seed[:-1])


class TestNonConvergence:
    def test_backend_failure(self, tanh_problem, monkeypatch):
        def failing(objective, gradient, constraints, x0, config):
            return OptimizeResult(x=x0 + 0.5, success=False, status=9,
                                  message="Iteration limit reached", nit=3)

        monkeypatch.setitem(optimizer._SOLVERS, "failing", failing)
        z, y, seed, cons = tanh_problem
        with pytest.raises(ShapeFitNonConvergence) as exc_info:
            solve(z, y, TANH_ORDER, cons, seed, SolverConfig(method="failing"))
        err = exc_info.value
        np.testing.assert_array_equal(err.last_iterate, seed + 0.5)
        assert err.n_iterations == 3
        assert err.message == "Iteration limit reached"
        assert err.violation == max_violation(cons, seed + 0.5)
        assert isinstance(err, RuntimeError)

    def test_infeasible_success_rejected(self, tanh_problem, monkeypatch):
        """A backend claiming success at an infeasible point is not trusted."""
        def liar(objective, gradient, constraints, x0, config):
            return OptimizeResult(x=x0, success=True, message="Optimization terminated", nit=1)

        monkeypatch.setitem(optimizer._SOLVERS, "liar", liar)
        z, y, seed, cons = tanh_problem
        with pytest.raises(ShapeFitNonConvergence) as exc_info:
            solve(z, y, TANH_ORDER, cons, seed, SolverConfig(method="liar"))
        assert exc_info.value.violation > 1e-8

    def test_non_finite_success_rejected(self, tanh_problem, monkeypatch):
        def broken(objective, gradient, constraints, x0, config):
            return OptimizeResult(x=np.full_like(x0, np.nan), success=True,
                                  message="Optimization terminated successfully", nit=2)

        monkeypatch.setitem(optimizer._SOLVERS, "broken", broken)
        z, y, seed, cons = tanh_problem
        with pytest.raises(ShapeFitNonConvergence, match="non-finite") as exc_info:
            solve(z, y, TANH_ORDER, cons, seed, SolverConfig(method="broken"))
        assert np.isnan(exc_info.value.last_iterate).all()
        assert exc_info.value.violation == np.inf

    def test_max_violation_nan_is_infinite(self, tanh_problem):
        _, _, seed, cons = tanh_problem
        bad = seed.copy()
        bad[3] = np.nan
        assert max_violation(cons, bad) == np.inf

    def test_iteration_budget(self, tanh_problem):
        z, y, seed, cons = tanh_problem
        with pytest.raises(ShapeFitNonConvergence):
            solve(z, y, TANH_ORDER, cons, seed, SolverConfig(method="SLSQP", maxiter=1))
