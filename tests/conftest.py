"""Shared test fixtures for PyChebFit tests."""

import math

import pytest

from pychebfit import ShapeSpec, fit, fit_shape_preserving


# ---------------------------------------------------------------------------
# Test functions
# ---------------------------------------------------------------------------

def exp_fn(x, _):
    """exp(x)"""
    return math.exp(x)


def log_fn(x, _):
    """log(x)"""
    return math.log(x)


def cubic_fn(x, _):
    """x^3 - 2x"""
    return x ** 3 - 2.0 * x


def steep_tanh(x, _):
    """tanh(10 (x - 1)): flat ends, steep middle; low-order fits wiggle."""
    return math.tanh(10.0 * (x - 1.0))


TANH_DOMAIN = (0.0, 2.0)
TANH_ORDER = 8
TANH_NODES = 30


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="module")
def exp_model():
    """exp(x) on [0, 2], order 12, 20 nodes."""
    return fit(exp_fn, (0.0, 2.0), 12, 20, verbose=False)


@pytest.fixture(scope="module")
def cubic_model():
    """x^3 - 2x on [-1, 3], order 3, 10 nodes (exact)."""
    return fit(cubic_fn, (-1.0, 3.0), 3, 10, verbose=False)


@pytest.fixture(scope="module")
def tanh_unconstrained():
    """Least-squares fit of the steep tanh."""
    return fit(steep_tanh, TANH_DOMAIN, TANH_ORDER, TANH_NODES, verbose=False)


@pytest.fixture(scope="module")
def tanh_increasing():
    """Shape-preserving fit of the steep tanh, increasing at 25 points."""
    return fit_shape_preserving(
        steep_tanh, TANH_DOMAIN, TANH_ORDER, TANH_NODES,
        ShapeSpec.increasing(25), verbose=False,
    )
