"""Quick start example: a steep sigmoid fitted with and without a monotonicity constraint."""

import math

from pychebfit import ShapeSpec, fit, fit_shape_preserving


def f(x, _):
    """A steep but increasing function: tanh(10 (x - 1))."""
    return math.tanh(10.0 * (x - 1.0))


domain = (0.0, 2.0)

# Plain least squares
free = fit(f, domain, 8, 30)

# Same fit, forced to be increasing at 25 interior points
mono = fit_shape_preserving(f, domain, 8, 30, ShapeSpec.increasing(25))

print()
print(free)
print()
print(mono)

# The unconstrained fit wiggles on the flat tails
print(f"\n{'x':>6} {'exact':>10} {'free':>10} {'monotone':>10}")
for x in [0.1, 0.3, 0.5, 1.0, 1.5, 1.7, 1.9]:
    print(f"{x:6.2f} {f(x, None):10.5f} {free(x):10.5f} {mono(x):10.5f}")

xs = [0.05 * k for k in range(1, 40)]
print(f"\nmin f' free:     {min(free.derivative()(x) for x in xs):+.4f}")
print(f"min f' monotone: {min(mono.derivative()(x) for x in xs):+.4f}")
