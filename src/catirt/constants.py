"""Constants for numerical stability and default bounds.

These are true constants that should not be user-configurable.
For configurable values, use the session configuration.
"""

PROB_EPSILON: float = 1e-10
"""Small value to prevent log(0) in Kullback-Leibler divergences."""

INTEGRATION_BOUNDS: tuple[float, float] = (-6.0, 6.0)
"""Support over which every integral in theta is evaluated."""

INTEGRATION_REL_TOL: float = 1e-8
"""Relative tolerance of the adaptive quadrature."""

INTEGRATION_LIMIT: int = 200
"""Maximum number of subintervals of the adaptive quadrature."""

ROOT_SEARCH_BOUNDS: tuple[float, float] = (-5.0, 5.0)
"""Bracket used by the bounded root finder."""

ROOT_SEARCH_XTOL: float = 1e-10
"""Absolute tolerance of the bounded root finder."""

NEWTON_TOL: float = 1e-7
"""Convergence tolerance of Newton-Raphson ability estimation."""

NEWTON_MAX_ITER: int = 200
"""Iteration cap of Newton-Raphson ability estimation."""

NEWTON_START: float = 0.0
"""Starting value of Newton-Raphson ability estimation."""
