"""Adaptive quadrature over the latent trait."""

from scipy.integrate import quad

from catirt.constants import INTEGRATION_BOUNDS, INTEGRATION_LIMIT, INTEGRATION_REL_TOL
from catirt.typing import ThetaFunction


class Integrator:
    """Definite integrals of scalar functions of theta.

    Wraps adaptive Gauss-Kronrod quadrature (QUADPACK via
    :func:`scipy.integrate.quad`) with a fixed relative tolerance and no
    absolute tolerance, so that integrals of unnormalized likelihoods many
    orders of magnitude below one keep their relative accuracy. Integrands
    should be non-negative; an integrand whose integral is close to zero
    through cancellation cannot meet a purely relative tolerance.

    The integrator holds no mutable state and can be shared freely.

    Parameters
    ----------
    bounds : tuple[float, float], optional
        Default integration range. Default is ``INTEGRATION_BOUNDS``.
    rel_tol : float, optional
        Relative tolerance. Default is ``INTEGRATION_REL_TOL``.

    Examples
    --------
    >>> integrator = Integrator()
    >>> round(integrator.integrate(lambda x: 1.0, 0.0, 2.0), 6)
    2.0
    """

    __slots__ = ("_bounds", "_rel_tol")

    def __init__(
        self,
        bounds: tuple[float, float] = INTEGRATION_BOUNDS,
        rel_tol: float = INTEGRATION_REL_TOL,
    ) -> None:
        if not bounds[0] < bounds[1]:
            raise ValueError("Integration lower bound must be below the upper bound")
        if rel_tol <= 0:
            raise ValueError("rel_tol must be positive")
        self._bounds = (float(bounds[0]), float(bounds[1]))
        self._rel_tol = float(rel_tol)

    @property
    def bounds(self) -> tuple[float, float]:
        return self._bounds

    def clip(self, lower: float, upper: float) -> tuple[float, float]:
        """Intersect an interval with the integration bounds."""
        return max(lower, self._bounds[0]), min(upper, self._bounds[1])

    def integrate(
        self,
        function: ThetaFunction,
        lower: float | None = None,
        upper: float | None = None,
    ) -> float:
        """Integrate ``function`` from ``lower`` to ``upper``.

        Parameters
        ----------
        function : callable
            Scalar function of theta.
        lower, upper : float, optional
            Integration range, clipped to the integration bounds. Default is
            the full bounds.

        Returns
        -------
        float
            The definite integral; zero for an empty range.
        """
        lo, hi = self.clip(
            self._bounds[0] if lower is None else lower,
            self._bounds[1] if upper is None else upper,
        )
        if hi <= lo:
            return 0.0

        value, _ = quad(
            function,
            lo,
            hi,
            epsabs=0.0,
            epsrel=self._rel_tol,
            limit=INTEGRATION_LIMIT,
        )
        return float(value)

    def __repr__(self) -> str:
        return f"Integrator(bounds={self._bounds}, rel_tol={self._rel_tol})"
