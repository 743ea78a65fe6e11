"""Prior densities over the latent trait."""

from __future__ import annotations

from collections.abc import Sequence

from scipy import stats

from catirt.config import PriorName
from catirt.constants import INTEGRATION_BOUNDS
from catirt.exceptions import ConfigurationError, PreconditionError


class Prior:
    """Named prior density over theta.

    Parameters
    ----------
    name : PriorName | str
        One of "uniform", "normal" or "student_t".
    params : sequence of float
        Two parameters whose meaning depends on the distribution:

        - uniform: lower and upper bound of the support
        - normal: mean and standard deviation
        - student_t: location and degrees of freedom

    Notes
    -----
    The uniform prior is only meaningful for EAP estimation; evaluating its
    density outside ``[lower, upper]`` raises :class:`PreconditionError`.
    The derivatives of the log-density exist only for the normal prior.

    Examples
    --------
    >>> prior = Prior("normal", (0.0, 1.0))
    >>> round(prior.density(0.0), 4)
    0.3989
    """

    __slots__ = ("_name", "_params", "_dist")

    def __init__(self, name: PriorName | str, params: Sequence[float]) -> None:
        name = PriorName.parse(name)
        values = tuple(float(p) for p in params)
        if len(values) != 2:
            raise ConfigurationError(
                f"Prior needs two parameters, got {len(values)}"
            )
        first, second = values

        if name is PriorName.UNIFORM:
            if not first < second:
                raise ConfigurationError(
                    "Uniform prior lower bound must be below its upper bound"
                )
            dist = stats.uniform(loc=first, scale=second - first)
        elif name is PriorName.NORMAL:
            if second <= 0:
                raise ConfigurationError("Normal prior standard deviation must be positive")
            dist = stats.norm(loc=first, scale=second)
        elif name is PriorName.STUDENT_T:
            if second <= 0:
                raise ConfigurationError("Student t prior degrees of freedom must be positive")
            dist = stats.t(df=second, loc=first)
        else:
            raise ConfigurationError(f"Unsupported prior distribution: {name}")

        self._name = name
        self._params = values
        self._dist = dist

    @property
    def name(self) -> PriorName:
        return self._name

    @property
    def params(self) -> tuple[float, float]:
        return self._params

    @property
    def support(self) -> tuple[float, float]:
        """Part of the integration bounds where the density is defined."""
        lower, upper = INTEGRATION_BOUNDS
        if self._name is PriorName.UNIFORM:
            return max(lower, self._params[0]), min(upper, self._params[1])
        return lower, upper

    def density(self, x: float) -> float:
        """Evaluate the prior density at ``x``."""
        if self._name is PriorName.UNIFORM and not (
            self._params[0] <= x <= self._params[1]
        ):
            raise PreconditionError(
                f"Uniform prior is not defined at {x}; support is "
                f"[{self._params[0]}, {self._params[1]}]"
            )
        return float(self._dist.pdf(x))

    def __call__(self, x: float) -> float:
        return self.density(x)

    def _require_normal(self, operation: str) -> tuple[float, float]:
        if self._name is not PriorName.NORMAL:
            raise PreconditionError(
                f"{operation} is only available for the normal prior, "
                f"not {self._name.value}"
            )
        return self._params

    def log_density_d1(self, x: float) -> float:
        """First derivative of the log-density (normal prior only)."""
        mean, sd = self._require_normal("Prior log-density derivative")
        return -(x - mean) / sd**2

    def log_density_d2(self, x: float) -> float:
        """Second derivative of the log-density (normal prior only)."""
        _, sd = self._require_normal("Prior log-density derivative")
        return -1.0 / sd**2

    @property
    def mean(self) -> float:
        return float(self._dist.mean())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Prior):
            return NotImplemented
        return self._name is other._name and self._params == other._params

    def __hash__(self) -> int:
        return hash((self._name, self._params))

    def __repr__(self) -> str:
        return f"Prior(name='{self._name.value}', params={self._params})"


def prior_density(x: float, name: PriorName | str, params: Sequence[float]) -> float:
    """Density at ``x`` of the named prior with the given parameters."""
    return Prior(name, params).density(x)

