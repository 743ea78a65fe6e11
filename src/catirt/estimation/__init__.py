"""Numerical machinery shared by the ability estimators."""

from catirt.estimation.quadrature import Integrator
from catirt.estimation.roots import bounded_root

__all__ = ["Integrator", "bounded_root"]
