"""Exceptions raised by catirt."""


class CatError(Exception):
    """Base class for all catirt errors."""


class PreconditionError(CatError, RuntimeError):
    """An operation was called outside of its documented domain.

    These are fatal and never retried internally: selecting an item when all
    items are answered, asking for observed information before any answer,
    looking ahead on an answered item, a response table of the wrong shape,
    a simulation without any stopping rule, or a prior operation that the
    configured prior does not support.
    """


class ProbabilityDomainError(CatError, ArithmeticError):
    """A response probability is undefined at the requested theta.

    Raised when the probability of an observed response saturates to zero
    (or becomes non-finite) so its log-likelihood derivatives do not exist.
    Estimators recover from it by falling back to the bounded root finder.
    """


class ConfigurationError(CatError, ValueError):
    """The session configuration is invalid."""
