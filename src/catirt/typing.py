"""Type definitions for the catirt package."""

from collections.abc import Callable

import numpy as np
from numpy.typing import NDArray

# Array types
ProbabilityArray = NDArray[np.float64]  # Shape: (n_categories,) or (n_categories + 1,)
ResponseTable = NDArray[np.float64]  # Shape: (n_respondents, n_items), NaN = unanswered
ParameterArray = NDArray[np.float64]  # Shape varies by parameter type

# Scalar functions of theta handed to the integrator and root finder
ThetaFunction = Callable[[float], float]

# One answer: a response code or None when unanswered
Answer = int | None
