"""Stopping and override rules for adaptive testing sessions."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field

from catirt.config import StoppingRuleThresholds


@dataclass
class StoppingInputs:
    """Session quantities the stopping rules are evaluated on.

    Attributes
    ----------
    n_answered : int
        Number of answered items.
    standard_error : float
        Standard error of the current ability estimate. NaN when no
        configured rule needs it.
    item_information : Mapping[int, float]
        Fisher information at the current estimate of each unanswered item.
        Empty when no configured rule needs it.
    expected_pv : Mapping[int, float]
        Expected posterior variance of each unanswered item. Empty when no
        configured rule needs it.
    """

    n_answered: int
    standard_error: float = math.nan
    item_information: Mapping[int, float] = field(default_factory=dict)
    expected_pv: Mapping[int, float] = field(default_factory=dict)

    def gains(self) -> list[float]:
        """Expected change in standard error of each unanswered item."""
        return [
            abs(self.standard_error - math.sqrt(epv))
            for epv in self.expected_pv.values()
        ]


class StoppingRuleEvaluator:
    """Decide whether a session should stop.

    Each configured threshold gives one stopping condition and each
    configured override one continuation condition. The session stops when
    at least one stopping condition holds and no continuation condition
    does. With nothing configured the session never stops on its own.

    Stopping conditions:

    - ``length_threshold``: at least this many items answered
    - ``se_threshold``: standard error below this value
    - ``info_threshold``: information of every unanswered item below this
    - ``gain_threshold``: expected SE change of every unanswered item below this

    Continuation conditions:

    - ``length_override``: fewer than this many items answered
    - ``gain_override``: expected SE change of every unanswered item at
      least this value

    Parameters
    ----------
    thresholds : StoppingRuleThresholds
        Configured thresholds; unset values are NaN.
    """

    def __init__(self, thresholds: StoppingRuleThresholds) -> None:
        self.thresholds = thresholds

    def stopping_conditions(self, inputs: StoppingInputs) -> dict[str, bool]:
        """Value of every configured stopping condition."""
        t = self.thresholds
        conditions: dict[str, bool] = {}
        if t.is_set(t.length_threshold):
            conditions["length_threshold"] = inputs.n_answered >= t.length_threshold
        if t.is_set(t.se_threshold):
            conditions["se_threshold"] = inputs.standard_error < t.se_threshold
        if t.is_set(t.info_threshold):
            conditions["info_threshold"] = all(
                info < t.info_threshold for info in inputs.item_information.values()
            )
        if t.is_set(t.gain_threshold):
            conditions["gain_threshold"] = all(
                gain < t.gain_threshold for gain in inputs.gains()
            )
        return conditions

    def override_conditions(self, inputs: StoppingInputs) -> dict[str, bool]:
        """Value of every configured continuation condition."""
        t = self.thresholds
        conditions: dict[str, bool] = {}
        if t.is_set(t.length_override):
            conditions["length_override"] = inputs.n_answered < t.length_override
        if t.is_set(t.gain_override):
            conditions["gain_override"] = all(
                gain >= t.gain_override for gain in inputs.gains()
            )
        return conditions

    def should_stop(self, inputs: StoppingInputs) -> bool:
        """Check whether the session should stop.

        Parameters
        ----------
        inputs : StoppingInputs
            Current session quantities.

        Returns
        -------
        bool
            True if the session should stop, False otherwise.
        """
        stops = self.stopping_conditions(inputs)
        overrides = self.override_conditions(inputs)
        return any(stops.values()) and not any(overrides.values())

    def get_reason(self, inputs: StoppingInputs) -> str:
        """Stopping conditions that hold for ``inputs``."""
        reasons = [name for name, hit in self.stopping_conditions(inputs).items() if hit]
        if not reasons:
            return "No stopping condition met"
        return "Stopping conditions met: " + ", ".join(reasons)

    def __repr__(self) -> str:
        return f"StoppingRuleEvaluator(thresholds={self.thresholds})"
