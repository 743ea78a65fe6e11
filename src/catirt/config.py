"""Session configuration for adaptive testing.

A :class:`CatConfig` is the snapshot from which one respondent session is
built: the item bank, the respondent's answers so far, and the names of the
estimator, selector, prior and stopping rules to use. Every name is parsed
into a closed enumeration when the configuration is created, so an unknown
name fails before any respondent-facing operation runs.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Self

import numpy as np

from catirt.exceptions import ConfigurationError


_LABELS = {
    "IRTModel": "model",
    "EstimationType": "estimation type",
    "SelectionType": "selection type",
    "PriorName": "prior distribution",
}


class _ConfigEnum(str, Enum):
    """String enumeration parsed from configuration values."""

    @classmethod
    def parse(cls, value: str | Self) -> Self:
        if isinstance(value, cls):
            return value
        key = str(value).strip().replace("-", "_")
        for member in cls:
            if key.upper() == member.value.upper() or key.upper() == member.name:
                return member
        label = _LABELS.get(cls.__name__, cls.__name__)
        valid = ", ".join(member.value for member in cls)
        raise ConfigurationError(
            f"'{value}' is not a valid {label}. Valid options: {valid}"
        )


class IRTModel(_ConfigEnum):
    """Supported IRT families."""

    LTM = "ltm"
    TPM = "tpm"
    GRM = "grm"
    GPCM = "gpcm"

    @property
    def is_binary(self) -> bool:
        return self in (IRTModel.LTM, IRTModel.TPM)


class EstimationType(_ConfigEnum):
    """Ability estimators."""

    EAP = "EAP"
    MAP = "MAP"
    MLE = "MLE"
    WLE = "WLE"


class SelectionType(_ConfigEnum):
    """Item selection criteria."""

    EPV = "EPV"
    MFI = "MFI"
    MEI = "MEI"
    MPWI = "MPWI"
    MLWI = "MLWI"
    KL = "KL"
    LKL = "LKL"
    PKL = "PKL"
    MFII = "MFII"
    RANDOM = "RANDOM"


class PriorName(_ConfigEnum):
    """Prior densities over theta."""

    UNIFORM = "uniform"
    NORMAL = "normal"
    STUDENT_T = "student_t"


def _optional_threshold(value: Any) -> float:
    if value is None:
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Threshold must be numeric, got {value!r}") from exc


@dataclass(frozen=True)
class StoppingRuleThresholds:
    """Optional stopping and override thresholds.

    An unset threshold is NaN, never zero.

    Attributes
    ----------
    length_threshold : float
        Stop once at least this many items are answered.
    se_threshold : float
        Stop once the standard error falls below this value.
    info_threshold : float
        Stop once every unanswered item's Fisher information is below this.
    gain_threshold : float
        Stop once every unanswered item's expected change in SE is below this.
    length_override : float
        Keep testing while fewer than this many items are answered.
    gain_override : float
        Keep testing while every unanswered item's expected change in SE is
        at least this value.
    """

    length_threshold: float = math.nan
    se_threshold: float = math.nan
    info_threshold: float = math.nan
    gain_threshold: float = math.nan
    length_override: float = math.nan
    gain_override: float = math.nan

    def __post_init__(self) -> None:
        for f in fields(self):
            object.__setattr__(self, f.name, _optional_threshold(getattr(self, f.name)))

    @staticmethod
    def is_set(value: float) -> bool:
        return not math.isnan(value)

    @property
    def has_threshold(self) -> bool:
        """Whether any stopping threshold (not override) is configured."""
        return any(
            self.is_set(v)
            for v in (
                self.length_threshold,
                self.se_threshold,
                self.info_threshold,
                self.gain_threshold,
            )
        )

    @property
    def needs_information(self) -> bool:
        return self.is_set(self.info_threshold)

    @property
    def needs_gain(self) -> bool:
        return self.is_set(self.gain_threshold) or self.is_set(self.gain_override)


_CAMEL_CASE_KEYS = {
    "estimationDefault": "estimation_default",
    "priorName": "prior_name",
    "priorParams": "prior_params",
    "questionNames": "item_names",
    "lengthThreshold": "length_threshold",
    "seThreshold": "se_threshold",
    "infoThreshold": "info_threshold",
    "gainThreshold": "gain_threshold",
    "lengthOverride": "length_override",
    "gainOverride": "gain_override",
}

_STOPPING_KEYS = {f.name for f in fields(StoppingRuleThresholds)}


def _as_answer(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, (float, np.floating)) and not float(value).is_integer():
        raise ConfigurationError(f"Response codes must be integers, got {value!r}")
    return int(value)


def _as_difficulty(values: Sequence[Any]) -> tuple[float | tuple[float, ...], ...]:
    out: list[float | tuple[float, ...]] = []
    for value in values:
        arr = np.asarray(value, dtype=np.float64)
        if arr.ndim == 0:
            out.append(float(arr))
        else:
            out.append(tuple(float(v) for v in arr.ravel()))
    return tuple(out)


@dataclass(frozen=True)
class CatConfig:
    """Configuration snapshot of one adaptive testing session.

    Parameters
    ----------
    model : IRTModel | str
        IRT family: "ltm" (binary 2PL), "tpm" (binary 3PL), "grm" (graded
        response) or "gpcm" (generalized partial credit).
    discrimination : sequence of float
        Discrimination parameter of each item.
    difficulty : sequence
        Difficulty of each binary item, or the ordered thresholds of each
        polytomous item.
    guessing : sequence of float, optional
        Guessing parameter of each item ("tpm" only). Default is zeros.
    answers : sequence, optional
        Response code of each item, or None / NaN for unanswered items.
        Default is all unanswered.
    item_names : sequence of str, optional
        Names reported in selection tables. Default is "Q1", "Q2", ...
    estimation : EstimationType | str
        Ability estimator. Default is "EAP".
    estimation_default : EstimationType | str
        Estimator substituted for "MLE" / "WLE" when no item is answered or
        every answer is extreme. Must be "MAP" or "EAP". Default is "MAP".
    selection : SelectionType | str
        Item selection criterion. Default is "EPV".
    prior_name : PriorName | str
        Prior density. Default is "normal".
    prior_params : tuple of float
        The two prior parameters. Default is (0.0, 1.0).
    z : float
        Width constant of the MFII and KL integration windows. Default is 0.9.
    stopping : StoppingRuleThresholds
        Stopping and override thresholds. Default is none configured.
    seed : int, optional
        Seed of the random selector.
    """

    model: IRTModel
    discrimination: tuple[float, ...]
    difficulty: tuple[float | tuple[float, ...], ...]
    guessing: tuple[float, ...] | None = None
    answers: tuple[int | None, ...] | None = None
    item_names: tuple[str, ...] | None = None
    estimation: EstimationType = EstimationType.EAP
    estimation_default: EstimationType = EstimationType.MAP
    selection: SelectionType = SelectionType.EPV
    prior_name: PriorName = PriorName.NORMAL
    prior_params: tuple[float, float] = (0.0, 1.0)
    z: float = 0.9
    stopping: StoppingRuleThresholds = field(default_factory=StoppingRuleThresholds)
    seed: int | None = None

    def __post_init__(self) -> None:
        setattr_ = object.__setattr__
        setattr_(self, "model", IRTModel.parse(self.model))
        setattr_(self, "estimation", EstimationType.parse(self.estimation))
        setattr_(
            self, "estimation_default", EstimationType.parse(self.estimation_default)
        )
        setattr_(self, "selection", SelectionType.parse(self.selection))
        setattr_(self, "prior_name", PriorName.parse(self.prior_name))

        if self.estimation_default not in (EstimationType.MAP, EstimationType.EAP):
            raise ConfigurationError(
                f"estimation_default must be MAP or EAP, got {self.estimation_default.value}"
            )

        discrimination = tuple(
            float(a) for a in np.asarray(self.discrimination, dtype=np.float64).ravel()
        )
        setattr_(self, "discrimination", discrimination)
        setattr_(self, "difficulty", _as_difficulty(self.difficulty))
        n_items = len(discrimination)

        if n_items == 0:
            raise ConfigurationError("The item bank must contain at least one item")
        if len(self.difficulty) != n_items:
            raise ConfigurationError(
                f"difficulty has {len(self.difficulty)} items, expected {n_items}"
            )

        if self.guessing is not None:
            guessing = tuple(
                float(c) for c in np.asarray(self.guessing, dtype=np.float64).ravel()
            )
            if len(guessing) != n_items:
                raise ConfigurationError(
                    f"guessing has {len(guessing)} items, expected {n_items}"
                )
            setattr_(self, "guessing", guessing)

        if self.answers is not None:
            answers = tuple(_as_answer(v) for v in self.answers)
            if len(answers) != n_items:
                raise ConfigurationError(
                    f"answers has {len(answers)} items, expected {n_items}"
                )
            setattr_(self, "answers", answers)

        if self.item_names is not None:
            names = tuple(str(name) for name in self.item_names)
            if len(names) != n_items:
                raise ConfigurationError(
                    f"item_names has {len(names)} items, expected {n_items}"
                )
            setattr_(self, "item_names", names)

        params = tuple(float(p) for p in self.prior_params)
        if len(params) != 2:
            raise ConfigurationError(
                f"prior_params must have two values, got {len(params)}"
            )
        setattr_(self, "prior_params", params)
        setattr_(self, "z", float(self.z))

        if isinstance(self.stopping, Mapping):
            setattr_(self, "stopping", StoppingRuleThresholds(**self.stopping))

    @property
    def n_items(self) -> int:
        return len(self.discrimination)

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> CatConfig:
        """Build a configuration from a mapping.

        Accepts snake_case keys as well as the camelCase slot names of the
        original Cat object (``estimationDefault``, ``priorParams``,
        ``lengthThreshold``, ...). Stopping thresholds may be given at the top
        level or under a ``stopping`` key.
        """
        kwargs: dict[str, Any] = {}
        stopping: dict[str, Any] = dict(values.get("stopping") or {})
        config_keys = {f.name for f in fields(cls)}

        for key, value in values.items():
            if key == "stopping":
                continue
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name in _STOPPING_KEYS:
                stopping[name] = value
            elif name in config_keys:
                kwargs[name] = value
            else:
                raise ConfigurationError(f"Unknown configuration key: {key}")

        return cls(stopping=StoppingRuleThresholds(**stopping), **kwargs)
