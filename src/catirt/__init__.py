from catirt._version import __version__
from catirt.cat import Cat, ItemSelection, LookAheadResult, create_selector
from catirt.config import (
    CatConfig,
    EstimationType,
    IRTModel,
    PriorName,
    SelectionType,
    StoppingRuleThresholds,
)
from catirt.estimation import Integrator, bounded_root
from catirt.exceptions import (
    CatError,
    ConfigurationError,
    PreconditionError,
    ProbabilityDomainError,
)
from catirt.models import create_item_model
from catirt.prior import Prior, prior_density
from catirt.question_set import QuestionSet
from catirt.scoring import create_estimator

__all__ = [
    "__version__",
    "Cat",
    "CatConfig",
    "ItemSelection",
    "LookAheadResult",
    "IRTModel",
    "EstimationType",
    "SelectionType",
    "PriorName",
    "StoppingRuleThresholds",
    "QuestionSet",
    "Prior",
    "prior_density",
    "Integrator",
    "bounded_root",
    "create_item_model",
    "create_estimator",
    "create_selector",
    "CatError",
    "ConfigurationError",
    "PreconditionError",
    "ProbabilityDomainError",
]
