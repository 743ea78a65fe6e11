"""Computerized Adaptive Testing (CAT) session engine.

This module provides:
- Item selection criteria (EPV, MFI, MEI, MPWI, MLWI, KL, LKL, PKL, MFII, RANDOM)
- Stopping and override rules
- The :class:`Cat` engine driving one respondent's session

Examples
--------
Scoring a partial answer profile:

>>> from catirt import Cat, CatConfig
>>> config = CatConfig(
...     model="ltm",
...     discrimination=[1.2, 0.8, 1.5, 2.0],
...     difficulty=[-1.0, 0.0, 0.5, 1.0],
...     answers=[1, None, 0, None],
...     selection="MFI",
... )
>>> cat = Cat(config)
>>> cat.estimate_theta()
>>> cat.select_item().next_item

Simulating complete sessions from full response rows:

>>> cat = Cat(CatConfig.from_dict({..., "lengthThreshold": 10}))
>>> thetas = cat.simulate_all(responses)
"""

from catirt.cat.engine import Cat
from catirt.cat.results import ItemSelection, LookAheadResult, Selection
from catirt.cat.selection import (
    EPVSelector,
    KLSelector,
    LKLSelector,
    MEISelector,
    MFIISelector,
    MFISelector,
    MLWISelector,
    MPWISelector,
    PKLSelector,
    RandomSelector,
    Selector,
    create_selector,
)
from catirt.cat.stopping import StoppingInputs, StoppingRuleEvaluator

__all__ = [
    "Cat",
    "Selection",
    "ItemSelection",
    "LookAheadResult",
    "Selector",
    "EPVSelector",
    "MFISelector",
    "MEISelector",
    "MPWISelector",
    "MLWISelector",
    "KLSelector",
    "LKLSelector",
    "PKLSelector",
    "MFIISelector",
    "RandomSelector",
    "create_selector",
    "StoppingInputs",
    "StoppingRuleEvaluator",
]
