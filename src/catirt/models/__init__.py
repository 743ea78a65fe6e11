"""IRT response models for the supported item families."""

import numpy as np
from numpy.typing import NDArray

from catirt.config import IRTModel
from catirt.models.base import ItemResponseModel
from catirt.models.dichotomous import BinaryLogistic
from catirt.models.polytomous import GeneralizedPartialCredit, GradedResponse


def create_item_model(
    model: IRTModel | str,
    discrimination: NDArray[np.float64],
    difficulty: list[NDArray[np.float64]],
    guessing: NDArray[np.float64] | None = None,
) -> ItemResponseModel:
    """Factory function to create the response model of an item bank.

    Parameters
    ----------
    model : IRTModel | str
        IRT family: "ltm", "tpm", "grm" or "gpcm".
    discrimination : ndarray of shape (n_items,)
        Item discrimination parameters.
    difficulty : list of ndarray
        Difficulty (binary) or thresholds (polytomous) of each item.
    guessing : ndarray of shape (n_items,), optional
        Guessing parameters, used by "tpm" only.

    Returns
    -------
    ItemResponseModel
        The response model.

    Raises
    ------
    ConfigurationError
        If the family is not recognized.
    """
    family = IRTModel.parse(model)

    if family is IRTModel.LTM:
        return BinaryLogistic(discrimination, difficulty)
    if family is IRTModel.TPM:
        if guessing is None:
            guessing = np.zeros(len(discrimination))
        return BinaryLogistic(discrimination, difficulty, guessing)
    if family is IRTModel.GRM:
        return GradedResponse(discrimination, difficulty)
    if family is IRTModel.GPCM:
        return GeneralizedPartialCredit(discrimination, difficulty)

    raise ValueError(f"Unknown model: {family}")


__all__ = [
    "ItemResponseModel",
    "BinaryLogistic",
    "GradedResponse",
    "GeneralizedPartialCredit",
    "create_item_model",
]
