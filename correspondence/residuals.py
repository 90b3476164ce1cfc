# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Standardized residuals of a contingency table
"""

from dataclasses import dataclass

import numpy as np
import pandas as pd

from .exceptions import InputValidationError
from .utils import validate_matrix


@dataclass(frozen=True, eq=False)
class ResidualResult:
    """
    S    : standardized residual matrix (rows x cols)
    tot  : grand total of the input table
    rowm : row masses, sums to 1
    colm : column masses, sums to 1
    """

    S: pd.DataFrame
    tot: float
    rowm: pd.Series
    colm: pd.Series


def comp_std_residuals(mat: pd.DataFrame) -> ResidualResult:
    """
    Compute the standardized residual matrix S, the input of the SVD.

        P = mat / tot
        E = rowm ⊗ colm
        S = (P - E) / sqrt(E)

    Cells where E is 0 (a row or column with zero mass) are 0/0 and
    are set to 0.
    """
    mat = validate_matrix(mat)
    X = mat.to_numpy()

    tot = float(X.sum())
    if tot <= 0:
        raise InputValidationError(
            "Input matrix sums to 0, proportions are undefined."
        )

    P = X / tot  # proportions matrix
    rowm = P.sum(axis=1)  # row masses
    colm = P.sum(axis=0)  # column masses

    E = np.outer(rowm, colm)  # expected proportions
    with np.errstate(divide="ignore", invalid="ignore"):
        S = (P - E) / np.sqrt(E)
    S[np.isnan(S)] = 0.0

    return ResidualResult(
        S=pd.DataFrame(S, index=mat.index, columns=mat.columns),
        tot=tot,
        rowm=pd.Series(rowm, index=mat.index),
        colm=pd.Series(colm, index=mat.columns),
    )
