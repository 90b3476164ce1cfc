# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging

import numpy as np
import pandas as pd

from .exceptions import InputValidationError
from .residuals import comp_std_residuals
from .utils import advise

logger = logging.getLogger(__name__)


def var_rows(mat: pd.DataFrame, top: int = 5000) -> pd.DataFrame:
    """
    Keep the `top` rows with the largest variance of their
    chi-square contributions.

        chi = tot * S**2
        var_i = sample variance of chi[i, :]   (ddof = 1)

    Returned rows follow the variance ranking (largest first), not the
    input order. Column structure and labels are unchanged.
    """
    if isinstance(top, bool) or not isinstance(top, (int, np.integer)) or top < 1:
        raise InputValidationError(f"top must be a positive integer, got {top!r}")

    res = comp_std_residuals(mat)
    n = res.S.shape[0]

    if top > n:
        advise(
            "Top is larger than the number of rows in matrix. Top was set to nrow(mat)."
        )
    top = min(n, int(top))

    chisquare = res.tot * res.S.to_numpy() ** 2  # chi-square components matrix
    variances = chisquare.var(axis=1, ddof=1)

    # stable sort keeps input order among ties
    ix_var = np.argsort(-variances, kind="stable")[:top]
    logger.debug("var_rows: keeping %d of %d rows", top, n)

    return mat.iloc[ix_var]
