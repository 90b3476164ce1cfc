# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging
import warnings
from typing import List

import numpy as np
import pandas as pd

from .exceptions import CAWarning, InputValidationError

EPS: float = 1e-12
DIM_PREFIX: str = "Dim"

logger = logging.getLogger(__name__)


def advise(message: str, stacklevel: int = 3) -> None:
    """Log and emit a non-fatal CAWarning."""
    logger.warning(message)
    warnings.warn(message, CAWarning, stacklevel=stacklevel)


def dim_names(k: int, prefix: str = DIM_PREFIX) -> List[str]:
    """Return ["Dim1", ..., "Dimk"]."""
    return [f"{prefix}{j}" for j in range(1, k + 1)]


def _has_labels(index: pd.Index) -> bool:
    # pandas hands out a RangeIndex when no labels were supplied
    return not isinstance(index, pd.RangeIndex)


def validate_matrix(mat) -> pd.DataFrame:
    """
    Check that `mat` is a labeled, finite, non-negative 2-D table.

    Parameters
    ----------
    mat : pandas.DataFrame
        Count or proportion table with row labels (index) and
        column labels (columns).

    Returns
    -------
    DataFrame with float64 values. The input is not modified.
    """
    if isinstance(mat, np.ndarray):
        raise InputValidationError(
            "Input matrix does not have any rownames! Pass a labeled pandas.DataFrame."
        )
    if not isinstance(mat, pd.DataFrame):
        raise InputValidationError(
            f"Expected a pandas.DataFrame, got {type(mat).__name__}"
        )
    if not _has_labels(mat.index):
        raise InputValidationError("Input matrix does not have any rownames!")
    if not _has_labels(mat.columns):
        raise InputValidationError("Input matrix does not have any colnames!")
    if not mat.index.is_unique:
        raise InputValidationError("Input matrix has duplicated rownames.")
    if not mat.columns.is_unique:
        raise InputValidationError("Input matrix has duplicated colnames.")

    try:
        values = mat.to_numpy(dtype=float)
    except (TypeError, ValueError) as err:
        raise InputValidationError("Input matrix must be numeric.") from err

    if values.size == 0:
        raise InputValidationError("Input matrix is empty.")
    if not np.all(np.isfinite(values)):
        raise InputValidationError("Input matrix contains NaN or infinite values.")
    if np.any(values < 0):
        raise InputValidationError("Input matrix contains negative values.")

    return pd.DataFrame(values, index=mat.index, columns=mat.columns)


def percent_inertia(D) -> np.ndarray:
    """
    Percent of the inertia carried by each singular value, 100 * D**2 / sum(D**2).

    A table without any inertia (all D below EPS) gives zeros.
    """
    ev = np.asarray(D, dtype=float) ** 2
    total = ev.sum()
    if total <= EPS:
        return np.zeros_like(ev)
    return ev / total * 100


def nonfinite_to_zero(A: np.ndarray) -> np.ndarray:
    """Replace NaN and +/-Inf entries by 0 (in a copy)."""
    A = np.array(A, dtype=float, copy=True)
    A[~np.isfinite(A)] = 0.0
    return A


def random_count_matrix(
    n_rows: int, n_cols: int, lam: float = 5.0, seed=None
) -> pd.DataFrame:
    """
    Build a labeled Poisson count table with rows "r1..rn"
    and columns "c1..cm".

    Returns
    -------
    DataFrame with float64 dtype
    """
    rng = np.random.default_rng(seed)
    counts = rng.poisson(lam, size=(n_rows, n_cols)).astype(float)
    return pd.DataFrame(
        counts,
        index=[f"r{i}" for i in range(1, n_rows + 1)],
        columns=[f"c{j}" for j in range(1, n_cols + 1)],
    )
