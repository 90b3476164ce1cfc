# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Standard and principal coordinates of rows and columns in CA space
"""

import logging
from typing import Optional

import numpy as np
import pandas as pd

from .exceptions import InputValidationError
from .result import CAResult
from .utils import advise, nonfinite_to_zero

logger = logging.getLogger(__name__)

PRINC_COORDS_CHOICES = (0, 1, 2, 3)


def subset_dims(caobj: CAResult, dims: int) -> CAResult:
    """Return `caobj` reduced to its first `dims` dimensions."""
    if not isinstance(caobj, CAResult):
        raise InputValidationError(
            f"Expected a CAResult, got {type(caobj).__name__}"
        )
    return caobj.truncated(dims)


def _std_coords(vectors: pd.DataFrame, masses: pd.Series) -> pd.DataFrame:
    # divide row i of the singular vectors by sqrt(mass_i)
    with np.errstate(divide="ignore", invalid="ignore"):
        coords = vectors.to_numpy() / np.sqrt(masses.to_numpy())[:, None]
    return pd.DataFrame(
        nonfinite_to_zero(coords), index=vectors.index, columns=vectors.columns
    )


def _prin_coords(std: pd.DataFrame, D: pd.Series) -> pd.DataFrame:
    return pd.DataFrame(
        std.to_numpy() * D.to_numpy()[None, :],
        index=std.index,
        columns=std.columns,
    )


def ca_coords(
    caobj: CAResult,
    dims: Optional[int] = None,
    princ_coords: int = 3,
    princ_only: bool = False,
) -> CAResult:
    """
    Calculate standard and principal coordinates.

    Parameters
    ----------
    caobj : CAResult
        Output of `cacomp`.
    dims : int or None
        Reduce the result (and every coordinate table) to this many
        dimensions first. None keeps all dimensions; a value that is
        not a positive integer is reported with a CAWarning and ignored.
    princ_coords : int
        Principal coordinates for rows (1), columns (2), both (3)
        or none (0).
    princ_only : bool
        Only derive principal coordinates from standard coordinates
        already stored in `caobj`.

    Returns
    -------
    A new CAResult with the coordinate fields filled in.

        std_coords_rows  = U / sqrt(row_masses)
        std_coords_cols  = V / sqrt(col_masses)
        prin_coords_*    = std_coords_* * D
    """
    if not isinstance(caobj, CAResult):
        raise InputValidationError(
            f"Expected a CAResult, got {type(caobj).__name__}"
        )
    if isinstance(princ_coords, bool) or princ_coords not in PRINC_COORDS_CHOICES:
        raise InputValidationError("princ_coords must be either 0, 1, 2 or 3")

    if dims is not None:
        if isinstance(dims, bool) or not isinstance(dims, (int, np.integer)) or dims < 1:
            advise("Unusual input for dims, argument ignored.")
        else:
            caobj = subset_dims(caobj, dims)

    if not princ_only:
        caobj = caobj.with_coords(
            std_coords_rows=_std_coords(caobj.U, caobj.row_masses),
            std_coords_cols=_std_coords(caobj.V, caobj.col_masses),
        )

    if princ_coords == 0:
        return caobj

    if caobj.std_coords_rows is None or caobj.std_coords_cols is None:
        raise InputValidationError(
            "Standard coordinates are missing. Run ca_coords with princ_only=False first."
        )

    logger.debug("ca_coords: principal coordinates (mode %d)", princ_coords)
    prin = {}
    if princ_coords in (1, 3):
        prin["prin_coords_rows"] = _prin_coords(caobj.std_coords_rows, caobj.D)
    if princ_coords in (2, 3):
        prin["prin_coords_cols"] = _prin_coords(caobj.std_coords_cols, caobj.D)
    return caobj.with_coords(**prin)
