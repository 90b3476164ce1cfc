# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
The correspondence-analysis result record ("caobj").

A CAResult is never modified in place. Inertia, coordinates and
dimension truncation each produce a new, internally consistent record.
"""

from dataclasses import dataclass, replace
from typing import Optional

import numpy as np
import pandas as pd

from .exceptions import InputValidationError
from .utils import advise, percent_inertia

COORD_FIELDS = (
    "std_coords_rows",
    "std_coords_cols",
    "prin_coords_rows",
    "prin_coords_cols",
)


@dataclass(frozen=True, eq=False)
class CAResult:
    """
    U, V, D          : SVD of the standardized residuals, columns Dim1..Dimk
    row_masses       : aligned with the rows of U
    col_masses       : aligned with the rows of V
    top_rows         : number of rows used after variance filtering
    dims             : number of retained dimensions (== len(D))
    tot_inertia      : sum(D**2) of the full decomposition
    row_inertia      : row-wise sum(S**2)
    col_inertia      : column-wise sum(S**2)
    std_coords_*     : standard coordinates
    prin_coords_*    : principal coordinates
    """

    U: pd.DataFrame
    V: pd.DataFrame
    D: pd.Series
    row_masses: pd.Series
    col_masses: pd.Series
    top_rows: int
    dims: int
    tot_inertia: Optional[float] = None
    row_inertia: Optional[pd.Series] = None
    col_inertia: Optional[pd.Series] = None
    std_coords_rows: Optional[pd.DataFrame] = None
    std_coords_cols: Optional[pd.DataFrame] = None
    prin_coords_rows: Optional[pd.DataFrame] = None
    prin_coords_cols: Optional[pd.DataFrame] = None

    def __post_init__(self):
        k = len(self.D)
        if self.U.shape[1] != k or self.V.shape[1] != k:
            raise InputValidationError(
                f"U ({self.U.shape[1]}), V ({self.V.shape[1]}) and D ({k}) "
                "must have the same number of dimensions"
            )
        if self.dims != k:
            raise InputValidationError(f"dims={self.dims} but D has {k} entries")
        if len(self.row_masses) != self.U.shape[0]:
            raise InputValidationError("row_masses do not align with the rows of U")
        if len(self.col_masses) != self.V.shape[0]:
            raise InputValidationError("col_masses do not align with the rows of V")
        for name in COORD_FIELDS:
            coords = getattr(self, name)
            if coords is not None and coords.shape[1] != k:
                raise InputValidationError(
                    f"{name} has {coords.shape[1]} dimensions, expected {k}"
                )

    @property
    def k(self) -> int:
        return len(self.D)

    @property
    def rownames(self) -> pd.Index:
        return self.U.index

    @property
    def colnames(self) -> pd.Index:
        return self.V.index

    @property
    def explained_inertia(self) -> pd.Series:
        """Percent of inertia explained by each retained dimension."""
        return pd.Series(percent_inertia(self.D.to_numpy()), index=self.D.index)

    def with_inertia(self, S: pd.DataFrame) -> "CAResult":
        """Attach total, row and column inertia computed from residuals S."""
        S2 = S.to_numpy() ** 2
        return replace(
            self,
            tot_inertia=float(np.sum(self.D.to_numpy() ** 2)),
            row_inertia=pd.Series(S2.sum(axis=1), index=S.index),
            col_inertia=pd.Series(S2.sum(axis=0), index=S.columns),
        )

    def with_coords(self, **coords) -> "CAResult":
        """Return a copy with the given coordinate fields replaced."""
        unknown = set(coords) - set(COORD_FIELDS)
        if unknown:
            raise InputValidationError(
                f"Unknown coordinate fields: {', '.join(sorted(unknown))}"
            )
        return replace(self, **coords)

    def truncated(self, dims: int) -> "CAResult":
        """
        Keep only the first `dims` dimensions of U, V, D and of every
        coordinate table already present. Masses and inertia are kept.

        dims == k is a no-op, dims > k warns and is a no-op.
        """
        if isinstance(dims, bool) or not isinstance(dims, (int, np.integer)):
            raise InputValidationError(f"dims must be an integer, got {dims!r}")
        if dims < 1:
            raise InputValidationError(f"dims must be >= 1, got {dims}")

        k = self.k
        if dims > k:
            advise(
                "dims is larger than the number of available dimensions. Argument ignored"
            )
            return self
        if dims == k:
            return self

        dims = int(dims)
        sliced = {
            name: getattr(self, name).iloc[:, :dims]
            for name in COORD_FIELDS
            if getattr(self, name) is not None
        }
        return replace(
            self,
            U=self.U.iloc[:, :dims],
            V=self.V.iloc[:, :dims],
            D=self.D.iloc[:dims],
            dims=dims,
            **sliced,
        )
