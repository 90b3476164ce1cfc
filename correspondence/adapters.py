# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Boundary with external data containers.

Containers (single-cell experiment objects and the like) only need to
hand over a labeled dense matrix, and may store the exported reduction.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional, Protocol, runtime_checkable

import numpy as np
import pandas as pd

from .coords import ca_coords
from .exceptions import InputValidationError
from .residuals import comp_std_residuals
from .result import CAResult
from .utils import dim_names, nonfinite_to_zero, percent_inertia

logger = logging.getLogger(__name__)

REDUCTION_KEY = "DIM_"


@runtime_checkable
class AssayContainer(Protocol):
    """Anything that can produce a labeled matrix for an assay name."""

    def get_assay(self, assay: str):
        ...


def as_matrix(obj, assay: Optional[str] = None) -> pd.DataFrame:
    """
    Return the labeled count matrix held by `obj`.

    DataFrames are returned as they are; containers are asked for
    `assay`. Label and value checks are left to the caller.
    """
    if isinstance(obj, pd.DataFrame):
        return obj
    if isinstance(obj, AssayContainer):
        if assay is None:
            raise InputValidationError(
                f"An assay name is required to read from {type(obj).__name__}"
            )
        mat = obj.get_assay(assay)
        if isinstance(mat, pd.DataFrame):
            return mat
        raise InputValidationError(
            f"{type(obj).__name__}.get_assay({assay!r}) did not return a labeled DataFrame"
        )
    raise InputValidationError(
        f"Don't know how to handle objects of class {type(obj).__name__}. "
        "Pass a labeled pandas.DataFrame or an AssayContainer."
    )


@dataclass(frozen=True, eq=False)
class CAReduction:
    """
    Export of a CAResult in the form containers store reductions:

    embeddings   : standard coordinates of the columns (e.g. cells)
    loadings     : principal coordinates of the rows (e.g. genes)
    stdev        : singular values
    perc_inertia : percent explained inertia per dimension
    """

    embeddings: pd.DataFrame
    loadings: pd.DataFrame
    stdev: pd.Series
    perc_inertia: pd.Series
    key: str = REDUCTION_KEY


def to_reduction(caobj: CAResult, key: str = REDUCTION_KEY) -> CAReduction:
    if caobj.std_coords_cols is None or caobj.prin_coords_rows is None:
        raise InputValidationError(
            "Exporting needs std_coords_cols and prin_coords_rows. "
            "Run cacomp with coords=True and princ_coords 1 or 3."
        )
    names = dim_names(caobj.k, prefix=key)
    D = caobj.D.to_numpy()
    return CAReduction(
        embeddings=caobj.std_coords_cols.set_axis(names, axis=1),
        loadings=caobj.prin_coords_rows.set_axis(names, axis=1),
        stdev=pd.Series(D, index=names),
        perc_inertia=pd.Series(percent_inertia(D), index=names),
        key=key,
    )


def from_reduction(
    reduction: CAReduction,
    mat: pd.DataFrame,
    top: Optional[int] = None,
    inertia: bool = True,
) -> CAResult:
    """
    Rebuild a CAResult from a stored reduction without running the SVD
    again.

    Masses are recomputed from `mat` restricted to the reduction's row
    and column labels, then

        V = embeddings * sqrt(col_masses)
        U = loadings / D * sqrt(row_masses)
    """
    mat = as_matrix(mat)
    rows = reduction.loadings.index
    cols = reduction.embeddings.index
    missing_rows = rows.difference(mat.index)
    missing_cols = cols.difference(mat.columns)
    if len(missing_rows) or len(missing_cols):
        raise InputValidationError(
            f"Matrix lacks {len(missing_rows)} rows and {len(missing_cols)} columns "
            "of the stored reduction."
        )

    res = comp_std_residuals(mat.loc[rows, cols])
    D = reduction.stdev.to_numpy()
    names = dim_names(len(D))

    with np.errstate(divide="ignore", invalid="ignore"):
        U = reduction.loadings.to_numpy() / D[None, :]
    U = nonfinite_to_zero(U) * np.sqrt(res.rowm.to_numpy())[:, None]
    V = reduction.embeddings.to_numpy() * np.sqrt(res.colm.to_numpy())[:, None]

    caobj = CAResult(
        U=pd.DataFrame(U, index=rows, columns=names),
        V=pd.DataFrame(V, index=cols, columns=names),
        D=pd.Series(D, index=names),
        row_masses=res.rowm,
        col_masses=res.colm,
        top_rows=len(rows) if top is None else int(top),
        dims=len(D),
    )
    if inertia:
        # a stored reduction may be truncated, take the total from S
        caobj = caobj.with_inertia(res.S)
        caobj = replace(caobj, tot_inertia=float(caobj.row_inertia.sum()))
    logger.debug("from_reduction: rebuilt %dx%d result", len(rows), len(cols))
    return ca_coords(caobj, princ_coords=3)
