# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Correspondence analysis: residuals -> SVD -> CAResult
"""

import logging
from typing import Optional

import numpy as np
import pandas as pd

from .adapters import as_matrix
from .coords import ca_coords
from .exceptions import DecompositionError
from .residuals import comp_std_residuals
from .result import CAResult
from .svd import SVDBackend, get_backend
from .utils import advise, dim_names, validate_matrix
from .variance import var_rows

logger = logging.getLogger(__name__)


def remove_zero_rows_cols(mat: pd.DataFrame) -> pd.DataFrame:
    """Drop rows and columns that contain only zeros, warning for each axis."""
    mat = validate_matrix(mat)

    keep_rows = mat.sum(axis=1) > 0
    if not keep_rows.all():
        advise(
            f"Matrix contains {int((~keep_rows).sum())} rows with only 0s. "
            "These rows were removed. If undesired set rm_zeros = False."
        )
        mat = mat.loc[keep_rows]

    keep_cols = mat.sum(axis=0) > 0
    if not keep_cols.all():
        advise(
            f"Matrix contains {int((~keep_cols).sum())} columns with only 0s. "
            "These columns were removed. If undesired set rm_zeros = False."
        )
        mat = mat.loc[:, keep_cols]

    return mat


def _resolve_top(mat: pd.DataFrame, top):
    """Return (matrix to factorize, number of rows used)."""
    n = mat.shape[0]
    if top is None:
        return mat, n
    if isinstance(top, bool) or not isinstance(top, (int, np.integer)):
        advise("Unusual input for top, argument ignored.")
        return mat, n
    if top == n:
        return mat, n
    if 0 < top < n:
        logger.debug("Subsetting matrix by the top %d most variable rows", top)
        return var_rows(mat, top=int(top)), int(top)
    if top > n:
        advise("Parameter top is >nrow(obj) and therefore ignored.")
    else:
        advise("Unusual input for top, argument ignored.")
    return mat, n


def _run_svd(backend: SVDBackend, S: pd.DataFrame):
    try:
        return backend(S.to_numpy())
    except Exception as err:
        raise DecompositionError(
            backend.name, S.shape, len(S.index), len(S.columns)
        ) from err


def cacomp(
    obj,
    coords: bool = True,
    princ_coords: int = 1,
    python_backend: bool = False,
    dims: Optional[int] = None,
    top: Optional[int] = None,
    inertia: bool = True,
    rm_zeros: bool = True,
    backend: Optional[SVDBackend] = None,
    assay: Optional[str] = None,
) -> CAResult:
    """
    Correspondence analysis of a labeled count table.

    Follows Greenacre, "Correspondence Analysis in Practice" (3rd ed.):
    standardized residuals of the table are decomposed with an SVD and
    turned into standard/principal coordinates.

    Parameters
    ----------
    obj : DataFrame or AssayContainer
        Non-negative counts, e.g. genes in rows and cells in columns.
        Row and column labels are required.
    coords : bool
        Compute standard coordinates (and principal ones, see princ_coords).
    princ_coords : int
        Principal coordinates for rows (1), columns (2), both (3), none (0).
    python_backend : bool
        Use the torch SVD backend instead of numpy.
    dims : int or None
        Number of dimensions to keep. None keeps all min(n, m).
    top : int or None
        Keep only the `top` rows with the highest chi-square variance.
    inertia : bool
        Attach total, row and column inertia.
    rm_zeros : bool
        Remove rows and columns that contain only zeros.
    backend : SVDBackend or None
        Explicit SVD backend, overrides `python_backend`.
    assay : str or None
        Assay to read when `obj` is a container.

    Returns
    -------
    CAResult
    """
    mat = validate_matrix(as_matrix(obj, assay=assay))
    svd = backend if backend is not None else get_backend(python_backend)

    if rm_zeros:
        mat = remove_zero_rows_cols(mat)

    mat, top_rows = _resolve_top(mat, top)
    res = comp_std_residuals(mat)
    S = res.S

    n, p = S.shape
    k = min(n, p)
    logger.info("Running singular value decomposition ...")
    logger.debug("cacomp: %dx%d residual matrix, k=%d, backend=%s", n, p, k, svd.name)
    U, D, V = _run_svd(svd, S)

    # label only after the backend has settled order and signs
    names = dim_names(k)
    caobj = CAResult(
        U=pd.DataFrame(U[:, :k], index=S.index, columns=names),
        V=pd.DataFrame(V[:, :k], index=S.columns, columns=names),
        D=pd.Series(D[:k], index=names),
        row_masses=res.rowm,
        col_masses=res.colm,
        top_rows=top_rows,
        dims=k,
    )

    if inertia:
        caobj = caobj.with_inertia(S)

    dims = _resolve_dims(dims, k)

    if coords:
        logger.info("Calculating coordinates ...")
        return ca_coords(caobj, dims=dims, princ_coords=princ_coords, princ_only=False)

    if dims is not None:
        caobj = caobj.truncated(dims)
    return caobj


def _resolve_dims(dims, k: int) -> Optional[int]:
    """Return a usable dims value or None (keep all k dimensions)."""
    if dims is None:
        return None
    if isinstance(dims, bool) or not isinstance(dims, (int, np.integer)) or dims < 1:
        advise("Unusual input for dims, argument ignored.", stacklevel=4)
        return None
    if dims > k:
        advise(
            "Chosen dimensions are larger than the number of dimensions "
            "obtained from the singular value decomposition. Argument ignored.",
            stacklevel=4,
        )
        return None
    return int(dims)
