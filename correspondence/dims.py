# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Heuristics for the number of CA dimensions worth keeping.

Methods
~~~~~~~
- ``avg_inertia``  dimensions explaining more than the average inertia
- ``maj_inertia``  dimensions that cumulatively explain more than 80 %
- ``scree_plot``   scree plot, the threshold is left to the reader
- ``elbow_rule``   compare against column-permuted copies of the data
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Optional, Union

import numpy as np
import pandas as pd

from .adapters import CAReduction, as_matrix
from .exceptions import InputValidationError
from .factorize import cacomp
from .plot import scree_plot, scree_table
from .result import CAResult
from .svd import SVDBackend, get_backend
from .utils import percent_inertia, validate_matrix

logger = logging.getLogger(__name__)

MAJ_INERTIA_THRESHOLD: float = 80.0
METHODS = ("avg_inertia", "maj_inertia", "scree_plot", "elbow_rule")


@dataclass(frozen=True)
class ElbowResult:
    dims: int
    plot: Any


def explained_inertia(D) -> np.ndarray:
    """Percent of the inertia explained by each singular value."""
    return percent_inertia(D)


def avg_inertia(explained: np.ndarray) -> int:
    """Number of dimensions that explain more than 100/k percent."""
    avg = 100 / len(explained)
    # all-equal inertia gives 0, report at least one dimension
    return max(1, int(np.sum(explained > avg)))


def maj_inertia(explained: np.ndarray, threshold: float = MAJ_INERTIA_THRESHOLD) -> int:
    """First dimension at which the cumulative inertia exceeds `threshold`."""
    above = np.flatnonzero(np.cumsum(explained) > threshold)
    if above.size == 0:
        return len(explained)
    return int(above[0]) + 1


def permute_columns(mat: pd.DataFrame, rng: np.random.Generator) -> pd.DataFrame:
    """
    Shuffle every column independently. Column totals are kept, the
    association between rows and columns is destroyed. Rows are
    relabeled "1".."n".
    """
    X = rng.permuted(mat.to_numpy(), axis=0)
    return pd.DataFrame(
        X,
        index=[str(i) for i in range(1, X.shape[0] + 1)],
        columns=mat.columns,
    )


def _permuted_inertia(
    mat: pd.DataFrame,
    rng: np.random.Generator,
    top_rows: int,
    dims: int,
    backend: SVDBackend,
) -> np.ndarray:
    perm = cacomp(
        permute_columns(mat, rng),
        coords=False,
        top=top_rows,
        dims=dims,
        backend=backend,
    )
    expl = explained_inertia(perm.D.to_numpy())
    # the permuted table may lose zero rows and end up with fewer dims
    out = np.zeros(dims)
    n = min(dims, len(expl))
    out[:n] = expl[:n]
    return out


def elbow_dims(explained: np.ndarray, avg_perm: np.ndarray) -> int:
    """
    Length of the leading run of dimensions whose real inertia exceeds
    the permuted baseline.

    If the real inertia is above the baseline everywhere, or nowhere,
    the full number of dimensions is returned.
    """
    max_num_dims = len(explained)
    tmp = (explained > avg_perm).astype(int)

    if tmp.sum() == 0 or tmp.sum() == max_num_dims:
        return max_num_dims
    if tmp[0] == 0:
        raise InputValidationError(
            "Average inertia of the permutated data is above the explained inertia "
            "of the data in the first dimension. Please either try more permutations "
            "or a different method."
        )
    return int(np.argmin(tmp))


def _elbow(
    D: np.ndarray,
    mat,
    top_rows: int,
    dims: int,
    reps: int,
    backend: SVDBackend,
    return_plot: bool,
    seed,
    n_jobs: int,
    assay: Optional[str] = None,
):
    if mat is None:
        raise InputValidationError(
            'When running method="elbow_rule", please provide the original data '
            "matrix (parameter mat) which was earlier submitted to cacomp()!"
        )
    if isinstance(reps, bool) or not isinstance(reps, (int, np.integer)) or reps < 1:
        raise InputValidationError(f"reps must be a positive integer, got {reps!r}")

    mat = validate_matrix(as_matrix(mat, assay=assay))
    explained = explained_inertia(D)
    max_num_dims = len(explained)

    children = np.random.SeedSequence(seed).spawn(reps)
    rngs = [np.random.default_rng(s) for s in children]

    def run(r):
        logger.info("Running permutation %d out of %d for elbow rule ...", r + 1, reps)
        return _permuted_inertia(mat, rngs[r], top_rows, max_num_dims, backend)

    matrix_expl_inertia_perm = np.zeros((max_num_dims, reps))
    if n_jobs > 1:
        with ThreadPoolExecutor(max_workers=n_jobs) as pool:
            for r, expl in enumerate(pool.map(run, range(reps))):
                matrix_expl_inertia_perm[:, r] = expl
    else:
        for r in range(reps):
            matrix_expl_inertia_perm[:, r] = run(r)

    avg_inertia_perm = matrix_expl_inertia_perm.mean(axis=1)
    dim_number = elbow_dims(explained, avg_inertia_perm)
    logger.debug("elbow rule: %d of %d dimensions", dim_number, max_num_dims)

    if not return_plot:
        return dim_number
    plot = scree_plot(scree_table(explained, matrix_expl_inertia_perm))
    return ElbowResult(dims=dim_number, plot=plot)


def elbow_rule(
    caobj: CAResult,
    mat,
    reps: int = 3,
    python_backend: bool = False,
    return_plot: bool = False,
    seed=None,
    n_jobs: int = 1,
    backend: Optional[SVDBackend] = None,
    assay: Optional[str] = None,
) -> Union[int, ElbowResult]:
    """
    Formalized elbow rule.

    1. Permute the rows of every column of `mat` independently.
    2. Rerun `cacomp` on the permuted table (same top rows and dims).
    3. Repeat `reps` times and average the explained inertia per
       dimension.
    4. Return the number of leading dimensions in which the real data
       explains more inertia than the permuted average.

    `mat` may be a DataFrame or a container read through `assay`.
    """
    svd = backend if backend is not None else get_backend(python_backend)
    return _elbow(
        caobj.D.to_numpy(),
        mat,
        caobj.top_rows,
        caobj.dims,
        reps,
        svd,
        return_plot,
        seed,
        n_jobs,
        assay=assay,
    )


def pick_dims(
    obj,
    mat=None,
    method: str = "scree_plot",
    reps: int = 3,
    python_backend: bool = False,
    return_plot: bool = False,
    seed=None,
    n_jobs: int = 1,
    backend: Optional[SVDBackend] = None,
    assay: Optional[str] = None,
):
    """
    Suggest how many dimensions represent the data.

    Parameters
    ----------
    obj : CAResult or CAReduction
        Output of `cacomp`, or a reduction exported with `to_reduction`.
    mat : DataFrame or AssayContainer
        The matrix given to `cacomp`. Required for "elbow_rule".
    method : str
        "avg_inertia", "maj_inertia", "scree_plot" or "elbow_rule".
    reps : int
        Number of permutations for "elbow_rule".
    return_plot : bool
        With "elbow_rule", also return the scree plot with every
        permutation drawn in.
    seed : int or None
        Seed for the permutations.
    n_jobs : int
        Number of permutations run concurrently.
    assay : str or None
        Assay to read when `mat` is a container.

    Returns
    -------
    int for "avg_inertia", "maj_inertia" and "elbow_rule"; a matplotlib
    Figure for "scree_plot"; ElbowResult(dims, plot) for "elbow_rule"
    with return_plot=True.
    """
    if isinstance(obj, CAResult):
        D = obj.D.to_numpy()
        top_rows, dims = obj.top_rows, obj.dims
    elif isinstance(obj, CAReduction):
        D = obj.stdev.to_numpy()
        top_rows, dims = len(obj.loadings), len(D)
    else:
        raise InputValidationError("Not a CA object. Please run cacomp() first!")

    if method not in METHODS:
        raise InputValidationError(
            f"Please pick a valid method! Got {method!r}, expected one of {METHODS}"
        )

    explained = explained_inertia(D)

    if method == "avg_inertia":
        return avg_inertia(explained)
    if method == "maj_inertia":
        return maj_inertia(explained)
    if method == "scree_plot":
        return scree_plot(scree_table(explained))

    svd = backend if backend is not None else get_backend(python_backend)
    return _elbow(
        D, mat, top_rows, dims, reps, svd, return_plot, seed, n_jobs, assay=assay
    )
