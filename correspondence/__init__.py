# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
correspondence
==============

Correspondence analysis (CA) of count tables: standardized residuals,
singular value decomposition, standard/principal coordinates and
heuristics for the number of dimensions to keep.

Public API
~~~~~~~~~~
- Residuals and filtering
    - `comp_std_residuals`, `var_rows`
- Decomposition
    - `cacomp`, `remove_zero_rows_cols`
    - SVD backends `NumpySVD`, `TorchSVD`, `get_backend`
- Coordinates
    - `ca_coords`, `subset_dims`
- Dimensions
    - `pick_dims`, `elbow_rule`, `explained_inertia`
- Plots and containers
    - `scree_table`, `scree_plot`
    - `as_matrix`, `to_reduction`, `from_reduction`

Everything else lives in sub-modules and is **not** considered part of the
stable interface.

Example
-------
>>> import pandas as pd, correspondence as ca
>>> mat = pd.DataFrame([[4, 0, 2], [0, 5, 1], [3, 2, 0], [1, 1, 6]],
...                    index=["g1", "g2", "g3", "g4"], columns=["c1", "c2", "c3"])
>>> res = ca.cacomp(mat, princ_coords=3)
>>> res.dims
3
"""

from importlib.metadata import version as _pkg_version

from .adapters import (
    AssayContainer,
    CAReduction,
    as_matrix,
    from_reduction,
    to_reduction,
)
from .coords import ca_coords, subset_dims
from .dims import ElbowResult, elbow_rule, explained_inertia, pick_dims
from .exceptions import (
    CAError,
    CAWarning,
    DecompositionError,
    InputValidationError,
)
from .factorize import cacomp, remove_zero_rows_cols
from .plot import scree_plot, scree_table
from .residuals import ResidualResult, comp_std_residuals
from .result import CAResult
from .svd import NumpySVD, SVDBackend, TorchSVD, get_backend
from .variance import var_rows

__all__ = [
    "comp_std_residuals",
    "ResidualResult",
    "var_rows",
    "cacomp",
    "remove_zero_rows_cols",
    "CAResult",
    "SVDBackend",
    "NumpySVD",
    "TorchSVD",
    "get_backend",
    "ca_coords",
    "subset_dims",
    "pick_dims",
    "elbow_rule",
    "explained_inertia",
    "ElbowResult",
    "scree_table",
    "scree_plot",
    "AssayContainer",
    "CAReduction",
    "as_matrix",
    "to_reduction",
    "from_reduction",
    "CAError",
    "CAWarning",
    "DecompositionError",
    "InputValidationError",
]

# ---------------------------------------------------------------------
# Version string (helps “pip show correspondence”, Sphinx, etc.)
# ---------------------------------------------------------------------
try:  # installed via pip / build backend
    __version__ = _pkg_version(__name__)
except Exception:  # running from a checkout
    __version__ = "0.0.0.dev0"

# ---------------------------------------------------------------------
# Optional: lightweight default logging config so users see warnings
# only if they deliberately enable them.
# ---------------------------------------------------------------------
import logging as _logging

_logging.getLogger(__name__).addHandler(_logging.NullHandler())
