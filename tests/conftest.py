# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402
import pytest  # noqa: E402


@pytest.fixture
def small_counts():
    """4x3 table, grand total 25."""
    return pd.DataFrame(
        [[4, 0, 2], [0, 5, 1], [3, 2, 0], [1, 1, 6]],
        index=["g1", "g2", "g3", "g4"],
        columns=["c1", "c2", "c3"],
        dtype=float,
    )


@pytest.fixture
def five_rows():
    """Rows g2 and g4 carry almost all of the association."""
    return pd.DataFrame(
        [[10, 10, 10], [30, 0, 0], [5, 5, 5], [0, 0, 30], [8, 9, 10]],
        index=["g1", "g2", "g3", "g4", "g5"],
        columns=["c1", "c2", "c3"],
        dtype=float,
    )


@pytest.fixture
def blocky_counts():
    """
    30x8 table with two groups of rows preferring opposite halves of the
    columns, i.e. one dominant CA dimension.
    """
    rng = np.random.default_rng(7)
    lam = np.vstack(
        [
            np.tile([20, 20, 20, 20, 1, 1, 1, 1], (15, 1)),
            np.tile([1, 1, 1, 1, 20, 20, 20, 20], (15, 1)),
        ]
    )
    counts = rng.poisson(lam).astype(float)
    return pd.DataFrame(
        counts,
        index=[f"gene{i}" for i in range(30)],
        columns=[f"cell{j}" for j in range(8)],
    )


@pytest.fixture(autouse=True)
def _close_figures():
    yield
    plt.close("all")
