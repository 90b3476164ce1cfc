# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Scree plot of explained inertia per dimension
"""

from typing import Optional

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from .exceptions import InputValidationError

BAR_COLOR = "#4169E1"
LINE_COLOR = "#B22222"
AVG_COLOR = "#606060"


def scree_table(explained, perms: Optional[np.ndarray] = None) -> pd.DataFrame:
    """
    Build the table consumed by `scree_plot`.

    Columns: "dims" (1..k), "inertia" (percent explained) and, when
    `perms` (k x reps) is given, one "perm{r}" column per repetition.
    """
    explained = np.asarray(explained, dtype=float)
    df = pd.DataFrame(
        {"dims": np.arange(1, len(explained) + 1), "inertia": explained}
    )
    if perms is not None:
        perms = np.asarray(perms, dtype=float)
        if perms.ndim != 2 or perms.shape[0] != len(explained):
            raise InputValidationError(
                f"perms must be {len(explained)} x reps, got {perms.shape}"
            )
        for r in range(perms.shape[1]):
            df[f"perm{r + 1}"] = perms[:, r]
    return df


def scree_plot(df: pd.DataFrame):
    """
    Bar chart of explained inertia with the average inertia (100/k) as a
    dotted reference line. Every "perm*" column is drawn as a dashed
    black line on top.

    Returns
    -------
    matplotlib.figure.Figure
    """
    if not {"dims", "inertia"}.issubset(df.columns):
        raise InputValidationError('df needs the columns "dims" and "inertia"')

    max_num_dims = len(df)
    avg_inertia = 100 / max_num_dims

    fig, ax = plt.subplots(figsize=(8, 5))
    ax.bar(df["dims"], df["inertia"], color=BAR_COLOR)
    ax.plot(df["dims"], df["inertia"], color=LINE_COLOR, lw=1.5)
    ax.axhline(avg_inertia, linestyle=":", alpha=0.8, color=AVG_COLOR)
    ax.annotate(
        "avg. inertia",
        xy=(max_num_dims * 0.9, avg_inertia),
        ha="center",
        va="bottom",
    )

    for col in [c for c in df.columns if str(c).startswith("perm")]:
        ax.plot(df["dims"], df[col], color="black", alpha=0.8, linestyle="--")

    ax.set_title("Scree plot of explained inertia per dimensions and the average inertia")
    ax.set_ylabel("Explained inertia [%]")
    ax.set_xlabel("Dimension")
    ax.grid(True, linestyle="--", alpha=0.5)
    return fig
