# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

from dataclasses import replace

import numpy as np
import pandas as pd
import pytest

from correspondence.adapters import (
    AssayContainer,
    as_matrix,
    from_reduction,
    to_reduction,
)
from correspondence.exceptions import InputValidationError
from correspondence.factorize import cacomp


class FakeExperiment:
    """Minimal container holding named assays."""

    def __init__(self, **assays):
        self.assays = assays

    def get_assay(self, assay):
        return self.assays[assay]


def test_as_matrix_passes_dataframes(small_counts):
    assert as_matrix(small_counts) is small_counts


def test_as_matrix_reads_container(small_counts):
    exp = FakeExperiment(counts=small_counts)
    assert isinstance(exp, AssayContainer)
    assert as_matrix(exp, assay="counts") is small_counts


def test_container_needs_assay(small_counts):
    with pytest.raises(InputValidationError, match="assay"):
        as_matrix(FakeExperiment(counts=small_counts))


def test_container_must_return_dataframe():
    exp = FakeExperiment(counts=np.ones((2, 2)))
    with pytest.raises(InputValidationError):
        as_matrix(exp, assay="counts")


def test_unsupported_object():
    with pytest.raises(InputValidationError, match="class list"):
        as_matrix([[1, 2], [3, 4]])


def test_cacomp_on_container(small_counts):
    exp = FakeExperiment(counts=small_counts)
    res = cacomp(exp, assay="counts")
    ref = cacomp(small_counts)
    pd.testing.assert_series_equal(res.D, ref.D)


def test_to_reduction(blocky_counts):
    res = cacomp(blocky_counts, princ_coords=1)
    red = to_reduction(res)

    assert red.key == "DIM_"
    assert list(red.embeddings.columns) == [f"DIM_{j}" for j in range(1, 9)]
    np.testing.assert_array_equal(red.embeddings.to_numpy(), res.std_coords_cols.to_numpy())
    np.testing.assert_array_equal(red.loadings.to_numpy(), res.prin_coords_rows.to_numpy())
    np.testing.assert_array_equal(red.stdev.to_numpy(), res.D.to_numpy())
    assert np.isclose(red.perc_inertia.sum(), 100.0)
    np.testing.assert_allclose(
        red.perc_inertia.to_numpy(), 100 * res.D.to_numpy() ** 2 / np.sum(res.D.to_numpy() ** 2)
    )


def test_to_reduction_needs_coordinates(blocky_counts):
    with pytest.raises(InputValidationError):
        to_reduction(cacomp(blocky_counts, coords=False))
    with pytest.raises(InputValidationError):
        to_reduction(cacomp(blocky_counts, princ_coords=0))


def test_from_reduction_recovers_result(blocky_counts):
    res = cacomp(blocky_counts, top=20, dims=3, princ_coords=3)
    back = from_reduction(to_reduction(res), blocky_counts, top=20)

    assert back.dims == 3
    assert back.top_rows == 20
    np.testing.assert_allclose(back.U.to_numpy(), res.U.to_numpy(), atol=1e-10)
    np.testing.assert_allclose(back.V.to_numpy(), res.V.to_numpy(), atol=1e-10)
    pd.testing.assert_series_equal(back.row_masses, res.row_masses)
    assert np.isclose(back.tot_inertia, res.tot_inertia)
    np.testing.assert_allclose(
        back.prin_coords_cols.to_numpy(), res.prin_coords_cols.to_numpy(), atol=1e-10
    )


def test_from_reduction_missing_labels(blocky_counts):
    res = cacomp(blocky_counts, princ_coords=3)
    with pytest.raises(InputValidationError, match="lacks"):
        from_reduction(to_reduction(res), blocky_counts.iloc[:10])


def test_to_reduction_without_inertia(blocky_counts):
    res = cacomp(blocky_counts, princ_coords=1)
    flat = replace(res, D=pd.Series(np.zeros(res.k), index=res.D.index))
    red = to_reduction(flat)
    np.testing.assert_array_equal(red.perc_inertia.to_numpy(), np.zeros(res.k))
