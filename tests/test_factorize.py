# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import numpy as np
import pandas as pd
import pytest

from correspondence.exceptions import CAWarning, DecompositionError, InputValidationError
from correspondence.factorize import cacomp, remove_zero_rows_cols
from correspondence.residuals import comp_std_residuals
from correspondence.svd import NumpySVD, SVDBackend
from correspondence.utils import random_count_matrix


class FailingSVD(SVDBackend):
    name = "failing"

    def _decompose(self, S):
        raise np.linalg.LinAlgError("SVD did not converge")


class CountingSVD(NumpySVD):
    name = "counting"

    def __init__(self):
        self.calls = 0

    def _decompose(self, S):
        self.calls += 1
        return super()._decompose(S)


def test_small_table(small_counts):
    res = cacomp(small_counts, coords=False)

    assert res.dims == 3
    assert res.k == 3
    assert res.top_rows == 4
    assert list(res.U.columns) == ["Dim1", "Dim2", "Dim3"]
    assert list(res.U.index) == list(small_counts.index)
    assert list(res.V.index) == list(small_counts.columns)
    assert np.isclose(res.row_inertia.sum(), res.tot_inertia)
    assert np.isclose(res.col_inertia.sum(), res.tot_inertia)
    assert res.std_coords_rows is None


@pytest.mark.parametrize("seed", [0, 1])
def test_reconstruction(seed):
    mat = random_count_matrix(15, 6, seed=seed)
    S = comp_std_residuals(mat).S.to_numpy()
    res = cacomp(mat, coords=False)

    recon = res.U.to_numpy() @ np.diag(res.D.to_numpy()) @ res.V.to_numpy().T
    np.testing.assert_allclose(recon, S, atol=1e-10)
    assert np.isclose(res.tot_inertia, np.sum(S**2))


def test_masses_align_with_labels(small_counts):
    res = cacomp(small_counts)
    pd.testing.assert_index_equal(res.row_masses.index, res.U.index)
    pd.testing.assert_index_equal(res.col_masses.index, res.V.index)


def test_top_runs_row_selection(five_rows):
    res = cacomp(five_rows, top=2, coords=False)

    assert res.top_rows == 2
    assert set(res.U.index) == {"g2", "g4"}
    assert len(res.row_masses) == 2
    assert np.isclose(res.row_masses.sum(), 1.0)
    assert res.dims == 2


def test_top_equal_rows_uses_full_matrix(five_rows):
    res = cacomp(five_rows, top=5, coords=False)
    assert res.top_rows == 5
    assert list(res.U.index) == list(five_rows.index)


def test_top_too_large_warns(five_rows):
    with pytest.warns(CAWarning, match="ignored"):
        res = cacomp(five_rows, top=50, coords=False)
    assert res.top_rows == 5


@pytest.mark.parametrize("top", [2.5, "3", 0])
def test_unusual_top_warns(five_rows, top):
    with pytest.warns(CAWarning, match="Unusual input for top"):
        res = cacomp(five_rows, top=top, coords=False)
    assert res.top_rows == 5


def test_zero_rows_and_columns_removed(small_counts):
    mat = small_counts.copy()
    mat.loc["g5"] = 0.0
    mat["c4"] = 0.0

    with pytest.warns(CAWarning) as record:
        res = cacomp(mat)

    messages = [str(w.message) for w in record]
    assert any("rows with only 0s" in m for m in messages)
    assert any("columns with only 0s" in m for m in messages)
    assert "g5" not in res.U.index
    assert "c4" not in res.V.index
    assert res.dims == 3


def test_zero_rows_kept_on_request(small_counts):
    mat = small_counts.copy()
    mat.loc["g5"] = 0.0

    res = cacomp(mat, rm_zeros=False, princ_coords=3)

    assert "g5" in res.U.index
    assert np.all(np.isfinite(res.std_coords_rows.to_numpy()))
    assert (res.std_coords_rows.loc["g5"] == 0).all()


def test_remove_zero_rows_cols_without_zeros(small_counts):
    out = remove_zero_rows_cols(small_counts)
    pd.testing.assert_frame_equal(out, small_counts)


def test_dims_without_coords(small_counts):
    res = cacomp(small_counts, coords=False, dims=2)
    assert res.dims == 2
    assert res.U.shape == (4, 2)
    assert res.V.shape == (3, 2)
    # inertia still describes the full decomposition
    assert np.isclose(res.row_inertia.sum(), res.tot_inertia)


def test_dims_with_coords(blocky_counts):
    res = cacomp(blocky_counts, dims=3, princ_coords=3)
    assert res.dims == 3
    assert res.std_coords_cols.shape == (8, 3)
    assert res.prin_coords_rows.shape == (30, 3)


def test_dims_too_large_warns(small_counts):
    with pytest.warns(CAWarning, match="larger"):
        res = cacomp(small_counts, dims=10, coords=False)
    assert res.dims == 3

    with pytest.warns(CAWarning, match="larger"):
        res = cacomp(small_counts, dims=10)
    assert res.dims == 3


def test_unusual_dims_warns(small_counts):
    with pytest.warns(CAWarning, match="Unusual input for dims"):
        res = cacomp(small_counts, dims="two")
    assert res.dims == 3


def test_no_inertia(small_counts):
    res = cacomp(small_counts, inertia=False)
    assert res.tot_inertia is None
    assert res.row_inertia is None
    assert res.col_inertia is None


def test_missing_labels_raise():
    with pytest.raises(InputValidationError):
        cacomp(np.array([[1.0, 2.0], [3.0, 4.0]]))


def test_backend_failure_has_context(small_counts):
    with pytest.raises(DecompositionError) as excinfo:
        cacomp(small_counts, backend=FailingSVD())

    err = excinfo.value
    assert err.shape == (4, 3)
    assert "4x3" in str(err)
    assert "failing" in str(err)
    assert isinstance(err.__cause__, np.linalg.LinAlgError)


def test_injected_backend_is_used(small_counts):
    svd = CountingSVD()
    cacomp(small_counts, backend=svd)
    assert svd.calls == 1


def test_torch_backend_matches_numpy(blocky_counts):
    pytest.importorskip("torch")
    ref = cacomp(blocky_counts, python_backend=False, princ_coords=3)
    fast = cacomp(blocky_counts, python_backend=True, princ_coords=3)

    np.testing.assert_allclose(fast.D.to_numpy(), ref.D.to_numpy(), rtol=1e-6, atol=1e-10)
    # the dominant dimension is well separated from the noise
    np.testing.assert_allclose(
        fast.prin_coords_rows["Dim1"].to_numpy(),
        ref.prin_coords_rows["Dim1"].to_numpy(),
        atol=1e-6,
    )
