# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Interchangeable singular value decomposition backends.

Every backend honours the same contract
-----------------------------------------
For a real m-by-n matrix S and k = min(m, n), ``backend(S)`` returns

    U : m-by-k matrix with orthonormal columns
    D : length-k vector of singular values, sorted in descending order
    V : n-by-k matrix with orthonormal columns

with S ≈ U @ diag(D) @ V.T. After the raw decomposition each backend runs
the same normalisation (descending order, deterministic column signs), so
two backends agree on U and V to numerical tolerance and not just up to
sign.
"""

import logging
from abc import ABC, abstractmethod
from typing import Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)

SVDResult = Tuple[np.ndarray, np.ndarray, np.ndarray]


def normalize_svd(U: np.ndarray, D: np.ndarray, V: np.ndarray) -> SVDResult:
    """
    Sort singular triplets by descending D and flip each (u, v) pair so
    that the largest-magnitude entry of v is positive.
    """
    idx = np.argsort(-D, kind="stable")
    U = U[:, idx]
    D = D[idx]
    V = V[:, idx]

    if V.shape[1]:
        pivot = np.argmax(np.abs(V), axis=0)
        sign = np.sign(V[pivot, np.arange(V.shape[1])])
        sign[sign == 0] = 1.0
        U = U * sign
        V = V * sign
    return U, D, V


class SVDBackend(ABC):
    """Callable S -> (U, D, V) following the module contract."""

    name: str = "abstract"

    @abstractmethod
    def _decompose(self, S: np.ndarray) -> SVDResult:
        """Raw economy SVD, any order and sign."""

    def __call__(self, S: np.ndarray) -> SVDResult:
        S = np.asarray(S, dtype=float)
        logger.debug("%s: decomposing %dx%d matrix", self.name, *S.shape)
        U, D, V = self._decompose(S)
        return normalize_svd(
            np.asarray(U, dtype=float),
            np.asarray(D, dtype=float).ravel(),
            np.asarray(V, dtype=float),
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class NumpySVD(SVDBackend):
    """Reference backend: LAPACK gesdd through numpy.linalg.svd."""

    name = "numpy"

    def _decompose(self, S: np.ndarray) -> SVDResult:
        U, D, Vt = np.linalg.svd(S, full_matrices=False)
        return U, D, Vt.T


class TorchSVD(SVDBackend):
    """
    Accelerated backend: torch.linalg.svd, optionally on a GPU.

    torch is imported when the backend is built, so the reference path
    does not need it installed.
    """

    name = "torch"

    def __init__(self, device: str = "cpu", dtype=None):
        import torch

        self._torch = torch
        self.device = device
        self.dtype = torch.float64 if dtype is None else dtype

    def _decompose(self, S: np.ndarray) -> SVDResult:
        torch = self._torch
        T = torch.from_numpy(np.ascontiguousarray(S)).to(
            device=self.device, dtype=self.dtype
        )
        U, D, Vh = torch.linalg.svd(T, full_matrices=False)
        return (
            U.cpu().double().numpy(),
            D.cpu().double().numpy(),
            Vh.mT.cpu().double().numpy(),
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(device={self.device!r}, dtype={self.dtype})"


def get_backend(python_backend: Union[bool, SVDBackend, None] = False) -> SVDBackend:
    """
    Resolve the SVD backend.

    True -> TorchSVD, False/None -> NumpySVD, an SVDBackend instance is
    returned unchanged.
    """
    if isinstance(python_backend, SVDBackend):
        return python_backend
    if python_backend:
        return TorchSVD()
    return NumpySVD()
