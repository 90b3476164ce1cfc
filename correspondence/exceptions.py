# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Exception and warning types raised by the correspondence package.
"""


class CAError(Exception):
    """Base class for every fatal correspondence-analysis error."""


class InputValidationError(CAError, ValueError):
    """Raised when an argument or input matrix cannot be used."""


class DecompositionError(CAError, RuntimeError):
    """Raised when an SVD backend fails on a residual matrix."""

    def __init__(self, backend: str, shape, n_rownames: int, n_colnames: int):
        self.backend = backend
        self.shape = tuple(shape)
        self.n_rownames = n_rownames
        self.n_colnames = n_colnames
        super().__init__(
            f"SVD backend '{backend}' failed on a {self.shape[0]}x{self.shape[1]} "
            f"residual matrix ({n_rownames} row labels, {n_colnames} column labels)"
        )


class CAWarning(UserWarning):
    """Non-fatal advisory: the call proceeds with a documented fallback."""
