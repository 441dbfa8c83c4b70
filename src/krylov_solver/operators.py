#!/usr/bin/env python3
# Copyright 2025 Litianyu141
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Linear operator contract for krylov_solver.

The solvers only need ``rows()``, ``cols()`` and ``apply(v, transpose)``.
This module provides that contract plus adapters for the usual PyTorch
inputs:

- MatrixOperator: dense, sparse COO or sparse CSR tensors
- FunctionOperator: matrix-free callables ``v -> A @ v``

Example:
    >>> import torch
    >>> from krylov_solver.operators import as_linear_operator
    >>>
    >>> A = as_linear_operator(torch.eye(3, dtype=torch.float64))
    >>> A.apply(torch.ones(3, dtype=torch.float64))
    tensor([1., 1., 1.], dtype=torch.float64)
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Tuple

import torch


class LinearOperator(ABC):
    """
    Abstract square or rectangular linear map.

    Subclasses implement ``rows``, ``cols`` and ``_apply``. The public
    ``apply`` counts every product so callers can check how often an
    operator was used.
    """

    def __init__(self):
        self.matvec_count = 0

    @abstractmethod
    def rows(self) -> int:
        """Number of rows of the operator."""

    @abstractmethod
    def cols(self) -> int:
        """Number of columns of the operator."""

    @abstractmethod
    def _apply(self, v: torch.Tensor, transpose: bool) -> torch.Tensor:
        ...

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.rows(), self.cols())

    def apply(self, v: torch.Tensor, transpose: bool = False) -> torch.Tensor:
        """Return ``A @ v``, or ``A.T @ v`` if ``transpose`` is set."""
        self.matvec_count += 1
        return self._apply(v, transpose)

    def __call__(self, v: torch.Tensor) -> torch.Tensor:
        return self.apply(v)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(shape={self.shape})"


class MatrixOperator(LinearOperator):
    """Linear operator backed by a dense or sparse 2D tensor."""

    def __init__(self, A: torch.Tensor):
        super().__init__()
        if A.ndim != 2:
            raise ValueError(f"Expected 2D tensor, got {A.ndim}D")
        self.A = A
        self._is_sparse = A.is_sparse or A.is_sparse_csr
        self._At: Optional[torch.Tensor] = None

    def rows(self) -> int:
        return self.A.shape[0]

    def cols(self) -> int:
        return self.A.shape[1]

    def _transposed(self) -> torch.Tensor:
        # Built once, on the first transpose request
        if self._At is None:
            if self._is_sparse:
                coo = self.A if self.A.is_sparse else self.A.to_sparse_coo()
                self._At = coo.t().coalesce()
            else:
                self._At = self.A.T
        return self._At

    def _apply(self, v: torch.Tensor, transpose: bool) -> torch.Tensor:
        M = self._transposed() if transpose else self.A
        if v.dtype != M.dtype:
            v = v.to(M.dtype)
        if self._is_sparse:
            return torch.sparse.mm(M, v.unsqueeze(-1)).squeeze(-1)
        return torch.mv(M, v)


class FunctionOperator(LinearOperator):
    """
    Matrix-free square linear operator.

    Args:
        matvec: Callable computing ``A @ v``
        size: Dimension of the (square) operator
        rmatvec: Optional callable computing ``A.T @ v``
    """

    def __init__(
        self,
        matvec: Callable[[torch.Tensor], torch.Tensor],
        size: int,
        rmatvec: Optional[Callable[[torch.Tensor], torch.Tensor]] = None
    ):
        super().__init__()
        self.matvec = matvec
        self.rmatvec = rmatvec
        self.size = int(size)

    def rows(self) -> int:
        return self.size

    def cols(self) -> int:
        return self.size

    def _apply(self, v: torch.Tensor, transpose: bool) -> torch.Tensor:
        if transpose:
            if self.rmatvec is None:
                raise NotImplementedError(
                    "Transpose product requested but no rmatvec was given"
                )
            return self.rmatvec(v)
        return self.matvec(v)


def _is_operator_like(obj: Any) -> bool:
    return all(callable(getattr(obj, name, None)) for name in ("rows", "cols", "apply"))


def as_linear_operator(A: Any, size: Optional[int] = None) -> Any:
    """
    Normalize an argument into something exposing the operator contract.

    Args:
        A: LinearOperator, object with rows/cols/apply, 2D tensor or callable
        size: Dimension for callables (required for them)

    Returns:
        An object with ``rows()``, ``cols()`` and ``apply(v, transpose)``
    """
    if isinstance(A, LinearOperator) or _is_operator_like(A):
        return A
    if isinstance(A, torch.Tensor):
        return MatrixOperator(A)
    if callable(A):
        if size is None:
            raise ValueError("size is required to wrap a callable as a linear operator")
        return FunctionOperator(A, size)
    raise TypeError(
        f'linear operator must be a LinearOperator, a tensor or a function: {A!r}')
