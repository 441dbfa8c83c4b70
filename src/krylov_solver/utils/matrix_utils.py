"""
Matrix utility functions for krylov_solver.

This module provides builders for standard test systems and residual helpers
that accept the same operator forms as the solver.
"""

import numpy as np
import torch
from typing import Optional, Union


def dense_to_sparse_csr(
    A: torch.Tensor,
    device: Optional[str] = None
) -> torch.Tensor:
    """
    Convert a dense matrix to sparse CSR format.

    Args:
        A: Dense matrix tensor of shape (n, n)
        device: Target device (default: same as input)

    Returns:
        Sparse CSR tensor
    """
    if A.ndim != 2:
        raise ValueError(f"Expected 2D tensor, got {A.ndim}D")

    if device is None:
        device = A.device

    sparse_coo = A.to_sparse_coo()
    if device != A.device:
        sparse_coo = sparse_coo.to(device)

    return sparse_coo.to_sparse_csr()


def create_tridiagonal_sparse_coo(
    n: int,
    diag_val: float = 2.0,
    off_diag_val: float = -1.0,
    device: str = 'cpu',
    dtype: torch.dtype = torch.float64
) -> torch.Tensor:
    """
    Create a tridiagonal sparse COO tensor.

    Args:
        n: Matrix dimension
        diag_val: Main diagonal value
        off_diag_val: Off-diagonal value
        device: Target device
        dtype: Data type

    Returns:
        Sparse COO tensor representing a tridiagonal matrix
    """
    indices = []
    values = []

    main_diag_i = torch.arange(n, device=device)
    indices.append(torch.stack([main_diag_i, main_diag_i]))
    values.append(torch.full((n,), diag_val, device=device, dtype=dtype))

    if n > 1:
        off_i = torch.arange(n - 1, device=device)
        # Upper diagonal
        indices.append(torch.stack([off_i, off_i + 1]))
        values.append(torch.full((n - 1,), off_diag_val, device=device, dtype=dtype))
        # Lower diagonal
        indices.append(torch.stack([off_i + 1, off_i]))
        values.append(torch.full((n - 1,), off_diag_val, device=device, dtype=dtype))

    sparse_matrix = torch.sparse_coo_tensor(
        torch.cat(indices, dim=1), torch.cat(values), (n, n),
        device=device, dtype=dtype
    )
    return sparse_matrix.coalesce()


def create_poisson_2d_sparse_coo(
    nx: int,
    ny: int,
    device: str = 'cpu',
    dtype: torch.dtype = torch.float64
) -> torch.Tensor:
    """
    Create a 2D Poisson matrix using 5-point stencil.

    Args:
        nx: Number of grid points in x direction
        ny: Number of grid points in y direction
        device: Target device
        dtype: Data type

    Returns:
        Sparse COO tensor representing the Poisson operator
    """
    n = nx * ny
    k = np.arange(n).reshape(nx, ny)

    rows = [k.ravel()]
    cols = [k.ravel()]
    vals = [np.full(n, 4.0)]

    # Neighbours in x, then y
    for src, dst in ((k[1:, :], k[:-1, :]), (k[:, 1:], k[:, :-1])):
        rows += [src.ravel(), dst.ravel()]
        cols += [dst.ravel(), src.ravel()]
        vals += [np.full(src.size, -1.0), np.full(src.size, -1.0)]

    indices = torch.from_numpy(np.stack([np.concatenate(rows), np.concatenate(cols)])).to(device)
    values = torch.from_numpy(np.concatenate(vals)).to(device=device, dtype=dtype)

    sparse_matrix = torch.sparse_coo_tensor(indices, values, (n, n), device=device, dtype=dtype)
    return sparse_matrix.coalesce()


def create_spd_matrix(
    n: int,
    seed: int = 0,
    device: str = 'cpu',
    dtype: torch.dtype = torch.float64
) -> torch.Tensor:
    """Create a reproducible, well-conditioned dense SPD matrix."""
    rng = np.random.default_rng(seed)
    B = rng.standard_normal((n, n))
    A = B @ B.T + n * np.eye(n)
    return torch.from_numpy(A).to(device=device, dtype=dtype)


def create_nonsymmetric_matrix(
    n: int,
    seed: int = 0,
    device: str = 'cpu',
    dtype: torch.dtype = torch.float64
) -> torch.Tensor:
    """Create a reproducible, diagonally dominant non-symmetric matrix."""
    rng = np.random.default_rng(seed)
    A = np.diag(np.full(n, 2.0)) - np.diag(np.ones(n - 1), 1) - np.diag(np.ones(n - 1), -1)
    A = A + 0.1 * rng.standard_normal((n, n)) + 5.0 * np.eye(n)
    return torch.from_numpy(A).to(device=device, dtype=dtype)


def compute_residual(
    A: Union[torch.Tensor, callable],
    x: torch.Tensor,
    b: torch.Tensor
) -> torch.Tensor:
    """
    Compute the residual r = b - Ax.

    Args:
        A: Matrix (dense, sparse), LinearOperator or callable
        x: Solution vector
        b: Right-hand side vector

    Returns:
        Residual vector
    """
    if hasattr(A, 'apply'):
        Ax = A.apply(x)
    elif callable(A):
        Ax = A(x)
    elif A.is_sparse or A.is_sparse_csr:
        Ax = torch.sparse.mm(A, x.unsqueeze(-1)).squeeze(-1)
    else:
        Ax = torch.mv(A, x)

    return b - Ax


def compute_relative_residual(
    A: Union[torch.Tensor, callable],
    x: torch.Tensor,
    b: torch.Tensor
) -> float:
    """
    Compute the relative residual ||b - Ax|| / ||b||.

    Args:
        A: Matrix (dense, sparse), LinearOperator or callable
        x: Solution vector
        b: Right-hand side vector

    Returns:
        Relative residual (scalar)
    """
    residual = compute_residual(A, x, b)
    return (torch.norm(residual) / torch.norm(b)).item()
