"""
Utility functions for krylov_solver.
"""

from .matrix_utils import (
    dense_to_sparse_csr,
    create_tridiagonal_sparse_coo,
    create_poisson_2d_sparse_coo,
    create_spd_matrix,
    create_nonsymmetric_matrix,
    compute_residual,
    compute_relative_residual,
)

__all__ = [
    'dense_to_sparse_csr',
    'create_tridiagonal_sparse_coo',
    'create_poisson_2d_sparse_coo',
    'create_spd_matrix',
    'create_nonsymmetric_matrix',
    'compute_residual',
    'compute_relative_residual',
]
