#!/usr/bin/env python3
"""
Basic Usage Examples for the Krylov Solver

This file demonstrates GMRES and BiCGStab on dense, sparse and matrix-free
operators, and how solver parameters are supplied.
"""

import logging

import torch

from krylov_solver import (
    FunctionOperator,
    KrylovSolver,
    Parameters,
    SolverType,
    bicgstab,
    gmres,
)
from krylov_solver.utils import (
    compute_relative_residual,
    create_nonsymmetric_matrix,
    create_poisson_2d_sparse_coo,
    dense_to_sparse_csr,
)


def example_dense_solvers():
    """Example using both methods on a dense non-symmetric matrix"""
    print("\n🔧 Dense Matrix Example")
    print("-" * 40)

    n = 100
    A = create_nonsymmetric_matrix(n, seed=42)
    x_true = torch.randn(n, dtype=torch.float64)
    b = A @ x_true

    x_gmres, info_gmres = gmres(A, b, tol=1e-10, restart=20)
    error_gmres = torch.norm(x_gmres - x_true).item()
    print(f"GMRES: converged={info_gmres.converged}, iterations={info_gmres.iterations}, "
          f"error={error_gmres:.2e}")

    x_bicg, info_bicg = bicgstab(A, b, tol=1e-10)
    error_bicg = torch.norm(x_bicg - x_true).item()
    print(f"BiCGStab: converged={info_bicg.converged}, iterations={info_bicg.iterations}, "
          f"error={error_bicg:.2e}")


def example_sparse_matrices():
    """Example with a sparse 2D Poisson matrix and a reused solver"""
    print("\n🕸️  Sparse Matrix Example")
    print("-" * 40)

    params = Parameters({
        "Krylov relative tolerance": 1e-10,
        "Krylov GMRES restart": 50,
        "Krylov maximum iterations": 5000,
    })
    solver = KrylovSolver(SolverType.GMRES, parameters=params)

    for nx in (16, 32):
        A = dense_to_sparse_csr(create_poisson_2d_sparse_coo(nx, nx).to_dense())
        b = torch.ones(nx * nx, dtype=torch.float64)
        x = torch.zeros(0, dtype=torch.float64)

        # Parameters were read on the first solve and are reused here
        result = solver.solve(A, x, b)
        print(f"Poisson {nx}x{nx}: converged={result.converged}, "
              f"iterations={result.iterations}, "
              f"residual={compute_relative_residual(A, x, b):.2e}")


def example_matrix_free():
    """Example with a function-based linear operator"""
    print("\n🧮 Matrix-free Example")
    print("-" * 40)

    n = 200

    def tridiag_mv(v):
        y = 3.0 * v
        y[:-1] -= v[1:]
        y[1:] -= v[:-1]
        return y

    A = FunctionOperator(tridiag_mv, size=n)
    b = torch.randn(n, dtype=torch.float64)

    x, result = bicgstab(A, b, tol=1e-10)
    print(f"BiCGStab: converged={result.converged}, iterations={result.iterations}, "
          f"matrix-vector products={A.matvec_count}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    example_dense_solvers()
    example_sparse_matrices()
    example_matrix_free()
