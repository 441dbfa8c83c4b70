"""
Krylov Solver - Iterative Krylov-subspace solvers for sparse linear systems

This package solves square linear systems Ax = b with two interchangeable
methods, selected by a solver type:

- **GMRES**: restarted Generalized Minimal Residual (Arnoldi + Givens QR)
- **BiCGStab**: Bi-Conjugate Gradient Stabilized (the default)

Both share one convergence test (relative, absolute and divergence limits)
and one parameter source that is read once per solver instance.

Quick Start:
    >>> from krylov_solver import KrylovSolver, solve
    >>>
    >>> # Using the KrylovSolver class (x is resized and overwritten)
    >>> solver = KrylovSolver("gmres")
    >>> result = solver.solve(A, x, b)
    >>>
    >>> # Or use convenience functions
    >>> x, result = solve(A, b, method='bicgstab', tol=1e-10)

Operators:
    >>> from krylov_solver import FunctionOperator
    >>> A = FunctionOperator(lambda v: 2.0 * v, size=100)
"""

__version__ = '1.0.0'
__author__ = 'Litianyu141'
__license__ = 'Apache-2.0'

# Import main solver interface
from .solver import (
    KrylovSolver,
    SolveResult,
    SolverType,
    solve,
    gmres,
    bicgstab,
)

from .parameters import (
    DEFAULT_PARAMETERS,
    Parameters,
    SolverConfig,
)

from .operators import (
    LinearOperator,
    MatrixOperator,
    FunctionOperator,
    as_linear_operator,
)

from .exceptions import (
    KrylovSolverError,
    DimensionError,
    NumericalBreakdownError,
)

from .engines import ConvergenceMonitor

__all__ = [
    # Version info
    '__version__',
    '__author__',
    '__license__',

    # Main solver interface
    'KrylovSolver',
    'SolveResult',
    'SolverType',
    'solve',
    'gmres',
    'bicgstab',

    # Parameters
    'DEFAULT_PARAMETERS',
    'Parameters',
    'SolverConfig',

    # Operators
    'LinearOperator',
    'MatrixOperator',
    'FunctionOperator',
    'as_linear_operator',

    # Errors
    'KrylovSolverError',
    'DimensionError',
    'NumericalBreakdownError',

    'ConvergenceMonitor',
]
