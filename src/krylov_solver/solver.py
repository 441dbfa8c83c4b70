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
Krylov Linear System Solver Interface

This module provides the KrylovSolver facade for solving square linear
systems Ax = b with one of two interchangeable iterative methods:
- GMRES: restarted Generalized Minimal Residual (Arnoldi + Givens QR)
- BiCGStab: Bi-Conjugate Gradient Stabilized (also the default)

Tolerances come from a parameter source that is read once, on the first
solve, and cached for the lifetime of the solver instance. Only a dimension
mismatch aborts a solve; non-convergence and numerical breakdown are
reported through the returned SolveResult and the module logger.

Example:
    >>> import torch
    >>> from krylov_solver import KrylovSolver
    >>>
    >>> solver = KrylovSolver("gmres")
    >>> x = torch.zeros(0, dtype=torch.float64)
    >>> result = solver.solve(A, x, b)
    >>> print(result.converged, result.iterations)
    >>>
    >>> # Or use the convenience function, which allocates x
    >>> from krylov_solver import solve
    >>> x, result = solve(A, b, method="bicgstab", tol=1e-10)
"""

import logging
import torch
from typing import Any, Optional, Tuple, Union
from enum import Enum
from dataclasses import dataclass

from .engines import ConvergenceMonitor, bicgstab_solve, gmres_solve
from .exceptions import DimensionError, NumericalBreakdownError
from .operators import as_linear_operator
from .parameters import (
    ABSOLUTE_TOLERANCE,
    BREAKDOWN_CHECK,
    DIVERGENCE_LIMIT,
    GMRES_RESTART,
    MAXIMUM_ITERATIONS,
    RELATIVE_TOLERANCE,
    REPORT,
    Parameters,
    SolverConfig,
)

logger = logging.getLogger(__name__)

# Precision used when the convenience functions allocate the solution vector
DEFAULT_DTYPE = torch.float64


class SolverType(Enum):
    """Available Krylov methods."""
    GMRES = "gmres"
    BICGSTAB = "bicgstab"
    DEFAULT = "default"  # BiCGStab


@dataclass(frozen=True)
class SolveResult:
    """Result from a Krylov solve."""
    iterations: int           # Iterations (matrix-vector products per step) performed
    converged: bool           # Whether the tolerance was met
    residual_norm: float = 0.0  # Last residual norm (estimate for GMRES)
    breakdown: bool = False   # Stopped on a detected numerical breakdown
    method: str = "bicgstab"  # Engine actually used


def _coerce_solver_type(solver_type: Union[SolverType, str, Any]) -> Any:
    """Map strings onto SolverType; unknown values are kept as given."""
    if isinstance(solver_type, SolverType):
        return solver_type
    try:
        return SolverType(str(solver_type).lower())
    except ValueError:
        return solver_type


class KrylovSolver:
    """
    Iterative solver for square linear systems with GMRES or BiCGStab.

    Attributes:
        solver_type: Requested method (SolverType, or the raw value if unknown)
        parameters: Parameter source answering ``get(key)``
        config: SolverConfig read from ``parameters`` (None before the first solve)

    Example:
        >>> solver = KrylovSolver(SolverType.GMRES)
        >>> result = solver.solve(A, x, b)
        >>>
        >>> # Parameters are read on the first solve only
        >>> params = Parameters({"Krylov GMRES restart": 50})
        >>> solver = KrylovSolver("gmres", parameters=params)
    """

    def __init__(
        self,
        solver_type: Union[SolverType, str] = SolverType.DEFAULT,
        parameters: Optional[Any] = None
    ):
        """
        Initialize the Krylov solver.

        Args:
            solver_type: 'gmres', 'bicgstab' or 'default' (BiCGStab)
            parameters: Parameter source; a fresh Parameters() if not given
        """
        self.solver_type = _coerce_solver_type(solver_type)
        self.parameters = parameters if parameters is not None else Parameters()

        # Lazy load configuration
        self._config: Optional[SolverConfig] = None
        self._parameters_read = False

    @property
    def config(self) -> Optional[SolverConfig]:
        return self._config

    def _read_parameters(self) -> SolverConfig:
        """Read parameters from the source, once per solver instance."""
        if not self._parameters_read:
            self._config = SolverConfig.from_parameters(self.parameters)
            self._parameters_read = True
        return self._config

    def _check_dimensions(self, A, x: torch.Tensor, b: torch.Tensor) -> None:
        M, N = A.rows(), A.cols()
        if M != N or N != b.shape[0]:
            logger.error("Non-matching dimensions for linear system: A is %d x %d, b has length %d.",
                         M, N, b.shape[0])
            raise DimensionError(
                f"Non-matching dimensions for linear system: A is {M} x {N}, "
                f"b has length {b.shape[0]}"
            )
        if not (torch.is_floating_point(x) and torch.is_floating_point(b)):
            raise TypeError(
                f"x and b must be floating point tensors, got {x.dtype} and {b.dtype}")

    def solve(self, A: Any, x: torch.Tensor, b: torch.Tensor) -> SolveResult:
        """
        Solve the linear system Ax = b, writing the solution into ``x``.

        ``x`` is resized to the length of ``b`` and zeroed before solving; any
        initial guess it carries is discarded. The working precision is the
        dtype of ``x``.

        Args:
            A: LinearOperator, object with rows/cols/apply, 2D tensor or callable
            x: Solution vector, overwritten in place
            b: Right-hand side vector

        Returns:
            SolveResult with iteration count and convergence flag

        Raises:
            DimensionError: If A is not square or does not match b
        """
        if b.ndim != 1:
            logger.error("Right-hand side must be a vector, got shape %s.", tuple(b.shape))
            raise DimensionError(f"Right-hand side must be 1D, got shape {tuple(b.shape)}")

        op = as_linear_operator(A, size=b.shape[0])
        self._check_dimensions(op, x, b)

        # Discards any initial guess
        x.resize_(b.shape[0])
        x.zero_()

        config = self._read_parameters()

        if config.report:
            logger.info("Solving linear system of size %d x %d (Krylov solver).",
                        op.rows(), op.cols())

        b = b.to(dtype=x.dtype, device=x.device)
        monitor = ConvergenceMonitor.from_config(config)

        solver_type = self.solver_type
        if solver_type not in (SolverType.GMRES, SolverType.BICGSTAB, SolverType.DEFAULT):
            logger.warning("Requested solver type %r unknown. Using BiCGStab.", solver_type)
            solver_type = SolverType.BICGSTAB

        breakdown = False
        try:
            if solver_type == SolverType.GMRES:
                method = "gmres"
                iterations, converged, residual_norm = gmres_solve(
                    op, x, b, monitor, config.restart_dimension,
                    breakdown_check=config.breakdown_check)
            else:
                method = "bicgstab"
                iterations, converged, residual_norm = bicgstab_solve(
                    op, x, b, monitor, breakdown_check=config.breakdown_check)
        except NumericalBreakdownError as e:
            logger.warning("Krylov solver broke down: %s.", e)
            iterations, converged, residual_norm = e.iteration, False, e.residual_norm
            breakdown = True

        if not converged:
            logger.warning("Krylov solver failed to converge.")
        elif config.report:
            logger.info("Krylov solver converged in %d iterations.", iterations)

        return SolveResult(
            iterations=iterations,
            converged=converged,
            residual_norm=residual_norm,
            breakdown=breakdown,
            method=method
        )

    def __repr__(self) -> str:
        solver_type = getattr(self.solver_type, "value", self.solver_type)
        return (
            f"KrylovSolver(\n"
            f"  solver_type='{solver_type}',\n"
            f"  config={self._config}\n"
            f")"
        )


# Convenience functions for use without creating a KrylovSolver instance

_PARAMETER_NAMES = {
    'tol': RELATIVE_TOLERANCE,
    'atol': ABSOLUTE_TOLERANCE,
    'divtol': DIVERGENCE_LIMIT,
    'maxiter': MAXIMUM_ITERATIONS,
    'restart': GMRES_RESTART,
    'report': REPORT,
    'breakdown_check': BREAKDOWN_CHECK,
}


def _parameters_from_kwargs(kwargs: dict) -> Parameters:
    parameters = Parameters()
    for name, value in kwargs.items():
        if name not in _PARAMETER_NAMES:
            raise TypeError(
                f"Unexpected solver argument '{name}'. Use: {list(_PARAMETER_NAMES)}")
        parameters[_PARAMETER_NAMES[name]] = value
    return parameters


def solve(
    A: Any,
    b: torch.Tensor,
    method: Union[SolverType, str] = "default",
    **kwargs
) -> Tuple[torch.Tensor, SolveResult]:
    """
    Solve Ax = b with a fresh KrylovSolver.

    Args:
        A: Coefficient matrix, LinearOperator or callable
        b: Right-hand side vector
        method: 'gmres', 'bicgstab' or 'default'
        **kwargs: tol, atol, divtol, maxiter, restart, report, breakdown_check

    Returns:
        Tuple of (solution tensor, SolveResult)

    Example:
        >>> from krylov_solver import solve
        >>> x, result = solve(A, b, method='gmres', tol=1e-10, restart=50)
    """
    solver = KrylovSolver(method, parameters=_parameters_from_kwargs(kwargs))
    x = torch.zeros(0, dtype=DEFAULT_DTYPE, device=b.device)
    result = solver.solve(A, x, b)
    return x, result


def gmres(A, b, **kwargs):
    """Solve Ax = b using restarted GMRES."""
    return solve(A, b, method='gmres', **kwargs)


def bicgstab(A, b, **kwargs):
    """Solve Ax = b using BiCGStab."""
    return solve(A, b, method='bicgstab', **kwargs)
