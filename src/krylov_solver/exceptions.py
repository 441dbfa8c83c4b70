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
Exceptions raised by krylov_solver.

Only dimension mismatches abort a solve. Numerical breakdown is raised inside
the engines when breakdown checking is enabled and is turned into a
non-converged SolveResult by the KrylovSolver facade.
"""


class KrylovSolverError(Exception):
    """Base class for all krylov_solver errors."""


class DimensionError(KrylovSolverError, ValueError):
    """Operator and right-hand side have non-matching dimensions."""


class NumericalBreakdownError(KrylovSolverError, ArithmeticError):
    """
    A Krylov recursion hit a vanishing denominator.

    Attributes:
        quantity: Name of the quantity that vanished (e.g. '(Ap, r*)')
        iteration: Iterations completed when the breakdown was detected
        residual_norm: Last residual norm computed before the breakdown
    """

    def __init__(self, quantity: str, iteration: int, residual_norm: float = float("nan")):
        self.quantity = quantity
        self.iteration = iteration
        self.residual_norm = residual_norm
        super().__init__(
            f"Numerical breakdown at iteration {iteration}: {quantity} vanished"
        )
