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
Convergence bookkeeping shared by the Krylov engines.

All comparisons are written so that a NaN residual is neither converged nor
within the divergence limit, which makes every engine loop terminate once a
NaN appears.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ConvergenceMonitor:
    """
    Residual-norm tests against relative, absolute and divergence thresholds.

    Attributes:
        rtol: Relative tolerance, measured against the initial residual norm
        atol: Absolute tolerance on the residual norm
        div_tol: Largest ratio to the reference norm that still counts as progress
        max_iterations: Iteration budget
    """
    rtol: float
    atol: float
    div_tol: float
    max_iterations: int

    @classmethod
    def from_config(cls, config) -> "ConvergenceMonitor":
        return cls(
            rtol=config.relative_tolerance,
            atol=config.absolute_tolerance,
            div_tol=config.divergence_limit,
            max_iterations=config.max_iterations,
        )

    def initially_solved(self, r0: float) -> bool:
        """True if the starting residual needs no iteration at all."""
        return r0 == 0.0 or r0 < self.atol

    def converged(self, r: float, r0: float) -> bool:
        return r < self.atol or r / r0 < self.rtol

    def diverged(self, r: float, reference: float) -> bool:
        return not (r / reference < self.div_tol)

    def exhausted(self, iteration: int) -> bool:
        return iteration >= self.max_iterations
