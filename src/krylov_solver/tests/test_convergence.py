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
Test ConvergenceMonitor: relative, absolute, divergence and budget tests.
"""

import math

from krylov_solver.engines import ConvergenceMonitor
from krylov_solver.parameters import SolverConfig

from .helpers import make_monitor


class TestConvergenceMonitor:

    def test_absolute_tolerance(self):
        monitor = make_monitor(rtol=0.0, atol=1e-8)
        assert monitor.converged(1e-9, 1.0)
        assert not monitor.converged(1e-7, 1.0)

    def test_relative_tolerance_uses_initial_norm(self):
        monitor = make_monitor(rtol=1e-6, atol=0.0)
        assert monitor.converged(1e-5, 100.0)
        assert not monitor.converged(1e-3, 100.0)

    def test_divergence_limit(self):
        monitor = make_monitor(div_tol=10.0)
        assert not monitor.diverged(0.0, 1.0)
        assert not monitor.diverged(9.9, 1.0)
        assert monitor.diverged(10.0, 1.0)

    def test_nan_is_neither_converged_nor_within_limit(self):
        monitor = make_monitor()
        assert not monitor.converged(math.nan, 1.0)
        assert monitor.diverged(math.nan, 1.0)

    def test_exhausted(self):
        monitor = make_monitor(max_iterations=3)
        assert not monitor.exhausted(2)
        assert monitor.exhausted(3)

    def test_zero_budget_is_exhausted_immediately(self):
        assert make_monitor(max_iterations=0).exhausted(0)

    def test_initially_solved(self):
        monitor = make_monitor(atol=1e-12)
        assert monitor.initially_solved(0.0)
        assert monitor.initially_solved(1e-13)
        assert not monitor.initially_solved(1e-3)
        # A zero residual is a solution even without an absolute tolerance
        assert make_monitor(atol=0.0).initially_solved(0.0)

    def test_from_config(self):
        config = SolverConfig(
            relative_tolerance=1e-7,
            absolute_tolerance=1e-12,
            divergence_limit=1e3,
            max_iterations=25,
            restart_dimension=5,
            report=False,
        )
        monitor = ConvergenceMonitor.from_config(config)
        assert monitor == ConvergenceMonitor(rtol=1e-7, atol=1e-12, div_tol=1e3, max_iterations=25)
