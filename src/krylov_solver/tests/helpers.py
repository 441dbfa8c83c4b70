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
Helpers shared by the krylov_solver tests.
"""

import torch

from krylov_solver.engines import ConvergenceMonitor
from krylov_solver.parameters import Parameters


class CountingParameters(Parameters):
    """Parameters that record how often each key is read."""

    def __init__(self, values=None):
        super().__init__(values)
        self.calls = {}

    def get(self, key):
        self.calls[key] = self.calls.get(key, 0) + 1
        return super().get(key)


def rotation_matrix(dtype=torch.float64) -> torch.Tensor:
    """90 degree rotation: A v is always orthogonal to v."""
    return torch.tensor([[0.0, 1.0], [-1.0, 0.0]], dtype=dtype)


def make_monitor(rtol=1e-10, atol=0.0, div_tol=1e4, max_iterations=1000):
    return ConvergenceMonitor(rtol=rtol, atol=atol, div_tol=div_tol,
                              max_iterations=max_iterations)
