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
Test the BiCGStab engine.

Covers SPD and non-symmetric systems, the half-step early exit, the
divergence guard and both breakdown policies.
"""

import pytest
import torch

from krylov_solver.engines import bicgstab_solve
from krylov_solver.exceptions import NumericalBreakdownError
from krylov_solver.operators import FunctionOperator, MatrixOperator
from krylov_solver.utils.matrix_utils import (
    compute_relative_residual,
    create_nonsymmetric_matrix,
    create_poisson_2d_sparse_coo,
    create_spd_matrix,
    create_tridiagonal_sparse_coo,
)

from .helpers import make_monitor, rotation_matrix


def _solve(A, b, breakdown_check=False, **monitor_kwargs):
    op = A if hasattr(A, 'apply') else MatrixOperator(A)
    x = torch.zeros_like(b)
    iterations, converged, r_norm = bicgstab_solve(
        op, x, b, make_monitor(**monitor_kwargs), breakdown_check=breakdown_check)
    return x, iterations, converged, r_norm


class TestBiCGStab:

    def test_spd_system(self):
        A = create_spd_matrix(40, seed=0)
        b = torch.randn(40, dtype=torch.float64)

        x, iterations, converged, _ = _solve(A, b, rtol=1e-10)

        assert converged
        assert 0 < iterations <= 1000
        assert compute_relative_residual(A, x, b) < 1e-8

    def test_nonsymmetric_system(self):
        A = create_nonsymmetric_matrix(100, seed=7)
        x_true = torch.randn(100, dtype=torch.float64)
        b = A @ x_true

        x, _, converged, _ = _solve(A, b, rtol=1e-12)

        assert converged
        assert torch.allclose(x, x_true, atol=1e-8)

    def test_sparse_poisson(self):
        A = create_poisson_2d_sparse_coo(12, 12)
        b = torch.ones(144, dtype=torch.float64)

        x, _, converged, _ = _solve(A, b, rtol=1e-10, max_iterations=2000)

        assert converged
        assert compute_relative_residual(A, x, b) < 1e-8

    def test_identity_operator(self):
        b = torch.randn(10, dtype=torch.float64)
        identity = FunctionOperator(lambda v: v.clone(), size=10)

        x, iterations, converged, _ = _solve(identity, b)

        assert converged
        assert iterations <= 2
        assert torch.allclose(x, b, atol=1e-12)
        assert torch.isfinite(x).all()

    def test_zero_rhs(self):
        A = create_spd_matrix(5)
        b = torch.zeros(5, dtype=torch.float64)

        x, iterations, converged, _ = _solve(A, b)

        assert converged
        assert iterations == 0
        assert torch.count_nonzero(x) == 0

    def test_divergence_guard_stops_iteration(self):
        A = create_tridiagonal_sparse_coo(50)
        b = torch.randn(50, dtype=torch.float64)

        _, iterations, converged, _ = _solve(A, b, rtol=1e-14, div_tol=1e-12)

        assert not converged
        assert iterations == 1

    def test_iteration_budget(self):
        A = create_tridiagonal_sparse_coo(200)
        b = torch.randn(200, dtype=torch.float64)

        _, iterations, converged, _ = _solve(A, b, rtol=1e-14, max_iterations=5)

        assert not converged
        assert iterations == 5

    def test_operator_called_twice_per_iteration(self):
        op = MatrixOperator(create_nonsymmetric_matrix(30, seed=1))
        b = torch.randn(30, dtype=torch.float64)
        x = torch.zeros_like(b)

        iterations, _, _ = bicgstab_solve(op, x, b, make_monitor(rtol=1e-14, max_iterations=3))

        # One product for the initial residual, two per iteration
        assert op.matvec_count == 1 + 2 * iterations


class TestBiCGStabBreakdown:
    """On a rotation (Ap, r*) is exactly zero in the first iteration."""

    def test_ieee_propagation_by_default(self):
        b = torch.tensor([1.0, 0.0], dtype=torch.float64)

        x, iterations, converged, r_norm = _solve(rotation_matrix(), b, max_iterations=50)

        assert not converged
        assert iterations == 1
        assert r_norm != r_norm  # NaN
        assert not torch.isfinite(x).all()

    def test_breakdown_check_raises(self):
        b = torch.tensor([1.0, 0.0], dtype=torch.float64)

        with pytest.raises(NumericalBreakdownError) as excinfo:
            _solve(rotation_matrix(), b, breakdown_check=True, max_iterations=50)

        assert excinfo.value.quantity == "(Ap, r*)"
        assert excinfo.value.iteration == 0
        assert excinfo.value.residual_norm == pytest.approx(1.0)

    def test_breakdown_check_leaves_solution_finite(self):
        op = MatrixOperator(rotation_matrix())
        b = torch.tensor([1.0, 0.0], dtype=torch.float64)
        x = torch.zeros_like(b)

        with pytest.raises(NumericalBreakdownError):
            bicgstab_solve(op, x, b, make_monitor(), breakdown_check=True)

        assert torch.count_nonzero(x) == 0

    def test_breakdown_check_is_silent_on_regular_systems(self):
        A = create_nonsymmetric_matrix(40, seed=11)
        b = torch.randn(40, dtype=torch.float64)

        _, _, converged, _ = _solve(A, b, breakdown_check=True, rtol=1e-10)

        assert converged
