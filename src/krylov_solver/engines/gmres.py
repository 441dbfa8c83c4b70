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
Restarted GMRES with modified Gram-Schmidt Arnoldi and Givens-rotation QR.

The basis, Hessenberg and rotation buffers are allocated once per solve and
overwritten on every restart cycle. The residual-norm estimate comes for free
from the rotated right-hand side ``gamma``; the true residual is only formed
at the start of each cycle.
"""

import logging
from typing import Tuple

import torch

from ..exceptions import NumericalBreakdownError
from .convergence import ConvergenceMonitor

logger = logging.getLogger(__name__)


def _update_solution(x: torch.Tensor, V: torch.Tensor, H: torch.Tensor,
                     gamma: torch.Tensor, k: int) -> None:
    """x <- x + V[:, :k] @ y with H[:k, :k] y = gamma[:k] (back substitution)."""
    if k == 0:
        return
    y = torch.linalg.solve_triangular(
        H[:k, :k], gamma[:k].unsqueeze(-1), upper=True).squeeze(-1)
    x.add_(torch.mv(V[:, :k], y))


def gmres_solve(A, x: torch.Tensor, b: torch.Tensor, monitor: ConvergenceMonitor,
                restart: int, breakdown_check: bool = False) -> Tuple[int, bool, float]:
    """
    Solve A x = b with restarted GMRES, updating ``x`` in place.

    Args:
        A: Square operator exposing ``rows()`` and ``apply(v)``
        x: Starting vector, overwritten with the approximate solution
        b: Right-hand side, same dtype and device as ``x``
        monitor: Tolerances and iteration budget
        restart: Krylov basis size between restarts
        breakdown_check: Raise NumericalBreakdownError on a zero Givens norm
            instead of letting NaN propagate

    Returns:
        Tuple of (iterations, converged, last residual-norm estimate)
    """
    logger.warning("Preconditioning has not yet been implemented for the GMRES solver.")

    size = A.rows()
    dtype, device = x.dtype, x.device
    eps = torch.finfo(dtype).eps

    V = torch.zeros(size, restart + 1, dtype=dtype, device=device)
    H = torch.zeros(restart, restart, dtype=dtype, device=device)
    h = torch.zeros(restart + 1, dtype=dtype, device=device)
    gamma = torch.zeros(restart + 1, dtype=dtype, device=device)
    c = torch.zeros(restart, dtype=dtype, device=device)
    s = torch.zeros(restart, dtype=dtype, device=device)

    iteration = 0
    converged = False
    diverged = False
    r_norm = 0.0
    beta0 = 0.0

    while not monitor.exhausted(iteration) and not converged and not diverged:
        r = b - A.apply(x).to(dtype)
        beta = torch.linalg.vector_norm(r).item()

        # The relative test always refers to the residual of the first cycle
        if iteration == 0:
            beta0 = beta

        if monitor.initially_solved(beta):
            return iteration, True, beta

        logger.debug("GMRES restart at iteration %d, ||r|| = %.3e", iteration, beta)

        gamma.zero_()
        gamma[0] = beta
        V[:, 0] = r / beta

        j = 0
        invariant = False
        while (j < restart and not monitor.exhausted(iteration)
               and not converged and not invariant):
            if monitor.diverged(r_norm, beta):
                diverged = True
                break

            w = A.apply(V[:, j]).to(dtype)
            w_norm0 = torch.linalg.vector_norm(w)
            h.zero_()
            for i in range(j + 1):
                h[i] = torch.dot(w, V[:, i])
                w = w - h[i] * V[:, i]
            h[j + 1] = torch.linalg.vector_norm(w)

            # Happy breakdown: A V[:, j] lies in the current basis
            if h[j + 1] <= eps * w_norm0:
                h[j + 1] = 0.0
                V[:, j + 1] = 0.0
                invariant = True
            else:
                V[:, j + 1] = w / h[j + 1]

            for i in range(j):
                temp1 = h[i].clone()
                temp2 = h[i + 1].clone()
                h[i] = c[i] * temp1 - s[i] * temp2
                h[i + 1] = s[i] * temp1 + c[i] * temp2

            nu = torch.sqrt(h[j] * h[j] + h[j + 1] * h[j + 1])
            if breakdown_check and nu.item() == 0.0:
                _update_solution(x, V, H, gamma, j)
                raise NumericalBreakdownError(
                    "Givens norm", iteration, residual_norm=r_norm if j else beta)
            c[j] = h[j] / nu
            s[j] = -h[j + 1] / nu

            h[j] = c[j] * h[j] - s[j] * h[j + 1]

            temp1 = c[j] * gamma[j] - s[j] * gamma[j + 1]
            gamma[j + 1] = s[j] * gamma[j] + c[j] * gamma[j + 1]
            gamma[j] = temp1
            r_norm = abs(gamma[j + 1].item())

            H[:j + 1, j] = h[:j + 1]

            converged = monitor.converged(r_norm, beta0)

            iteration += 1
            j += 1

        _update_solution(x, V, H, gamma, j)

    return iteration, converged, r_norm
