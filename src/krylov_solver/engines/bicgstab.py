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
BiCGStab (Bi-Conjugate Gradient Stabilized) iteration.

The shadow residual is seeded from the right-hand side ``b`` rather than from
the initial residual ``b - A x0``. The two coincide because the KrylovSolver
always starts from ``x = 0``; a caller that passes a non-zero starting vector
directly to ``bicgstab_solve`` gets the ``b``-seeded variant.
"""

import logging
from typing import Tuple

import torch

from ..exceptions import NumericalBreakdownError
from .convergence import ConvergenceMonitor

logger = logging.getLogger(__name__)


def _vanishes(value: torch.Tensor, u: torch.Tensor, v: torch.Tensor) -> bool:
    """True if the inner product ``value = (u, v)`` is zero to working precision."""
    eps = torch.finfo(value.dtype).eps
    scale = torch.linalg.vector_norm(u) * torch.linalg.vector_norm(v)
    return bool(torch.abs(value) <= eps * scale)


def bicgstab_solve(A, x: torch.Tensor, b: torch.Tensor, monitor: ConvergenceMonitor,
                   breakdown_check: bool = False) -> Tuple[int, bool, float]:
    """
    Solve A x = b with BiCGStab, updating ``x`` in place.

    Args:
        A: Square operator exposing ``apply(v)``
        x: Starting vector, overwritten with the approximate solution
        b: Right-hand side, same dtype and device as ``x``
        monitor: Tolerances and iteration budget
        breakdown_check: Raise NumericalBreakdownError when (Ap, r*), (As, As),
            (As, s) or (r, r*) vanish instead of letting NaN/Inf propagate

    Returns:
        Tuple of (iterations, converged, last residual norm)
    """
    logger.warning("Preconditioning has not yet been implemented for the BiCGStab solver.")

    dtype = x.dtype

    r = b - A.apply(x).to(dtype)
    r0_norm = torch.linalg.vector_norm(r).item()
    if monitor.initially_solved(r0_norm):
        return 0, True, r0_norm

    p = r.clone()
    rstar = b.clone()

    r_rstar1 = torch.dot(r, rstar)

    r_norm = 0.0
    iteration = 0
    converged = False
    while (not monitor.exhausted(iteration) and not converged
           and not monitor.diverged(r_norm, r0_norm)):
        Ap = A.apply(p).to(dtype)

        Ap_rstar = torch.dot(Ap, rstar)
        if breakdown_check and _vanishes(Ap_rstar, Ap, rstar):
            raise NumericalBreakdownError(
                "(Ap, r*)", iteration, residual_norm=r_norm if iteration else r0_norm)
        alpha = r_rstar1 / Ap_rstar

        s = r - alpha * Ap

        # s already small enough: the half step is the solution
        s_norm = torch.linalg.vector_norm(s).item()
        if monitor.converged(s_norm, r0_norm):
            x.add_(alpha * p)
            r = s
            r_norm = s_norm
            converged = True
            iteration += 1
            break

        As = A.apply(s).to(dtype)

        As_As = torch.dot(As, As)
        if breakdown_check and As_As.item() == 0.0:
            raise NumericalBreakdownError(
                "(As, As)", iteration, residual_norm=r_norm if iteration else r0_norm)
        As_s = torch.dot(As, s)
        omega = As_s / As_As

        x.add_(alpha * p + omega * s)

        r = s - omega * As

        r_norm = torch.linalg.vector_norm(r).item()
        converged = monitor.converged(r_norm, r0_norm)
        iteration += 1

        if not converged:
            r_rstar0 = r_rstar1
            r_rstar1 = torch.dot(r, rstar)
            if breakdown_check:
                if _vanishes(As_s, As, s):
                    raise NumericalBreakdownError("(As, s)", iteration, residual_norm=r_norm)
                if _vanishes(r_rstar1, r, rstar):
                    raise NumericalBreakdownError("(r, r*)", iteration, residual_norm=r_norm)
            beta = (r_rstar1 / r_rstar0) * (alpha / omega)

            p = r + beta * (p - omega * Ap)

        if iteration % 100 == 0:
            logger.debug("BiCGStab iteration %d, ||r|| = %.3e", iteration, r_norm)

    return iteration, converged, r_norm
