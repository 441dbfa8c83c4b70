"""
Krylov engines used by the KrylovSolver facade.

- gmres_solve: restarted GMRES (Arnoldi + Givens rotations)
- bicgstab_solve: BiCGStab
- ConvergenceMonitor: shared tolerance / divergence / budget tests
"""

from .convergence import ConvergenceMonitor
from .gmres import gmres_solve
from .bicgstab import bicgstab_solve

__all__ = [
    'ConvergenceMonitor',
    'gmres_solve',
    'bicgstab_solve',
]
