"""
Test suite for krylov_solver.

This test suite validates:
1. Convergence, divergence and budget logic shared by the engines
2. Correctness of the GMRES and BiCGStab engines
3. The KrylovSolver facade: dispatch, parameters, diagnostics, errors
"""
