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
Solver parameters for krylov_solver.

A parameter source is any object answering ``get(key)`` for the keys in
``DEFAULT_PARAMETERS``. The KrylovSolver reads it once, on its first solve,
into an immutable ``SolverConfig``.

Example:
    >>> from krylov_solver import Parameters, KrylovSolver
    >>>
    >>> params = Parameters()
    >>> params["Krylov relative tolerance"] = 1e-10
    >>> solver = KrylovSolver("gmres", parameters=params)
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, Optional


RELATIVE_TOLERANCE = "Krylov relative tolerance"
ABSOLUTE_TOLERANCE = "Krylov absolute tolerance"
DIVERGENCE_LIMIT = "Krylov divergence limit"
MAXIMUM_ITERATIONS = "Krylov maximum iterations"
GMRES_RESTART = "Krylov GMRES restart"
REPORT = "Krylov report"
BREAKDOWN_CHECK = "Krylov breakdown check"

DEFAULT_PARAMETERS: Dict[str, Any] = {
    RELATIVE_TOLERANCE: 1e-15,
    ABSOLUTE_TOLERANCE: 1e-20,
    DIVERGENCE_LIMIT: 1e4,
    MAXIMUM_ITERATIONS: 10000,
    GMRES_RESTART: 30,
    REPORT: True,
    BREAKDOWN_CHECK: False,
}


class Parameters:
    """
    Keyed parameter store pre-populated with ``DEFAULT_PARAMETERS``.

    Only known keys may be read or written; anything else raises KeyError so
    that a misspelt key does not silently fall back to a default.
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, Any] = dict(DEFAULT_PARAMETERS)
        if values is not None:
            self.update(values)

    def get(self, key: str) -> Any:
        if key not in self._values:
            raise KeyError(f"Unknown parameter: '{key}'")
        return self._values[key]

    def set(self, key: str, value: Any) -> None:
        if key not in self._values:
            raise KeyError(f"Unknown parameter: '{key}'")
        self._values[key] = value

    def update(self, values: Mapping[str, Any]) -> None:
        for key, value in values.items():
            self.set(key, value)

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __repr__(self) -> str:
        items = ",\n".join(f"  {k!r}: {v!r}" for k, v in self._values.items())
        return f"Parameters(\n{items}\n)"


@dataclass(frozen=True)
class SolverConfig:
    """Tolerances and limits for one KrylovSolver instance."""
    relative_tolerance: float
    absolute_tolerance: float
    divergence_limit: float
    max_iterations: int
    restart_dimension: int   # GMRES only
    report: bool
    breakdown_check: bool = False

    def __post_init__(self):
        if self.relative_tolerance < 0 or self.absolute_tolerance < 0:
            raise ValueError(
                f"Tolerances must be non-negative, got rtol={self.relative_tolerance}, "
                f"atol={self.absolute_tolerance}"
            )
        if not self.divergence_limit > 0:
            raise ValueError(f"Divergence limit must be positive, got {self.divergence_limit}")
        if self.max_iterations < 0:
            raise ValueError(f"Maximum iterations must be >= 0, got {self.max_iterations}")
        if self.restart_dimension < 1:
            raise ValueError(f"GMRES restart must be >= 1, got {self.restart_dimension}")

    @classmethod
    def from_parameters(cls, source: Any) -> "SolverConfig":
        """
        Read every Krylov key from ``source`` exactly once.

        The breakdown check key is optional so that sources knowing only the
        six classic Krylov keys still work.
        """
        try:
            breakdown_check = bool(source.get(BREAKDOWN_CHECK))
        except KeyError:
            breakdown_check = False
        return cls(
            relative_tolerance=float(source.get(RELATIVE_TOLERANCE)),
            absolute_tolerance=float(source.get(ABSOLUTE_TOLERANCE)),
            divergence_limit=float(source.get(DIVERGENCE_LIMIT)),
            max_iterations=int(source.get(MAXIMUM_ITERATIONS)),
            restart_dimension=int(source.get(GMRES_RESTART)),
            report=bool(source.get(REPORT)),
            breakdown_check=breakdown_check,
        )
