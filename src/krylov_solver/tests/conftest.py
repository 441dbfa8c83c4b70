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
Shared fixtures for the krylov_solver tests.
"""

import pytest
import torch


@pytest.fixture
def strict_parameters():
    """Tight tolerances with reporting off."""
    return {
        "Krylov relative tolerance": 1e-10,
        "Krylov absolute tolerance": 0.0,
        "Krylov maximum iterations": 1000,
        "Krylov report": False,
    }


@pytest.fixture(autouse=True)
def _seed():
    torch.manual_seed(42)
