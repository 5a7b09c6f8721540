# Copyright 2022 The JaxGaussianProcesses Contributors. All Rights Reserved.
# Copyright 2024 The pathwisegp Contributors.
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
# ==============================================================================
"""Kernels for Gaussian process priors."""

from pathwisegp.kernels.base import AbstractKernel
from pathwisegp.kernels.rff import RFF
from pathwisegp.kernels.stationary import (
    RBF,
    Matern52,
    StationaryKernel,
)

__all__ = [
    "AbstractKernel",
    "Matern52",
    "RBF",
    "RFF",
    "StationaryKernel",
]
