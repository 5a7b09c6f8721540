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
"""Type aliases shared across pathwisegp."""

from typing import (
    Callable,
    Union,
)

from jaxtyping import (
    Array as JAXArray,
    Float,
    Key,
    UInt32,
)
from numpy import ndarray as NumpyArray

Array = Union[JAXArray, NumpyArray]

# Raw uint32 keys from `jr.PRNGKey` and typed keys from `jr.key` are both accepted.
KeyArray = Union[UInt32[JAXArray, "2"], Key[JAXArray, ""]]

ScalarFloat = Union[float, Float[Array, ""]]

FunctionalSample = Callable[[Float[Array, "N D"]], Float[Array, " N"]]
r"""A function drawn from a model: maps `N` inputs of dimension `D` to `N` values,
consistently across repeated evaluations."""

__all__ = [
    "Array",
    "KeyArray",
    "ScalarFloat",
    "FunctionalSample",
]
