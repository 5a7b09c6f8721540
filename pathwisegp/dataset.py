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
"""Observations that a collapsed (VFE) approximation is conditioned on."""

from dataclasses import dataclass
from functools import partial
import warnings

import jax
import jax.numpy as jnp
from jaxtyping import Num

from pathwisegp.errors import InvalidArgumentError
from pathwisegp.typing import Array


@partial(jax.tree_util.register_dataclass, data_fields=["X", "y"], meta_fields=[])
@dataclass
class Dataset:
    r"""Paired inputs and scalar outputs.

    Args:
        X: inputs of shape `(N, D)`.
        y: outputs of shape `(N, 1)`.

    Raises:
        InvalidArgumentError: if the shapes are not `(N, D)` and `(N, 1)`.
    """

    X: Num[Array, "N D"]
    y: Num[Array, "N 1"]

    def __post_init__(self) -> None:
        if self.X.ndim != 2:
            raise InvalidArgumentError(
                f"Expected X to be 2-dimensional. Got shape {self.X.shape}."
            )
        if self.y.shape != (self.X.shape[0], 1):
            raise InvalidArgumentError(
                f"Expected y of shape ({self.X.shape[0]}, 1) to match X of shape "
                f"{self.X.shape}. Got {self.y.shape}."
            )
        for name, value in (("X", self.X), ("y", self.y)):
            if value.dtype != jnp.float64:
                warnings.warn(
                    f"{name} has dtype {value.dtype} rather than float64, "
                    "which may make the VFE factorisations unstable.",
                    stacklevel=3,
                )

    def __repr__(self) -> str:
        return f"Dataset(n={self.n}, in_dim={self.in_dim})"

    @property
    def n(self) -> int:
        """The number of observations."""
        return self.X.shape[0]

    @property
    def in_dim(self) -> int:
        """The input dimension."""
        return self.X.shape[1]


__all__ = ["Dataset"]
