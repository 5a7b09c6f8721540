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
r"""Prior mean functions $m(\cdot)$."""

import abc

import beartype.typing as tp
from flax import nnx
import jax.numpy as jnp
from jaxtyping import (
    Float,
    Num,
)

from pathwisegp.parameters import (
    Real,
    Static,
)
from pathwisegp.typing import (
    Array,
    ScalarFloat,
)


class AbstractMeanFunction(nnx.Module):
    r"""A mean function maps `N` inputs to a column of `N` prior means."""

    @abc.abstractmethod
    def __call__(self, x: Num[Array, "N D"]) -> Float[Array, "N 1"]:
        raise NotImplementedError


class Constant(AbstractMeanFunction):
    r"""$m(x) = c$ for every input.

    Args:
        constant: the value $c$. A plain value is wrapped as a learnable `Real`;
            an `nnx.Variable` is held as given.
    """

    def __init__(
        self, constant: tp.Union[ScalarFloat, Float[Array, " 1"], nnx.Variable] = 0.0
    ):
        if not isinstance(constant, nnx.Variable):
            constant = Real(constant)
        self.constant = constant

    def __call__(self, x: Num[Array, "N D"]) -> Float[Array, "N 1"]:
        return jnp.full((x.shape[0], 1), jnp.reshape(self.constant.value, ()))


class Zero(Constant):
    r"""$m(x) = 0$, held as a `Static` so that it is never learned."""

    def __init__(self):
        super().__init__(Static(0.0))


__all__ = [
    "AbstractMeanFunction",
    "Constant",
    "Zero",
]
