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
r"""Covariance functions of Gaussian process priors.

A kernel is an `nnx.Module` that evaluates $k(x, y)$ on a single pair of inputs.
The batched evaluations the posterior and the sampler need, cross-covariances
and gram matrices, are assembled here by vectorising that pointwise function.
"""

import abc

import beartype.typing as tp
from cola.annotations import PSD
from cola.ops.operators import (
    Dense,
    Diagonal,
)
from flax import nnx
import jax
from jaxtyping import (
    Float,
    Num,
)

from pathwisegp.typing import (
    Array,
    ScalarFloat,
)


class AbstractKernel(nnx.Module):
    r"""Base class of all kernels.

    Subclasses implement the pointwise `__call__`. `cross_covariance`, `gram`
    and `diagonal` may be overridden when a kernel has a cheaper batched form,
    as feature approximations do.

    Args:
        n_dims: the input dimension $D$, or `None` when it is left unspecified.
    """

    name: str = "AbstractKernel"

    def __init__(self, n_dims: tp.Optional[int] = None):
        if n_dims is not None and (
            isinstance(n_dims, bool) or not isinstance(n_dims, int)
        ):
            raise TypeError(
                f"Expected n_dims to be an integer or None. Got {n_dims!r}."
            )
        self.n_dims = n_dims

    @abc.abstractmethod
    def __call__(self, x: Num[Array, " D"], y: Num[Array, " D"]) -> ScalarFloat:
        r"""Evaluate $k(x, y)$ for a single pair of inputs."""
        ...

    def cross_covariance(
        self, x: Num[Array, "N D"], y: Num[Array, "M D"]
    ) -> Float[Array, "N M"]:
        r"""The matrix $[k(x_i, y_j)]_{ij}$ of shape `(N, M)`."""

        def row(xi):
            return jax.vmap(lambda yj: self(xi, yj))(y)

        return jax.vmap(row)(x)

    def gram(self, x: Num[Array, "N D"]) -> Dense:
        r"""The gram matrix $k(x, x)$ as a PSD-annotated dense operator.

        No jitter is added; callers that factorise the result add their own.
        """
        return PSD(Dense(self.cross_covariance(x, x)))

    def diagonal(self, x: Num[Array, "N D"]) -> Diagonal:
        r"""The marginal variances $k(x_i, x_i)$ as a PSD diagonal operator."""
        return PSD(Diagonal(jax.vmap(lambda xi: self(xi, xi))(x)))


__all__ = ["AbstractKernel"]
