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
r"""Gaussian process priors."""

import beartype.typing as tp
from cola.annotations import PSD
from cola.ops.operators import I_like
from flax import nnx
from jaxtyping import (
    Float,
    Num,
)

from pathwisegp.distributions import GaussianDistribution
from pathwisegp.kernels.base import AbstractKernel
from pathwisegp.mean_functions import AbstractMeanFunction
from pathwisegp.typing import Array

K = tp.TypeVar("K", bound=AbstractKernel)
M = tp.TypeVar("M", bound=AbstractMeanFunction)


class Prior(nnx.Module, tp.Generic[M, K]):
    r"""The prior $f \sim \mathcal{GP}(m(\cdot), k(\cdot, \cdot))$.

    `mean`, `covariance` and `variance` are the raw moments of the process.
    `predict` returns the finite-dimensional marginal, with `jitter` on the
    diagonal so that it can be factorised.

    Example:
    ```pycon
        >>> import pathwisegp as pgp
        >>> import jax.numpy as jnp
        >>> prior = pgp.gps.Prior(
        ...     kernel=pgp.kernels.RBF(), mean_function=pgp.mean_functions.Zero()
        ... )
        >>> prior.predict(jnp.linspace(0, 1, 10)[:, None]).mean.shape
        (10,)
    ```

    Args:
        kernel: the covariance function $k$.
        mean_function: the mean function $m$.
        jitter: the diagonal perturbation used by `predict`.
    """

    def __init__(self, kernel: K, mean_function: M, jitter: float = 1e-6):
        self.kernel = kernel
        self.mean_function = mean_function
        self.jitter = jitter

    def __call__(self, test_inputs: Num[Array, "N D"]) -> GaussianDistribution:
        return self.predict(test_inputs)

    def mean(self, x: Num[Array, "N D"]) -> Float[Array, " N"]:
        r"""$m(x)$ as a vector."""
        return self.mean_function(x)[:, 0]

    def covariance(
        self, x: Num[Array, "N D"], y: tp.Optional[Num[Array, "M D"]] = None
    ) -> Float[Array, "N M"]:
        r"""$k(x, y)$ as a dense array, or $k(x, x)$ when `y` is omitted. No jitter."""
        if y is None:
            return self.kernel.gram(x).to_dense()
        return self.kernel.cross_covariance(x, y)

    def variance(self, x: Num[Array, "N D"]) -> Float[Array, " N"]:
        r"""The marginal variances $k(x_i, x_i)$."""
        return self.kernel.diagonal(x).diag

    def predict(self, test_inputs: Num[Array, "N D"]) -> GaussianDistribution:
        r"""The marginal $\mathcal{N}(m(x), k(x, x) + \epsilon I)$ at `test_inputs`."""
        Kxx = self.kernel.gram(test_inputs)
        Kxx = PSD(Kxx + I_like(Kxx) * self.jitter)
        return GaussianDistribution(self.mean(test_inputs), Kxx)


__all__ = ["Prior"]
