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
r"""Stationary kernels and their spectral densities.

A stationary kernel depends on its inputs only through $\tau = \lVert x - y
\rVert / \ell$. By Bochner's theorem it is the Fourier transform of a spectral
density, which is what random Fourier features sample frequencies from. The
densities below are those of the kernels at unit lengthscale; the lengthscale
is applied to the features instead.
"""

import beartype.typing as tp
from flax import nnx
import jax.numpy as jnp
from jaxtyping import Float
import numpyro.distributions as npd

from pathwisegp.kernels.base import AbstractKernel
from pathwisegp.parameters import PositiveReal
from pathwisegp.typing import (
    Array,
    ScalarFloat,
)

LengthscaleLike = tp.Union[ScalarFloat, list[float], Float[Array, " D"]]


class StationaryKernel(AbstractKernel):
    r"""A kernel $k(x, y) = \sigma^2 g(\tau)$ with a lengthscale and a variance.

    Args:
        lengthscale: the lengthscale $\ell$. A scalar gives an isotropic kernel, a
            vector of length `D` one lengthscale per input dimension.
        variance: the signal variance $\sigma^2$.
        n_dims: the input dimension. Taken from `lengthscale` when it is a vector.
    """

    def __init__(
        self,
        lengthscale: tp.Union[LengthscaleLike, nnx.Variable] = 1.0,
        variance: tp.Union[ScalarFloat, nnx.Variable] = 1.0,
        n_dims: tp.Optional[int] = None,
    ):
        if not isinstance(lengthscale, nnx.Variable):
            lengthscale = PositiveReal(lengthscale)
        if not isinstance(variance, nnx.Variable):
            variance = PositiveReal(variance)

        super().__init__(_infer_n_dims(lengthscale.value, n_dims))
        self.lengthscale = lengthscale
        self.variance = variance

    def scaled_distance(
        self, x: Float[Array, " D"], y: Float[Array, " D"]
    ) -> ScalarFloat:
        r"""$\tau = \lVert (x - y) / \ell \rVert_2$, clamped away from zero."""
        diff = (x - y) / self.lengthscale.value
        # Keeps the gradient of the square root finite at x = y.
        return jnp.sqrt(jnp.maximum(jnp.sum(diff**2), 1e-36))

    @property
    def spectral_density(self) -> npd.Distribution:
        raise NotImplementedError(f"{self.name} has no spectral density.")


class RBF(StationaryKernel):
    r"""The squared exponential kernel, $k(x, y) = \sigma^2 \exp(-\tau^2 / 2)$."""

    name: str = "RBF"

    def __call__(self, x: Float[Array, " D"], y: Float[Array, " D"]) -> ScalarFloat:
        tau = self.scaled_distance(x, y)
        return self.variance.value * jnp.exp(-0.5 * tau**2)

    @property
    def spectral_density(self) -> npd.Normal:
        return npd.Normal(loc=0.0, scale=1.0)


class Matern52(StationaryKernel):
    r"""The Matérn kernel with smoothness $5/2$.

    $$
    k(x, y) = \sigma^2 \Big(1 + \sqrt{5}\tau + \frac{5}{3}\tau^2\Big)
        \exp\big(-\sqrt{5}\tau\big)
    $$
    """

    name: str = "Matern52"

    def __call__(self, x: Float[Array, " D"], y: Float[Array, " D"]) -> ScalarFloat:
        sqrt5_tau = jnp.sqrt(5.0) * self.scaled_distance(x, y)
        polynomial = 1.0 + sqrt5_tau + jnp.square(sqrt5_tau) / 3.0
        return self.variance.value * polynomial * jnp.exp(-sqrt5_tau)

    @property
    def spectral_density(self) -> npd.StudentT:
        # Student's t with 2ν degrees of freedom, ν = 5/2.
        return npd.StudentT(df=5.0, loc=0.0, scale=1.0)


def _infer_n_dims(
    lengthscale: Float[Array, "..."], n_dims: tp.Optional[int]
) -> tp.Optional[int]:
    shape = jnp.shape(lengthscale)
    if len(shape) > 1:
        raise ValueError(
            f"Expected a scalar or vector lengthscale. Got shape {shape}."
        )
    if len(shape) == 0:
        return n_dims
    if n_dims is not None and n_dims != shape[0]:
        raise ValueError(
            f"A lengthscale of shape {shape} does not match n_dims={n_dims}."
        )
    return shape[0]


__all__ = [
    "StationaryKernel",
    "RBF",
    "Matern52",
]
