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
r"""Random Fourier feature approximation of a stationary kernel.

Drawing $M$ frequencies $\omega_i$ from the spectral density of a stationary
kernel gives the Monte-Carlo estimate
$$
k(x, y) \approx \frac{\sigma^2}{M}\sum_{i=1}^{M}
    \cos(\omega_i^\top x')\cos(\omega_i^\top y')
    + \sin(\omega_i^\top x')\sin(\omega_i^\top y'),
$$
with $x' = x / \ell$ (Rahimi and Recht, 2008). The estimate is the inner
product of $L = 2M$ features, which is what a weight-space prior draw needs.
"""

import beartype.typing as tp
from cola.annotations import PSD
from cola.ops.operators import (
    Dense,
    Diagonal,
)
import jax.numpy as jnp
import jax.random as jr
from jaxtyping import Float

from pathwisegp.errors import InvalidArgumentError
from pathwisegp.kernels.base import AbstractKernel
from pathwisegp.kernels.stationary import StationaryKernel
from pathwisegp.parameters import Static
from pathwisegp.typing import (
    Array,
    KeyArray,
)


class RFF(AbstractKernel):
    r"""A rank-$2M$ approximation of a stationary kernel.

    Args:
        base_kernel: the stationary kernel to approximate. Its `n_dims` must be
            known unless `frequencies` is given.
        num_basis_fns: the number of frequencies $M$.
        frequencies: frequencies of shape `(M, D)` to use instead of sampling.
        key: the key the frequencies are sampled with.
    """

    name: str = "RFF"

    def __init__(
        self,
        base_kernel: StationaryKernel,
        num_basis_fns: int = 50,
        frequencies: tp.Optional[Float[Array, "_ _"]] = None,
        key: KeyArray = jr.PRNGKey(0),
    ):
        if not isinstance(base_kernel, StationaryKernel):
            raise TypeError(
                "Random Fourier features need a stationary kernel. "
                f"Got {type(base_kernel).__name__}."
            )
        _check_num_basis_fns(num_basis_fns)

        if frequencies is None:
            if base_kernel.n_dims is None:
                raise ValueError(
                    "Set n_dims on the base kernel so that frequencies can be sampled."
                )
            frequencies = base_kernel.spectral_density.sample(
                key, sample_shape=(num_basis_fns, base_kernel.n_dims)
            )
        elif jnp.shape(frequencies)[0] != num_basis_fns:
            raise InvalidArgumentError(
                f"Expected {num_basis_fns} frequencies. "
                f"Got {jnp.shape(frequencies)[0]}."
            )

        super().__init__(n_dims=jnp.shape(frequencies)[1])
        self.base_kernel = base_kernel
        self.num_basis_fns = num_basis_fns
        self.frequencies = Static(frequencies)

    def __call__(self, x: Float[Array, " D"], y: Float[Array, " D"]) -> None:
        raise RuntimeError("RFF is evaluated through its features only.")

    @property
    def num_features(self) -> int:
        """The number of features $L = 2M$."""
        return 2 * self.num_basis_fns

    def compute_features(self, x: Float[Array, "N D"]) -> Float[Array, "N L"]:
        r"""The unscaled features $[\cos(x'\Omega^\top), \sin(x'\Omega^\top)]$."""
        proj = (x / self.base_kernel.lengthscale.value) @ self.frequencies.value.T
        return jnp.hstack([jnp.cos(proj), jnp.sin(proj)])

    def scaling(self) -> Float[Array, ""]:
        r"""The factor $\sigma^2 / M$ scaling feature inner products."""
        return self.base_kernel.variance.value / self.num_basis_fns

    def cross_covariance(
        self, x: Float[Array, "N D"], y: Float[Array, "M D"]
    ) -> Float[Array, "N M"]:
        return self.scaling() * (self.compute_features(x) @ self.compute_features(y).T)

    def gram(self, x: Float[Array, "N D"]) -> Dense:
        phi = self.compute_features(x)
        return PSD(Dense(self.scaling() * (phi @ phi.T)))

    def diagonal(self, x: Float[Array, "N D"]) -> Diagonal:
        # Each cos² + sin² pair sums to one, so the diagonal is exact.
        return self.base_kernel.diagonal(x)


def _check_num_basis_fns(num_basis_fns: tp.Any) -> None:
    if isinstance(num_basis_fns, bool) or not isinstance(num_basis_fns, int):
        raise InvalidArgumentError(
            f"Expected num_basis_fns to be an integer. Got {num_basis_fns!r}."
        )
    if num_basis_fns <= 0:
        raise InvalidArgumentError(
            f"Expected num_basis_fns to be positive. Got {num_basis_fns}."
        )


__all__ = ["RFF"]
