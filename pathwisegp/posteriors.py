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

import beartype.typing as tp
from cola.annotations import PSD
from cola.linalg.decompositions.decompositions import Cholesky
from cola.linalg.inverse.inv import solve
from cola.ops.operators import I_like
from flax import nnx
import jax.numpy as jnp
from jaxtyping import Float

from pathwisegp.approximations import SparseApproximation
from pathwisegp.distributions import GaussianDistribution
from pathwisegp.errors import InvalidArgumentError
from pathwisegp.gps import Prior
from pathwisegp.inducing import resolve_root
from pathwisegp.lower_cholesky import (
    checked_lower_cholesky,
    symmetrise,
)
from pathwisegp.parameters import Static
from pathwisegp.typing import (
    Array,
    ScalarFloat,
)


class SparsePosterior(nnx.Module):
    r"""A sparse variational approximation to a Gaussian process posterior.

    The posterior is $q(f(\cdot)) = \int p(f(\cdot)\mid u) q(u) \mathrm{d}u$, where
    $u = f(z)$ are the function values at the inducing inputs $z$ and $q(u)$ is
    carried by `approximation`.

    Args:
        prior: the GP prior.
        inducing_inputs: the inducing inputs $z$ of shape `(M, D)`, with `M > 0`.
        approximation: the parameterisation of $q(u)$.
        jitter: the diagonal perturbation added to $K_{zz}$ before factorising.

    Raises:
        InvalidArgumentError: if `inducing_inputs` is not a non-empty `(M, D)`
            array, or `approximation` does not hold `M` inducing values.
    """

    def __init__(
        self,
        prior: Prior,
        inducing_inputs: Float[Array, "M D"],
        approximation: SparseApproximation,
        jitter: ScalarFloat = 1e-6,
    ):
        _check_inducing_inputs(inducing_inputs)
        _check_num_inducing(approximation, inducing_inputs.shape[0])

        self.prior = prior
        self.inducing_inputs = Static(inducing_inputs)
        self.approximation = approximation
        self.jitter = jitter

    @property
    def num_inducing(self) -> int:
        """The number of inducing inputs."""
        return self.inducing_inputs.value.shape[0]

    def __call__(self, test_inputs: Float[Array, "N D"]) -> GaussianDistribution:
        return self.predict(test_inputs)

    def predict(self, test_inputs: Float[Array, "N D"]) -> GaussianDistribution:
        r"""The marginal $q(f(t)) = \int p(f(t) \mid u)\, q(u)\, \mathrm{d}u$.

        With $W = K_{zz}^{-1}K_{zt}$ and $q(u) = \mathcal{N}(\mu_u, AA^{\top})$,
        $$
        q(f(t)) = \mathcal{N}\big(m(t) + W^{\top}(\mu_u - m(z)),\;
            K_{tt} - K_{tz}K_{zz}^{-1}K_{zt} + (A^{\top}W)^{\top}(A^{\top}W)\big).
        $$
        The result carries the prior's jitter on its diagonal.

        Raises:
            NumericalError: if $K_{zz}$ or a matrix of the approximation cannot
                be factorised.
        """
        t = test_inputs
        z = self.inducing_inputs.value
        kernel = self.prior.kernel

        mu_u, root = resolve_root(self.approximation, self.prior, z, self.jitter)

        Kzz = kernel.gram(z)
        Lz = checked_lower_cholesky(PSD(Kzz + I_like(Kzz) * self.jitter), "Kzz")

        # Lz⁻¹ Kzt and W = Kzz⁻¹ Kzt
        Lz_inv_Kzt = solve(Lz, kernel.cross_covariance(z, t), Cholesky())
        W = solve(Lz.T, Lz_inv_Kzt, Cholesky())

        mean = self.prior.mean(t) + jnp.matmul(W.T, mu_u - self.prior.mean(z))

        # Aᵀ W, so that Wᵀ Su W = (Aᵀ W)ᵀ (Aᵀ W)
        root_W = jnp.matmul(root.T, W)
        covariance = (
            kernel.gram(t).to_dense()
            - jnp.matmul(Lz_inv_Kzt.T, Lz_inv_Kzt)
            + jnp.matmul(root_W.T, root_W)
        )
        covariance = symmetrise(covariance) + self.prior.jitter * jnp.eye(t.shape[0])

        return GaussianDistribution(loc=mean, scale=covariance)


def _check_inducing_inputs(inducing_inputs: tp.Any) -> None:
    shape = jnp.shape(inducing_inputs)
    if len(shape) != 2:
        raise InvalidArgumentError(
            f"Expected inducing_inputs to be a 2-dimensional array. Got shape {shape}."
        )
    if shape[0] == 0:
        raise InvalidArgumentError("Expected at least one inducing input.")


def _check_num_inducing(approximation: tp.Any, num_inducing: int) -> None:
    held = getattr(approximation, "num_inducing", num_inducing)
    if held != num_inducing:
        raise InvalidArgumentError(
            f"The approximation holds {held} inducing values "
            f"but there are {num_inducing} inducing inputs."
        )


__all__ = ["SparsePosterior"]
