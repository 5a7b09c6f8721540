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
r"""A multivariate Gaussian whose covariance is a CoLA linear operator."""

from beartype.typing import (
    Tuple,
    Union,
)
import cola
from cola.ops import (
    Dense,
    LinearOperator,
)
import jax.numpy as jnp
import jax.random as jr
import jax.scipy as jsp
from jaxtyping import Float
from numpyro.distributions import constraints
from numpyro.distributions.distribution import Distribution
from numpyro.distributions.util import is_prng_key

from pathwisegp.errors import InvalidArgumentError
from pathwisegp.lower_cholesky import lower_cholesky
from pathwisegp.typing import (
    Array,
    KeyArray,
    ScalarFloat,
)


class GaussianDistribution(Distribution):
    r"""The Gaussian $\mathcal{N}(\mu, \Sigma)$ over vectors of length `N`.

    Args:
        loc: the mean $\mu$.
        scale: the covariance $\Sigma$ as an operator or a dense array. The
            identity when omitted. It is annotated PSD on construction.

    Raises:
        InvalidArgumentError: if `loc` is not a vector or `scale` is not a
            square matrix of matching size.
    """

    support = constraints.real_vector

    def __init__(
        self,
        loc: Float[Array, " N"],
        scale: Union[LinearOperator, Float[Array, "N N"], None] = None,
        validate_args=None,
    ):
        loc = jnp.atleast_1d(jnp.asarray(loc))
        if scale is None:
            scale = Dense(jnp.eye(loc.shape[-1], dtype=loc.dtype))
        elif not isinstance(scale, LinearOperator):
            scale = Dense(jnp.asarray(scale))
        _check_loc_scale(loc, scale)

        self.loc = loc
        self.scale = cola.PSD(scale)
        super().__init__((), loc.shape, validate_args=validate_args)

    def sample(
        self, key: KeyArray, sample_shape: Tuple[int, ...] = ()
    ) -> Float[Array, "... N"]:
        r"""Draw $\mu + L\varepsilon$ with $LL^{\top} = \Sigma$, $\varepsilon$ white."""
        assert is_prng_key(key)
        L = lower_cholesky(self.scale).to_dense()
        eps = jr.normal(key, sample_shape + self.event_shape, dtype=self.loc.dtype)
        return self.loc + eps @ L.T

    @property
    def mean(self) -> Float[Array, " N"]:
        return self.loc

    @property
    def variance(self) -> Float[Array, " N"]:
        return cola.diag(self.scale)

    def stddev(self) -> Float[Array, " N"]:
        return jnp.sqrt(self.variance)

    def covariance(self) -> Float[Array, "N N"]:
        return self.scale.to_dense()

    @property
    def covariance_matrix(self) -> Float[Array, "N N"]:
        return self.covariance()

    def log_prob(self, y: Float[Array, " N"]) -> ScalarFloat:
        r"""The log density at `y`, through the Cholesky factor of $\Sigma$."""
        L = lower_cholesky(self.scale).to_dense()
        # w = L⁻¹(y - μ), so that (y - μ)ᵀΣ⁻¹(y - μ) = wᵀw
        w = jsp.linalg.solve_triangular(L, y - self.loc, lower=True)
        return -0.5 * (
            self.event_shape[0] * jnp.log(2.0 * jnp.pi)
            + _logdet(L)
            + jnp.sum(jnp.square(w))
        )

    def entropy(self) -> ScalarFloat:
        r"""The differential entropy $\frac{1}{2}\log\lvert 2\pi e\Sigma\rvert$."""
        L = lower_cholesky(self.scale).to_dense()
        return 0.5 * (self.event_shape[0] * (1.0 + jnp.log(2.0 * jnp.pi)) + _logdet(L))


def _logdet(L: Float[Array, "N N"]) -> ScalarFloat:
    # log|LLᵀ| from the diagonal of the factor
    return 2.0 * jnp.sum(jnp.log(jnp.diag(L)))


def _check_loc_scale(loc: Float[Array, "..."], scale: LinearOperator) -> None:
    if loc.ndim != 1:
        raise InvalidArgumentError(
            f"Expected loc to be a vector. Got shape {loc.shape}."
        )
    if len(scale.shape) != 2 or scale.shape[0] != scale.shape[1]:
        raise InvalidArgumentError(
            f"Expected scale to be a square matrix. Got shape {scale.shape}."
        )
    if scale.shape[0] != loc.shape[0]:
        raise InvalidArgumentError(
            f"loc of shape {loc.shape} and scale of shape {scale.shape} disagree."
        )


__all__ = ["GaussianDistribution"]
