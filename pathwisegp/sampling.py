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
r"""Pathwise sampling from sparse variational Gaussian process posteriors.

A posterior function draw is the sum of a prior function draw and a data
dependent correction (Wilson et al., 2020):
$$
f^{*}(\cdot) = \tilde{f}(\cdot) + k(\cdot, z)K_{zz}^{-1}\big(u - \tilde{f}(z)\big),
\qquad u \sim q(u).
$$
The prior draw $\tilde{f}$ comes from a weight-space approximation of the
prior, so the resulting function can be evaluated anywhere at linear cost.
"""

from dataclasses import dataclass
import logging

import beartype.typing as tp
from cola.annotations import PSD
from cola.linalg.decompositions.decompositions import Cholesky
from cola.linalg.inverse.inv import solve
from cola.ops.operator_base import LinearOperator
from cola.ops.operators import I_like
import jax.numpy as jnp
import jax.random as jr
from jaxtyping import Float

from pathwisegp import prng
from pathwisegp.errors import InvalidArgumentError
from pathwisegp.gps import Prior
from pathwisegp.inducing import (
    resolve_root,
    sample_inducing_values,
)
from pathwisegp.lower_cholesky import (
    check_finite,
    checked_lower_cholesky,
)
from pathwisegp.posteriors import SparsePosterior
from pathwisegp.typing import (
    Array,
    FunctionalSample,
    KeyArray,
)

logger = logging.getLogger(__name__)

WeightSpaceApproxBuilder = tp.Callable[[Prior], tp.Any]


@dataclass(frozen=True)
class PosteriorSample:
    r"""A single function drawn from a sparse posterior.

    Evaluates $\tilde{f}(x) + K_{xz}v$, where $v$ is the correction solving
    $K_{zz}v = u - \tilde{f}(z)$.

    Args:
        prior_sample: the prior function draw $\tilde{f}$.
        correction: the correction weights $v$ of shape `(M,)`.
        inducing_inputs: the inducing inputs $z$ of shape `(M, D)`.
        prior: the prior whose kernel defines $K_{xz}$.
    """

    prior_sample: FunctionalSample
    correction: Float[Array, " M"]
    inducing_inputs: Float[Array, "M D"]
    prior: Prior

    def __call__(self, test_inputs: Float[Array, "N D"]) -> Float[Array, " N"]:
        Kxz = self.prior.covariance(test_inputs, self.inducing_inputs)
        return self.prior_sample(test_inputs) + jnp.matmul(Kxz, self.correction)


@tp.overload
def pathwise_sample(
    posterior: SparsePosterior,
    weight_space_approx: WeightSpaceApproxBuilder,
    num_samples: None = None,
    *,
    key: tp.Optional[KeyArray] = None,
) -> PosteriorSample: ...


@tp.overload
def pathwise_sample(
    posterior: SparsePosterior,
    weight_space_approx: WeightSpaceApproxBuilder,
    num_samples: int,
    *,
    key: tp.Optional[KeyArray] = None,
) -> list[PosteriorSample]: ...


def pathwise_sample(posterior, weight_space_approx, num_samples=None, *, key=None):
    r"""Draw function samples from a sparse posterior by pathwise conditioning.

    Example:
    ```pycon
        >>> import pathwisegp as pgp
        >>> import jax.numpy as jnp
        >>> z = jnp.array([[0.0], [1.0], [2.0]])
        >>> prior = pgp.gps.Prior(
        ...     kernel=pgp.kernels.RBF(n_dims=1), mean_function=pgp.mean_functions.Zero()
        ... )
        >>> q = pgp.approximations.Centered(jnp.zeros(3), 0.1 * jnp.eye(3))
        >>> posterior = pgp.posteriors.SparsePosterior(prior, z, q)
        >>> f = pgp.pathwise_sample(posterior, pgp.build_rff_weight_space_approx())
        >>> f(jnp.linspace(0, 2, 50)[:, None]).shape
        (50,)
    ```

    Args:
        posterior: the sparse posterior to sample from. It is not modified.
        weight_space_approx: a builder mapping the prior of `posterior` to a
            weight-space approximation with a `sample(key, num_samples)` method.
        num_samples: the number of draws. If omitted, a single `PosteriorSample`
            is returned rather than a list.
        key: the random key. Drawn from the default key stream when omitted.

    Raises:
        InvalidArgumentError: if `num_samples` is not a positive integer, or the
            prior draws do not return one value per inducing input.
        UnsupportedApproximationError: if the posterior's approximation is not
            supported.
        NumericalError: if $K_{zz}$ or a matrix of the approximation cannot be
            factorised, or the correction is not finite.

    Returns:
        One `PosteriorSample`, or a list of `num_samples` of them.
    """
    if num_samples is not None:
        _check_num_samples(num_samples)

    prior = posterior.prior
    z = posterior.inducing_inputs.value

    # Resolution and factorisation fail before the default stream is touched.
    q_u = resolve_root(posterior.approximation, prior, z, posterior.jitter)
    Kzz = prior.kernel.gram(z)
    Kzz = PSD(Kzz + I_like(Kzz) * posterior.jitter)
    Lz = checked_lower_cholesky(Kzz, "Kzz")
    prior_approx = weight_space_approx(prior)

    if key is None:
        key = prng.next_key()

    batch_size = 1 if num_samples is None else num_samples
    samples = _sample_batch(posterior, prior_approx, q_u, Lz, batch_size, key)
    return samples[0] if num_samples is None else samples


def _sample_batch(
    posterior: SparsePosterior,
    prior_approx: tp.Any,
    q_u: tp.Tuple[Float[Array, " M"], Float[Array, "M M"]],
    Lz: LinearOperator,
    num_samples: int,
    key: KeyArray,
) -> list[PosteriorSample]:
    prior = posterior.prior
    z = posterior.inducing_inputs.value
    logger.debug(
        "Drawing %d pathwise sample(s) with %d inducing inputs.",
        num_samples,
        posterior.num_inducing,
    )

    prior_key, u_key = jr.split(key)
    prior_samples = prior_approx.sample(prior_key, num_samples)

    # U = [u₁, ..., uₙ], uᵢ = μu + A εᵢ
    U = sample_inducing_values(*q_u, u_key, num_samples)
    check_finite(U, "q(u) root", "sampling")

    # F = [f̃₁(z), ..., f̃ₙ(z)]
    Fz = jnp.stack([f(z) for f in prior_samples], axis=1)
    if Fz.shape != U.shape:
        raise InvalidArgumentError(
            f"Expected the prior draws to give an array of shape {U.shape} at the "
            f"inducing inputs. Got {Fz.shape}."
        )

    # V = Kzz⁻¹ (U - F), one factor for all right-hand sides
    V = solve(Lz.T, solve(Lz, U - Fz, Cholesky()), Cholesky())
    check_finite(V, "Kzz", "solve")

    return [
        PosteriorSample(
            prior_sample=f, correction=V[:, i], inducing_inputs=z, prior=prior
        )
        for i, f in enumerate(prior_samples)
    ]


def _check_num_samples(num_samples: tp.Any) -> None:
    if isinstance(num_samples, bool) or not isinstance(num_samples, int):
        raise InvalidArgumentError(
            f"Expected num_samples to be an integer. Got {num_samples!r}."
        )
    if num_samples <= 0:
        raise InvalidArgumentError(
            f"Expected num_samples to be positive. Got {num_samples}."
        )


__all__ = [
    "PosteriorSample",
    "pathwise_sample",
]
