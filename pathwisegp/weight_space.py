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
r"""Weight-space approximations of a Gaussian process prior.

A weight-space approximation replaces the prior $f \sim \mathcal{GP}(m, k)$ by
the finite Bayesian linear model
$$
f(\cdot) \approx m(\cdot) + \phi(\cdot)^{\top}\theta, \qquad \theta \sim \mathcal{N}(0, I),
$$
so that a prior function draw is fixed by a single vector of weights and can be
evaluated anywhere at a cost linear in the number of inputs.
"""

from dataclasses import dataclass

import beartype.typing as tp
import jax.numpy as jnp
import jax.random as jr
from jaxtyping import Float

from pathwisegp import prng
from pathwisegp.gps import Prior
from pathwisegp.kernels.rff import (
    RFF,
    _check_num_basis_fns,
)
from pathwisegp.typing import (
    Array,
    KeyArray,
)


@dataclass(frozen=True)
class PriorSample:
    r"""A single function drawn from a weight-space approximation of the prior.

    Args:
        prior: the prior the draw approximates.
        features: the RFF approximation providing the feature map $\phi$.
        weights: the weights $\theta$ of shape `(L,)`.
    """

    prior: Prior
    features: RFF
    weights: Float[Array, " L"]

    def __call__(self, test_inputs: Float[Array, "N D"]) -> Float[Array, " N"]:
        phi = self.features.compute_features(test_inputs)
        phi = phi * jnp.sqrt(self.features.scaling())
        return self.prior.mean(test_inputs) + jnp.matmul(phi, self.weights)


class RFFWeightSpaceApproximation:
    r"""Random Fourier Feature approximation of a stationary Gaussian process prior.

    The frequencies are drawn once, when the approximation is built. Every call
    to `sample` then only draws fresh weights.
    """

    def __init__(self, prior: Prior, num_basis_fns: int, key: KeyArray):
        self.prior = prior
        self.features = RFF(
            base_kernel=prior.kernel, num_basis_fns=num_basis_fns, key=key
        )

    @property
    def num_features(self) -> int:
        return self.features.num_features

    @tp.overload
    def sample(self, key: KeyArray) -> PriorSample: ...

    @tp.overload
    def sample(self, key: KeyArray, num_samples: int) -> list[PriorSample]: ...

    def sample(self, key, num_samples=None):
        r"""Draw prior function samples.

        Args:
            key: the random key for the weights.
            num_samples: the number of draws. If omitted, a single `PriorSample`
                is returned rather than a list.

        Returns:
            One `PriorSample`, or a list of `num_samples` of them.
        """
        if num_samples is None:
            return self.sample(key, 1)[0]

        weights = jr.normal(key, shape=(num_samples, self.num_features))
        return [
            PriorSample(prior=self.prior, features=self.features, weights=w)
            for w in weights
        ]


def build_rff_weight_space_approx(
    num_basis_fns: int = 100, key: tp.Optional[KeyArray] = None
) -> tp.Callable[[Prior], RFFWeightSpaceApproximation]:
    r"""Builder of Random Fourier Feature weight-space approximations.

    Args:
        num_basis_fns: the number of frequencies drawn from the kernel's spectral
            density. Each prior sample then has `2 * num_basis_fns` weights.
        key: the random key for the frequencies. Drawn from the default key
            stream when omitted.

    Raises:
        InvalidArgumentError: if `num_basis_fns` is not a positive integer.

    Returns:
        A callable mapping a `Prior` with a stationary kernel to its
        `RFFWeightSpaceApproximation`.
    """
    _check_num_basis_fns(num_basis_fns)
    if key is None:
        key = prng.next_key()

    def build(prior: Prior) -> RFFWeightSpaceApproximation:
        return RFFWeightSpaceApproximation(prior, num_basis_fns, key)

    return build


__all__ = [
    "PriorSample",
    "RFFWeightSpaceApproximation",
    "build_rff_weight_space_approx",
]
