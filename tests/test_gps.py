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

from jax import config
import jax.numpy as jnp
import jax.random as jr
from numpyro.distributions import Distribution as NumpyroDistribution
import pytest

from pathwisegp.distributions import GaussianDistribution
from pathwisegp.gps import Prior
from pathwisegp.kernels import (
    RBF,
    Matern52,
)
from pathwisegp.mean_functions import (
    Constant,
    Zero,
)

# Enable Float64 for more stable matrix inversions.
config.update("jax_enable_x64", True)


@pytest.mark.parametrize("num_datapoints", [1, 10])
@pytest.mark.parametrize("kernel", [RBF, Matern52])
@pytest.mark.parametrize("mean_function", [Zero(), Constant(2.0)])
def test_prior(num_datapoints: int, kernel, mean_function) -> None:
    k = kernel()
    prior = Prior(kernel=k, mean_function=mean_function)

    assert prior.kernel is k
    assert prior.mean_function is mean_function
    assert prior.jitter == 1e-6

    x = jnp.linspace(-3.0, 3.0, num_datapoints).reshape(-1, 1)
    predictive_dist = prior(x)

    assert isinstance(predictive_dist, GaussianDistribution)
    assert isinstance(predictive_dist, NumpyroDistribution)

    mu = predictive_dist.mean
    sigma = predictive_dist.covariance()

    assert mu.shape == (num_datapoints,)
    assert sigma.shape == (num_datapoints, num_datapoints)
    assert jnp.allclose(mu, mean_function(x).squeeze(axis=-1))
    assert jnp.allclose(
        sigma, k.gram(x).to_dense() + jnp.eye(num_datapoints) * prior.jitter
    )


def test_prior_moments() -> None:
    prior = Prior(kernel=RBF(lengthscale=0.5, variance=2.0), mean_function=Constant(1.0))
    x = jr.uniform(jr.key(0), (6, 1))
    y = jr.uniform(jr.key(1), (4, 1))

    assert prior.mean(x).shape == (6,)
    assert jnp.allclose(prior.mean(x), 1.0)

    assert prior.covariance(x, y).shape == (6, 4)
    assert jnp.allclose(prior.covariance(x, y), prior.kernel.cross_covariance(x, y))

    Kxx = prior.covariance(x)
    assert Kxx.shape == (6, 6)
    assert jnp.allclose(Kxx, Kxx.T)

    assert jnp.allclose(prior.variance(x), 2.0)
    assert jnp.allclose(prior.variance(x), jnp.diag(Kxx))


def test_prior_jitter() -> None:
    prior = Prior(kernel=RBF(), mean_function=Zero(), jitter=1e-3)
    x = jnp.zeros((2, 1))
    # Coincident inputs are only factorisable thanks to the jitter.
    assert jnp.allclose(prior.predict(x).covariance(), jnp.ones((2, 2)) + 1e-3 * jnp.eye(2))
