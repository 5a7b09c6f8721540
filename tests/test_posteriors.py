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
import pytest

from pathwisegp.approximations import (
    VFE,
    Centered,
    NonCentered,
)
from pathwisegp.dataset import Dataset
from pathwisegp.distributions import GaussianDistribution
from pathwisegp.errors import InvalidArgumentError
from pathwisegp.gps import Prior
from pathwisegp.kernels import RBF
from pathwisegp.mean_functions import (
    Constant,
    Zero,
)
from pathwisegp.posteriors import SparsePosterior

config.update("jax_enable_x64", True)

_z = jnp.array([[0.0], [1.0], [2.0]])


def _prior(mean_function=None) -> Prior:
    return Prior(kernel=RBF(n_dims=1), mean_function=mean_function or Zero())


def test_init() -> None:
    q = Centered(jnp.zeros(3), jnp.eye(3))
    posterior = SparsePosterior(_prior(), _z, q, jitter=1e-5)

    assert posterior.num_inducing == 3
    assert posterior.approximation is q
    assert posterior.jitter == 1e-5
    assert jnp.array_equal(posterior.inducing_inputs.value, _z)


def test_empty_inducing_inputs() -> None:
    with pytest.raises(InvalidArgumentError):
        SparsePosterior(_prior(), jnp.zeros((0, 1)), Centered(jnp.zeros(1), jnp.eye(1)))


@pytest.mark.parametrize(
    "q",
    [
        Centered(jnp.zeros(2), jnp.eye(2)),
        NonCentered(jnp.zeros(4), jnp.eye(4)),
        VFE(jnp.eye(2), jnp.zeros(2), jnp.eye(2)),
    ],
)
def test_inducing_count_mismatch(q) -> None:
    with pytest.raises(InvalidArgumentError):
        SparsePosterior(_prior(), _z, q)


@pytest.mark.parametrize("mean_function", [Zero(), Constant(1.0)])
def test_predict_at_inducing_inputs(mean_function) -> None:
    mu = jnp.array([0.3, -0.2, 0.5])
    R = 0.1 * jnp.tril(jnp.ones((3, 3)))
    posterior = SparsePosterior(_prior(mean_function), _z, Centered(mu, R))

    predictive = posterior(_z)

    assert isinstance(predictive, GaussianDistribution)
    assert jnp.allclose(predictive.mean, mu, atol=1e-4)
    assert jnp.allclose(predictive.covariance(), R @ R.T, atol=1e-4)


def test_predict_reverts_to_prior_far_away() -> None:
    prior = _prior(Constant(2.0))
    posterior = SparsePosterior(prior, _z, Centered(jnp.ones(3), 0.1 * jnp.eye(3)))
    t = jnp.array([[50.0], [60.0]])

    predictive = posterior.predict(t)

    assert jnp.allclose(predictive.mean, 2.0)
    assert jnp.allclose(predictive.variance, 1.0, atol=1e-4)


def test_predict_whitened_prior_is_prior() -> None:
    # q(ε) = N(0, I) is the prior in whitened coordinates.
    posterior = SparsePosterior(_prior(), _z, NonCentered(jnp.zeros(3), jnp.eye(3)))
    t = jnp.linspace(-1.0, 3.0, 7).reshape(-1, 1)

    predictive = posterior.predict(t)
    prior_predictive = posterior.prior.predict(t)

    assert jnp.allclose(predictive.mean, 0.0)
    assert jnp.allclose(predictive.covariance(), prior_predictive.covariance(), atol=1e-4)


def test_predict_vfe_matches_collapsed_posterior() -> None:
    prior = _prior()
    x = jnp.linspace(-1.0, 3.0, 30).reshape(-1, 1)
    y = jnp.cos(x) + 0.05 * jr.normal(jr.key(0), x.shape)
    obs_stddev = 0.2
    z = jnp.linspace(-1.0, 3.0, 8).reshape(-1, 1)
    t = jnp.linspace(-1.5, 3.5, 11).reshape(-1, 1)

    q = VFE.from_data(prior, z, Dataset(X=x, y=y), obs_stddev)
    predictive = SparsePosterior(prior, z, q).predict(t)

    Kzz = prior.covariance(z) + 1e-6 * jnp.eye(8)
    Kzx = prior.covariance(z, x)
    Ktz = prior.covariance(t, z)
    Sigma = jnp.linalg.inv(Kzz + Kzx @ Kzx.T / obs_stddev**2)
    expected_mean = Ktz @ Sigma @ Kzx @ y.squeeze() / obs_stddev**2
    expected_cov = (
        prior.covariance(t)
        - Ktz @ jnp.linalg.solve(Kzz, Ktz.T)
        + Ktz @ Sigma @ Ktz.T
    )

    assert jnp.allclose(predictive.mean, expected_mean, atol=1e-4)
    assert jnp.allclose(predictive.covariance(), expected_cov, atol=1e-4)
