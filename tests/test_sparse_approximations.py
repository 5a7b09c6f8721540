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

from flax import nnx
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
from pathwisegp.errors import InvalidArgumentError
from pathwisegp.gps import Prior
from pathwisegp.inducing import resolve
from pathwisegp.kernels import RBF
from pathwisegp.mean_functions import (
    Constant,
    Zero,
)
from pathwisegp.parameters import (
    LowerTriangular,
    Real,
    Static,
    UpperTriangular,
)

config.update("jax_enable_x64", True)


@pytest.mark.parametrize("approximation", [Centered, NonCentered])
@pytest.mark.parametrize("mean_shape", [(3,), (3, 1)])
def test_centered_and_non_centered(approximation, mean_shape) -> None:
    q = approximation(jnp.ones(mean_shape), jnp.eye(3))

    assert isinstance(q, nnx.Module)
    assert q.num_inducing == 3
    assert isinstance(q.variational_mean, Real)
    assert isinstance(q.variational_root_covariance, LowerTriangular)
    assert q.variational_mean.value.shape == (3, 1)


@pytest.mark.parametrize("approximation", [Centered, NonCentered])
def test_root_shape_mismatch(approximation) -> None:
    with pytest.raises(InvalidArgumentError):
        approximation(jnp.ones(3), jnp.eye(4))


@pytest.mark.parametrize("approximation", [Centered, NonCentered])
def test_mean_must_be_a_vector(approximation) -> None:
    with pytest.raises(InvalidArgumentError):
        approximation(jnp.ones((3, 2)), jnp.eye(3))


def test_non_centered_optional_prior_moments() -> None:
    q = NonCentered(jnp.zeros(2), jnp.eye(2))
    assert q.prior_covariance is None
    assert q.prior_mean is None

    q = NonCentered(
        jnp.zeros(2),
        jnp.eye(2),
        prior_covariance=2.0 * jnp.eye(2),
        prior_mean=jnp.array([1.0, 2.0]),
    )
    assert isinstance(q.prior_covariance, Static)
    assert jnp.allclose(q.prior_mean.value, jnp.array([1.0, 2.0]))

    with pytest.raises(InvalidArgumentError):
        NonCentered(jnp.zeros(2), jnp.eye(2), prior_covariance=jnp.eye(3))

    with pytest.raises(InvalidArgumentError):
        NonCentered(jnp.zeros(2), jnp.eye(2), prior_mean=jnp.zeros(3))


def test_vfe_init() -> None:
    q = VFE(U=jnp.triu(jnp.ones((3, 3))), alpha=jnp.ones(3), Lambda_eps=jnp.eye(3))

    assert q.num_inducing == 3
    assert isinstance(q.U, UpperTriangular)
    assert q.alpha.value.shape == (3, 1)

    with pytest.raises(InvalidArgumentError):
        VFE(U=jnp.eye(2), alpha=jnp.ones(3), Lambda_eps=jnp.eye(3))

    with pytest.raises(InvalidArgumentError):
        VFE(U=jnp.eye(3), alpha=jnp.ones(3), Lambda_eps=jnp.eye(2))


def _vfe_problem(mean_function):
    prior = Prior(kernel=RBF(lengthscale=0.8), mean_function=mean_function)
    x = jnp.linspace(-2.0, 2.0, 25).reshape(-1, 1)
    y = jnp.sin(2.0 * x) + 0.1 * jr.normal(jr.key(0), x.shape)
    z = jnp.linspace(-2.0, 2.0, 6).reshape(-1, 1)
    return prior, Dataset(X=x, y=y), z


@pytest.mark.parametrize("mean_function", [Zero(), Constant(0.5)])
def test_vfe_from_data(mean_function) -> None:
    prior, D, z = _vfe_problem(mean_function)
    obs_stddev = 0.3
    jitter = 1e-6

    q = VFE.from_data(prior, z, D, obs_stddev, jitter=jitter)

    Kzz = prior.covariance(z) + jitter * jnp.eye(6)
    U = q.U.value
    assert jnp.allclose(U.T @ U, Kzz)

    # Λ = I + BBᵀ with B = U⁻ᵀ Kzx / σ
    B = jnp.linalg.solve(U.T, prior.covariance(z, D.X)) / obs_stddev
    assert jnp.allclose(q.Lambda_eps.value, jnp.eye(6) + B @ B.T)

    # Kzz α is the Titsias mean of q(u) relative to the prior mean
    Kzx = prior.covariance(z, D.X)
    Sigma = jnp.linalg.inv(Kzz + Kzx @ Kzx.T / obs_stddev**2)
    residual = D.y.squeeze() - prior.mean(D.X)
    expected = Kzz @ Sigma @ Kzx @ residual / obs_stddev**2
    assert jnp.allclose(U.T @ U @ q.alpha.value.squeeze(), expected, atol=1e-6)


def test_vfe_from_data_rejects_bad_noise() -> None:
    prior, D, z = _vfe_problem(Zero())
    with pytest.raises(InvalidArgumentError):
        VFE.from_data(prior, z, D, -1.0)


def test_vfe_alpha_is_fitted_to_mean_residuals() -> None:
    # A constant prior mean only shifts the targets: alpha is the same as for
    # a zero-mean prior fitted to y - c, and the mean of q(u) adds c back.
    x = jnp.linspace(0.0, 2.0, 8).reshape(-1, 1)
    y = jnp.sin(3.0 * x)
    z = jnp.array([[0.0], [1.0], [2.0]])
    shifted = Prior(kernel=RBF(n_dims=1), mean_function=Constant(2.5))
    centred = Prior(kernel=RBF(n_dims=1), mean_function=Zero())

    q_shifted = VFE.from_data(shifted, z, Dataset(X=x, y=y + 2.5), 0.3)
    q_centred = VFE.from_data(centred, z, Dataset(X=x, y=y), 0.3)

    assert jnp.allclose(q_shifted.alpha.value, q_centred.alpha.value)
    mean_shifted, _ = resolve(q_shifted, shifted, z)
    mean_centred, _ = resolve(q_centred, centred, z)
    assert jnp.allclose(mean_shifted, mean_centred + 2.5)
