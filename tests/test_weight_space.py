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

from pathwisegp import prng
from pathwisegp.errors import InvalidArgumentError
from pathwisegp.gps import Prior
from pathwisegp.kernels import (
    RBF,
    RFF,
    Matern52,
)
from pathwisegp.mean_functions import (
    Constant,
    Zero,
)
from pathwisegp.weight_space import (
    PriorSample,
    RFFWeightSpaceApproximation,
    build_rff_weight_space_approx,
)

config.update("jax_enable_x64", True)


def _prior(kernel=RBF, mean_function=None) -> Prior:
    return Prior(kernel=kernel(n_dims=1), mean_function=mean_function or Zero())


@pytest.mark.parametrize("num_basis_fns", [1, 10, 100])
def test_builder(num_basis_fns: int) -> None:
    build = build_rff_weight_space_approx(num_basis_fns, key=jr.key(0))
    prior = _prior()
    approx = build(prior)

    assert isinstance(approx, RFFWeightSpaceApproximation)
    assert isinstance(approx.features, RFF)
    assert approx.prior is prior
    assert approx.num_features == 2 * num_basis_fns


@pytest.mark.parametrize("num_basis_fns", [0, -1])
def test_builder_rejects_non_positive_basis(num_basis_fns: int) -> None:
    with pytest.raises(InvalidArgumentError):
        build_rff_weight_space_approx(num_basis_fns)


def test_builder_fixes_frequencies() -> None:
    build = build_rff_weight_space_approx(5, key=jr.key(3))
    prior = _prior()
    assert jnp.allclose(
        build(prior).features.frequencies.value,
        build(prior).features.frequencies.value,
    )


def test_builder_draws_key_from_default_stream() -> None:
    prng.seed(7)
    first = build_rff_weight_space_approx(5)(_prior()).features.frequencies.value
    prng.seed(7)
    second = build_rff_weight_space_approx(5)(_prior()).features.frequencies.value
    assert jnp.allclose(first, second)


@pytest.mark.parametrize("num_samples", [1, 4])
def test_sample(num_samples: int) -> None:
    approx = build_rff_weight_space_approx(20, key=jr.key(0))(_prior())
    samples = approx.sample(jr.key(1), num_samples)

    assert isinstance(samples, list)
    assert len(samples) == num_samples
    assert all(isinstance(s, PriorSample) for s in samples)

    x = jnp.linspace(-1.0, 1.0, 11).reshape(-1, 1)
    for s in samples:
        assert s(x).shape == (11,)
        # A drawn function is deterministic.
        assert jnp.allclose(s(x), s(x))


def test_single_sample_matches_batch_of_one() -> None:
    approx = build_rff_weight_space_approx(20, key=jr.key(0))(_prior())
    x = jnp.linspace(-1.0, 1.0, 5).reshape(-1, 1)

    single = approx.sample(jr.key(1))
    batch = approx.sample(jr.key(1), 1)

    assert isinstance(single, PriorSample)
    assert jnp.allclose(single(x), batch[0](x))


def test_sample_includes_prior_mean() -> None:
    prior = _prior(mean_function=Constant(5.0))
    approx = build_rff_weight_space_approx(10, key=jr.key(0))(prior)
    sample = approx.sample(jr.key(1))
    zero_weights = PriorSample(
        prior=prior, features=sample.features, weights=jnp.zeros_like(sample.weights)
    )
    assert jnp.allclose(zero_weights(jnp.zeros((3, 1))), 5.0)


@pytest.mark.parametrize("kernel", [RBF, Matern52])
def test_sample_covariance(kernel) -> None:
    # Across many weight draws the empirical covariance of a prior sample
    # matches the RFF approximation of the kernel.
    approx = build_rff_weight_space_approx(50, key=jr.key(0))(_prior(kernel))
    x = jnp.array([[0.0], [0.3], [1.0]])

    values = jnp.stack([s(x) for s in approx.sample(jr.key(1), 2000)])
    empirical = jnp.cov(values.T)

    assert jnp.allclose(empirical, approx.features.gram(x).to_dense(), atol=0.15)
