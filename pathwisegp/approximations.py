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
r"""Parameterisations of the inducing distribution of a sparse variational GP.

A sparse approximation summarises the posterior by a Gaussian over the function
values $u = f(z)$ at $M$ inducing inputs $z$. The three payloads below store
that Gaussian in different coordinates; `pathwisegp.inducing` maps each of them
back to $q(u) = \mathcal{N}(\mu_u, S_u)$.
"""

import beartype.typing as tp
from cola.annotations import PSD
from cola.linalg.decompositions.decompositions import Cholesky
from cola.linalg.inverse.inv import solve
from cola.ops.operators import I_like
from flax import nnx
import jax.numpy as jnp
import jax.scipy as jsp
from jaxtyping import Float

from pathwisegp.dataset import Dataset
from pathwisegp.errors import InvalidArgumentError
from pathwisegp.gps import Prior
from pathwisegp.lower_cholesky import (
    check_finite,
    checked_lower_cholesky,
)
from pathwisegp.parameters import (
    LowerTriangular,
    Real,
    Static,
    UpperTriangular,
)
from pathwisegp.typing import (
    Array,
    ScalarFloat,
)


class Centered(nnx.Module):
    r"""The inducing distribution stored directly, $q(u) = \mathcal{N}(m, RR^{\top})$.

    Args:
        variational_mean: the mean $m$ of shape `(M, 1)` or `(M,)`.
        variational_root_covariance: the lower triangular root $R$ of shape `(M, M)`.
    """

    def __init__(
        self,
        variational_mean: Float[Array, "..."],
        variational_root_covariance: Float[Array, "_ _"],
    ):
        variational_mean = _as_column(variational_mean, "variational_mean")
        _check_square(
            variational_root_covariance,
            variational_mean.shape[0],
            "variational_root_covariance",
        )

        self.variational_mean = Real(variational_mean)
        self.variational_root_covariance = LowerTriangular(variational_root_covariance)

    @property
    def num_inducing(self) -> int:
        return self.variational_mean.value.shape[0]


class NonCentered(nnx.Module):
    r"""The whitened parameterisation $u = \mu_z + L\varepsilon$.

    The variational distribution $q(\varepsilon) = \mathcal{N}(m, RR^{\top})$ is
    held over whitened coordinates, where $LL^{\top}$ is the prior covariance of
    $u$. By default the prior covariance and mean at $z$ come from the GP prior,
    $K_{zz}$ and $m(z)$; either may be supplied explicitly instead.

    Args:
        variational_mean: the whitened mean $m$ of shape `(M, 1)` or `(M,)`.
        variational_root_covariance: the lower triangular root $R$ of shape `(M, M)`.
        prior_covariance: an optional prior covariance of $u$ of shape `(M, M)`.
            It is factorised as given, without jitter.
        prior_mean: an optional prior mean of $u$ of shape `(M,)`.
    """

    def __init__(
        self,
        variational_mean: Float[Array, "..."],
        variational_root_covariance: Float[Array, "_ _"],
        prior_covariance: tp.Optional[Float[Array, "_ _"]] = None,
        prior_mean: tp.Optional[Float[Array, "..."]] = None,
    ):
        variational_mean = _as_column(variational_mean, "variational_mean")
        num_inducing = variational_mean.shape[0]
        _check_square(
            variational_root_covariance, num_inducing, "variational_root_covariance"
        )

        self.variational_mean = Real(variational_mean)
        self.variational_root_covariance = LowerTriangular(variational_root_covariance)

        self.prior_covariance = None
        if prior_covariance is not None:
            _check_square(prior_covariance, num_inducing, "prior_covariance")
            self.prior_covariance = Static(prior_covariance)

        self.prior_mean = None
        if prior_mean is not None:
            prior_mean = _as_column(prior_mean, "prior_mean")
            if prior_mean.shape[0] != num_inducing:
                raise InvalidArgumentError(
                    f"Expected prior_mean to have {num_inducing} entries. "
                    f"Got {prior_mean.shape[0]}."
                )
            self.prior_mean = Static(prior_mean.squeeze(axis=-1))

    @property
    def num_inducing(self) -> int:
        return self.variational_mean.value.shape[0]


class VFE(nnx.Module):
    r"""The collapsed (Titsias) approximation in the coordinates of its bound.

    With $U$ the upper triangular factor of $K_{zz} = U^{\top}U$, the optimal
    inducing distribution is
    $$
    q(u) = \mathcal{N}\big(\mu_z + U^{\top}U\alpha,\; U^{\top}\Lambda_{\varepsilon}^{-1}U\big),
    $$
    where $\Lambda_{\varepsilon} = I + BB^{\top}$ is the posterior precision of the
    whitened inducing values and $B = U^{-\top}K_{zx} / \sigma$.

    The mean adds the prior mean $\mu_z = m(z)$, so $\alpha$ is fitted to the
    residuals $y - m(x)$ as `from_data` does. A hand-built $\alpha$ must follow
    the same convention: `mean = \mu_z + U^{\top}U\alpha`, which is $K_{zz}\alpha$
    for a zero-mean prior.

    Args:
        U: the upper triangular factor of shape `(M, M)`.
        alpha: the weights $\alpha$ of shape `(M, 1)` or `(M,)`.
        Lambda_eps: the precision $\Lambda_{\varepsilon}$ of shape `(M, M)`.
    """

    def __init__(
        self,
        U: Float[Array, "_ _"],
        alpha: Float[Array, "..."],
        Lambda_eps: Float[Array, "_ _"],
    ):
        alpha = _as_column(alpha, "alpha")
        num_inducing = alpha.shape[0]
        _check_square(U, num_inducing, "U")
        _check_square(Lambda_eps, num_inducing, "Lambda_eps")

        self.U = UpperTriangular(U)
        self.alpha = Real(alpha)
        self.Lambda_eps = Real(Lambda_eps)

    @property
    def num_inducing(self) -> int:
        return self.alpha.value.shape[0]

    @classmethod
    def from_data(
        cls,
        prior: Prior,
        inducing_inputs: Float[Array, "M D"],
        train_data: Dataset,
        obs_stddev: ScalarFloat,
        jitter: ScalarFloat = 1e-6,
    ) -> "VFE":
        r"""Condition a prior on Gaussian observations through the collapsed bound.

        Args:
            prior: the GP prior.
            inducing_inputs: the inducing inputs $z$ of shape `(M, D)`.
            train_data: the observations $(x, y)$.
            obs_stddev: the observation noise standard deviation $\sigma$.
            jitter: the diagonal perturbation added to $K_{zz}$.

        Raises:
            InvalidArgumentError: if `obs_stddev` is not positive.
            NumericalError: if $K_{zz}$ is not numerically positive-definite.

        Returns:
            VFE: the optimal collapsed approximation.
        """
        if not obs_stddev > 0:
            raise InvalidArgumentError(
                f"Expected obs_stddev to be positive. Got {obs_stddev}."
            )

        x, y = train_data.X, train_data.y
        z = inducing_inputs
        m = z.shape[0]

        kernel = prior.kernel
        Kzx = kernel.cross_covariance(z, x)
        Kzz = kernel.gram(z)
        Kzz = PSD(Kzz + I_like(Kzz) * jitter)

        # Lz Lzᵀ = Kzz
        Lz = checked_lower_cholesky(Kzz, "Kzz")

        # B = Lz⁻¹ Kzx / σ
        B = solve(Lz, Kzx, Cholesky()) / obs_stddev

        # Λ = I + BBᵀ
        Lambda_eps = jnp.eye(m) + jnp.matmul(B, B.T)
        Lambda_eps = 0.5 * (Lambda_eps + Lambda_eps.T)

        # α = Lz⁻ᵀ Λ⁻¹ B (y - μx) / σ
        diff = y - prior.mean_function(x)
        L_Lambda = jnp.linalg.cholesky(Lambda_eps)
        Lambda_inv_B_diff = jsp.linalg.cho_solve(
            (L_Lambda, True), jnp.matmul(B, diff)
        )
        alpha = solve(Lz.T, Lambda_inv_B_diff, Cholesky()) / obs_stddev
        check_finite(alpha, "Lambda_eps", "solve")

        return cls(U=Lz.to_dense().T, alpha=alpha, Lambda_eps=Lambda_eps)


SparseApproximation = tp.Union[Centered, NonCentered, VFE]


def _as_column(value: Float[Array, "..."], name: str) -> Float[Array, "M 1"]:
    value = jnp.asarray(value)
    if value.ndim == 1:
        value = value[:, None]
    if value.ndim != 2 or value.shape[1] != 1:
        raise InvalidArgumentError(
            f"Expected {name} to have shape (M,) or (M, 1). Got {value.shape}."
        )
    return value


def _check_square(value: Float[Array, "..."], size: int, name: str) -> None:
    shape = jnp.shape(value)
    if shape != (size, size):
        raise InvalidArgumentError(
            f"Expected {name} to have shape ({size}, {size}). Got {shape}."
        )


__all__ = [
    "Centered",
    "NonCentered",
    "VFE",
    "SparseApproximation",
]
