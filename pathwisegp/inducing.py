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
r"""Resolution of the inducing distribution $q(u)$ of a sparse approximation.

Every supported parameterisation is mapped to the mean of the Gaussian over
$u = f(z)$ and a square root $A$ of its covariance, $S_u = AA^{\top}$. The root
is the one each parameterisation already carries, so $u = \mu_u + A\varepsilon$
can be drawn without factorising $S_u$, which may be singular. Resolution is
pure: it reads the approximation and the prior and returns fresh arrays.
"""

import warnings

import beartype.typing as tp
from cola.annotations import PSD
from cola.ops.operators import (
    Dense,
    I_like,
)
import jax.numpy as jnp
import jax.random as jr
import jax.scipy as jsp
from jaxtyping import Float

from pathwisegp.approximations import (
    VFE,
    Centered,
    NonCentered,
)
from pathwisegp.distributions import GaussianDistribution
from pathwisegp.errors import (
    InvalidArgumentError,
    UnsupportedApproximationError,
)
from pathwisegp.gps import Prior
from pathwisegp.lower_cholesky import (
    checked_lower_cholesky,
    symmetrise,
)
from pathwisegp.typing import (
    Array,
    KeyArray,
    ScalarFloat,
)

# Relative asymmetry of the resolved covariance above which a warning is issued.
ASYMMETRY_TOLERANCE = 1e-6

InducingMoments = tp.Tuple[Float[Array, " M"], Float[Array, "M M"]]


def inducing_distribution(posterior) -> GaussianDistribution:
    r"""The inducing distribution $q(u)$ of a sparse posterior.

    Args:
        posterior: the approximate posterior, a `SparsePosterior`.

    Returns:
        GaussianDistribution: $q(u)$ over the inducing inputs of `posterior`.
    """
    mean, covariance = resolve(
        posterior.approximation,
        posterior.prior,
        posterior.inducing_inputs.value,
        posterior.jitter,
    )
    return GaussianDistribution(loc=mean, scale=covariance)


def resolve(
    approximation: tp.Any,
    prior: Prior,
    inducing_inputs: Float[Array, "M D"],
    jitter: ScalarFloat = 1e-6,
) -> InducingMoments:
    r"""Compute the mean and covariance of $q(u)$ for a sparse approximation.

    For the three supported parameterisations:

    - `Centered`: $(m, RR^{\top})$, returned unchanged.
    - `NonCentered`: $(Lm + \mu_z, LSL^{\top})$ with $LL^{\top} = K_{zz} + \epsilon I$,
      or the supplied prior covariance, and $S = RR^{\top}$.
    - `VFE`: $(\mu_z + U^{\top}U\alpha, U^{\top}\Lambda_{\varepsilon}^{-1}U)$.

    Args:
        approximation: one of `Centered`, `NonCentered` or `VFE`.
        prior: the GP prior.
        inducing_inputs: the inducing inputs $z$ of shape `(M, D)`.
        jitter: the diagonal perturbation $\epsilon$ added to $K_{zz}$.

    Raises:
        UnsupportedApproximationError: if `approximation` is of any other type.
        InvalidArgumentError: if the approximation does not have `M` inducing values.
        NumericalError: if a matrix that must be factorised is not
            positive-definite.

    Returns:
        The mean of shape `(M,)` and the symmetric covariance of shape `(M, M)`.
    """
    mean, root = resolve_root(approximation, prior, inducing_inputs, jitter)
    covariance = jnp.matmul(root, root.T)
    _warn_if_asymmetric(covariance)
    return mean, symmetrise(covariance)


def resolve_root(
    approximation: tp.Any,
    prior: Prior,
    inducing_inputs: Float[Array, "M D"],
    jitter: ScalarFloat = 1e-6,
) -> InducingMoments:
    r"""Compute the mean of $q(u)$ and a root $A$ of its covariance $S_u = AA^{\top}$.

    The roots are $R$ for `Centered`, $LR$ for `NonCentered` and
    $U^{\top}L_{\Lambda}^{-\top}$ for `VFE`, where $L_{\Lambda}L_{\Lambda}^{\top}
    = \Lambda_{\varepsilon}$. A root with zero columns is valid: it describes a
    $q(u)$ that is degenerate in some direction.

    Takes the same arguments and raises the same errors as `resolve`.

    Returns:
        The mean of shape `(M,)` and the root of shape `(M, M)`.
    """
    match approximation:
        case Centered():
            resolver = _centered_root
        case NonCentered():
            resolver = _non_centered_root
        case VFE():
            resolver = _vfe_root
        case _:
            raise UnsupportedApproximationError(
                "Expected a Centered, NonCentered or VFE approximation. "
                f"Got {type(approximation).__name__}."
            )

    num_inducing = inducing_inputs.shape[0]
    if approximation.num_inducing != num_inducing:
        raise InvalidArgumentError(
            f"The approximation holds {approximation.num_inducing} inducing values "
            f"but there are {num_inducing} inducing inputs."
        )

    return resolver(approximation, prior, inducing_inputs, jitter)


def sample_inducing_values(
    mean: Float[Array, " M"],
    root: Float[Array, "M M"],
    key: KeyArray,
    num_samples: int,
) -> Float[Array, "M N"]:
    r"""Draw `num_samples` independent columns $u_i = \mu_u + A\varepsilon_i$."""
    eps = jr.normal(key, (root.shape[1], num_samples), dtype=root.dtype)
    return mean[:, None] + jnp.matmul(root, eps)


def _centered_root(
    approximation: Centered,
    prior: Prior,
    inducing_inputs: Float[Array, "M D"],
    jitter: ScalarFloat,
) -> InducingMoments:
    mean = approximation.variational_mean.value.squeeze(axis=-1)
    return mean, approximation.variational_root_covariance.value


def _non_centered_root(
    approximation: NonCentered,
    prior: Prior,
    inducing_inputs: Float[Array, "M D"],
    jitter: ScalarFloat,
) -> InducingMoments:
    z = inducing_inputs

    if approximation.prior_covariance is None:
        Kzz = prior.kernel.gram(z)
        Kzz = PSD(Kzz + I_like(Kzz) * jitter)
        name = "Kzz"
    else:
        Kzz = PSD(Dense(approximation.prior_covariance.value))
        name = "prior_covariance"

    if approximation.prior_mean is None:
        muz = prior.mean(z)
    else:
        muz = approximation.prior_mean.value

    # Lz Lzᵀ = Kzz
    Lz = checked_lower_cholesky(Kzz, name).to_dense()

    m = approximation.variational_mean.value.squeeze(axis=-1)
    R = approximation.variational_root_covariance.value

    # μz + Lz m, Lz R
    return muz + jnp.matmul(Lz, m), jnp.matmul(Lz, R)


def _vfe_root(
    approximation: VFE,
    prior: Prior,
    inducing_inputs: Float[Array, "M D"],
    jitter: ScalarFloat,
) -> InducingMoments:
    U = approximation.U.value
    alpha = approximation.alpha.value.squeeze(axis=-1)
    Lambda_eps = approximation.Lambda_eps.value

    # μz + UᵀU α
    mean = prior.mean(inducing_inputs) + jnp.matmul(U.T, jnp.matmul(U, alpha))

    # LΛ LΛᵀ = Λ
    L_Lambda = checked_lower_cholesky(PSD(Dense(Lambda_eps)), "Lambda_eps").to_dense()

    # (LΛ⁻¹ U)ᵀ, so that Uᵀ Λ⁻¹ U = (LΛ⁻¹ U)ᵀ (LΛ⁻¹ U)
    L_inv_U = jsp.linalg.solve_triangular(L_Lambda, U, lower=True)
    return mean, L_inv_U.T


def _warn_if_asymmetric(covariance: Float[Array, "M M"]) -> None:
    scale = jnp.max(jnp.abs(covariance))
    asymmetry = jnp.max(jnp.abs(covariance - covariance.T))
    if asymmetry > ASYMMETRY_TOLERANCE * jnp.maximum(scale, 1.0):
        warnings.warn(
            f"The covariance of q(u) is asymmetric (max deviation {float(asymmetry):.3e}) "
            "and has been symmetrised.",
            stacklevel=3,
        )


__all__ = [
    "inducing_distribution",
    "resolve",
    "resolve_root",
    "sample_inducing_values",
]
