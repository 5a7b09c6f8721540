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
r"""Cholesky factorisation of CoLA operators, with loud failure.

JAX signals a failed Cholesky factorisation by returning NaNs instead of
raising. `checked_lower_cholesky` and `check_finite` turn such results into a
`NumericalError` that names the offending matrix, so they have to run eagerly,
outside of `jit`.
"""

from cola.annotations import PSD
from cola.fns import dispatch
from cola.ops.operator_base import LinearOperator
from cola.ops.operators import (
    Diagonal,
    Triangular,
)
import jax.numpy as jnp
from jaxtyping import Float

from pathwisegp.errors import NumericalError
from pathwisegp.typing import Array


@dispatch
def lower_cholesky(A: LinearOperator) -> LinearOperator:  # noqa: F811
    r"""The lower triangular $L$ with $LL^{\top} = A$ for a PSD-annotated operator.

    Raises:
        ValueError: if `A` is not annotated with `cola.PSD`.
    """
    if PSD not in A.annotations:
        raise ValueError(
            "lower_cholesky needs a PSD-annotated operator. Wrap it in cola.PSD."
        )
    return Triangular(jnp.linalg.cholesky(A.to_dense()), lower=True)


@lower_cholesky.dispatch
def _(A: Diagonal) -> LinearOperator:  # noqa: F811
    return Diagonal(jnp.sqrt(A.diag))


def checked_lower_cholesky(A: LinearOperator, name: str) -> LinearOperator:
    r"""`lower_cholesky`, raising when the factor is not finite.

    Args:
        A: a PSD-annotated operator.
        name: how `A` is named in the error, e.g. `"Kzz"`.

    Raises:
        NumericalError: if `A` is not numerically positive-definite.
    """
    factor = lower_cholesky(A)
    check_finite(factor.to_dense(), name, "cholesky")
    return factor


def check_finite(value: Float[Array, "..."], name: str, operation: str) -> None:
    r"""Raise a `NumericalError` for `operation` on `name` if `value` has NaN or inf."""
    if not bool(jnp.isfinite(value).all()):
        raise NumericalError(
            name,
            operation,
            "Check that the matrix is symmetric positive-definite, or increase jitter.",
        )


def symmetrise(A: Float[Array, "N N"]) -> Float[Array, "N N"]:
    r"""The symmetric part $(A + A^{\top}) / 2$."""
    return (A + A.T) / 2.0


__all__ = [
    "lower_cholesky",
    "checked_lower_cholesky",
    "check_finite",
    "symmetrise",
]
