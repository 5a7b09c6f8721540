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
r"""Constrained values held by pathwisegp modules.

Each class is an `nnx.Variable` that checks its constraint once, at
construction, through `jax.experimental.checkify`. A violated constraint raises
`checkify.JaxRuntimeError`.
"""

import functools
import typing as tp

from flax import nnx
from jax.experimental import checkify
import jax.numpy as jnp
from jax.typing import ArrayLike

T = tp.TypeVar("T", bound=tp.Union[ArrayLike, list[float]])


class Parameter(nnx.Variable[T]):
    """A value that a model may learn. `tag` names the constraint it satisfies."""

    def __init__(self, value: T, tag: str = "real", **kwargs):
        if not isinstance(value, (ArrayLike, list)):
            raise TypeError(f"Expected an array-like parameter value. Got {value!r}.")
        super().__init__(value=jnp.asarray(value), **kwargs)
        self._tag = tag


class Real(Parameter[T]):
    """An unconstrained real value."""


class PositiveReal(Parameter[T]):
    """A value whose entries are all strictly positive."""

    def __init__(self, value: T, tag: str = "positive", **kwargs):
        super().__init__(value, tag, **kwargs)
        _enforce(_positive, self.value)


class LowerTriangular(Parameter[T]):
    """A square matrix with zeros above the diagonal."""

    def __init__(self, value: T, tag: str = "lower_triangular", **kwargs):
        super().__init__(value, tag, **kwargs)
        _enforce(_triangular, self.value, lower=True)


class UpperTriangular(Parameter[T]):
    """A square matrix with zeros below the diagonal."""

    def __init__(self, value: T, tag: str = "upper_triangular", **kwargs):
        super().__init__(value, tag, **kwargs)
        _enforce(_triangular, self.value, lower=False)


class Static(nnx.Variable[T]):
    """A fixed array held by a model and never learned."""

    def __init__(self, value: T, **kwargs):
        super().__init__(value=jnp.asarray(value), **kwargs)


def _positive(value) -> None:
    checkify.check(jnp.all(value > 0), "expected positive entries, got {v}", v=value)


def _triangular(value, lower: bool) -> None:
    if value.ndim != 2 or value.shape[0] != value.shape[1]:
        checkify.check(False, f"expected a square matrix, got shape {value.shape}")
        return

    side = "lower" if lower else "upper"
    band = jnp.tril(value) if lower else jnp.triu(value)
    checkify.check(
        jnp.all(band == value),
        f"expected a {side} triangular matrix, got {{v}}",
        v=value,
    )


def _enforce(check: tp.Callable[..., None], value, **kwargs) -> None:
    error, _ = checkify.checkify(functools.partial(check, **kwargs))(value)
    checkify.check_error(error)


__all__ = [
    "Parameter",
    "PositiveReal",
    "Real",
    "LowerTriangular",
    "UpperTriangular",
    "Static",
]
