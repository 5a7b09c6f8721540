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
"""The process-wide default stream of PRNG keys.

Operations that accept an optional `key` draw from this stream when none is
given. The stream is seeded once at import time and only `seed` resets it.
"""

import jax.random as jr

from pathwisegp.errors import InvalidArgumentError
from pathwisegp.typing import KeyArray

DEFAULT_SEED = 42


class KeyStream:
    r"""A mutable source of fresh PRNG keys.

    Each call to `next_key` splits the held key, keeps one half and returns the
    other, so no key is ever handed out twice. Not thread-safe.
    """

    def __init__(self, seed: int = DEFAULT_SEED):
        self.seed(seed)

    def seed(self, value: int) -> None:
        r"""Reset the stream to the state determined by `value`."""
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidArgumentError(f"Expected an integer seed. Got {value!r}.")
        self._key = jr.PRNGKey(value)

    def next_key(self) -> KeyArray:
        r"""Advance the stream and return a fresh key."""
        self._key, subkey = jr.split(self._key)
        return subkey


_default_stream = KeyStream()


def seed(value: int) -> None:
    r"""Reseed the default key stream."""
    _default_stream.seed(value)


def next_key() -> KeyArray:
    r"""Draw a fresh key from the default key stream."""
    return _default_stream.next_key()


__all__ = [
    "DEFAULT_SEED",
    "KeyStream",
    "seed",
    "next_key",
]
