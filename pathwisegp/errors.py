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
"""Exceptions raised by pathwisegp.

The library never catches these itself; each one propagates unchanged to the
caller of the operation that detected it.
"""


class NumericalError(ValueError):
    r"""A matrix that must be positive-definite could not be factorised, or a
    linear solve produced non-finite values.

    Args:
        matrix: a human readable name of the offending matrix, e.g. ``"Kzz"``.
        operation: the operation that failed, e.g. ``"cholesky"``.
        detail: optional extra context appended to the message.
    """

    def __init__(self, matrix: str, operation: str, detail: str = ""):
        self.matrix = matrix
        self.operation = operation
        message = f"{operation} of {matrix} failed: the result is not finite."
        if detail:
            message = f"{message} {detail}"
        super().__init__(message)


class UnsupportedApproximationError(TypeError):
    r"""The posterior carries a variational approximation that is not one of
    ``Centered``, ``NonCentered`` or ``VFE``."""


class InvalidArgumentError(ValueError):
    r"""An argument is out of range, or the shapes of the inducing inputs, prior
    outputs and variational parameters disagree."""


__all__ = [
    "NumericalError",
    "UnsupportedApproximationError",
    "InvalidArgumentError",
]
