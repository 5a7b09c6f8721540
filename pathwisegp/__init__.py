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
from warnings import filterwarnings

from beartype.roar import BeartypeDecorHintPep585DeprecationWarning

filterwarnings("ignore", category=BeartypeDecorHintPep585DeprecationWarning)

from pathwisegp import (
    approximations,
    gps,
    inducing,
    kernels,
    mean_functions,
    parameters,
    posteriors,
    prng,
)
from pathwisegp.approximations import (
    VFE,
    Centered,
    NonCentered,
)
from pathwisegp.dataset import Dataset
from pathwisegp.errors import (
    InvalidArgumentError,
    NumericalError,
    UnsupportedApproximationError,
)
from pathwisegp.inducing import inducing_distribution
from pathwisegp.posteriors import SparsePosterior
from pathwisegp.sampling import (
    PosteriorSample,
    pathwise_sample,
)
from pathwisegp.weight_space import build_rff_weight_space_approx

__license__ = "Apache-2.0"
__description__ = "Pathwise sampling from sparse variational Gaussian processes in JAX"
__version__ = "0.1.0"

__all__ = [
    "approximations",
    "gps",
    "inducing",
    "kernels",
    "mean_functions",
    "parameters",
    "posteriors",
    "prng",
    "Centered",
    "NonCentered",
    "VFE",
    "Dataset",
    "InvalidArgumentError",
    "NumericalError",
    "UnsupportedApproximationError",
    "inducing_distribution",
    "SparsePosterior",
    "PosteriorSample",
    "pathwise_sample",
    "build_rff_weight_space_approx",
]
