from setuptools import find_packages, setup


readme = open("README.md").read()
NAME = "pathwisegp"


REQUIRES = [
    "jax>=0.4.16,<0.8",
    "jaxlib>=0.4.16,<0.8",
    "flax>=0.10.0,<0.12",
    "cola-ml>=0.0.5",
    "numpyro>=0.13.0",
    "jaxtyping>=0.2.24",
    "beartype>=0.16.0,<0.23",
]

EXTRAS = {
    "dev": [
        "black",
        "isort",
        "flake8",
        "hypothesis",
        "pytest",
        "pytest-cov",
        "pytest-xdist",
    ],
    "cuda": ["jax[cuda]"],
}


setup(
    name=NAME,
    version="0.1.0",
    author="The pathwisegp Contributors",
    packages=find_packages(".", exclude=["tests", "tests.*"]),
    license="Apache-2.0",
    description="Pathwise sampling from sparse variational Gaussian processes in JAX.",
    long_description=readme,
    long_description_content_type="text/markdown",
    python_requires=">=3.10",
    install_requires=REQUIRES,
    tests_require=EXTRAS["dev"],
    extras_require=EXTRAS,
    keywords=["gaussian-processes jax machine-learning bayesian pathwise-sampling"],
)
