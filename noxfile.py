import nox

# Based on the blog post https://cjolowicz.github.io/posts/hypermodern-python-03-linting/
LOCATIONS = ["pathwisegp", "tests"]


@nox.session(python="3.10")
def lint(session):
    args = session.posargs or LOCATIONS
    session.install("flake8")
    session.run("flake8", *args)


@nox.session(python="3.10")
def black(session):
    args = session.posargs or LOCATIONS
    session.install("black")
    session.run("black", *args)


@nox.session(python="3.10")
def tests(session: nox.session):
    args = session.posargs or ["tests"]
    session.run("python", "-m", "pip", "install", "-e", ".[dev]")
    session.run("pytest", "-n", "auto", "--cov", "pathwisegp", "--cov-report", "xml", *args)
