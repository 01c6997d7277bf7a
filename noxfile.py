"""Nox automation configuration for the Robot Arm Backend.

Provides automated testing, linting and formatting tasks.
"""

import nox

# Default sessions to run
nox.options.sessions = ["lint", "tests"]
nox.options.reuse_existing_virtualenvs = True


@nox.session(python=["3.9", "3.10", "3.11", "3.12"])
def tests(session):
    """Run the test suite."""
    session.install("-e", ".[dev]")
    session.run("pytest", *session.posargs)


@nox.session(python="3.11")
def coverage(session):
    """Run tests with coverage reporting."""
    session.install("-e", ".[dev]")
    session.run(
        "pytest",
        "--cov=robotarm",
        "--cov-report=term-missing",
        "--cov-report=xml",
        *session.posargs
    )


@nox.session(python="3.11")
def lint(session):
    """Run linters (flake8 and mypy)."""
    session.install("-e", ".[dev]")
    session.run("flake8", "robotarm", "tests")
    session.run("mypy", "robotarm", "--ignore-missing-imports")


@nox.session(python="3.11")
def format(session):
    """Format code with black."""
    session.install("black")
    session.run("black", "robotarm", "tests", "main.py", "noxfile.py")


@nox.session(python="3.11")
def tests_unit(session):
    """Run unit tests only."""
    session.install("-e", ".[dev]")
    session.run("pytest", "tests/unit", "-v", *session.posargs)


@nox.session(python="3.11")
def tests_integration(session):
    """Run integration tests only."""
    session.install("-e", ".[dev]")
    session.run("pytest", "tests/integration", "-v", *session.posargs)


@nox.session(python="3.11")
def simulate(session):
    """Serve the HTTP API against the simulated arm."""
    session.install("-e", ".")
    session.run("robotarm-backend", "--simulate", *session.posargs)
