"""Test sessions for the storefront.

``tests`` runs the whole suite on the in-memory provider. ``tests_sqlite``
and ``tests_postgres`` rerun it against real databases; only PostgreSQL
exercises the concurrent checkout tests (they skip elsewhere).
"""

import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13"]

# psycopg2-binary ships a compiled extension; poetry's cache can hand back
# a build for another interpreter.
_REBUILD = ["psycopg2-binary"]


def _install(session: nox.Session) -> None:
    session.run("poetry", "install", "--all-extras", external=True)
    session.run("pip", "install", "--force-reinstall", "--no-cache-dir", *_REBUILD)


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    _install(session)
    session.run("pytest", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
def tests_domain(session: nox.Session) -> None:
    """Pure domain rules only; no database needed."""
    _install(session)
    session.run("pytest", "-m", "domain", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
def tests_sqlite(session: nox.Session) -> None:
    _install(session)
    session.run("pytest", "--env", "sqlite", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
def tests_postgres(session: nox.Session) -> None:
    """Needs DATABASE_URL pointing at an empty PostgreSQL database."""
    _install(session)
    session.run("python", "src/manage.py", "--env", "production", "setup-db")
    session.run("pytest", "--env", "production", *session.posargs)
