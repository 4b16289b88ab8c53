"""Classification of driver integrity errors.

PostgreSQL (asyncpg) and SQLite report constraint violations with different
messages; repositories use these helpers to translate them to domain errors.
"""

from sqlalchemy.exc import IntegrityError


def _message(exc: IntegrityError) -> str:
    return str(exc.orig).lower() if exc.orig is not None else str(exc).lower()


def is_unique_violation(exc: IntegrityError) -> bool:
    """Duplicate primary key or unique index entry."""
    message = _message(exc)
    return "unique" in message or "duplicate" in message


def is_foreign_key_violation(exc: IntegrityError) -> bool:
    """Reference to a missing parent row."""
    return "foreign key" in _message(exc)
