"""Database error translation shared by the logic modules."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from django.db import DatabaseError

from server.apps.uploads.exceptions import PersistenceError

logger = logging.getLogger(__name__)


@contextmanager
def translate_database_errors(operation: str) -> Iterator[None]:
    """Re-raise ORM failures as PersistenceError.

    Must wrap ``transaction.atomic()`` rather than sit inside it, so
    the transaction is rolled back before the error is translated.

    Args:
        operation: Short description used in logs and the error.

    Raises:
        PersistenceError: If the wrapped block raised DatabaseError.
    """
    try:
        yield
    except DatabaseError as error:
        logger.exception('Database operation failed: %s', operation)
        raise PersistenceError(operation) from error
