"""Database helpers shared by the services.

Row-level locking and snapshot reads degrade gracefully on backends that
do not support them (SQLite in local development and tests).
"""

from __future__ import annotations

from contextlib import contextmanager

from django.db import connection, transaction  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore


def lock_queryset_if_possible(queryset, of=()):
    """Apply select_for_update when inside transaction.atomic().

    ``of`` limits the lock to the named relations ("self" for the queried
    model), so rows joined in with select_related stay unlocked.
    """

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update(of=of)
    except NotSupportedError:
        return queryset


@contextmanager
def read_snapshot():
    """Run the enclosed reads against one consistent snapshot.

    On PostgreSQL the transaction is switched to REPEATABLE READ before the
    first query, so every SELECT inside sees the same committed state. Other
    backends get a plain atomic block.
    """

    outermost = not connection.in_atomic_block
    with transaction.atomic():
        if outermost and connection.vendor == "postgresql":
            with connection.cursor() as cursor:
                cursor.execute("SET TRANSACTION ISOLATION LEVEL REPEATABLE READ")
        yield

