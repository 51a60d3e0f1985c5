"""
Session hooks that turn committed base-table mutations into refresh triggers.

Any flush touching a watched table (ORM add/update/delete) or any DML statement
against one (``query(...).delete()``, ``session.execute(insert(...))``) flags
the session. The flag is consumed on commit, so a transaction with many
mutations triggers exactly one refresh, and a rolled-back one triggers none.
"""

from typing import Callable, Iterable, Optional

import structlog
from sqlalchemy import event
from sqlalchemy.orm import sessionmaker

from asc_registry.models import RawLicense, ZipGeo

logger = structlog.get_logger(__name__)

MUTATION_FLAG = "asc_registry.base_tables_mutated"

WATCHED_TABLES = frozenset([RawLicense.__tablename__, ZipGeo.__tablename__])


def _table_name(obj) -> Optional[str]:
    table = getattr(obj, "__table__", None)
    return getattr(table, "name", None)


def install_refresh_hooks(
    session_factory: sessionmaker,
    on_commit: Callable[[], object],
    tables: Iterable[str] = WATCHED_TABLES,
) -> Callable[[], None]:
    """
    Call ``on_commit`` once after every commit that mutated a watched table.

    Returns:
        A function that removes the hooks again
    """
    watched = frozenset(tables)

    def after_flush(session, flush_context):
        for obj in list(session.new) + list(session.dirty) + list(session.deleted):
            if _table_name(obj) in watched:
                session.info[MUTATION_FLAG] = True
                return

    def do_orm_execute(orm_execute_state):
        statement = orm_execute_state.statement
        if not getattr(statement, "is_dml", False):
            return
        table = getattr(statement, "table", None)
        if getattr(table, "name", None) in watched:
            orm_execute_state.session.info[MUTATION_FLAG] = True

    def after_commit(session):
        if session.info.pop(MUTATION_FLAG, False):
            logger.debug("Committed base-table mutation, triggering refresh")
            on_commit()

    def after_rollback(session):
        session.info.pop(MUTATION_FLAG, None)

    listeners = [
        ("after_flush", after_flush),
        ("do_orm_execute", do_orm_execute),
        ("after_commit", after_commit),
        ("after_rollback", after_rollback),
    ]
    for name, fn in listeners:
        event.listen(session_factory, name, fn)

    def remove():
        for name, fn in listeners:
            event.remove(session_factory, name, fn)

    return remove
