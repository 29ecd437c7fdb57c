"""Transaction boundaries for writes that must land together.

``atomic`` runs a block inside one Protean ``UnitOfWork``. On SQL providers
``lock_rows`` takes ``SELECT ... FOR UPDATE`` locks on aggregate rows, so a
read-check-write cycle stays exclusive across worker processes until the
transaction commits.

The in-memory provider commits by swapping a copy of the whole store back in,
so its write transactions are applied one at a time.
"""

import threading
from contextlib import contextmanager

from protean import UnitOfWork
from protean.exceptions import ExpectedVersionError, TransactionError
from protean.utils.globals import current_domain, current_uow
from protean.utils.reflection import id_field
from sqlalchemy import select

from marketplace.errors import ConcurrentUpdate, PersistenceFailure
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)

MEMORY = "memory"

_memory_writes = threading.RLock()


def _database(provider) -> str:
    return provider.__class__.__database__


@contextmanager
def serialized_writes():
    """Apply in-memory write transactions one at a time. No-op on SQL providers."""
    if _database(current_domain.providers["default"]) != MEMORY:
        yield
        return
    with _memory_writes:
        yield


@contextmanager
def atomic(operation: str):
    """Run the block in a single UnitOfWork, joining one already in progress.

    Version conflicts detected on commit surface as ``ConcurrentUpdate``; any
    other commit failure as ``PersistenceFailure``.
    """
    if current_uow and current_uow.in_progress:
        yield current_uow
        return

    with serialized_writes():
        try:
            with UnitOfWork() as uow:
                yield uow
        except ExpectedVersionError as exc:
            logger.warning("concurrent_update_detected", operation=operation, error=str(exc))
            raise ConcurrentUpdate(str(exc)) from exc
        except TransactionError as exc:
            logger.error("transaction_failed", operation=operation, error=str(exc))
            raise PersistenceFailure(operation, exc) from exc


def lock_rows(aggregate_cls, identifiers) -> None:
    """Lock the rows of ``identifiers`` until the surrounding transaction ends.

    Rows are locked in identifier order. Must be called inside ``atomic``.
    """
    identifiers = sorted({str(i) for i in identifiers})
    dao = current_domain.repository_for(aggregate_cls)._dao
    if not identifiers or _database(dao.provider) == MEMORY:
        return

    model = dao.database_model_cls
    column = getattr(model, id_field(aggregate_cls).attribute_name)
    session = current_uow.get_session(dao.provider.name)
    session.execute(select(column).where(column.in_(identifiers)).order_by(column).with_for_update())
