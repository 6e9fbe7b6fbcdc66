"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every write service in the kernel layer.  Services use
    ``session.flush()`` -- never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    - Transaction boundaries: services flush within the caller's
      transaction and never commit or rollback themselves.  The caller
      (``session_scope()``, the cost engine facade or a test harness)
      owns commit/rollback, so a failed operation leaves no partial write.

Failure modes:
    - A subclass that calls ``session.commit()`` breaks the all-or-nothing
      guarantee of batch operations.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from roster_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller and uses
        ``session.flush()`` to persist changes within the active
        transaction.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide query-only methods -- those belong in
          ``roster_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session
