"""
Module: roster_kernel.selectors.base
Responsibility: Abstract base class for all read-only query selectors.
    Selectors provide structured read access to projects, staff, rosters
    and sharing edges without mutation capability.
Architecture position: Kernel > Selectors.  May import from db/, models/
    and domain/.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Read-only access: selectors accept a Session from the caller but MUST
      NOT call session.add(), session.delete(), session.commit() or
      session.flush().
    - DTO return convention: selectors return frozen dataclasses, never
      raw ORM instances.
    - Session ownership: the caller owns the session and its transaction.

Failure modes:
    - NotFoundError subclasses from ``get_*`` methods when a required
      record is missing.  ``find_*`` methods return None instead.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from roster_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only
        queries and return DTOs.  They MUST NOT mutate any data.
    """

    def __init__(self, session: Session):
        self.session = session
