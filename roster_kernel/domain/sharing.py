"""
Cost-sharing edges and the adjacency structure built from them.

Responsibility:
    Hold the directed sharing relationships between projects as a closed,
    validated value type, and answer structural questions about the edge
    set: outgoing / incoming edges per project, reciprocal pairs, and
    sources whose outgoing percentages add up to more than 100.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  Built by selectors from stored
    rows, consumed by the Cost-Sharing Resolver and by ProjectService.

Invariants enforced:
    - 0 <= percentage <= 100 (validated on construction).
    - source != destination.
    - At most one edge per ordered (source, destination) pair.

Non-goals:
    - Does not walk arbitrary-length cycles.  Sharing is single-hop, so
      only the direct reciprocal case (A->B and B->A) is reported.
    - Does not clamp over-allocated sources; it only reports them.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from roster_kernel.db.types import HUNDRED, ZERO
from roster_kernel.domain.values import validate_percentage
from roster_kernel.exceptions import (
    DuplicateSharingEdgeError,
    InvalidInputError,
    SelfSharingError,
)


@dataclass(frozen=True)
class SharingEdge:
    """Source shares ``percentage``% of its original cost to destination."""

    source_project_id: UUID
    destination_project_id: UUID
    percentage: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "percentage", validate_percentage(self.percentage))
        if self.source_project_id == self.destination_project_id:
            raise SelfSharingError(str(self.source_project_id))

    @property
    def key(self) -> tuple[UUID, UUID]:
        return (self.source_project_id, self.destination_project_id)

    @property
    def reverse_key(self) -> tuple[UUID, UUID]:
        return (self.destination_project_id, self.source_project_id)


def parse_sharing_payload(
    source_project_id: UUID,
    payload: Iterable[Mapping[str, object]],
) -> tuple[SharingEdge, ...]:
    """
    Convert loosely-typed form/JSON rows into validated edges.

    Each row must carry exactly ``destination_project_id`` and
    ``percentage``.  Unknown keys are rejected rather than ignored.

    Raises:
        InvalidInputError: missing/unknown keys or malformed project id.
        InvalidPercentageError, SelfSharingError, DuplicateSharingEdgeError.
    """
    edges: list[SharingEdge] = []
    seen: set[UUID] = set()
    for row in payload:
        keys = set(row.keys())
        if keys != {"destination_project_id", "percentage"}:
            raise InvalidInputError(
                f"Sharing row must have destination_project_id and percentage, got {sorted(keys)}"
            )
        raw_dest = row["destination_project_id"]
        try:
            dest = raw_dest if isinstance(raw_dest, UUID) else UUID(str(raw_dest))
        except ValueError:
            raise InvalidInputError(f"Invalid destination project id: {raw_dest!r}") from None
        if dest in seen:
            raise DuplicateSharingEdgeError(str(source_project_id), str(dest))
        seen.add(dest)
        edges.append(SharingEdge(source_project_id, dest, row["percentage"]))
    return tuple(edges)


@dataclass(frozen=True)
class SharingGraph:
    """
    Adjacency view of the sharing edges, keyed by project id.

    Guarantees:
        - ``outgoing(p)`` / ``incoming(p)`` return edges in insertion order.
        - ``has_reciprocal(a, b) == has_reciprocal(b, a)``.
    """

    edges: tuple[SharingEdge, ...] = ()
    _by_key: dict[tuple[UUID, UUID], SharingEdge] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )
    _outgoing: dict[UUID, list[SharingEdge]] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )
    _incoming: dict[UUID, list[SharingEdge]] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        for edge in self.edges:
            if edge.key in self._by_key:
                raise DuplicateSharingEdgeError(
                    str(edge.source_project_id), str(edge.destination_project_id)
                )
            self._by_key[edge.key] = edge
            self._outgoing.setdefault(edge.source_project_id, []).append(edge)
            self._incoming.setdefault(edge.destination_project_id, []).append(edge)

    @classmethod
    def from_edges(cls, edges: Iterable[SharingEdge]) -> SharingGraph:
        return cls(edges=tuple(edges))

    def outgoing(self, project_id: UUID) -> tuple[SharingEdge, ...]:
        return tuple(self._outgoing.get(project_id, ()))

    def incoming(self, project_id: UUID) -> tuple[SharingEdge, ...]:
        return tuple(self._incoming.get(project_id, ()))

    def get(self, source_project_id: UUID, destination_project_id: UUID) -> SharingEdge | None:
        return self._by_key.get((source_project_id, destination_project_id))

    def has_edge(self, source_project_id: UUID, destination_project_id: UUID) -> bool:
        return (source_project_id, destination_project_id) in self._by_key

    def has_reciprocal(self, project_a: UUID, project_b: UUID) -> bool:
        """True when edges exist in both directions between a and b."""
        return self.has_edge(project_a, project_b) and self.has_edge(project_b, project_a)

    def would_be_reciprocal(self, source_project_id: UUID, destination_project_id: UUID) -> bool:
        """True when adding source->destination would pair with an existing reverse edge."""
        return self.has_edge(destination_project_id, source_project_id)

    def reciprocal_counterparts(self, project_id: UUID) -> tuple[UUID, ...]:
        """Projects that share with ``project_id`` in both directions."""
        return tuple(
            edge.destination_project_id
            for edge in self.outgoing(project_id)
            if self.has_edge(edge.destination_project_id, project_id)
        )

    def reciprocal_pairs(self) -> tuple[tuple[UUID, UUID], ...]:
        """Each reciprocal pair once, in first-seen edge order."""
        pairs: list[tuple[UUID, UUID]] = []
        seen: set[frozenset[UUID]] = set()
        for edge in self.edges:
            pair = frozenset(edge.key)
            if pair in seen or not self.has_edge(*edge.reverse_key):
                continue
            seen.add(pair)
            pairs.append(edge.key)
        return tuple(pairs)

    def outgoing_total(self, project_id: UUID) -> Decimal:
        return sum((e.percentage for e in self.outgoing(project_id)), ZERO)

    def over_allocated_sources(self) -> tuple[UUID, ...]:
        """Sources whose outgoing percentages sum above 100."""
        return tuple(
            source for source in self._outgoing
            if self.outgoing_total(source) > HUNDRED
        )

    def counterparts(self, project_id: UUID) -> frozenset[UUID]:
        """Every project on the other end of an edge touching ``project_id``."""
        return frozenset(
            [e.destination_project_id for e in self.outgoing(project_id)]
            + [e.source_project_id for e in self.incoming(project_id)]
        )

    def project_ids(self) -> frozenset[UUID]:
        """Every project referenced by any edge."""
        ids: set[UUID] = set()
        for edge in self.edges:
            ids.update(edge.key)
        return frozenset(ids)
