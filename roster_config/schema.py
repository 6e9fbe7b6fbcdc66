"""
Configuration schema (``roster_config.schema``).

Responsibility
--------------
Frozen dataclass describing every tunable of the cost engine.  All
validation happens in ``__post_init__`` so that an ``EngineConfig`` that
exists is a valid one.

Architecture position
---------------------
**Config layer** -- pure data.  Imported by the loader, by
``roster_services`` and by tests.  Has no dependency on the kernel other
than the shared day-category and rounding vocabulary.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from decimal import Decimal
from typing import Any

from roster_kernel.db.types import ZERO, to_decimal
from roster_kernel.domain.shift_codes import LEAVE_CATEGORIES, DayCategory


class OutgoingSharePolicy:
    """What to do when a source's outgoing percentages exceed 100."""

    REJECT = "reject"
    ALLOW = "allow"

    ALL = (REJECT, ALLOW)


@dataclass(frozen=True)
class EngineConfig:
    """
    Cost-engine parameters.

    Guarantees:
        - Amounts and rates are Decimal, never float.
        - ``paid_leave_categories`` only names leave categories.
        - ``portfolio_max_workers >= 1``.
    """

    currency: str = "THB"
    money_decimal_places: int = 2
    absence_deduction_rate: Decimal = Decimal("1")
    late_deduction_amount: Decimal = Decimal("0")
    paid_leave_categories: frozenset[DayCategory] = field(
        default_factory=lambda: frozenset({DayCategory.SICK_LEAVE, DayCategory.VACATION})
    )
    include_inactive_staff: bool = True
    outgoing_share_policy: str = OutgoingSharePolicy.REJECT
    portfolio_max_workers: int = 4
    use_attendance_cache: bool = True

    def __post_init__(self) -> None:
        if not self.currency or len(self.currency) != 3:
            raise ValueError(f"currency must be a 3-letter code, got {self.currency!r}")
        if not isinstance(self.money_decimal_places, int) or not 0 <= self.money_decimal_places <= 6:
            raise ValueError(
                f"money_decimal_places must be 0-6, got {self.money_decimal_places!r}"
            )

        rate = to_decimal(self.absence_deduction_rate)
        if rate < ZERO:
            raise ValueError(f"absence_deduction_rate must be >= 0, got {rate}")
        object.__setattr__(self, "absence_deduction_rate", rate)

        late = to_decimal(self.late_deduction_amount)
        if late < ZERO:
            raise ValueError(f"late_deduction_amount must be >= 0, got {late}")
        object.__setattr__(self, "late_deduction_amount", late)

        categories = frozenset(DayCategory(c) for c in self.paid_leave_categories)
        if not categories <= LEAVE_CATEGORIES:
            raise ValueError(
                f"paid_leave_categories must be leave categories, got "
                f"{sorted(c.value for c in categories - LEAVE_CATEGORIES)}"
            )
        object.__setattr__(self, "paid_leave_categories", categories)

        if self.outgoing_share_policy not in OutgoingSharePolicy.ALL:
            raise ValueError(
                f"outgoing_share_policy must be one of {OutgoingSharePolicy.ALL}, "
                f"got {self.outgoing_share_policy!r}"
            )
        if not isinstance(self.portfolio_max_workers, int) or self.portfolio_max_workers < 1:
            raise ValueError(
                f"portfolio_max_workers must be >= 1, got {self.portfolio_max_workers!r}"
            )

    @property
    def rejects_over_allocation(self) -> bool:
        return self.outgoing_share_policy == OutgoingSharePolicy.REJECT

    @classmethod
    def with_defaults(cls) -> EngineConfig:
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EngineConfig:
        """
        Build from a parsed YAML mapping.

        Raises:
            ValueError: on unknown keys or invalid values.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown configuration keys: {sorted(unknown)}")

        kwargs = dict(data)
        for key in ("absence_deduction_rate", "late_deduction_amount"):
            if key in kwargs and isinstance(kwargs[key], float):
                # YAML reads 1.5 as float; go through str to keep the literal digits
                kwargs[key] = str(kwargs[key])
        if "paid_leave_categories" in kwargs:
            kwargs["paid_leave_categories"] = frozenset(kwargs["paid_leave_categories"] or ())
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "currency": self.currency,
            "money_decimal_places": self.money_decimal_places,
            "absence_deduction_rate": str(self.absence_deduction_rate),
            "late_deduction_amount": str(self.late_deduction_amount),
            "paid_leave_categories": sorted(c.value for c in self.paid_leave_categories),
            "include_inactive_staff": self.include_inactive_staff,
            "outgoing_share_policy": self.outgoing_share_policy,
            "portfolio_max_workers": self.portfolio_max_workers,
            "use_attendance_cache": self.use_attendance_cache,
        }
