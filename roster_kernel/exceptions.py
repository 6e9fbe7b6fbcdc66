"""
Typed Exception Hierarchy for the Roster Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (HTTP handlers, report renderers, batch jobs) must react to
failures by kind, not by message text:

    try:
        engine.compute_cost_sharing(project_id, 2025, 1, original_cost)
    except InactiveProjectReferenceError as e:
        api_response(code=e.code, project=e.project_id)
    except NotFoundError as e:
        api_response(status=404, code=e.code)

Every exception has a CODE class attribute (machine-readable, API-safe)
and carries its context as attributes.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    RosterKernelError (base)
    |
    +-- NotFoundError
    |   +-- ProjectNotFoundError
    |   +-- StaffNotFoundError
    |   +-- RosterNotFoundError
    |   +-- RosterEntryNotFoundError
    |   +-- SharingEdgeNotFoundError
    |
    +-- InvalidInputError
    |   +-- InvalidPeriodError
    |   +-- InvalidDayError
    |   +-- InvalidShiftCodeError
    |   +-- InvalidPercentageError
    |   +-- InvalidWageError
    |   +-- SelfSharingError
    |   +-- DuplicateSharingEdgeError
    |   +-- SharingOverAllocatedError
    |
    +-- InconsistentError
    |   +-- StaffProjectMismatchError
    |   +-- InactiveProjectReferenceError
    |   +-- NegativeNetCostError
    |   +-- MissingOriginalCostError
    |
    +-- ReferentialError
    |   +-- StaffReferencedError
    |
    +-- AttendanceCacheReadOnlyError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                          | When Raised
--------------|-------------------------------|-----------------------------------
Not found     | PROJECT_NOT_FOUND             | Project ID doesn't exist
              | STAFF_NOT_FOUND               | Staff ID doesn't exist
              | ROSTER_NOT_FOUND              | Roster ID doesn't exist (writes)
              | ROSTER_ENTRY_NOT_FOUND        | Entry ID doesn't exist
              | SHARING_EDGE_NOT_FOUND        | No edge for (source, destination)
--------------|-------------------------------|-----------------------------------
Invalid input | INVALID_PERIOD                | Month outside 1..12, bad year
              | INVALID_DAY                   | Day outside 1..days-in-month
              | INVALID_SHIFT_CODE            | Code not in the vocabulary
              | INVALID_PERCENTAGE            | Outside [0, 100] or > 4 places
              | INVALID_WAGE                  | Daily wage not positive
              | SELF_SHARING                  | Edge source == destination
              | DUPLICATE_SHARING_EDGE        | Second edge for one ordered pair
              | SHARING_OVER_ALLOCATED        | Outgoing total above 100 (policy)
--------------|-------------------------------|-----------------------------------
Inconsistent  | STAFF_PROJECT_MISMATCH        | Entry staff not in roster project
              | INACTIVE_PROJECT_REFERENCE    | Edge counterpart inactive for period
              | NEGATIVE_NET_COST             | Sharing drives net cost below zero
              | MISSING_ORIGINAL_COST         | Source cost not supplied to resolver
--------------|-------------------------------|-----------------------------------
Referential   | STAFF_REFERENCED              | Hard delete of staff with entries
--------------|-------------------------------|-----------------------------------
Cache         | ATTENDANCE_CACHE_READ_ONLY    | Remark on a non-storing cache

A read for a period with no activity yet is NOT an error: it yields
zero-valued results.  Reciprocal sharing is a warning, never an exception.
"""


class RosterKernelError(Exception):
    """
    Base exception for all roster kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "ROSTER_KERNEL_ERROR"


# Not-found exceptions


class NotFoundError(RosterKernelError):
    """Base exception for missing records."""

    code: str = "NOT_FOUND"


class ProjectNotFoundError(NotFoundError):
    """Project with given ID was not found."""

    code: str = "PROJECT_NOT_FOUND"

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")


class StaffNotFoundError(NotFoundError):
    """Staff member with given ID was not found."""

    code: str = "STAFF_NOT_FOUND"

    def __init__(self, staff_id: str):
        self.staff_id = staff_id
        super().__init__(f"Staff not found: {staff_id}")


class RosterNotFoundError(NotFoundError):
    """Roster with given ID was not found."""

    code: str = "ROSTER_NOT_FOUND"

    def __init__(self, roster_id: str):
        self.roster_id = roster_id
        super().__init__(f"Roster not found: {roster_id}")


class RosterEntryNotFoundError(NotFoundError):
    """Roster entry with given ID was not found."""

    code: str = "ROSTER_ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Roster entry not found: {entry_id}")


class SharingEdgeNotFoundError(NotFoundError):
    """No cost-sharing edge exists for the ordered pair."""

    code: str = "SHARING_EDGE_NOT_FOUND"

    def __init__(self, source_project_id: str, destination_project_id: str):
        self.source_project_id = source_project_id
        self.destination_project_id = destination_project_id
        super().__init__(
            f"No cost sharing from {source_project_id} to {destination_project_id}"
        )


# Invalid-input exceptions


class InvalidInputError(RosterKernelError):
    """Base exception for inputs rejected at the boundary."""

    code: str = "INVALID_INPUT"


class InvalidPeriodError(InvalidInputError):
    """Year or month is out of range."""

    code: str = "INVALID_PERIOD"

    def __init__(self, year: object, month: object):
        self.year = year
        self.month = month
        super().__init__(f"Invalid period: year={year!r}, month={month!r}")


class InvalidDayError(InvalidInputError):
    """Day is outside 1..days-in-month for the period."""

    code: str = "INVALID_DAY"

    def __init__(self, day: object, days_in_month: int):
        self.day = day
        self.days_in_month = days_in_month
        super().__init__(f"Invalid day {day!r} (must be 1-{days_in_month})")


class InvalidShiftCodeError(InvalidInputError):
    """Shift code is not part of the closed vocabulary."""

    code: str = "INVALID_SHIFT_CODE"

    def __init__(self, shift_code: object, valid_codes: tuple[str, ...]):
        self.shift_code = shift_code
        self.valid_codes = valid_codes
        super().__init__(
            f"Invalid shift code {shift_code!r}. Valid codes: {', '.join(valid_codes)}"
        )


class InvalidPercentageError(InvalidInputError):
    """Sharing percentage is outside [0, 100] or finer than 4 decimal places."""

    code: str = "INVALID_PERCENTAGE"

    def __init__(self, percentage: object):
        self.percentage = percentage
        super().__init__(
            f"Invalid sharing percentage {percentage!r} "
            f"(must be 0-100 with at most 4 decimal places)"
        )


class InvalidWageError(InvalidInputError):
    """Daily wage is not a positive decimal."""

    code: str = "INVALID_WAGE"

    def __init__(self, daily_wage: object):
        self.daily_wage = daily_wage
        super().__init__(f"Invalid daily wage {daily_wage!r} (must be positive)")


class SelfSharingError(InvalidInputError):
    """A project cannot share cost with itself."""

    code: str = "SELF_SHARING"

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project {project_id} cannot share cost with itself")


class DuplicateSharingEdgeError(InvalidInputError):
    """At most one edge per ordered (source, destination) pair."""

    code: str = "DUPLICATE_SHARING_EDGE"

    def __init__(self, source_project_id: str, destination_project_id: str):
        self.source_project_id = source_project_id
        self.destination_project_id = destination_project_id
        super().__init__(
            f"Cost sharing from {source_project_id} to {destination_project_id} "
            f"is declared more than once"
        )


class SharingOverAllocatedError(InvalidInputError):
    """Outgoing percentages of one source would exceed 100."""

    code: str = "SHARING_OVER_ALLOCATED"

    def __init__(self, source_project_id: str, total_percentage: str):
        self.source_project_id = source_project_id
        self.total_percentage = total_percentage
        super().__init__(
            f"Project {source_project_id} would share out {total_percentage}% in total"
        )


# Inconsistency exceptions


class InconsistentError(RosterKernelError):
    """Base exception for stored data that violates a cross-record invariant."""

    code: str = "INCONSISTENT"


class StaffProjectMismatchError(InconsistentError):
    """Roster entry's staff does not belong to the roster's project."""

    code: str = "STAFF_PROJECT_MISMATCH"

    def __init__(self, staff_id: str, staff_project_id: str, roster_project_id: str):
        self.staff_id = staff_id
        self.staff_project_id = staff_project_id
        self.roster_project_id = roster_project_id
        super().__init__(
            f"Staff {staff_id} belongs to project {staff_project_id}, "
            f"not roster project {roster_project_id}"
        )


class InactiveProjectReferenceError(InconsistentError):
    """A sharing edge references a project that is not active for the period."""

    code: str = "INACTIVE_PROJECT_REFERENCE"

    def __init__(self, project_id: str, referenced_by: str, period: str):
        self.project_id = project_id
        self.referenced_by = referenced_by
        self.period = period
        super().__init__(
            f"Project {project_id} (shared with {referenced_by}) is not active for {period}"
        )


class NegativeNetCostError(InconsistentError):
    """Cost sharing drives a project's net cost below zero."""

    code: str = "NEGATIVE_NET_COST"

    def __init__(self, project_id: str, net_cost: str):
        self.project_id = project_id
        self.net_cost = net_cost
        super().__init__(f"Net cost for project {project_id} is negative: {net_cost}")


class MissingOriginalCostError(InconsistentError):
    """The original cost of a project needed for resolution was not supplied."""

    code: str = "MISSING_ORIGINAL_COST"

    def __init__(self, project_id: str, required_by: str):
        self.project_id = project_id
        self.required_by = required_by
        super().__init__(
            f"Original cost of project {project_id} is required to resolve {required_by}"
        )


# Referential exceptions


class ReferentialError(RosterKernelError):
    """Base exception for deletes blocked by dependent records."""

    code: str = "REFERENTIAL_ERROR"


class StaffReferencedError(ReferentialError):
    """Staff with recorded roster entries can only be deactivated."""

    code: str = "STAFF_REFERENCED"

    def __init__(self, staff_id: str, entry_count: int):
        self.staff_id = staff_id
        self.entry_count = entry_count
        super().__init__(
            f"Cannot delete staff {staff_id} with {entry_count} roster entries; "
            f"deactivate instead"
        )


# Cache exceptions


class AttendanceCacheReadOnlyError(RosterKernelError):
    """A write was requested from a cache instance built with ``store=False``."""

    code: str = "ATTENDANCE_CACHE_READ_ONLY"

    def __init__(self, staff_id: str, period: str):
        self.staff_id = staff_id
        self.period = period
        super().__init__(
            f"Attendance cache is read-only; cannot store {staff_id} for {period}"
        )
